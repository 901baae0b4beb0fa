from typing import Callable, Dict, List

from fastapi import APIRouter

from providers.registry import Catalog
from services.liveness import LivenessProber, directory_payload


def create_tv_router(*, prober: LivenessProber, get_catalog: Callable[[], Catalog]) -> APIRouter:
    router = APIRouter()

    @router.get("/api/tv/channels")
    async def list_tv_channels() -> Dict[str, List[dict]]:
        """Every configured channel, with working fallbacks promoted."""
        directory = await prober.probe_directory(get_catalog())
        return directory_payload(directory)

    return router
