from __future__ import annotations

from typing import Callable

from fastapi import APIRouter


def create_health_router(
    *,
    allowed_domain_count: Callable[[], int],
    radio_source_count: Callable[[], int],
    tv_source_count: Callable[[], int],
) -> APIRouter:
    router = APIRouter()

    @router.get("/api/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "allowed_domains": allowed_domain_count(),
            "radio_sources": radio_source_count(),
            "tv_sources": tv_source_count(),
        }

    return router
