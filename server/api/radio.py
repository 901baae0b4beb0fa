import logging
from typing import Callable, Dict, List, Optional

from fastapi import APIRouter, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from providers.registry import Catalog
from services.allowlist import AllowList
from services.errors import GatewayError, UpstreamError, ValidationError
from services.liveness import LivenessProber, directory_payload
from services.manifest import proxy_url_for
from services.now_playing import NowPlayingExtractor, NowPlayingInfo


log = logging.getLogger("familyframe")


class NowPlayingPayload(BaseModel):
    stationName: Optional[str] = None
    description: Optional[str] = None
    genre: Optional[str] = None
    bitrate: Optional[int] = None
    stationUrl: Optional[str] = None
    contentType: Optional[str] = None
    nowPlaying: Optional[str] = None
    artist: Optional[str] = None
    title: Optional[str] = None

    @classmethod
    def from_info(cls, info: NowPlayingInfo) -> "NowPlayingPayload":
        return cls(
            stationName=info.station_name,
            description=info.description,
            genre=info.genre,
            bitrate=info.bitrate_kbps,
            stationUrl=info.homepage_url,
            contentType=info.content_type,
            nowPlaying=info.raw_title,
            artist=info.artist,
            title=info.title,
        )


def create_radio_router(
    *,
    allowlist: AllowList,
    extractor: NowPlayingExtractor,
    prober: LivenessProber,
    get_catalog: Callable[[], Catalog],
    proxy_path: str,
) -> APIRouter:
    router = APIRouter()

    @router.get("/api/radio/stations")
    async def list_radio_stations() -> Dict[str, List[dict]]:
        directory = await prober.probe_directory(get_catalog())
        return directory_payload(directory)

    @router.get("/api/radio/stream")
    async def legacy_radio_stream(url: Optional[str] = Query(None)) -> RedirectResponse:
        # Older clients still call this; the proxy endpoint does the work.
        if not url:
            raise ValidationError("Missing stream URL")
        return RedirectResponse(proxy_url_for(url, proxy_path), status_code=307)

    @router.get("/api/radio/metadata", response_model=NowPlayingPayload)
    async def radio_metadata(url: Optional[str] = Query(None)) -> NowPlayingPayload:
        target = allowlist.check(url)
        try:
            info = await extractor.extract(target)
        except GatewayError:
            raise
        except Exception as exc:
            log.exception("[Radio Metadata] Unexpected failure for %s", target)
            raise UpstreamError("Failed to fetch stream metadata", status_code=500) from exc
        return NowPlayingPayload.from_info(info)

    return router
