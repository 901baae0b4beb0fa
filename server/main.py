import logging
import os
from pathlib import Path
from typing import Callable, Mapping, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.health import create_health_router
from api.media import create_media_router
from api.radio import create_radio_router
from api.tv import create_tv_router
from providers.radio import RADIO_CATALOG
from providers.registry import Catalog, catalog_hostnames, count_sources, load_catalog_file
from providers.tv import TV_CATALOG
from services.allowlist import STREAM_DOMAINS, AllowList
from services.errors import GatewayError
from services.liveness import LivenessProber
from services.now_playing import NowPlayingExtractor
from services.relay import DEFAULT_ACCEPT_LANGUAGE, DEFAULT_USER_AGENT, StreamRelay


logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
log = logging.getLogger("familyframe")


def _env_float(name: str, default: float, *, low: float, high: float) -> float:
    try:
        value = float(os.getenv(name, str(default)))
    except ValueError:
        log.warning("%s is not a number; using %s", name, default)
        value = default
    return max(low, min(value, high))


MEDIA_PROXY_PATH = os.getenv("MEDIA_PROXY_PATH", "/api/media/proxy").strip() or "/api/media/proxy"
MEDIA_PROXY_EXTRA_DOMAINS = [
    part.strip() for part in os.getenv("MEDIA_PROXY_EXTRA_DOMAINS", "").split(",") if part.strip()
]
MEDIA_PROXY_USER_AGENT = os.getenv("MEDIA_PROXY_USER_AGENT", DEFAULT_USER_AGENT).strip() or DEFAULT_USER_AGENT
MEDIA_PROXY_ACCEPT_LANGUAGE = (
    os.getenv("MEDIA_PROXY_ACCEPT_LANGUAGE", DEFAULT_ACCEPT_LANGUAGE).strip() or DEFAULT_ACCEPT_LANGUAGE
)
MEDIA_PROXY_CONNECT_TIMEOUT = _env_float("MEDIA_PROXY_CONNECT_TIMEOUT", 15.0, low=1.0, high=120.0)
MEDIA_PROXY_MAX_MANIFEST_BYTES = int(
    _env_float("MEDIA_PROXY_MAX_MANIFEST_BYTES", 2 * 1024 * 1024, low=64 * 1024, high=64 * 1024 * 1024)
)
RADIO_METADATA_TIMEOUT = _env_float("RADIO_METADATA_TIMEOUT", 5.0, low=1.0, high=30.0)
RADIO_METADATA_USER_AGENT = os.getenv("RADIO_METADATA_USER_AGENT", "FamilyFrame/1.0").strip() or "FamilyFrame/1.0"
RADIO_PROBE_TIMEOUT = _env_float("RADIO_PROBE_TIMEOUT", 4.0, low=0.5, high=30.0)
TV_PROBE_TIMEOUT = _env_float("TV_PROBE_TIMEOUT", 3.0, low=0.5, high=30.0)
_catalog_path_raw = os.getenv("STREAM_CATALOG_PATH", "").strip()
STREAM_CATALOG_PATH = Path(_catalog_path_raw) if _catalog_path_raw else None


def _relay_client() -> httpx.AsyncClient:
    # No read timeout once streaming: live streams idle between chunks.
    timeout = httpx.Timeout(MEDIA_PROXY_CONNECT_TIMEOUT, read=None)
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


def _metadata_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=RADIO_METADATA_TIMEOUT, follow_redirects=True)


def _probe_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


async def _gateway_error_handler(_: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def create_app(
    *,
    catalogs: Optional[Mapping[str, Catalog]] = None,
    extra_domains: Optional[list] = None,
    relay_client: Callable[[], httpx.AsyncClient] = _relay_client,
    metadata_client: Callable[[], httpx.AsyncClient] = _metadata_client,
    probe_client: Callable[[float], httpx.AsyncClient] = _probe_client,
) -> FastAPI:
    if catalogs is None:
        catalogs = load_catalog_file(STREAM_CATALOG_PATH, {"radio": RADIO_CATALOG, "tv": TV_CATALOG})
    radio_catalog = catalogs["radio"]
    tv_catalog = catalogs["tv"]
    allowlist = AllowList.build(
        STREAM_DOMAINS,
        catalog_hostnames(radio_catalog, tv_catalog),
        MEDIA_PROXY_EXTRA_DOMAINS if extra_domains is None else extra_domains,
    )

    relay = StreamRelay(
        client_factory=relay_client,
        proxy_path=MEDIA_PROXY_PATH,
        user_agent=MEDIA_PROXY_USER_AGENT,
        accept_language=MEDIA_PROXY_ACCEPT_LANGUAGE,
        max_manifest_bytes=MEDIA_PROXY_MAX_MANIFEST_BYTES,
        allowlist=allowlist,
    )
    extractor = NowPlayingExtractor(
        client_factory=metadata_client,
        user_agent=RADIO_METADATA_USER_AGENT,
        timeout=RADIO_METADATA_TIMEOUT,
        allowlist=allowlist,
    )
    radio_prober = LivenessProber(
        client_factory=probe_client, head_timeout=RADIO_PROBE_TIMEOUT, get_timeout=RADIO_PROBE_TIMEOUT
    )
    tv_prober = LivenessProber(
        client_factory=probe_client, head_timeout=TV_PROBE_TIMEOUT, get_timeout=TV_PROBE_TIMEOUT
    )

    app = FastAPI(title="FamilyFrame Media Gateway", version="0.1.0")
    app.add_exception_handler(GatewayError, _gateway_error_handler)

    app.include_router(
        create_health_router(
            allowed_domain_count=lambda: len(allowlist),
            radio_source_count=lambda: count_sources(radio_catalog),
            tv_source_count=lambda: count_sources(tv_catalog),
        )
    )
    app.include_router(create_media_router(allowlist=allowlist, relay=relay, proxy_path=MEDIA_PROXY_PATH))
    app.include_router(
        create_radio_router(
            allowlist=allowlist,
            extractor=extractor,
            prober=radio_prober,
            get_catalog=lambda: radio_catalog,
            proxy_path=MEDIA_PROXY_PATH,
        )
    )
    app.include_router(create_tv_router(prober=tv_prober, get_catalog=lambda: tv_catalog))

    log.info(
        "Media gateway ready (allowed domains=%d, radio sources=%d, tv sources=%d)",
        len(allowlist),
        count_sources(radio_catalog),
        count_sources(tv_catalog),
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "5000")))
