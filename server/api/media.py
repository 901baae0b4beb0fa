import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import Response, StreamingResponse

from services.allowlist import AllowList
from services.manifest import MANIFEST_CONTENT_TYPE
from services.relay import CancellationToken, RelayedManifest, StreamRelay


log = logging.getLogger("familyframe")


def create_media_router(*, allowlist: AllowList, relay: StreamRelay, proxy_path: str) -> APIRouter:
    router = APIRouter()

    @router.get(proxy_path)
    async def media_proxy(request: Request, url: Optional[str] = Query(None)) -> Response:
        """Proxy an allow-listed stream; HLS manifests come back rewritten."""
        target = allowlist.check(url)
        result = await relay.open(
            target,
            accept=request.headers.get("accept"),
            range_header=request.headers.get("range"),
            cancel=CancellationToken(request.is_disconnected),
        )
        if isinstance(result, RelayedManifest):
            headers = {
                "Access-Control-Allow-Origin": "*",
                "Cache-Control": "no-cache",
            }
            return Response(content=result.body, media_type=MANIFEST_CONTENT_TYPE, headers=headers)
        return StreamingResponse(result.chunks, status_code=result.status_code, headers=result.headers)

    return router
