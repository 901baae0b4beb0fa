from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional, Union
from urllib.parse import urlsplit

import httpx

from services.allowlist import AllowList, guard_redirects
from services.errors import UpstreamError, ValidationError
from services.manifest import MANIFEST_HEADER, has_manifest_header, looks_like_manifest, rewrite_manifest


log = logging.getLogger("familyframe")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "bg-BG,bg;q=0.9,en-US;q=0.8,en;q=0.7"
DEFAULT_MAX_MANIFEST_BYTES = 2 * 1024 * 1024
# Room for a BOM and blank lines ahead of the #EXTM3U header.
MANIFEST_SNIFF_BYTES = 64


class CancellationToken:
    """Cooperative cancellation flag, optionally backed by a disconnect probe.

    ``probe`` is typically ``request.is_disconnected``; once it reports True
    the token stays cancelled.
    """

    def __init__(self, probe: Optional[Callable[[], Awaitable[bool]]] = None) -> None:
        self._probe = probe
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    async def is_cancelled(self) -> bool:
        if self._cancelled:
            return True
        if self._probe is not None and await self._probe():
            self._cancelled = True
        return self._cancelled


@dataclass
class RelayedManifest:
    body: str


@dataclass
class RelayedStream:
    status_code: int
    headers: Dict[str, str]
    chunks: AsyncIterator[bytes]


RelayResult = Union[RelayedManifest, RelayedStream]


def upstream_origin(url: str) -> str:
    parsed = urlsplit(url)
    return f"{parsed.scheme}://{parsed.netloc}"


@dataclass
class StreamRelay:
    client_factory: Callable[[], httpx.AsyncClient]
    proxy_path: str = "/api/media/proxy"
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE
    max_manifest_bytes: int = DEFAULT_MAX_MANIFEST_BYTES
    forwarded_headers: tuple = ("content-range", "accept-ranges")
    allowlist: Optional[AllowList] = None

    def upstream_headers(self, url: str, *, accept: Optional[str] = None, range_header: Optional[str] = None) -> Dict[str, str]:
        origin = upstream_origin(url)
        headers = {
            "User-Agent": self.user_agent,
            "Accept": accept or "*/*",
            "Accept-Language": self.accept_language,
            "Accept-Encoding": "identity",
            "Origin": origin,
            "Referer": f"{origin}/",
        }
        if range_header:
            headers["Range"] = range_header
        return headers

    async def open(
        self,
        url: str,
        *,
        accept: Optional[str] = None,
        range_header: Optional[str] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> RelayResult:
        """Fetch ``url`` and return a rewritten manifest or a chunk stream.

        The returned stream owns the upstream connection and releases it when
        exhausted, closed, or cancelled.
        """
        cancel = cancel or CancellationToken()
        client = self.client_factory()
        response: Optional[httpx.Response] = None
        handed_off = False
        try:
            if self.allowlist is not None:
                guard_redirects(client, self.allowlist)
            try:
                request = client.build_request(
                    "GET", url, headers=self.upstream_headers(url, accept=accept, range_header=range_header)
                )
                response = await client.send(request, stream=True)
            except httpx.HTTPError as exc:
                log.warning("Media proxy fetch failed for %s: %s", url, exc)
                raise UpstreamError("Stream error") from exc
            except (httpx.InvalidURL, ValueError) as exc:
                # httpx is stricter than urlsplit (control characters, bad IDNA labels).
                log.warning("Media proxy: httpx rejected %r: %s", url, exc)
                raise ValidationError("Invalid URL format") from exc

            if not response.is_success:
                log.warning("Media proxy error: %s for %s", response.status_code, url)
                raise UpstreamError(
                    f"Upstream error: {response.status_code}", status_code=response.status_code
                )

            content_type = response.headers.get("content-type", "")
            candidate = looks_like_manifest(url, content_type)
            chunks = response.aiter_raw()
            head = await _read_head(chunks, cancel, MANIFEST_SNIFF_BYTES if candidate else 1)
            if not head:
                raise UpstreamError("No response body")

            if candidate and has_manifest_header(head):
                body = await self._read_manifest(chunks, head, url)
                return RelayedManifest(body=rewrite_manifest(body, url, self.proxy_path))
            if candidate:
                log.info("Media proxy: %s lacks %s header, streaming as bytes", url, MANIFEST_HEADER)

            result = RelayedStream(
                status_code=response.status_code,
                headers=self._downstream_headers(response),
                chunks=_forward(client, response, chunks, head, cancel, url),
            )
            handed_off = True
            return result
        finally:
            if not handed_off:
                await _release(client, response)

    async def _read_manifest(self, chunks: AsyncIterator[bytes], head: bytes, url: str) -> str:
        buffer = bytearray(head)
        try:
            while len(buffer) <= self.max_manifest_bytes:
                try:
                    chunk = await chunks.__anext__()
                except StopAsyncIteration:
                    return bytes(buffer).decode("utf-8", errors="replace").lstrip("\ufeff")
                buffer.extend(chunk)
        except httpx.HTTPError as exc:
            log.warning("Media proxy: manifest read failed for %s: %s", url, exc)
            raise UpstreamError("Stream error") from exc
        log.warning("Media proxy: manifest %s exceeds %d bytes", url, self.max_manifest_bytes)
        raise UpstreamError("Manifest too large")

    def _downstream_headers(self, response: httpx.Response) -> Dict[str, str]:
        headers = {
            "Content-Type": response.headers.get("content-type") or "application/octet-stream",
            "Cache-Control": "no-cache",
            "Access-Control-Allow-Origin": "*",
        }
        length = response.headers.get("content-length")
        if length:
            headers["Content-Length"] = length
        for name in self.forwarded_headers:
            value = response.headers.get(name)
            if value:
                headers[name.title()] = value
        return headers


async def _read_head(chunks: AsyncIterator[bytes], cancel: CancellationToken, want: int) -> bytes:
    buffer = b""
    while len(buffer) < want:
        if await cancel.is_cancelled():
            break
        try:
            chunk = await chunks.__anext__()
        except StopAsyncIteration:
            break
        except httpx.HTTPError as exc:
            raise UpstreamError("Stream error") from exc
        buffer += chunk
    return buffer


async def _forward(
    client: httpx.AsyncClient,
    response: httpx.Response,
    chunks: AsyncIterator[bytes],
    head: bytes,
    cancel: CancellationToken,
    url: str,
) -> AsyncIterator[bytes]:
    try:
        if head:
            yield head
        while True:
            if await cancel.is_cancelled():
                log.debug("Media proxy: client went away, stopping %s", url)
                return
            try:
                chunk = await chunks.__anext__()
            except StopAsyncIteration:
                return
            except httpx.HTTPError as exc:
                log.warning("Media proxy: upstream stream ended early for %s: %s", url, exc)
                return
            if chunk:
                yield chunk
    finally:
        await _release(client, response)


async def _release(client: httpx.AsyncClient, response: Optional[httpx.Response]) -> None:
    if response is not None:
        await response.aclose()
    await client.aclose()
