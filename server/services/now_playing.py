"""ICY (Shoutcast/Icecast) "now playing" extraction.

An ICY stream asked for ``Icy-MetaData: 1`` answers with ``icy-metaint: N``
and then interleaves, after every N audio bytes, one length byte followed by
``length * 16`` bytes of ``StreamTitle='...';`` style text.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import asdict, dataclass
from typing import AsyncIterator, Callable, Optional, Tuple

import httpx

from services.allowlist import AllowList, guard_redirects
from services.errors import ParseError, StreamTimeoutError, UpstreamError, ValidationError


log = logging.getLogger("familyframe")

METADATA_BLOCK_UNIT = 16
METADATA_READ_MARGIN = 4096
MAX_METADATA_INTERVAL = 65535
TITLE_SEPARATOR = " - "

_STREAM_TITLE = re.compile(r"StreamTitle='(.*?)'(?:;|$)", re.DOTALL)


@dataclass
class NowPlayingInfo:
    station_name: Optional[str] = None
    description: Optional[str] = None
    genre: Optional[str] = None
    bitrate_kbps: Optional[int] = None
    homepage_url: Optional[str] = None
    content_type: Optional[str] = None
    raw_title: Optional[str] = None
    artist: Optional[str] = None
    title: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def parse_bitrate(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    # Some servers send "128,128" (one value per channel).
    first = value.split(",", 1)[0].strip()
    try:
        bitrate = int(first)
    except ValueError:
        return None
    return bitrate if bitrate >= 0 else None


def parse_metadata_interval(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        interval = int(value.strip())
    except ValueError:
        return None
    if 0 < interval <= MAX_METADATA_INTERVAL:
        return interval
    return None


def locate_metadata_block(consumed: int, chunk: bytes, interval: int) -> Tuple[Optional[bytes], int]:
    """Find the first metadata block relative to a running byte count.

    ``consumed`` is the number of body bytes that preceded ``chunk``. Returns
    ``(block, consumed_after)``. ``block`` is None when the boundary is not in
    ``chunk`` or the block is incomplete; an incomplete block leaves
    ``consumed`` unchanged so the caller can retry with more bytes appended to
    the same chunk. An empty block (length byte 0) is returned as ``b""``.
    """
    offset = interval - consumed
    if offset < 0 or offset >= len(chunk):
        return None, consumed + len(chunk)
    length = chunk[offset] * METADATA_BLOCK_UNIT
    end = offset + 1 + length
    if end > len(chunk):
        return None, consumed
    return chunk[offset + 1:end], consumed + end


def decode_metadata_block(block: bytes) -> str:
    try:
        text = block.decode("utf-8")
    except UnicodeDecodeError:
        text = block.decode("latin-1")
    return text.rstrip("\x00").strip()


def parse_stream_title(block: bytes) -> Tuple[str, Optional[str], str]:
    """Return ``(raw_title, artist, title)``; raises ParseError when absent."""
    text = decode_metadata_block(block)
    match = _STREAM_TITLE.search(text)
    if not match:
        raise ParseError("No StreamTitle in metadata block")
    raw = match.group(1).strip()
    if not raw:
        raise ParseError("Empty StreamTitle")
    parts = raw.split(TITLE_SEPARATOR)
    if len(parts) >= 2:
        return raw, parts[0].strip() or None, TITLE_SEPARATOR.join(parts[1:]).strip()
    return raw, None, raw


async def read_metadata_block(
    chunks: AsyncIterator[bytes],
    interval: int,
    *,
    deadline: float,
    margin: int = METADATA_READ_MARGIN,
) -> Optional[bytes]:
    """Read until the first metadata block, the byte budget, or the deadline."""
    loop = asyncio.get_running_loop()
    budget = interval + margin
    total = 0
    consumed = 0
    pending = b""
    while total < budget:
        remaining = deadline - loop.time()
        if remaining <= 0:
            log.debug("Radio metadata: read deadline reached after %d bytes", total)
            return None
        try:
            chunk = await asyncio.wait_for(chunks.__anext__(), timeout=remaining)
        except StopAsyncIteration:
            return None
        except asyncio.TimeoutError:
            log.debug("Radio metadata: read deadline reached after %d bytes", total)
            return None
        total += len(chunk)
        pending += chunk
        block, consumed_after = locate_metadata_block(consumed, pending, interval)
        if block is not None:
            return block
        if consumed_after != consumed:
            consumed = consumed_after
            pending = b""
    log.debug("Radio metadata: byte budget of %d exhausted", budget)
    return None


@dataclass
class NowPlayingExtractor:
    client_factory: Callable[[], httpx.AsyncClient]
    user_agent: str = "FamilyFrame/1.0"
    timeout: float = 5.0
    margin: int = METADATA_READ_MARGIN
    allowlist: Optional[AllowList] = None

    async def extract(self, url: str) -> NowPlayingInfo:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        headers = {"Icy-MetaData": "1", "User-Agent": self.user_agent}
        async with self.client_factory() as client:
            if self.allowlist is not None:
                guard_redirects(client, self.allowlist)
            try:
                request = client.build_request("GET", url, headers=headers)
                response = await asyncio.wait_for(client.send(request, stream=True), timeout=self.timeout)
            except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
                raise StreamTimeoutError("Timeout fetching stream metadata") from exc
            except httpx.HTTPError as exc:
                log.error("[Radio Metadata] Error: %s", exc)
                raise UpstreamError("Failed to fetch stream metadata", status_code=500) from exc
            except (httpx.InvalidURL, ValueError) as exc:
                log.warning("[Radio Metadata] httpx rejected %r: %s", url, exc)
                raise ValidationError("Invalid URL format") from exc
            try:
                info = self._describe(response)
                interval = parse_metadata_interval(response.headers.get("icy-metaint"))
                if interval is None or not response.is_success:
                    return info
                try:
                    block = await read_metadata_block(
                        response.aiter_raw(), interval, deadline=deadline, margin=self.margin
                    )
                except httpx.HTTPError as exc:
                    log.debug("Radio metadata: read failed for %s: %s", url, exc)
                    return info
                if block is None:
                    return info
                try:
                    info.raw_title, info.artist, info.title = parse_stream_title(block)
                except ParseError as exc:
                    log.debug("Radio metadata: %s for %s", exc, url)
                return info
            finally:
                await response.aclose()

    @staticmethod
    def _describe(response: httpx.Response) -> NowPlayingInfo:
        def _header(name: str) -> Optional[str]:
            value = response.headers.get(name)
            return value.strip() or None if value else None

        return NowPlayingInfo(
            station_name=_header("icy-name"),
            description=_header("icy-description"),
            genre=_header("icy-genre"),
            bitrate_kbps=parse_bitrate(_header("icy-br")),
            homepage_url=_header("icy-url"),
            content_type=_header("content-type"),
        )
