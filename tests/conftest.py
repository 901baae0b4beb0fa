from __future__ import annotations

import asyncio
import inspect
from typing import AsyncIterator, Iterable, Optional

import httpx
import pytest


class ChunkedStream(httpx.AsyncByteStream):
    """Upstream body served chunk by chunk, counting how often it is read."""

    def __init__(self, chunks: Iterable[bytes], *, repeat_last: bool = False, stall: Optional[float] = None) -> None:
        self.chunks = list(chunks)
        self.repeat_last = repeat_last
        self.stall = stall
        self.reads = 0
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self.stall is not None:
            await asyncio.sleep(self.stall)
        for chunk in self.chunks:
            self.reads += 1
            yield chunk
        while self.repeat_last and self.chunks:
            self.reads += 1
            yield self.chunks[-1]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def client_factory():
    """Build httpx client factories whose requests are answered by ``handler``.

    The returned factory accepts (and ignores) a timeout argument so it can
    stand in for every client factory the services take. Requests are
    recorded on ``factory.calls``.
    """

    def _make(handler):
        calls = []

        async def _handle(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            result = handler(request)
            if inspect.isawaitable(result):
                result = await result
            return result

        transport = httpx.MockTransport(_handle)

        def build(*_args) -> httpx.AsyncClient:
            return httpx.AsyncClient(transport=transport, follow_redirects=True)

        build.calls = calls
        return build

    return _make


def upstream_reply(status_code: int = 200, *, body: bytes = b"", headers: Optional[dict] = None) -> httpx.Response:
    """A mocked upstream response whose body is still unread, as on the wire.

    ``httpx.Response(content=...)`` reads its body eagerly, which leaves
    nothing for ``aiter_raw`` on a streamed send.
    """
    headers = dict(headers or {})
    if body:
        headers.setdefault("content-length", str(len(body)))
    return httpx.Response(status_code, headers=headers, stream=ChunkedStream([body] if body else []))
