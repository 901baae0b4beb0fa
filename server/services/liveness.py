from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from providers.registry import StreamSource


log = logging.getLogger("familyframe")

HEAD_OK_STATUSES = frozenset({200, 302, 405})
GET_OK_STATUSES = frozenset({200, 302})


@dataclass(frozen=True)
class ProbeResult:
    source: StreamSource
    reachable_url: Optional[str] = None
    promoted_fallbacks: Tuple[str, ...] = ()

    @property
    def url(self) -> str:
        return self.reachable_url or self.source.url

    @property
    def fallback_urls(self) -> Tuple[str, ...]:
        if self.reachable_url is None:
            return self.source.fallback_urls
        return self.promoted_fallbacks

    def to_entry(self) -> dict:
        entry: dict = {"name": self.source.name, "url": self.url}
        if self.source.logo:
            entry["logo"] = self.source.logo
        if self.source.group:
            entry["group"] = self.source.group
        entry["fallbackUrls"] = list(self.fallback_urls)
        return entry


@dataclass
class LivenessProber:
    client_factory: Callable[[float], httpx.AsyncClient]
    head_timeout: float = 4.0
    get_timeout: float = 4.0

    async def _check(self, method: str, url: str, timeout: float, accepted: frozenset) -> bool:
        async def _attempt() -> int:
            async with self.client_factory(timeout) as client:
                request = client.build_request(method, url)
                response = await client.send(request, stream=True)
                await response.aclose()
                return response.status_code

        try:
            status = await asyncio.wait_for(_attempt(), timeout=timeout)
        except (asyncio.TimeoutError, httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            log.debug("Probe %s %s failed: %s", method, url, str(exc) or type(exc).__name__)
            return False
        return status in accepted

    async def check_url(self, url: str) -> bool:
        if await self._check("HEAD", url, self.head_timeout, HEAD_OK_STATUSES):
            return True
        return await self._check("GET", url, self.get_timeout, GET_OK_STATUSES)

    async def probe_source(self, source: StreamSource) -> ProbeResult:
        if await self.check_url(source.url):
            return ProbeResult(source=source, reachable_url=source.url, promoted_fallbacks=source.fallback_urls)
        for idx, fallback in enumerate(source.fallback_urls):
            if await self.check_url(fallback):
                remaining = source.fallback_urls[idx + 1:]
                log.info("Source %s: primary unreachable, promoting fallback %s", source.name, fallback)
                return ProbeResult(
                    source=source,
                    reachable_url=fallback,
                    promoted_fallbacks=(*remaining, source.url),
                )
        log.info("Source %s: no candidate answered the liveness probe; keeping it listed", source.name)
        return ProbeResult(source=source)

    async def probe_directory(
        self, catalog: Mapping[str, Sequence[StreamSource]]
    ) -> Dict[str, List[ProbeResult]]:
        """Probe every source of every category concurrently, keeping order."""
        categories = list(catalog.items())
        chains = [self.probe_source(source) for _, sources in categories for source in sources]
        results = iter(await asyncio.gather(*chains))
        directory: Dict[str, List[ProbeResult]] = {}
        for category, sources in categories:
            directory[category] = [next(results) for _ in sources]
        return directory


def directory_payload(directory: Mapping[str, Sequence[ProbeResult]]) -> Dict[str, List[dict]]:
    return {category: [result.to_entry() for result in results] for category, results in directory.items()}
