from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import SplitResult, urlsplit

import httpx

from services.errors import PolicyError, ValidationError


log = logging.getLogger("familyframe")

ALLOWED_SCHEMES = ("http", "https")

# Bulgarian TV/radio CDNs and IPTV playlist hosts.
STREAM_DOMAINS = (
    "bss.neterra.tv",
    "bss1.neterra.tv",
    "live.ecomservice.bg",
    "live.cdn.bg",
    "cdn.bweb.bg",
    "tv.bnt.bg",
    "tv.nova.bg",
    "stream.btv.bg",
    "hls.btv.bg",
    "live.btv.bg",
    "100automoto.tv",
    "restr2.bgtv.bg",
    "bgtv.bg",
    "viamotionhsi.netplus.ch",
    "cdn.sstv.bg",
    "hls.sstv.bg",
    "stream.city.bg",
    "tv7.bg",
    "kanal3.bg",
    "europaplus.bg",
    "stream80.metacast.eu",
    "stream81.metacast.eu",
    "stream.metacast.eu",
    "metacast.eu",
    "stream.bnr.bg",
    "bnr.bg",
    "streamer.atlantis.bg",
    "live.radiofresh.bg",
    "play.global.audio",
    "streams.radioenergy.bg",
    "stream.bgradio.bg",
    "bgradio.bg",
    "iptv-org.github.io",
    "i.mjh.nz",
)


def normalize_domain(value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    domain = value.strip().lower().strip(".")
    return domain or None


def parse_stream_url(raw: Optional[str]) -> SplitResult:
    """Parse and sanity check an upstream URL; raises ValidationError."""
    candidate = (raw or "").strip()
    if not candidate:
        raise ValidationError("Missing stream URL")
    try:
        parsed = urlsplit(candidate)
        # Accessing .port validates it.
        parsed.port
    except ValueError as exc:
        raise ValidationError("Invalid URL format") from exc
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise ValidationError("Only HTTP/HTTPS URLs allowed")
    if not parsed.hostname:
        raise ValidationError("Invalid URL format")
    return parsed


@dataclass(frozen=True)
class AllowList:
    domains: frozenset

    @classmethod
    def build(cls, *sources: Iterable[str]) -> "AllowList":
        domains = set()
        for source in sources:
            for entry in source or ():
                normalized = normalize_domain(entry)
                if normalized:
                    domains.add(normalized)
        return cls(domains=frozenset(domains))

    def __len__(self) -> int:
        return len(self.domains)

    def permits(self, hostname: Optional[str]) -> bool:
        host = normalize_domain(hostname)
        if not host:
            return False
        if host in self.domains:
            return True
        # Walk parent domains: a.b.example.com -> b.example.com -> example.com
        parts = host.split(".")
        return any(".".join(parts[idx:]) in self.domains for idx in range(1, len(parts)))

    def check(self, raw_url: Optional[str]) -> str:
        """Return the cleaned URL when it may be fetched, otherwise raise."""
        parsed = parse_stream_url(raw_url)
        hostname = (parsed.hostname or "").lower()
        if not self.permits(hostname):
            log.warning("Media proxy blocked: %s not in allowlist", hostname)
            raise PolicyError("Stream domain not allowed")
        return (raw_url or "").strip()


def guard_redirects(client: httpx.AsyncClient, allowlist: AllowList) -> None:
    """Install a request hook so every hop of a redirect chain is re-checked."""

    async def _check(request: httpx.Request) -> None:
        if not allowlist.permits(request.url.host):
            log.warning("Media proxy blocked redirect: %s not in allowlist", request.url.host)
            raise PolicyError("Stream domain not allowed")

    client.event_hooks = {**client.event_hooks, "request": [*client.event_hooks["request"], _check]}
