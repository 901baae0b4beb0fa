"""HLS manifest rewriting.

Every URI a manifest references (media segments, variant playlists, keys,
maps, media renditions) is resolved against the manifest's own URL and wrapped
into a proxy-relative URL so the player keeps fetching through the gateway.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Union
from urllib.parse import quote, urljoin

from services.errors import ParseError


log = logging.getLogger("familyframe")

COMMENT_SENTINEL = "#"
MANIFEST_HEADER = "#EXTM3U"
MANIFEST_CONTENT_TYPE = "application/vnd.apple.mpegurl"
MANIFEST_SUFFIXES = (".m3u8", ".m3u")

_URI_ATTRIBUTE = re.compile(r'(?<![A-Z0-9-])URI="([^"]*)"')
_URI_MARKER = re.compile(r'(?<![A-Z0-9-])URI=')


@dataclass(frozen=True)
class Blank:
    raw: str


@dataclass(frozen=True)
class Directive:
    raw: str
    uris: tuple = ()


@dataclass(frozen=True)
class MediaReference:
    raw: str
    uri: str


ManifestLine = Union[Blank, Directive, MediaReference]


def parse_line(raw: str) -> ManifestLine:
    """Classify one manifest line (without its terminator).

    Raises ParseError for a directive whose URI attribute is malformed.
    """
    stripped = raw.strip()
    if not stripped:
        return Blank(raw)
    if stripped.startswith(COMMENT_SENTINEL):
        markers = len(_URI_MARKER.findall(stripped))
        if not markers:
            return Directive(raw)
        uris = tuple(_URI_ATTRIBUTE.findall(stripped))
        if len(uris) != markers or any(not uri.strip() for uri in uris):
            raise ParseError(f"Malformed URI attribute: {stripped[:120]}")
        return Directive(raw, uris)
    return MediaReference(raw, stripped)


def resolve_reference(reference: str, base_url: str) -> str:
    return urljoin(base_url, reference.strip())


def proxy_url_for(absolute_url: str, proxy_path: str) -> str:
    return f"{proxy_path}?url={quote(absolute_url, safe='')}"


def rewrite_line(line: ManifestLine, base_url: str, proxy_path: str) -> str:
    if isinstance(line, MediaReference):
        return proxy_url_for(resolve_reference(line.uri, base_url), proxy_path)
    if isinstance(line, Directive) and line.uris:
        def _swap(match: "re.Match[str]") -> str:
            target = proxy_url_for(resolve_reference(match.group(1), base_url), proxy_path)
            return f'URI="{target}"'

        return _URI_ATTRIBUTE.sub(_swap, line.raw)
    return line.raw


def looks_like_manifest(url: str, content_type: Optional[str]) -> bool:
    """Cheap candidate check from the declared type and the URL path."""
    if "mpegurl" in (content_type or "").lower():
        return True
    path = url.split("?", 1)[0].split("#", 1)[0].lower()
    return path.endswith(MANIFEST_SUFFIXES)


def has_manifest_header(head: bytes) -> bool:
    text = head.lstrip(b"\xef\xbb\xbf").lstrip()
    return text.startswith(MANIFEST_HEADER.encode("ascii"))


def rewrite_manifest(body: str, base_url: str, proxy_path: str = "/api/media/proxy") -> str:
    """Rewrite a manifest body; line count, order and terminators are preserved."""
    output: List[str] = []
    skipped = 0
    for raw in body.split("\n"):
        terminator = ""
        if raw.endswith("\r"):
            raw, terminator = raw[:-1], "\r"
        try:
            line = parse_line(raw)
        except ParseError as exc:
            skipped += 1
            log.debug("Manifest line left unmodified: %s", exc)
            output.append(raw + terminator)
            continue
        output.append(rewrite_line(line, base_url, proxy_path) + terminator)
    if skipped:
        log.warning("Manifest %s: %d malformed line(s) left unmodified", base_url, skipped)
    return "\n".join(output)
