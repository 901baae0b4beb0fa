from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlsplit


log = logging.getLogger("familyframe")

Catalog = Mapping[str, Tuple["StreamSource", ...]]


@dataclass(frozen=True)
class StreamSource:
    name: str
    url: str
    fallback_urls: Tuple[str, ...] = ()
    logo: Optional[str] = None
    group: Optional[str] = None

    @property
    def candidate_urls(self) -> Tuple[str, ...]:
        return (self.url, *self.fallback_urls)

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["StreamSource"]:
        if not isinstance(raw, dict):
            return None
        name = raw.get("name")
        url = raw.get("url")
        if not isinstance(name, str) or not name.strip():
            return None
        if not isinstance(url, str) or not url.strip():
            return None
        fallbacks_raw = raw.get("fallbackUrls") or raw.get("fallback_urls") or []
        fallbacks = tuple(
            entry.strip() for entry in fallbacks_raw if isinstance(entry, str) and entry.strip()
        ) if isinstance(fallbacks_raw, list) else ()
        logo = raw.get("logo") if isinstance(raw.get("logo"), str) else None
        group = raw.get("group") if isinstance(raw.get("group"), str) else None
        return cls(name=name.strip(), url=url.strip(), fallback_urls=fallbacks, logo=logo or None, group=group or None)


def freeze_catalog(categories: Mapping[str, Sequence[StreamSource]]) -> Catalog:
    return MappingProxyType({name: tuple(sources) for name, sources in categories.items()})


def catalog_hostnames(*catalogs: Catalog) -> Iterator[str]:
    for catalog in catalogs:
        for sources in catalog.values():
            for source in sources:
                for url in source.candidate_urls:
                    try:
                        host = urlsplit(url).hostname
                    except ValueError:
                        continue
                    if host:
                        yield host


def count_sources(catalog: Catalog) -> int:
    return sum(len(sources) for sources in catalog.values())


def _parse_categories(data: Any, label: str) -> Optional[Dict[str, List[StreamSource]]]:
    if not isinstance(data, dict):
        return None
    result: Dict[str, List[StreamSource]] = {}
    for category, entries in data.items():
        if not isinstance(category, str) or not isinstance(entries, list):
            log.warning("Stream catalog: %s category %r is invalid; skipping", label, category)
            continue
        sources: List[StreamSource] = []
        for raw in entries:
            source = StreamSource.from_dict(raw)
            if source is None:
                log.warning("Stream catalog: invalid %s entry in %r skipped", label, category)
                continue
            sources.append(source)
        result[category] = sources
    return result


def load_catalog_file(path: Optional[Path], defaults: Mapping[str, Catalog]) -> Dict[str, Catalog]:
    """Load ``{"radio": {...}, "tv": {...}}`` from ``path``.

    Sections that are missing or unusable keep their built-in defaults.
    """
    loaded: Dict[str, Catalog] = dict(defaults)
    if path is None:
        return loaded
    if not path.exists():
        log.warning("Stream catalog %s not found; using built-in catalog", path)
        return loaded
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        log.warning("Stream catalog %s is invalid (%s); using built-in catalog", path, exc)
        return loaded
    if not isinstance(data, dict):
        log.warning("Stream catalog %s must be an object; using built-in catalog", path)
        return loaded
    for section in defaults:
        categories = _parse_categories(data.get(section), section)
        if categories is None:
            continue
        loaded[section] = freeze_catalog(categories)
    return loaded


def build_catalog(entries: Iterable[Tuple[str, Sequence[dict]]]) -> Catalog:
    categories: Dict[str, List[StreamSource]] = {}
    for category, raw_sources in entries:
        categories[category] = [source for source in map(StreamSource.from_dict, raw_sources) if source]
    return freeze_catalog(categories)
