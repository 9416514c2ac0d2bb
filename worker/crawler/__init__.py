"""Crawler package: page discovery, fetching, rendering and caching."""

# Lazy imports to avoid requiring Playwright at import time
from importlib import import_module
from typing import Any

_EXPORTS = {
    # Discovery
    "PageDiscoverer": "discovery",
    "DiscoveryResult": "discovery",
    "SitemapDiscoverer": "sitemap",
    "FrontierCrawler": "frontier",
    "CrawlFrontier": "frontier",
    # Fetcher
    "Fetcher": "fetcher",
    "FetchResult": "fetcher",
    # Rendering
    "PageRenderer": "render",
    "PlaywrightRenderer": "render",
    "PageRenderResult": "render",
    "RenderingEngine": "render",
    # Cache
    "ParsedContentCache": "cache",
    "CacheEntry": "cache",
    "CacheMetadata": "cache",
    # URL utilities
    "normalize_url": "url",
    "extract_domain": "url",
    "is_same_domain": "url",
    "extract_links": "url",
    "source_name_from_url": "url",
}

__all__ = list(_EXPORTS)


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        return getattr(import_module(f"{__name__}.{_EXPORTS[name]}"), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
