"""Candidate page discovery for a documentation website."""

from dataclasses import dataclass

import structlog

from worker.crawler.frontier import FrontierCrawler
from worker.crawler.sitemap import SitemapDiscoverer
from worker.crawler.url import (
    PathScope,
    classify_path_scope,
    get_base_path,
    is_denied,
    is_same_domain,
    normalize_url,
)

logger = structlog.get_logger(__name__)


@dataclass
class DiscoveryResult:
    """Candidate URLs for a website plus counters describing how they were found."""

    urls: list[str]
    base_path: str
    sitemap_urls: int = 0
    under_base_path: int = 0
    other_path: int = 0
    frontier_urls: int = 0
    frontier_waves: int = 0
    fell_back: bool = False

    @property
    def used_frontier(self) -> bool:
        return self.frontier_waves > 0


class PageDiscoverer:
    """
    Combines sitemap discovery and frontier crawling into one URL list.

    URLs under the base path are never count-limited. URLs elsewhere on the
    site are capped at ``max_other_path_urls`` in discovery order. The
    frontier crawl only runs when the sitemap yields fewer than
    ``frontier_threshold`` URLs under the base path.
    """

    def __init__(
        self,
        sitemaps: SitemapDiscoverer,
        frontier: FrontierCrawler,
        frontier_threshold: int = 20,
        max_other_path_urls: int = 50,
        denied_patterns: tuple[str, ...] | list[str] = (),
    ):
        self.sitemaps = sitemaps
        self.frontier = frontier
        self.frontier_threshold = frontier_threshold
        self.max_other_path_urls = max_other_path_urls
        self.denied_patterns = tuple(denied_patterns)

    async def discover(self, base_url: str) -> DiscoveryResult:
        """
        Discover the pages to index for ``base_url``.

        Never raises: an unexpected failure yields ``[base_url]``.
        """
        try:
            return await self._discover(base_url)
        except Exception as e:
            logger.error("discovery_failed", url=base_url, error=str(e), exc_info=True)
            return DiscoveryResult(
                urls=[base_url],
                base_path=get_base_path(base_url),
                fell_back=True,
            )

    async def _discover(self, base_url: str) -> DiscoveryResult:
        base_path = get_base_path(base_url)

        # Ordered set; the base URL is always the first candidate
        discovered: dict[str, None] = {base_url: None}
        # Normalized spellings already taken, so links found by the frontier
        # do not reintroduce a page under a second spelling
        seen = {normalize_url(base_url) or base_url}

        sitemap_urls = await self.sitemaps.discover(base_url)

        under_base: list[str] = []
        other: list[str] = []
        for raw_url in sitemap_urls:
            url = normalize_url(raw_url)
            if url is None or url in seen:
                continue
            seen.add(url)
            if classify_path_scope(url, base_path) is PathScope.UNDER_BASE_PATH:
                under_base.append(url)
            else:
                other.append(url)

        for url in under_base:
            discovered.setdefault(url, None)
        for url in other[: self.max_other_path_urls]:
            discovered.setdefault(url, None)

        logger.info(
            "sitemap_urls_partitioned",
            url=base_url,
            base_path=base_path,
            under_base_path=len(under_base),
            other_path=min(len(other), self.max_other_path_urls),
            other_path_total=len(other),
        )

        frontier_urls = 0
        frontier_waves = 0
        if len(under_base) < self.frontier_threshold:
            seeds = [
                url
                for url in discovered
                if classify_path_scope(url, base_path) is PathScope.UNDER_BASE_PATH
            ]
            logger.info("frontier_crawl_started", url=base_url, seeds=len(seeds))

            crawled = await self.frontier.crawl(seeds, base_path)
            before = len(discovered)
            for url in crawled.urls:
                if url in seen:
                    continue
                seen.add(url)
                discovered.setdefault(url, None)
            frontier_urls = len(discovered) - before
            frontier_waves = crawled.waves

            logger.info(
                "frontier_crawl_complete",
                url=base_url,
                waves=crawled.waves,
                new_urls=frontier_urls,
            )

        urls = [url for url in discovered if self._keep(url, base_url)]

        result = DiscoveryResult(
            urls=urls,
            base_path=base_path,
            sitemap_urls=len(sitemap_urls),
            under_base_path=sum(
                1 for url in urls if classify_path_scope(url, base_path) is PathScope.UNDER_BASE_PATH
            ),
            frontier_urls=frontier_urls,
            frontier_waves=frontier_waves,
        )
        result.other_path = len(urls) - result.under_base_path

        logger.info(
            "discovery_complete",
            url=base_url,
            total=len(urls),
            under_base_path=result.under_base_path,
            other_path=result.other_path,
        )
        return result

    def _keep(self, url: str, base_url: str) -> bool:
        if not is_same_domain(url, base_url):
            return False
        return not is_denied(url, self.denied_patterns)
