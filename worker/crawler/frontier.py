"""Bounded wave-based link crawl used when sitemaps are sparse."""

import asyncio
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from worker.crawler.fetcher import Fetcher
from worker.crawler.url import extract_links, is_under_base_path

logger = structlog.get_logger(__name__)


@dataclass
class CrawlFrontier:
    """
    Shared state of a frontier crawl.

    ``discovered`` keeps insertion order so results are deterministic.
    Only the event loop mutates these collections, between awaits.
    """

    discovered: dict[str, None] = field(default_factory=dict)
    processed: set[str] = field(default_factory=set)
    queue: deque[str] = field(default_factory=deque)

    def seed(self, urls: Iterable[str]) -> None:
        for url in urls:
            self.add(url)

    def add(self, url: str) -> bool:
        """Record a URL; returns True if it was not seen before."""
        if url in self.discovered or url in self.processed:
            return False
        self.discovered[url] = None
        self.queue.append(url)
        return True

    def next_wave(self, size: int) -> list[str]:
        wave: list[str] = []
        while self.queue and len(wave) < size:
            url = self.queue.popleft()
            if url in self.processed:
                continue
            self.processed.add(url)
            wave.append(url)
        return wave


@dataclass
class FrontierResult:
    """Outcome of a frontier crawl."""

    urls: list[str]
    waves: int
    processed: int


class FrontierCrawler:
    """
    Breadth-first link expansion in a fixed number of waves.

    Each wave pops up to ``max_urls_per_wave`` URLs, fetches them
    concurrently, and enqueues same-domain links under the base path that
    have not been seen yet.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        max_waves: int = 3,
        max_urls_per_wave: int = 50,
        wave_delay: float = 1.0,
    ):
        self.fetcher = fetcher
        self.max_waves = max_waves
        self.max_urls_per_wave = max_urls_per_wave
        self.wave_delay = wave_delay

    async def crawl(self, seed_urls: list[str], base_path: str) -> FrontierResult:
        """
        Expand ``seed_urls`` by following links under ``base_path``.

        Args:
            seed_urls: URLs already known to be under the base path
            base_path: Path prefix every followed link must start with

        Returns:
            FrontierResult with every discovered URL in discovery order
        """
        frontier = CrawlFrontier()
        frontier.seed(seed_urls)

        waves = 0
        while frontier.queue and waves < self.max_waves:
            wave = frontier.next_wave(self.max_urls_per_wave)
            if not wave:
                break
            waves += 1

            results = await asyncio.gather(*(self._links_for(url) for url in wave))

            new_urls = 0
            for links in results:
                for link in links:
                    if is_under_base_path(link, base_path) and frontier.add(link):
                        new_urls += 1

            logger.info(
                "frontier_wave_complete",
                wave=waves,
                fetched=len(wave),
                new_urls=new_urls,
                queued=len(frontier.queue),
            )

            if frontier.queue and waves < self.max_waves and self.wave_delay > 0:
                await asyncio.sleep(self.wave_delay)

        return FrontierResult(
            urls=list(frontier.discovered),
            waves=waves,
            processed=len(frontier.processed),
        )

    async def _links_for(self, url: str) -> list[str]:
        """Fetch one page and return its links; failures yield none."""
        result = await self.fetcher.fetch(url)
        if not result.success or not result.html:
            logger.debug("frontier_fetch_failed", url=url, error=result.error)
            return []
        return extract_links(result.html, result.final_url or url)
