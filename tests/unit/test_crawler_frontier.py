"""Tests for the wave-based frontier crawl."""

import httpx

from worker.crawler.fetcher import Fetcher
from worker.crawler.frontier import CrawlFrontier, FrontierCrawler


def make_fetcher(pages: dict[str, str], requested: list[str] | None = None) -> Fetcher:
    """Fetcher over a MockTransport serving HTML pages by path."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requested is not None:
            requested.append(request.url.path)
        if request.url.path in pages:
            return httpx.Response(200, html=pages[request.url.path])
        return httpx.Response(404)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return Fetcher(user_agent="test", max_retries=0, retry_delay=0, client=client)


def links(*paths: str) -> str:
    anchors = "".join(f'<a href="{p}">{p}</a>' for p in paths)
    return f"<html><body>{anchors}</body></html>"


class TestCrawlFrontier:
    """Tests for the frontier state."""

    def test_add_is_unique(self) -> None:
        """A URL is discovered once."""
        frontier = CrawlFrontier()
        assert frontier.add("https://x/docs/a") is True
        assert frontier.add("https://x/docs/a") is False
        assert list(frontier.discovered) == ["https://x/docs/a"]
        assert len(frontier.queue) == 1

    def test_next_wave_marks_processed(self) -> None:
        """Popped URLs are processed and never re-queued."""
        frontier = CrawlFrontier()
        frontier.seed(["https://x/1", "https://x/2", "https://x/3"])

        assert frontier.next_wave(2) == ["https://x/1", "https://x/2"]
        assert frontier.processed == {"https://x/1", "https://x/2"}
        assert frontier.add("https://x/1") is False
        assert frontier.next_wave(5) == ["https://x/3"]
        assert frontier.next_wave(5) == []


class TestFrontierCrawler:
    """Tests for FrontierCrawler."""

    async def test_stops_after_max_waves(self) -> None:
        """An endless chain of links is cut off after three waves."""
        pages = {f"/docs/p{i}": links(f"/docs/p{i + 1}") for i in range(10)}
        requested: list[str] = []
        crawler = FrontierCrawler(make_fetcher(pages, requested), wave_delay=0)

        result = await crawler.crawl(["https://docs.example.com/docs/p0"], "/docs")

        assert result.waves == 3
        assert result.processed == 3
        assert requested == ["/docs/p0", "/docs/p1", "/docs/p2"]
        assert result.urls == [f"https://docs.example.com/docs/p{i}" for i in range(4)]

    async def test_each_url_fetched_once(self) -> None:
        """Pages linking to each other are not reprocessed."""
        pages = {
            "/docs/a": links("/docs/b", "/docs/c"),
            "/docs/b": links("/docs/a", "/docs/c"),
            "/docs/c": links("/docs/a", "/docs/b"),
        }
        requested: list[str] = []
        crawler = FrontierCrawler(make_fetcher(pages, requested), wave_delay=0)

        result = await crawler.crawl(["https://docs.example.com/docs/a"], "/docs")

        assert sorted(requested) == ["/docs/a", "/docs/b", "/docs/c"]
        assert len(set(requested)) == len(requested)
        assert len(result.urls) == len(set(result.urls)) == 3
        assert result.waves == 2

    async def test_only_follows_links_under_base_path(self) -> None:
        """Links outside the base path and off-site are ignored."""
        pages = {
            "/docs/a": links("/docs/b", "/blog/post", "https://other.com/docs/x"),
            "/docs/b": links(),
        }
        crawler = FrontierCrawler(make_fetcher(pages), wave_delay=0)

        result = await crawler.crawl(["https://docs.example.com/docs/a"], "/docs")

        assert result.urls == ["https://docs.example.com/docs/a", "https://docs.example.com/docs/b"]

    async def test_wave_size_is_bounded(self) -> None:
        """At most max_urls_per_wave pages are fetched per wave."""
        hub = links(*[f"/docs/p{i}" for i in range(10)])
        pages = {"/docs/": hub, **{f"/docs/p{i}": links() for i in range(10)}}
        requested: list[str] = []
        crawler = FrontierCrawler(
            make_fetcher(pages, requested),
            max_waves=2,
            max_urls_per_wave=4,
            wave_delay=0,
        )

        result = await crawler.crawl(["https://docs.example.com/docs/"], "/docs")

        assert result.waves == 2
        assert len(requested) == 5
        assert len(result.urls) == 11

    async def test_failed_fetches_yield_no_links(self) -> None:
        """Errors on a page do not stop the crawl."""
        crawler = FrontierCrawler(make_fetcher({}), wave_delay=0)

        result = await crawler.crawl(["https://docs.example.com/docs/missing"], "/docs")

        assert result.urls == ["https://docs.example.com/docs/missing"]
        assert result.waves == 1
