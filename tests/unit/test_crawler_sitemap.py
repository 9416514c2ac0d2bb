"""Tests for sitemap discovery."""

import gzip

import httpx
import pytest

from worker.crawler.sitemap import (
    SitemapDiscoverer,
    parse_robots_sitemaps,
    parse_text_sitemap,
    parse_xml_sitemap,
)

URLSET = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://docs.example.com/a</loc></url>
  <url><loc> https://docs.example.com/b </loc></url>
</urlset>"""

SITEMAP_INDEX = """<?xml version="1.0" encoding="UTF-8"?>
<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <sitemap><loc>https://docs.example.com/sitemap-1.xml</loc></sitemap>
  <sitemap><loc>https://docs.example.com/sitemap-2.xml</loc></sitemap>
</sitemapindex>"""


def make_client(routes: dict[str, httpx.Response]) -> httpx.AsyncClient:
    """Client that answers from a URL -> response map and 404s otherwise."""
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return routes.get(str(request.url), httpx.Response(404))

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client.requested = requested  # type: ignore[attr-defined]
    return client


class TestParsers:
    """Tests for the sitemap format parsers."""

    def test_parse_urlset(self) -> None:
        """Every loc is returned trimmed."""
        locations, is_index = parse_xml_sitemap(URLSET)
        assert locations == ["https://docs.example.com/a", "https://docs.example.com/b"]
        assert is_index is False

    def test_parse_index(self) -> None:
        """Sitemap indexes are recognized."""
        locations, is_index = parse_xml_sitemap(SITEMAP_INDEX)
        assert len(locations) == 2
        assert is_index is True

    def test_malformed_xml_uses_loc_pattern(self) -> None:
        """Broken XML still yields its loc values."""
        broken = "<urlset><url><loc>https://docs.example.com/a</loc></url><url><loc>https://docs.example.com/b</loc>"
        locations, is_index = parse_xml_sitemap(broken)
        assert locations == ["https://docs.example.com/a", "https://docs.example.com/b"]
        assert is_index is False

    def test_parse_text_sitemap(self) -> None:
        """Only lines starting with http are kept."""
        content = "https://docs.example.com/a\n# comment\n\n  https://docs.example.com/b  \nnot-a-url\n"
        assert parse_text_sitemap(content) == ["https://docs.example.com/a", "https://docs.example.com/b"]

    def test_parse_robots_sitemaps(self) -> None:
        """Sitemap directives are matched case-insensitively."""
        robots = "User-agent: *\nDisallow: /private\nSitemap: https://docs.example.com/s.txt\nsitemap: https://docs.example.com/s.xml\n"
        assert parse_robots_sitemaps(robots) == [
            "https://docs.example.com/s.txt",
            "https://docs.example.com/s.xml",
        ]


class TestSitemapDiscoverer:
    """Tests for SitemapDiscoverer."""

    async def test_sitemap_xml_wins(self) -> None:
        """The first candidate with URLs is used."""
        client = make_client({"https://docs.example.com/sitemap.xml": httpx.Response(200, text=URLSET)})
        async with client:
            urls = await SitemapDiscoverer(client).discover("https://docs.example.com/guide/")
        assert urls == ["https://docs.example.com/a", "https://docs.example.com/b"]
        assert client.requested == ["https://docs.example.com/sitemap.xml"]

    async def test_robots_points_to_text_sitemap(self) -> None:
        """sitemap.xml and sitemap.txt missing, robots.txt references a text sitemap."""
        client = make_client(
            {
                "https://docs.example.com/robots.txt": httpx.Response(
                    200, text="User-agent: *\nSitemap: https://docs.example.com/s.txt\n"
                ),
                "https://docs.example.com/s.txt": httpx.Response(
                    200,
                    text="https://docs.example.com/a\nhttps://docs.example.com/b\nhttps://docs.example.com/c\n",
                ),
            }
        )
        async with client:
            urls = await SitemapDiscoverer(client).discover("https://docs.example.com/")
        assert urls == [
            "https://docs.example.com/a",
            "https://docs.example.com/b",
            "https://docs.example.com/c",
        ]

    async def test_sitemap_index_is_expanded(self) -> None:
        """Nested sitemaps are fetched and concatenated."""
        client = make_client(
            {
                "https://docs.example.com/sitemap.xml": httpx.Response(200, text=SITEMAP_INDEX),
                "https://docs.example.com/sitemap-1.xml": httpx.Response(200, text=URLSET),
                "https://docs.example.com/sitemap-2.xml": httpx.Response(
                    200,
                    text='<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"><url><loc>https://docs.example.com/c</loc></url></urlset>',
                ),
            }
        )
        async with client:
            urls = await SitemapDiscoverer(client).discover("https://docs.example.com/")
        assert urls == [
            "https://docs.example.com/a",
            "https://docs.example.com/b",
            "https://docs.example.com/c",
        ]

    async def test_gzipped_sitemap(self) -> None:
        """Compressed sitemaps referenced by robots.txt are decompressed."""
        client = make_client(
            {
                "https://docs.example.com/robots.txt": httpx.Response(
                    200, text="Sitemap: https://docs.example.com/sitemap.xml.gz\n"
                ),
                "https://docs.example.com/sitemap.xml.gz": httpx.Response(
                    200, content=gzip.compress(URLSET.encode())
                ),
            }
        )
        async with client:
            urls = await SitemapDiscoverer(client).discover("https://docs.example.com/")
        assert len(urls) == 2

    async def test_nothing_found(self) -> None:
        """All candidates failing yields an empty list, not an error."""
        client = make_client({})
        async with client:
            urls = await SitemapDiscoverer(client).discover("https://docs.example.com/")
        assert urls == []
        assert len(client.requested) == 3

    async def test_transport_errors_are_swallowed(self) -> None:
        """Connection errors move on to the next candidate."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/sitemap.txt":
                return httpx.Response(200, text="https://docs.example.com/only\n")
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            urls = await SitemapDiscoverer(client).discover("https://docs.example.com/")
        assert urls == ["https://docs.example.com/only"]

    async def test_truncated_gzip_moves_to_next_sitemap(self) -> None:
        """A corrupt compressed sitemap is skipped and the next reference is used."""
        client = make_client(
            {
                "https://docs.example.com/robots.txt": httpx.Response(
                    200,
                    text=(
                        "Sitemap: https://docs.example.com/s.xml.gz\n"
                        "Sitemap: https://docs.example.com/s.txt\n"
                    ),
                ),
                "https://docs.example.com/s.xml.gz": httpx.Response(
                    200, content=gzip.compress(URLSET.encode())[:20]
                ),
                "https://docs.example.com/s.txt": httpx.Response(200, text="https://docs.example.com/a\n"),
            }
        )
        async with client:
            urls = await SitemapDiscoverer(client).discover("https://docs.example.com/")
        assert urls == ["https://docs.example.com/a"]
        assert "https://docs.example.com/s.txt" in client.requested


@pytest.mark.parametrize(
    "base_url",
    ["https://docs.example.com", "https://docs.example.com/guide/intro?x=1"],
)
def test_candidate_urls_use_site_root(base_url: str) -> None:
    """Candidates always live at the site root."""
    candidates = SitemapDiscoverer(httpx.AsyncClient()).candidate_urls(base_url)
    assert candidates == [
        "https://docs.example.com/sitemap.xml",
        "https://docs.example.com/sitemap.txt",
        "https://docs.example.com/robots.txt",
    ]
