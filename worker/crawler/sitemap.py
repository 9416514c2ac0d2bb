"""Sitemap discovery from sitemap.xml, sitemap.txt and robots.txt."""

import contextlib
import gzip
import re
from xml.etree import ElementTree as ET

import httpx
import structlog

from worker.crawler.url import site_root

logger = structlog.get_logger(__name__)

# Fallback for sitemaps that are not well-formed XML
LOC_PATTERN = re.compile(r"<loc>\s*([^<]+?)\s*</loc>", re.IGNORECASE)

SITEMAP_DIRECTIVE = "sitemap:"


def parse_xml_sitemap(content: bytes | str) -> tuple[list[str], bool]:
    """
    Extract every ``<loc>`` value from sitemap XML.

    Returns:
        Tuple of (locations, is_sitemap_index)
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    try:
        root = ET.fromstring(content)
    except ET.ParseError:
        text = content.decode("utf-8", errors="replace")
        return [m.strip() for m in LOC_PATTERN.findall(text) if m.strip()], False

    locations = [
        elem.text.strip()
        for elem in root.iter()
        if isinstance(elem.tag, str) and elem.tag.endswith("loc") and elem.text and elem.text.strip()
    ]
    return locations, root.tag.endswith("sitemapindex")


def parse_text_sitemap(content: str) -> list[str]:
    """Extract lines starting with ``http`` from a plain-text sitemap."""
    return [line.strip() for line in content.splitlines() if line.strip().startswith("http")]


def parse_robots_sitemaps(content: str) -> list[str]:
    """Extract ``Sitemap:`` references from robots.txt (case-insensitive)."""
    refs: list[str] = []
    for line in content.splitlines():
        line = line.strip()
        if line.lower().startswith(SITEMAP_DIRECTIVE):
            ref = line[len(SITEMAP_DIRECTIVE) :].strip()
            if ref:
                refs.append(ref)
    return refs


class SitemapDiscoverer:
    """
    Finds a candidate URL set for a site from its sitemaps.

    Candidates are tried in order (``/sitemap.xml``, ``/sitemap.txt``,
    ``/robots.txt``) and the first non-empty list wins. Failures of a single
    candidate are logged and the next one is tried; nothing propagates.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str = "DocIndexBot/1.0",
        max_sitemaps: int = 10,
        max_depth: int = 2,
    ):
        self.client = client
        self.user_agent = user_agent
        self.max_sitemaps = max_sitemaps
        self.max_depth = max_depth

    def candidate_urls(self, base_url: str) -> list[str]:
        root = site_root(base_url)
        return [f"{root}/sitemap.xml", f"{root}/sitemap.txt", f"{root}/robots.txt"]

    async def discover(self, base_url: str) -> list[str]:
        """
        Discover page URLs for the site hosting ``base_url``.

        Args:
            base_url: Any URL on the site

        Returns:
            URLs from the first non-empty candidate, or an empty list
        """
        for candidate in self.candidate_urls(base_url):
            urls = await self._try_candidate(candidate, depth=0)
            if urls:
                logger.info("sitemap_discovered", sitemap=candidate, urls_found=len(urls))
                return urls

        logger.info("sitemap_not_found", url=base_url)
        return []

    async def _try_candidate(self, url: str, depth: int) -> list[str]:
        logger.debug("sitemap_trying", sitemap=url)
        try:
            content = await self._fetch(url)
            path = httpx.URL(url).path.lower()

            if path.endswith("robots.txt"):
                return await self._follow_robots(content.decode("utf-8", errors="replace"), depth)
            if path.endswith(".txt"):
                return parse_text_sitemap(content.decode("utf-8", errors="replace"))

            locations, is_index = parse_xml_sitemap(content)
            if is_index:
                return await self._expand_index(locations, depth)
            return locations

        except Exception as e:
            logger.debug("sitemap_candidate_failed", sitemap=url, error=str(e))
            return []

    async def _follow_robots(self, content: str, depth: int) -> list[str]:
        if depth >= self.max_depth:
            return []
        for ref in parse_robots_sitemaps(content):
            urls = await self._try_candidate(ref, depth + 1)
            if urls:
                return urls
        return []

    async def _expand_index(self, sitemap_urls: list[str], depth: int) -> list[str]:
        """Fetch the sitemaps listed by a sitemap index."""
        if depth >= self.max_depth:
            return []

        urls: list[str] = []
        for nested in sitemap_urls[: self.max_sitemaps]:
            urls.extend(await self._try_candidate(nested, depth + 1))
        return urls

    async def _fetch(self, url: str) -> bytes:
        response = await self.client.get(
            url,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
        )

        if not response.is_success:
            raise ValueError(f"HTTP {response.status_code}")

        content = response.content
        if url.endswith(".gz"):
            with contextlib.suppress(OSError, EOFError):
                content = gzip.decompress(content)
        return content
