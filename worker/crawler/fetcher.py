"""HTTP fetcher with retry logic and rate limiting."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlparse

import httpx
import structlog

logger = structlog.get_logger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


@dataclass
class FetchResult:
    """Result of fetching a URL."""

    url: str
    final_url: str  # After redirects
    status_code: int
    content_type: str | None
    html: str | None
    error: str | None
    fetch_time_ms: int
    fetched_at: datetime
    last_modified: str | None = None

    @property
    def success(self) -> bool:
        """Check if fetch was successful."""
        return 200 <= self.status_code < 300 and self.html is not None

    @property
    def is_html(self) -> bool:
        """Check if response is HTML."""
        if not self.content_type:
            return False
        content_type = self.content_type.lower()
        return any(t in content_type for t in HTML_CONTENT_TYPES)


class Fetcher:
    """
    HTTP fetcher with retries and per-domain rate limiting.

    A shared ``httpx.AsyncClient`` may be injected so one connection pool
    serves a whole crawl job; otherwise a client is created per request.
    """

    def __init__(
        self,
        user_agent: str,
        timeout: float = 30.0,
        max_retries: int = 1,
        retry_delay: float = 1.0,
        min_delay_between_requests: float = 0.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.min_delay = min_delay_between_requests
        self.client = client
        self._last_request_time: dict[str, float] = {}

    @property
    def headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def _rate_limit(self, domain: str) -> None:
        """Apply rate limiting per domain."""
        if self.min_delay <= 0:
            return

        loop = asyncio.get_running_loop()
        if domain in self._last_request_time:
            elapsed = loop.time() - self._last_request_time[domain]
            if elapsed < self.min_delay:
                await asyncio.sleep(self.min_delay - elapsed)

        self._last_request_time[domain] = loop.time()

    async def _get(self, url: str) -> httpx.Response:
        if self.client is not None:
            return await self.client.get(url, headers=self.headers, follow_redirects=True)

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=5,
        ) as client:
            return await client.get(url, headers=self.headers)

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a URL with retries.

        Never raises: transport failures are reported through
        ``FetchResult.error`` with ``status_code`` 0.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult with response data or error
        """
        domain = urlparse(url).netloc.lower()
        start_time = datetime.now(UTC)
        error: str | None = None

        for attempt in range(self.max_retries + 1):
            try:
                await self._rate_limit(domain)
                response = await self._get(url)

                fetch_time = int((datetime.now(UTC) - start_time).total_seconds() * 1000)
                content_type = response.headers.get("content-type", "")

                html = None
                ok = 200 <= response.status_code < 300
                if ok and (not content_type or any(t in content_type.lower() for t in HTML_CONTENT_TYPES)):
                    html = response.text

                # Don't retry client errors (4xx)
                if not ok and response.status_code >= 500 and attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
                    continue

                return FetchResult(
                    url=url,
                    final_url=str(response.url),
                    status_code=response.status_code,
                    content_type=content_type or None,
                    html=html,
                    error=None if ok else f"HTTP {response.status_code}",
                    fetch_time_ms=fetch_time,
                    fetched_at=start_time,
                    last_modified=response.headers.get("last-modified"),
                )

            except httpx.TimeoutException:
                error = "Request timed out"
                if attempt < self.max_retries:
                    logger.warning("fetch_timeout_retry", url=url, attempt=attempt + 1)
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
                    continue

            except httpx.HTTPError as e:
                error = str(e) or type(e).__name__
                if attempt < self.max_retries:
                    logger.warning(
                        "fetch_error_retry",
                        url=url,
                        error=error,
                        attempt=attempt + 1,
                    )
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
                    continue

        # All retries exhausted
        fetch_time = int((datetime.now(UTC) - start_time).total_seconds() * 1000)
        return FetchResult(
            url=url,
            final_url=url,
            status_code=0,
            content_type=None,
            html=None,
            error=error,
            fetch_time_ms=fetch_time,
            fetched_at=start_time,
        )
