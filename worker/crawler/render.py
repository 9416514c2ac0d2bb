"""Static fetch plus optional headless rendering of documentation pages.

Pages are always fetched statically first. When the rendering decider
recommends it, the page is rendered in headless Chromium; any rendering
failure falls back to the static HTML.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal, Protocol

import structlog
from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from docindex.exceptions import PageFetchError, RenderError
from worker.crawler.fetcher import Fetcher
from worker.extraction.js_detection import RenderingDecider, RenderingDecision

logger = structlog.get_logger(__name__)

WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]


class RenderingEngine(StrEnum):
    """How the HTML of a page was obtained."""

    STATIC = "static"
    HEADLESS = "headless"
    STATIC_FALLBACK = "static-fallback"


@dataclass
class RenderedPage:
    """HTML produced by a headless browser."""

    html: str
    rendering_time_ms: int


class HeadlessRenderer(Protocol):
    """Anything that can render a URL to HTML; may raise on failure."""

    async def render_page(
        self,
        url: str,
        *,
        timeout_ms: int = 30000,
        wait_until: WaitUntil = "networkidle",
    ) -> RenderedPage: ...


@dataclass
class PageRenderResult:
    """HTML for one page plus how it was produced."""

    url: str
    html: str
    rendering_engine: RenderingEngine
    rendering_time_ms: int
    requires_dynamic_rendering: bool
    decision: RenderingDecision
    last_modified: str | None = None
    extracted_text: str | None = None
    errors: list[str] = field(default_factory=list)


class PlaywrightRenderer:
    """
    Headless Chromium rendering handle.

    Owns one browser for its lifetime; use as an async context manager and
    pass it to the job that needs it. Every render opens one page and
    closes it before returning.
    """

    def __init__(
        self,
        settle_ms: int = 2000,
        viewport_width: int = 1280,
        viewport_height: int = 720,
    ):
        self.settle_ms = settle_ms
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "PlaywrightRenderer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Launch the browser if it is not running."""
        async with self._lock:
            if self._browser is None:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=True,
                    args=["--no-sandbox", "--disable-setuid-sandbox"],
                )
                logger.info("headless_browser_started")

    async def close(self) -> None:
        """Close the browser and stop Playwright."""
        async with self._lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
                logger.info("headless_browser_stopped")

    async def render_page(
        self,
        url: str,
        *,
        timeout_ms: int = 30000,
        wait_until: WaitUntil = "networkidle",
    ) -> RenderedPage:
        """
        Render a page and return its final HTML.

        Raises:
            RenderError: On navigation timeout or browser failure
        """
        if self._browser is None:
            await self.start()

        start = time.monotonic()
        page: Page | None = None
        try:
            page = await self._browser.new_page(  # type: ignore[union-attr]
                viewport={"width": self.viewport_width, "height": self.viewport_height}
            )
            await page.goto(url, timeout=timeout_ms, wait_until=wait_until)

            if self.settle_ms > 0:
                await page.wait_for_timeout(self.settle_ms)

            html = await page.content()
            return RenderedPage(
                html=html,
                rendering_time_ms=int((time.monotonic() - start) * 1000),
            )

        except PlaywrightTimeout as e:
            raise RenderError(url, f"timed out after {timeout_ms}ms") from e
        except PlaywrightError as e:
            raise RenderError(url, str(e)) from e
        finally:
            if page is not None:
                await page.close()


class PageRenderer:
    """Fetches a page statically and renders it headlessly when needed."""

    def __init__(
        self,
        fetcher: Fetcher,
        decider: RenderingDecider | None = None,
        headless: HeadlessRenderer | None = None,
        timeout_ms: int = 30000,
        wait_until: WaitUntil = "networkidle",
    ):
        self.fetcher = fetcher
        self.decider = decider or RenderingDecider()
        self.headless = headless
        self.timeout_ms = timeout_ms
        self.wait_until = wait_until

    async def render(self, url: str) -> PageRenderResult:
        """
        Produce HTML for ``url``.

        Rendering failures never propagate; the static HTML is returned
        labelled ``static-fallback`` instead.

        Raises:
            PageFetchError: If the static fetch fails
        """
        fetched = await self.fetcher.fetch(url)
        if not fetched.success or fetched.html is None:
            raise PageFetchError(url, fetched.error or f"HTTP {fetched.status_code}")

        decision = self.decider.decide(url, fetched.html)
        result = PageRenderResult(
            url=url,
            html=fetched.html,
            rendering_engine=RenderingEngine.STATIC,
            rendering_time_ms=0,
            requires_dynamic_rendering=decision.use_dynamic,
            decision=decision,
            last_modified=fetched.last_modified,
        )

        if not decision.use_dynamic:
            return result

        if self.headless is None:
            logger.info("headless_renderer_unavailable", url=url)
            return self._fall_back(result, "no headless renderer configured")

        logger.info(
            "dynamic_rendering_started",
            url=url,
            confidence=round(decision.confidence, 2),
        )
        try:
            rendered = await self.headless.render_page(
                url,
                timeout_ms=self.timeout_ms,
                wait_until=self.wait_until,
            )
        except Exception as e:
            logger.warning("dynamic_rendering_failed", url=url, error=str(e))
            return self._fall_back(result, str(e))

        result.html = rendered.html
        result.rendering_engine = RenderingEngine.HEADLESS
        result.rendering_time_ms = rendered.rendering_time_ms
        logger.info(
            "dynamic_rendering_complete",
            url=url,
            rendering_time_ms=rendered.rendering_time_ms,
        )
        return result

    def _fall_back(self, result: PageRenderResult, error: str) -> PageRenderResult:
        result.rendering_engine = RenderingEngine.STATIC_FALLBACK
        result.requires_dynamic_rendering = False
        result.errors.append(error)
        return result
