"""Main content extraction from documentation page HTML.

Extraction runs an ordered cascade of strategies over the parsed page.
Each strategy is a pure function returning ``Matched(text)`` or
``NO_MATCH``; the first whose plain text exceeds ``MIN_STRATEGY_TEXT``
characters wins. The winning text is tidied and prefixed with the page
title and meta description.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from bs4 import BeautifulSoup, Tag

from worker.extraction.cleaner import (
    node_text,
    parse_html,
    strip_tags,
    strip_to_text,
    tidy_lines,
    without_noise,
)

logger = structlog.get_logger(__name__)

# A strategy must produce more plain text than this to be accepted
MIN_STRATEGY_TEXT = 100

# Content containers must hold more raw markup than this
MIN_CONTAINER_MARKUP = 200

# Paragraph strategy needs more paragraphs than this
MIN_PARAGRAPHS = 3

MAX_HEADING_SECTIONS = 10

# Final text shorter than this means extraction failed
MIN_EXTRACTED_LENGTH = 100

CONTENT_CONTAINER_PATTERN = re.compile(r"content|docs|documentation|article|post|main", re.I)
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
DESCRIPTION_PATTERN = re.compile(r"^description$", re.I)

RAW_FALLBACK = "raw-fallback"


@dataclass(frozen=True)
class Matched:
    """A strategy found candidate text."""

    text: str


class NoMatch:
    """A strategy found nothing to offer."""

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH = NoMatch()

StrategyResult = Matched | NoMatch
Strategy = Callable[[BeautifulSoup], StrategyResult]


@dataclass
class ExtractionResult:
    """Extracted text of one page."""

    text: str
    title: str | None
    description: str | None
    method: str
    succeeded: bool

    @property
    def word_count(self) -> int:
        return len(self.text.split())


def _match(text: str) -> StrategyResult:
    return Matched(text) if text.strip() else NO_MATCH


def main_element(soup: BeautifulSoup) -> StrategyResult:
    tag = soup.find("main")
    return _match(node_text(tag)) if isinstance(tag, Tag) else NO_MATCH


def article_element(soup: BeautifulSoup) -> StrategyResult:
    tag = soup.find("article")
    return _match(node_text(tag)) if isinstance(tag, Tag) else NO_MATCH


def _mentions_content(tag: Tag) -> bool:
    classes = tag.get("class", [])
    if isinstance(classes, str):
        classes = [classes]
    attrs_text = " ".join(classes) + " " + str(tag.get("id", ""))
    return bool(CONTENT_CONTAINER_PATTERN.search(attrs_text))


def content_container(soup: BeautifulSoup) -> StrategyResult:
    """First div or section whose class/id names it a content container."""
    for tag in soup.find_all(["div", "section"]):
        if _mentions_content(tag) and len(tag.decode_contents().strip()) > MIN_CONTAINER_MARKUP:
            return _match(node_text(tag))
    return NO_MATCH


def paragraphs(soup: BeautifulSoup) -> StrategyResult:
    found = soup.find_all("p")
    if len(found) <= MIN_PARAGRAPHS:
        return NO_MATCH
    return _match("\n".join(node_text(p) for p in found))


def _is_heading_or_contains_one(node) -> bool:
    if not isinstance(node, Tag):
        return False
    return node.name in HEADING_TAGS or node.find(HEADING_TAGS) is not None


def heading_sections(soup: BeautifulSoup) -> StrategyResult:
    """Each heading plus the siblings that follow it, for the first few headings."""
    sections: list[str] = []
    for heading in soup.find_all(HEADING_TAGS)[:MAX_HEADING_SECTIONS]:
        parts = [node_text(heading)]
        for sibling in heading.next_siblings:
            if _is_heading_or_contains_one(sibling):
                break
            if isinstance(sibling, Tag):
                parts.append(node_text(sibling))
            else:
                parts.append(str(sibling).strip())
        sections.append("\n".join(part for part in parts if part))

    if not sections:
        return NO_MATCH
    return _match("\n".join(sections))


def body_without_chrome(soup: BeautifulSoup) -> StrategyResult:
    body = soup.find("body")
    if not isinstance(body, Tag):
        return NO_MATCH
    return _match(node_text(without_noise(body)))


STRATEGIES: list[tuple[str, Strategy]] = [
    ("main", main_element),
    ("article", article_element),
    ("content-container", content_container),
    ("paragraphs", paragraphs),
    ("headings", heading_sections),
    ("body", body_without_chrome),
]


def _page_title(soup: BeautifulSoup) -> str | None:
    tag = soup.find("title")
    if isinstance(tag, Tag):
        title = strip_to_text(tag)
        return title or None
    return None


def _meta_description(soup: BeautifulSoup) -> str | None:
    tag = soup.find("meta", attrs={"name": DESCRIPTION_PATTERN})
    if isinstance(tag, Tag):
        content = tag.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    return None


def extract_title(html: str) -> str | None:
    """Page title from ``<title>``, falling back to the first ``<h1>``."""
    soup = BeautifulSoup(html, "html.parser")
    title = _page_title(soup)
    if title:
        return title
    h1 = soup.find("h1")
    if isinstance(h1, Tag):
        return strip_to_text(h1) or None
    return None


class ContentExtractor:
    """Extracts durable documentation prose from page HTML."""

    def __init__(
        self,
        strategies: list[tuple[str, Strategy]] | None = None,
        min_strategy_text: int = MIN_STRATEGY_TEXT,
        min_extracted_length: int = MIN_EXTRACTED_LENGTH,
    ):
        self.strategies = strategies if strategies is not None else STRATEGIES
        self.min_strategy_text = min_strategy_text
        self.min_extracted_length = min_extracted_length

    def extract(self, html: str, url: str | None = None) -> ExtractionResult:
        """
        Extract the main text of a page.

        Never raises: when extraction yields too little text, the tag-stripped
        HTML is returned with ``succeeded=False``.

        Args:
            html: Page HTML
            url: Optional page URL for logging

        Returns:
            ExtractionResult
        """
        try:
            return self._extract(html, url)
        except Exception as e:
            logger.warning("extraction_error", url=url, error=str(e))
            return self._raw_fallback(html, None, None)

    def _extract(self, html: str, url: str | None) -> ExtractionResult:
        soup = parse_html(html)
        title = _page_title(soup)
        description = _meta_description(soup)

        method = "full-page"
        extracted = ""
        for name, strategy in self.strategies:
            result = strategy(soup)
            if isinstance(result, Matched) and self._accept(result.text):
                method = name
                extracted = result.text
                break
        else:
            extracted = node_text(soup)

        parts = []
        if title:
            parts.append(f"# {title}")
        if description:
            parts.append(description)
        content = tidy_lines(extracted)
        if content:
            parts.append(content)

        text = "\n\n".join(parts).strip()

        if len(text) < self.min_extracted_length:
            logger.info("extraction_too_short", url=url, length=len(text), method=method)
            return self._raw_fallback(html, title, description)

        logger.debug("content_extracted", url=url, method=method, length=len(text))
        return ExtractionResult(
            text=text,
            title=title,
            description=description,
            method=method,
            succeeded=True,
        )

    def _accept(self, text: str) -> bool:
        return len(" ".join(text.split())) > self.min_strategy_text

    def _raw_fallback(
        self, html: str, title: str | None, description: str | None
    ) -> ExtractionResult:
        return ExtractionResult(
            text=strip_tags(html),
            title=title,
            description=description,
            method=RAW_FALLBACK,
            succeeded=False,
        )


def extract_content(html: str, url: str | None = None) -> ExtractionResult:
    """Convenience function to extract content with the default cascade."""
    return ContentExtractor().extract(html, url)
