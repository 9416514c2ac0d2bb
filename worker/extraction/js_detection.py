"""Rendering-strategy decision for fetched documentation pages.

Static HTML is cheap to process; headless rendering is slow but required
for pages that build their content client-side. The decider scores a page
from its URL and static HTML and recommends headless rendering when the
accumulated confidence exceeds ``DYNAMIC_THRESHOLD``.
"""

from dataclasses import dataclass, field

import structlog

logger = structlog.get_logger(__name__)

# Confidence above which headless rendering is used
DYNAMIC_THRESHOLD = 0.5

# Marker groups matched against the lowercased static HTML
FRAMEWORK_MARKERS = {
    "React": ("react", "__react", "data-reactroot", "data-react-"),
    "Vue.js": ("__vue", "v-if", "v-for", "data-v-"),
    "Angular": ("angular", "ng-", "data-ng-"),
}
ASYNC_LOADING_MARKERS = ("async", "await", "fetch(", "xmlhttprequest", "axios")
SKELETON_MARKERS = ("skeleton", "loading", "spinner", "data-loading")

# Matched against the lowercased URL
DYNAMIC_URL_PATTERNS = ("/app/", "/dashboard/", "/admin/", "/#/", "/spa/")
DOCS_URL_PATTERNS = ("docs.", "/docs/")
APPLICATION_ROUTE_PATTERNS = ("/app/", "/dashboard/", "/#/")

TEMPLATE_MARKER = "<!-- This HTML file is a template -->"
LOADING_TEXT = ("Loading...", "loading")

SPA_SIGNAL_WEIGHT = 0.7
DOCS_URL_WEIGHT = 0.3
APPLICATION_ROUTE_WEIGHT = 0.8
TEMPLATE_WEIGHT = 0.9
LOADING_TEXT_WEIGHT = 0.4


@dataclass
class RenderingDecision:
    """Whether a page should be rendered headlessly, and why."""

    use_dynamic: bool
    confidence: float
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "use_dynamic": self.use_dynamic,
            "confidence": round(self.confidence, 2),
            "reasons": self.reasons,
        }


def _contains_any(text: str, patterns: tuple[str, ...]) -> bool:
    return any(pattern in text for pattern in patterns)


def detect_framework(html: str) -> str | None:
    """Return the first client-side framework whose markers appear in the HTML."""
    lower_html = html.lower()
    for framework, markers in FRAMEWORK_MARKERS.items():
        if _contains_any(lower_html, markers):
            return framework
    return None


def has_static_spa_signals(url: str, html: str) -> bool:
    """
    Check static HTML and URL for client-side rendering fingerprints.

    Fires on framework markers, async-loading idioms, skeleton/loading
    indicators, or application-style URL paths.
    """
    lower_html = html.lower()
    if detect_framework(html) is not None:
        return True
    if _contains_any(lower_html, ASYNC_LOADING_MARKERS):
        return True
    if _contains_any(lower_html, SKELETON_MARKERS):
        return True
    return _contains_any(url.lower(), DYNAMIC_URL_PATTERNS)


class RenderingDecider:
    """Scores a page and decides between static and headless rendering."""

    def __init__(self, threshold: float = DYNAMIC_THRESHOLD):
        self.threshold = threshold

    def decide(self, url: str, html: str | None = None) -> RenderingDecision:
        """
        Decide whether ``url`` needs headless rendering.

        Confidence is additive and uncapped. HTML-based rules only apply
        when static HTML is available.

        Args:
            url: Page URL
            html: Static HTML, if it was fetched

        Returns:
            RenderingDecision with the accumulated confidence and reasons
        """
        html = html or ""
        lower_url = url.lower()
        confidence = 0.0
        reasons: list[str] = []

        if has_static_spa_signals(url, html):
            confidence += SPA_SIGNAL_WEIGHT
            reasons.append("SPA framework detected in HTML or URL pattern")

        if _contains_any(lower_url, DOCS_URL_PATTERNS):
            # Adds toward dynamic even though the label says static
            confidence += DOCS_URL_WEIGHT
            reasons.append("Documentation site - likely static")

        if _contains_any(lower_url, APPLICATION_ROUTE_PATTERNS):
            confidence += APPLICATION_ROUTE_WEIGHT
            reasons.append("Application route detected")

        if html:
            if TEMPLATE_MARKER in html:
                confidence += TEMPLATE_WEIGHT
                reasons.append("Template-based SPA detected")

            if _contains_any(html, LOADING_TEXT):
                confidence += LOADING_TEXT_WEIGHT
                reasons.append("Loading indicators found")

        decision = RenderingDecision(
            use_dynamic=confidence > self.threshold,
            confidence=confidence,
            reasons=reasons,
        )

        logger.debug(
            "rendering_decision",
            url=url,
            use_dynamic=decision.use_dynamic,
            confidence=round(confidence, 2),
            reasons=reasons,
        )
        return decision
