"""URL normalization, path scoping and link extraction for the crawler."""

import re
from enum import StrEnum
from urllib.parse import parse_qs, urlencode, urljoin, urlparse, urlunparse

import structlog
from bs4 import BeautifulSoup

logger = structlog.get_logger(__name__)

# File extensions that never hold documentation prose
SKIP_EXTENSIONS = frozenset(
    [
        # Images
        ".jpg",
        ".jpeg",
        ".png",
        ".gif",
        ".svg",
        ".ico",
        ".webp",
        # Media
        ".mp3",
        ".mp4",
        ".mov",
        ".webm",
        # Archives and binaries
        ".zip",
        ".tar",
        ".gz",
        ".exe",
        ".dmg",
        # Assets
        ".css",
        ".js",
        ".woff",
        ".woff2",
        ".ttf",
    ]
)

# Path substrings excluded from the final candidate set
DENIED_PATH_PATTERNS = (
    "/api/",
    "/login",
    "/signup",
    "/auth",
    "/contact",
    "/about",
    ".pdf",
    ".zip",
    ".tar",
    ".gz",
    ".json",
    ".xml",
    ".rss",
    "/images/",
    "/css/",
    "/js/",
    "/fonts/",
    "/static/",
)

# Query parameters to strip (tracking, session, etc.)
STRIP_PARAMS = frozenset(
    [
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "fbclid",
        "gclid",
        "msclkid",
        "ref",
        "_ga",
        "_gl",
        "sessionid",
        "sid",
    ]
)

SKIPPED_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "data:", "#")


class PathScope(StrEnum):
    """Whether a URL sits under the documentation root being indexed."""

    UNDER_BASE_PATH = "under_base_path"
    OTHER_PATH = "other_path"


def normalize_url(url: str, base_url: str | None = None) -> str | None:
    """
    Normalize a URL for consistent comparison and fetching.

    Relative URLs are resolved against ``base_url``. The scheme and host are
    kept (lowercased, default port dropped) so the result stays fetchable.

    Args:
        url: The URL to normalize
        base_url: Optional base URL for resolving relative URLs

    Returns:
        Normalized URL string or None if URL should be skipped
    """
    if not url or not url.strip():
        return None

    url = url.strip()

    if url.startswith(SKIPPED_HREF_PREFIXES):
        return None

    if base_url and not url.startswith(("http://", "https://", "//")):
        url = urljoin(base_url, url)
    elif url.startswith("//"):
        url = "https:" + url

    try:
        parsed = urlparse(url)
    except ValueError:
        return None

    if parsed.scheme not in ("http", "https"):
        return None
    if not parsed.netloc:
        return None

    host = parsed.netloc.lower()
    if parsed.scheme == "https" and host.endswith(":443"):
        host = host[: -len(":443")]
    elif parsed.scheme == "http" and host.endswith(":80"):
        host = host[: -len(":80")]

    path = parsed.path or "/"

    path_lower = path.lower()
    for ext in SKIP_EXTENSIONS:
        if path_lower.endswith(ext):
            return None

    # Remove trailing slash from non-root paths for consistency
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/") or "/"

    query = ""
    if parsed.query:
        params = parse_qs(parsed.query, keep_blank_values=False)
        filtered = {k: v for k, v in params.items() if k.lower() not in STRIP_PARAMS}
        if filtered:
            query = urlencode(sorted(filtered.items()), doseq=True)

    # Reconstruct URL without fragment
    return urlunparse((parsed.scheme, host, path, "", query, ""))


def extract_domain(url: str) -> str | None:
    """Extract the domain from a URL."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    host = parsed.netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    if ":" in host:
        host = host.split(":")[0]
    return host if host else None


def is_same_domain(url1: str, url2: str) -> bool:
    """Check if two URLs have the same domain."""
    domain1 = extract_domain(url1)
    domain2 = extract_domain(url2)
    return domain1 is not None and domain1 == domain2


def site_root(url: str) -> str:
    """Return ``scheme://host`` for a URL."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def get_base_path(url: str) -> str:
    """Get the path prefix that scopes a documentation source (e.g. ``/docs``)."""
    return urlparse(url).path or "/"


def is_under_base_path(url: str, base_path: str) -> bool:
    """Check whether a URL's path starts with the base path."""
    try:
        return urlparse(url).path.startswith(base_path)
    except ValueError:
        return False


def classify_path_scope(url: str, base_path: str) -> PathScope:
    """Partition a URL into the base-path scope or the capped other scope."""
    if is_under_base_path(url, base_path):
        return PathScope.UNDER_BASE_PATH
    return PathScope.OTHER_PATH


def is_denied(url: str, extra_patterns: tuple[str, ...] | list[str] = ()) -> bool:
    """Check a URL path against the auth/asset/non-documentation denylist."""
    path = urlparse(url).path.lower()
    patterns = (*DENIED_PATH_PATTERNS, *extra_patterns)
    return any(pattern in path for pattern in patterns)


def extract_links(html: str, page_url: str) -> list[str]:
    """
    Extract normalized, same-domain links from HTML.

    Args:
        html: Page HTML
        page_url: URL the HTML was fetched from (for relative resolution)

    Returns:
        Unique links in document order
    """
    links: dict[str, None] = {}
    try:
        soup = BeautifulSoup(html, "html.parser")
        for a_tag in soup.find_all("a", href=True):
            normalized = normalize_url(str(a_tag["href"]), page_url)
            if normalized and is_same_domain(normalized, page_url):
                links[normalized] = None
    except Exception as e:
        logger.warning("link_extraction_error", error=str(e), url=page_url)

    return list(links)


def source_name_from_url(url: str) -> str:
    """
    Derive a readable source name from a page URL.

    ``https://h/docs/getting-started`` becomes ``docs_getting-started``;
    the site root becomes ``index``.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return "content"

    path = parsed.path
    if path in ("", "/"):
        path = "/index"

    path = path.strip("/")
    path = re.sub(r"[^a-zA-Z0-9_-]", "_", path.replace("/", "_"))

    if parsed.fragment:
        path += "_section_" + re.sub(r"[^a-zA-Z0-9_-]", "_", parsed.fragment)

    return path or "index"
