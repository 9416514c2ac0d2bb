"""HTML cleaning and structure-preserving text extraction."""

import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

# Tags removed with their content before any extraction
REMOVE_TAGS = frozenset(["script", "style", "noscript"])

# Page chrome dropped by the body fallback
NOISE_TAGS = frozenset(["header", "nav", "footer", "aside"])

# Tags that are inline (don't add newlines)
INLINE_TAGS = frozenset(
    [
        "a",
        "abbr",
        "b",
        "bdo",
        "br",
        "button",
        "cite",
        "code",
        "dfn",
        "em",
        "i",
        "img",
        "kbd",
        "label",
        "q",
        "samp",
        "small",
        "span",
        "strong",
        "sub",
        "sup",
        "time",
        "u",
        "var",
        "wbr",
        "mark",
        "del",
        "ins",
        "s",
    ]
)

# Lines this short are navigation or UI fragments
MIN_LINE_LENGTH = 10

_SPACES = re.compile(r"[ \t\f\v\r ]+")
_WHITESPACE = re.compile(r"\s+")


def parse_html(html: str) -> BeautifulSoup:
    """Parse HTML and drop scripts, styles, noscript blocks and comments."""
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(REMOVE_TAGS):
        tag.decompose()

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    return soup


def node_text(node: Tag) -> str:
    """
    Extract text from a tag, starting a new line at every block element.

    Inline elements stay on the line of their surrounding text.
    """
    if node.name in REMOVE_TAGS:
        return ""

    parts: list[str] = []

    for child in node.children:
        if isinstance(child, NavigableString):
            if isinstance(child, Comment):
                continue
            text = str(child).strip()
            if text:
                parts.append(text)
        elif isinstance(child, Tag):
            child_text = node_text(child)
            if child_text:
                if child.name not in INLINE_TAGS:
                    parts.append("\n" + child_text + "\n")
                else:
                    parts.append(child_text)

    return " ".join(parts)


def strip_to_text(node: Tag) -> str:
    """Plain text of a tag with all whitespace collapsed."""
    return _WHITESPACE.sub(" ", node.get_text(separator=" ")).strip()


def without_noise(node: Tag) -> Tag:
    """Return a copy of ``node`` with header/nav/footer/aside removed."""
    fragment = BeautifulSoup(node.decode_contents(), "html.parser")
    for tag in fragment.find_all(NOISE_TAGS):
        tag.decompose()
    return fragment


def tidy_lines(text: str, min_line_length: int = MIN_LINE_LENGTH) -> str:
    """
    Collapse whitespace within lines and drop short lines.

    Lines of ``min_line_length`` characters or fewer are removed.
    """
    lines = (_SPACES.sub(" ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if len(line) > min_line_length)


def strip_tags(html: str) -> str:
    """Remove every tag from raw HTML and collapse whitespace."""
    soup = BeautifulSoup(html, "html.parser")
    return strip_to_text(soup)
