"""Content-type, language and complexity classification of documentation text."""

import re
from dataclasses import dataclass
from enum import StrEnum


class ContentType(StrEnum):
    API = "api"
    TUTORIAL = "tutorial"
    EXAMPLE = "example"
    CHANGELOG = "changelog"
    GUIDE = "guide"


class Complexity(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class TypePatterns:
    keywords: tuple[str, ...]
    url_patterns: tuple[str, ...]
    title_patterns: tuple[str, ...]


CONTENT_TYPE_PATTERNS: dict[ContentType, TypePatterns] = {
    ContentType.API: TypePatterns(
        keywords=(
            "api reference",
            "endpoint",
            "rest api",
            "graphql",
            "method",
            "parameter",
            "response",
            "request",
            "authentication",
            "authorization",
            "rate limit",
            "sdk",
            "client library",
            "curl",
            "postman",
        ),
        url_patterns=(
            "/api/",
            "/reference/",
            "/rest/",
            "/graphql/",
            "api-reference",
            "api-docs",
            "swagger",
            "openapi",
        ),
        title_patterns=("api", "reference", "endpoint", "rest", "graphql"),
    ),
    ContentType.TUTORIAL: TypePatterns(
        keywords=(
            "tutorial",
            "guide",
            "walkthrough",
            "step by step",
            "getting started",
            "quickstart",
            "how to",
            "learn",
            "introduction",
            "beginner",
            "basics",
            "example",
            "lesson",
            "course",
            "training",
        ),
        url_patterns=(
            "/tutorial/",
            "/guide/",
            "/learn/",
            "/getting-started/",
            "/quickstart/",
            "/intro/",
            "/basics/",
            "/examples/",
            "tutorial",
            "guide",
            "learn",
        ),
        title_patterns=(
            "tutorial",
            "guide",
            "getting started",
            "quickstart",
            "how to",
            "walkthrough",
            "introduction",
        ),
    ),
    ContentType.EXAMPLE: TypePatterns(
        keywords=(
            "example",
            "sample",
            "demo",
            "showcase",
            "template",
            "boilerplate",
            "starter",
            "code example",
            "snippet",
            "playground",
            "sandbox",
            "live demo",
            "codepen",
        ),
        url_patterns=(
            "/example/",
            "/examples/",
            "/demo/",
            "/sample/",
            "/playground/",
            "/sandbox/",
            "/showcase/",
            "example",
            "demo",
            "sample",
        ),
        title_patterns=("example", "demo", "sample", "showcase", "template", "playground", "starter"),
    ),
    ContentType.CHANGELOG: TypePatterns(
        keywords=(
            "changelog",
            "release notes",
            "version",
            "update",
            "what's new",
            "breaking changes",
            "migration",
            "release",
            "version history",
            "updates",
        ),
        url_patterns=(
            "/changelog",
            "/releases",
            "/release-notes",
            "/version",
            "/updates",
            "/migration",
            "changelog",
            "releases",
            "whats-new",
        ),
        title_patterns=("changelog", "release", "version", "update", "what's new", "breaking changes"),
    ),
    ContentType.GUIDE: TypePatterns(
        keywords=(
            "documentation",
            "docs",
            "manual",
            "handbook",
            "specification",
            "spec",
            "overview",
            "concepts",
            "architecture",
            "design",
            "best practices",
            "configuration",
            "setup",
            "installation",
        ),
        url_patterns=(
            "/docs/",
            "/documentation/",
            "/manual/",
            "/spec/",
            "/specification/",
            "/handbook/",
            "docs",
            "documentation",
            "guide",
        ),
        title_patterns=(
            "documentation",
            "guide",
            "manual",
            "handbook",
            "overview",
            "concepts",
            "specification",
        ),
    ),
}

# Checked in order; the first language with an indicator present wins
PROGRAMMING_LANGUAGES: dict[str, tuple[str, ...]] = {
    "javascript": ("javascript", "js", "node", "npm", "yarn"),
    "typescript": ("typescript", "ts", "tsc"),
    "python": ("python", "py", "pip", "django", "flask"),
    "java": ("java", "spring", "maven", "gradle"),
    "go": ("golang", "go"),
    "rust": ("rust", "cargo", "rustc"),
    "php": ("php", "composer", "laravel"),
    "ruby": ("ruby", "rails", "gem"),
    "csharp": ("c#", "csharp", "dotnet", ".net"),
    "cpp": ("c++", "cpp", "cmake"),
    "swift": ("swift", "ios", "xcode"),
    "kotlin": ("kotlin", "android"),
}

DEFAULT_LANGUAGE = "en"

URL_WEIGHT = 0.4
TITLE_WEIGHT = 0.3
KEYWORD_WEIGHT = 0.1
MAX_KEYWORD_SCORE = 0.5

BEGINNER_INDICATORS = (
    "getting started",
    "introduction",
    "basic",
    "simple",
    "tutorial",
    "beginner",
    "first steps",
    "quick start",
    "hello world",
)

ADVANCED_INDICATORS = (
    "advanced",
    "optimization",
    "performance",
    "architecture",
    "scalability",
    "deep dive",
    "internals",
    "implementation details",
    "best practices",
    "production",
    "enterprise",
    "complex",
)

CODE_COMPLEXITY_PATTERN = re.compile(
    r"\b(async|await|Promise|interface|type|generic|abstract|extends|implements)\b"
)
MAX_SIMPLE_CODE_KEYWORDS = 5
LONG_API_CONTENT = 2000


def _indicator_pattern(indicator: str) -> re.Pattern[str]:
    # Short indicators like "ts" or "go" only count as whole words
    return re.compile(rf"(?<![a-z0-9]){re.escape(indicator)}(?![a-z0-9])")


_LANGUAGE_PATTERNS = {
    language: tuple(_indicator_pattern(i) for i in indicators)
    for language, indicators in PROGRAMMING_LANGUAGES.items()
}


@dataclass
class ContentClassification:
    """Classification of one page of documentation."""

    content_type: ContentType
    confidence: float
    language: str
    word_count: int


def _score_types(url: str, content: str, title: str) -> dict[ContentType, float]:
    scores = {content_type: 0.0 for content_type in CONTENT_TYPE_PATTERNS}

    for content_type, patterns in CONTENT_TYPE_PATTERNS.items():
        for pattern in patterns.url_patterns:
            if pattern in url:
                scores[content_type] += URL_WEIGHT

        for pattern in patterns.title_patterns:
            if pattern in title:
                scores[content_type] += TITLE_WEIGHT

        for keyword in patterns.keywords:
            occurrences = content.count(keyword)
            scores[content_type] += min(occurrences * KEYWORD_WEIGHT, MAX_KEYWORD_SCORE)

    return scores


def detect_language(url: str, content: str, title: str | None = None) -> str:
    """Return the first programming language mentioned, or ``en``."""
    combined = f"{url} {content} {title or ''}".lower()
    for language, patterns in _LANGUAGE_PATTERNS.items():
        if any(pattern.search(combined) for pattern in patterns):
            return language
    return DEFAULT_LANGUAGE


def classify_content(url: str, content: str, title: str | None = None) -> ContentClassification:
    """
    Classify a page by URL, title and keyword frequency.

    All-zero scores resolve to ``guide``; ties keep the earlier type. Confidence is the best
    score clamped to [0.1, 1.0].
    """
    scores = _score_types(url.lower(), content.lower(), (title or "").lower())

    best_type = ContentType.GUIDE
    best_score = 0.0
    for content_type, score in scores.items():
        if score > best_score:
            best_type = content_type
            best_score = score

    return ContentClassification(
        content_type=best_type,
        confidence=min(max(best_score, 0.1), 1.0),
        language=detect_language(url, content, title),
        word_count=len(re.findall(r"\b\w+\b", content)),
    )


def determine_complexity(content: str, content_type: str) -> Complexity:
    """Rate a passage as beginner, intermediate or advanced."""
    lower = content.lower()

    if any(indicator in lower for indicator in BEGINNER_INDICATORS):
        return Complexity.BEGINNER

    if any(indicator in lower for indicator in ADVANCED_INDICATORS):
        return Complexity.ADVANCED

    if content_type in (ContentType.TUTORIAL, ContentType.EXAMPLE):
        return Complexity.BEGINNER

    if content_type == ContentType.API and len(content) > LONG_API_CONTENT:
        return Complexity.ADVANCED

    if len(CODE_COMPLEXITY_PATTERN.findall(content)) > MAX_SIMPLE_CODE_KEYWORDS:
        return Complexity.ADVANCED

    return Complexity.INTERMEDIATE
