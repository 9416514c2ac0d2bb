"""Tests for content-type, language and complexity classification."""

import pytest

from worker.extraction.classifier import (
    Complexity,
    ContentType,
    classify_content,
    detect_language,
    determine_complexity,
)


class TestClassifyContent:
    """Tests for classify_content function."""

    def test_api_reference(self) -> None:
        """API URLs and titles dominate."""
        result = classify_content(
            "https://example.com/api/users",
            "The endpoint returns a response for each request.",
            "API Reference",
        )
        assert result.content_type == ContentType.API
        assert result.confidence == 1.0

    def test_changelog(self) -> None:
        """Release pages are changelogs."""
        result = classify_content(
            "https://example.com/changelog",
            "Version 2.0 ships with breaking changes.",
            "Release notes",
        )
        assert result.content_type == ContentType.CHANGELOG

    def test_tutorial(self) -> None:
        """Tutorial URLs and titles."""
        result = classify_content(
            "https://example.com/tutorial/first-app",
            "In this walkthrough you will build your first app.",
            "Tutorial: first app",
        )
        assert result.content_type == ContentType.TUTORIAL

    def test_defaults_to_guide(self) -> None:
        """Nothing matching yields guide with minimum confidence."""
        result = classify_content("https://example.com/p", "Hello there.", None)
        assert result.content_type == ContentType.GUIDE
        assert result.confidence == pytest.approx(0.1)

    def test_word_count(self) -> None:
        """Words are counted on the content only."""
        assert classify_content("https://example.com/p", "one two three").word_count == 3


class TestDetectLanguage:
    """Tests for detect_language function."""

    def test_first_language_found(self) -> None:
        """Indicators are checked in language order."""
        assert detect_language("https://example.com/p", "Install it with pip.") == "python"
        assert detect_language("https://example.com/p", "Install golang tools.") == "go"
        assert detect_language("https://example.com/p", "Run npm install.") == "javascript"

    def test_url_and_title_count(self) -> None:
        """The URL and title are searched too."""
        assert detect_language("https://example.com/rust/book", "Chapter one.") == "rust"
        assert detect_language("https://example.com/p", "Chapter one.", "Kotlin basics") == "kotlin"

    def test_whole_words_only(self) -> None:
        """Short indicators do not match inside other words."""
        assert detect_language("https://example.com/p", "It fits its purpose well.") == "en"

    def test_defaults_to_en(self) -> None:
        """No indicator means natural-language default."""
        assert detect_language("https://example.com/p", "Plain prose.") == "en"


class TestDetermineComplexity:
    """Tests for determine_complexity function."""

    def test_beginner_indicator(self) -> None:
        """Beginner keywords win first."""
        assert determine_complexity("Getting started with the tool", "guide") == Complexity.BEGINNER

    def test_advanced_indicator(self) -> None:
        """Advanced keywords come next."""
        assert determine_complexity("Performance tuning notes", "guide") == Complexity.ADVANCED

    def test_tutorial_default(self) -> None:
        """Tutorials and examples default to beginner."""
        assert determine_complexity("Neutral words here", ContentType.TUTORIAL) == Complexity.BEGINNER
        assert determine_complexity("Neutral words here", ContentType.EXAMPLE) == Complexity.BEGINNER

    def test_long_api_content(self) -> None:
        """Long API passages are advanced."""
        assert determine_complexity("word " * 500, ContentType.API) == Complexity.ADVANCED
        assert determine_complexity("word " * 10, ContentType.API) == Complexity.INTERMEDIATE

    def test_code_keyword_density(self) -> None:
        """More than five code keywords is advanced."""
        code = "interface Foo extends Bar implements Baz with type and generic abstract"
        assert determine_complexity(code, "guide") == Complexity.ADVANCED

    def test_intermediate_default(self) -> None:
        """Everything else is intermediate."""
        assert determine_complexity("Neutral words here", "guide") == Complexity.INTERMEDIATE
