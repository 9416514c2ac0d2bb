"""Content extraction package."""

from importlib import import_module
from typing import Any

_EXPORTS = {
    # Extractor
    "ContentExtractor": "extractor",
    "ExtractionResult": "extractor",
    "extract_content": "extractor",
    "extract_title": "extractor",
    # Cleaner
    "parse_html": "cleaner",
    "node_text": "cleaner",
    "strip_tags": "cleaner",
    # Rendering decision
    "RenderingDecider": "js_detection",
    "RenderingDecision": "js_detection",
    # Classification
    "ContentClassification": "classifier",
    "ContentType": "classifier",
    "Complexity": "classifier",
    "classify_content": "classifier",
    "determine_complexity": "classifier",
}

__all__ = list(_EXPORTS)


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        return getattr(import_module(f"{__name__}.{_EXPORTS[name]}"), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
