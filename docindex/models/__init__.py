"""SQLAlchemy models package."""

from docindex.models.source import DocumentationSource, SourceStatus, SourceType

__all__ = [
    "DocumentationSource",
    "SourceStatus",
    "SourceType",
]
