"""Custom exceptions for the indexing pipeline."""

from typing import Any


class DocIndexError(Exception):
    """Base exception for the documentation indexer."""

    def __init__(
        self,
        message: str,
        code: str = "error",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class SourceNotFoundError(DocIndexError):
    """Documentation source not found."""

    def __init__(self, identifier: str | None = None):
        message = "Documentation source not found"
        if identifier:
            message = f"Documentation source with id '{identifier}' not found"
        super().__init__(message=message, code="not_found")


class UnsupportedSourceError(DocIndexError):
    """Source type this worker cannot index."""

    def __init__(self, source_type: str):
        super().__init__(
            message=f"Unsupported source type: {source_type}",
            code="unsupported_source",
            details={"source_type": source_type},
        )


class PageFetchError(DocIndexError):
    """A page could not be fetched statically."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Failed to fetch {url}: {reason}",
            code="page_fetch_error",
            details={"url": url},
        )


class RenderError(DocIndexError):
    """Headless rendering failed or timed out."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Error rendering {url}: {reason}",
            code="render_error",
            details={"url": url},
        )


class ManifestFetchError(DocIndexError):
    """A manifest file (llms.txt) could not be fetched."""

    def __init__(self, url: str, status_code: int | None = None):
        message = f"Failed to fetch manifest {url}"
        if status_code is not None:
            message = f"{message}: HTTP {status_code}"
        super().__init__(
            message=message,
            code="manifest_fetch_error",
            details={"url": url, "status_code": status_code},
        )
