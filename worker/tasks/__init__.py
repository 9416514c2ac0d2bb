"""Background task definitions."""

from worker.tasks.index_source import (
    IndexOutcome,
    SourceDescriptor,
    WebsiteIndexer,
    index_documentation_source,
    index_source_job,
    run_index_job,
)

__all__ = [
    "IndexOutcome",
    "SourceDescriptor",
    "WebsiteIndexer",
    "index_documentation_source",
    "index_source_job",
    "run_index_job",
]
