"""Downstream collaborators that receive indexed passages.

Embedding, vector storage and search ranking live in other services. The
worker hands every chunk to two sinks: the ingestion sink (semantic
memory) and the search-index sink (lexical/semantic search). Shipped
implementations push JSON payloads onto Redis lists for those services to
consume, or collect records in memory for dry runs.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field

import structlog
from redis import Redis

from worker.redis import get_redis_connection

logger = structlog.get_logger(__name__)

GLOBAL_PROJECT_ID = "global"
GLOBAL_SCOPE = "global"


@dataclass
class IngestRecord:
    """One passage for the ingestion service."""

    content: str
    source: str
    language: str
    type: str = "documentation"
    project_id: str = GLOBAL_PROJECT_ID
    scope: str = GLOBAL_SCOPE

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SearchMetadata:
    """Facets attached to a passage in the search index."""

    content_type: str
    language: str
    title: str | None
    complexity: str
    source_type: str = "website"

    def to_dict(self) -> dict:
        return {
            "sourceType": self.source_type,
            "contentType": self.content_type,
            "language": self.language,
            "title": self.title,
            "complexity": self.complexity,
        }


@dataclass
class SearchIndexRecord:
    """One passage for the search index."""

    content: str
    url: str
    metadata: SearchMetadata

    def to_dict(self) -> dict:
        return {"content": self.content, "url": self.url, "metadata": self.metadata.to_dict()}


class IngestionSink(ABC):
    """Receives passages for semantic ingestion."""

    @abstractmethod
    async def ingest(self, record: IngestRecord) -> None:
        """Hand one passage to the ingestion service."""
        pass


class SearchIndexSink(ABC):
    """Receives passages for search indexing."""

    @abstractmethod
    async def index_content(self, content: str, url: str, metadata: SearchMetadata) -> None:
        """Hand one passage to the search index."""
        pass


class RedisListSink:
    """Pushes JSON payloads onto a Redis list."""

    def __init__(self, key: str, redis: Redis | None = None):
        self.key = key
        self._redis = redis

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection()
        return self._redis

    def push(self, payload: dict) -> None:
        self.redis.rpush(self.key, json.dumps(payload))


class RedisIngestionSink(RedisListSink, IngestionSink):
    """Queues ingestion records on ``docindex:ingest``."""

    def __init__(self, key: str = "docindex:ingest", redis: Redis | None = None):
        super().__init__(key, redis)

    async def ingest(self, record: IngestRecord) -> None:
        self.push(record.to_dict())
        logger.debug("passage_queued_for_ingest", source=record.source, key=self.key)


class RedisSearchIndexSink(RedisListSink, SearchIndexSink):
    """Queues search-index records on ``docindex:search-index``."""

    def __init__(self, key: str = "docindex:search-index", redis: Redis | None = None):
        super().__init__(key, redis)

    async def index_content(self, content: str, url: str, metadata: SearchMetadata) -> None:
        self.push(SearchIndexRecord(content=content, url=url, metadata=metadata).to_dict())
        logger.debug("passage_queued_for_search", url=url, key=self.key)


@dataclass
class CollectingSink(IngestionSink, SearchIndexSink):
    """Keeps every record in memory; used for dry runs."""

    ingested: list[IngestRecord] = field(default_factory=list)
    indexed: list[SearchIndexRecord] = field(default_factory=list)

    async def ingest(self, record: IngestRecord) -> None:
        self.ingested.append(record)

    async def index_content(self, content: str, url: str, metadata: SearchMetadata) -> None:
        self.indexed.append(SearchIndexRecord(content=content, url=url, metadata=metadata))
