"""Parsed page content caching using Redis."""

import hashlib
import json
from dataclasses import asdict, dataclass, field, replace
from datetime import UTC, datetime, timedelta

import structlog
from redis import Redis

from worker.redis import get_redis_connection

logger = structlog.get_logger(__name__)

# Default cache TTL: 7 days
DEFAULT_CACHE_TTL_SECONDS = 7 * 24 * 60 * 60

# Entries older than this are deleted on read
MAX_ENTRY_AGE = timedelta(days=30)

# Entries older than this count as modified
FRESHNESS_WINDOW = timedelta(days=7)

NO_LAST_MODIFIED = "no-lastmod"


@dataclass
class CacheMetadata:
    """What is known about how a cached page was produced."""

    content_type: str = "documentation"
    language: str = "en"
    word_count: int = 0
    extraction_method: str = "multi-strategy"
    last_modified: str | None = None
    rendering_engine: str = "static"
    requires_dynamic_rendering: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class CacheEntry:
    """A cached page: raw HTML, extracted text and metadata."""

    key: str
    raw_content: str
    parsed_content: str
    metadata: CacheMetadata

    @property
    def age(self) -> timedelta:
        return datetime.now(UTC) - self.metadata.timestamp

    def to_json(self) -> str:
        data = asdict(self)
        data["metadata"]["timestamp"] = self.metadata.timestamp.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "CacheEntry":
        data = json.loads(raw)
        metadata = dict(data["metadata"])
        metadata["timestamp"] = datetime.fromisoformat(metadata["timestamp"])
        return cls(
            key=data["key"],
            raw_content=data["raw_content"],
            parsed_content=data["parsed_content"],
            metadata=CacheMetadata(**metadata),
        )


class ParsedContentCache:
    """
    Best-effort cache of extracted page content.

    Keys are derived from the URL and its ``Last-Modified`` value. An entry
    is written once and never partially updated. Redis errors are logged
    and treated as misses.
    """

    def __init__(
        self,
        redis: Redis | None = None,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        max_age: timedelta = MAX_ENTRY_AGE,
        freshness_window: timedelta = FRESHNESS_WINDOW,
    ):
        self._redis = redis
        self.ttl_seconds = ttl_seconds
        self.max_age = max_age
        self.freshness_window = freshness_window
        self._prefix = "content:"

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection()
        return self._redis

    @staticmethod
    def generate_key(url: str, last_modified: str | None = None) -> str:
        """Hash a URL and its last-modified value into a 16-char key."""
        digest = hashlib.sha256(f"{url}:{last_modified or NO_LAST_MODIFIED}".encode())
        return digest.hexdigest()[:16]

    def _cache_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> CacheEntry | None:
        """
        Get a cached entry.

        Returns:
            CacheEntry if found and younger than ``max_age``, None otherwise
        """
        try:
            data = self.redis.get(self._cache_key(key))
            if not data:
                logger.debug("content_cache_miss", key=key)
                return None

            entry = CacheEntry.from_json(data)
        except Exception as e:
            logger.warning("content_cache_get_error", key=key, error=str(e))
            return None

        if entry.age > self.max_age:
            logger.info("content_cache_expired", key=key, age_days=entry.age.days)
            await self.delete(key)
            return None

        logger.debug("content_cache_hit", key=key)
        return entry

    async def set(
        self,
        key: str,
        raw_html: str,
        parsed_text: str,
        metadata: CacheMetadata,
        ttl_seconds: int | None = None,
    ) -> bool:
        """
        Store an entry; the metadata timestamp is set to now.

        Returns:
            True if cached successfully, False otherwise
        """
        entry = CacheEntry(
            key=key,
            raw_content=raw_html,
            parsed_content=parsed_text,
            metadata=replace(metadata, timestamp=datetime.now(UTC)),
        )
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds

        try:
            self.redis.setex(self._cache_key(key), ttl, entry.to_json())
            logger.debug("content_cache_set", key=key, ttl_seconds=ttl)
            return True
        except Exception as e:
            logger.warning("content_cache_set_error", key=key, error=str(e))
            return False

    async def is_content_modified(self, url: str, last_modified: str | None = None) -> bool:
        """
        Check whether a page must be reprocessed.

        True when there is no entry, the stored ``Last-Modified`` differs,
        or the entry is older than the freshness window.
        """
        entry = await self.get(self.generate_key(url, last_modified))
        if entry is None:
            return True
        if entry.metadata.last_modified != last_modified:
            return True
        return entry.age > self.freshness_window

    async def delete(self, key: str) -> bool:
        try:
            self.redis.delete(self._cache_key(key))
            return True
        except Exception as e:
            logger.warning("content_cache_delete_error", key=key, error=str(e))
            return False

    async def clear(self) -> int:
        """
        Delete every content cache entry.

        Returns:
            Number of entries deleted
        """
        try:
            keys = list(self.redis.scan_iter(f"{self._prefix}*"))
            if keys:
                self.redis.delete(*keys)
            logger.info("content_cache_cleared", entries=len(keys))
            return len(keys)
        except Exception as e:
            logger.warning("content_cache_clear_error", error=str(e))
            return 0
