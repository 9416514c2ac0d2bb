"""Redis connections shared by the content cache, sinks and RQ."""

from functools import lru_cache

from redis import ConnectionPool, Redis

from docindex.config import get_settings

# Queue names
QUEUE_HIGH = "docindex-high"
QUEUE_DEFAULT = "docindex-default"
QUEUE_LOW = "docindex-low"

# Job result TTL (7 days)
JOB_RESULT_TTL = 60 * 60 * 24 * 7


@lru_cache
def get_redis_pool(decode_responses: bool = True) -> ConnectionPool:
    """
    Get a cached connection pool.

    RQ stores pickled payloads and needs ``decode_responses=False``; the
    cache and sinks work with text.
    """
    settings = get_settings()
    return ConnectionPool.from_url(
        str(settings.redis_url),
        decode_responses=decode_responses,
        max_connections=10,
    )


def get_redis_connection() -> Redis:
    """Get a text-mode Redis connection from the pool."""
    return Redis(connection_pool=get_redis_pool(True))


def get_redis_connection_bytes() -> Redis:
    """Get a byte-mode Redis connection for RQ."""
    return Redis(connection_pool=get_redis_pool(False))
