"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: PostgresDsn

    # Redis
    redis_url: RedisDsn

    # HTTP
    crawler_user_agent: str = "DocIndexBot/1.0 (+documentation indexer)"
    crawler_timeout: float = 30.0
    crawler_max_retries: int = 1
    crawler_min_delay: float = 0.0

    # Discovery
    frontier_threshold: int = 20  # Crawl links when sitemap yields fewer under the base path
    frontier_max_waves: int = 3
    frontier_max_urls_per_wave: int = 50
    frontier_wave_delay: float = 1.0
    max_other_path_urls: int = 50

    # Page processing
    page_batch_size: int = 3
    page_batch_delay: float = 1.0

    # Headless rendering
    render_timeout_ms: int = 30000
    render_wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = "networkidle"
    render_settle_ms: int = 2000

    # Parsed content cache
    content_cache_enabled: bool = True
    content_cache_ttl_seconds: int = 7 * 24 * 60 * 60  # 7 days
    content_cache_max_age_days: int = 30

    # Chunking
    chunk_min_size: int = 200
    chunk_max_size: int = 1500

    # Emission
    ingest_queue_key: str = "docindex:ingest"
    search_index_queue_key: str = "docindex:search-index"
    denied_path_patterns: list[str] = Field(default_factory=list)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.env == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    try:
        return Settings()  # type: ignore[call-arg]
    except Exception as e:
        if "validation" in type(e).__name__.lower() or "required" in str(e).lower():
            raise RuntimeError(
                "Missing required environment variables. Set DATABASE_URL and REDIS_URL."
            ) from e
        raise
