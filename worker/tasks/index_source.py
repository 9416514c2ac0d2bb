"""Documentation source indexing task."""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import httpx
import structlog
from rq import get_current_job
from sqlalchemy import select

from docindex.config import Settings, get_settings
from docindex.database import reset_engine, session_scope
from docindex.exceptions import ManifestFetchError, SourceNotFoundError, UnsupportedSourceError
from docindex.logging import bind_job_context, clear_job_context
from docindex.models import DocumentationSource, SourceStatus, SourceType
from worker.chunking.chunker import Chunker, ChunkerConfig
from worker.crawler.cache import CacheMetadata, ParsedContentCache
from worker.crawler.discovery import PageDiscoverer
from worker.crawler.fetcher import Fetcher
from worker.crawler.frontier import FrontierCrawler
from worker.crawler.render import (
    HeadlessRenderer,
    PageRenderer,
    PageRenderResult,
    PlaywrightRenderer,
)
from worker.crawler.sitemap import SitemapDiscoverer
from worker.crawler.url import source_name_from_url
from worker.extraction.classifier import classify_content, determine_complexity
from worker.extraction.extractor import ContentExtractor, extract_title
from worker.extraction.js_detection import RenderingDecider
from worker.sinks import (
    IngestionSink,
    IngestRecord,
    RedisIngestionSink,
    RedisSearchIndexSink,
    SearchIndexSink,
    SearchMetadata,
)

logger = structlog.get_logger(__name__)

# Pages with less extracted text than this produce no chunks
MIN_PAGE_CONTENT = 100

MANIFEST_LANGUAGE = "markdown"


@dataclass
class SourceDescriptor:
    """What the pipeline needs to know about a documentation source."""

    id: str
    name: str
    source_type: SourceType
    url: str
    branch: str | None = None

    @classmethod
    def from_model(cls, source: DocumentationSource) -> "SourceDescriptor":
        return cls(
            id=str(source.id),
            name=source.name,
            source_type=SourceType(source.source_type),
            url=source.url,
            branch=source.branch,
        )


@dataclass
class IndexOutcome:
    """Result of indexing one source."""

    success: bool
    document_count: int = 0
    error: str | None = None
    pages_processed: int = 0
    pages_failed: int = 0
    pages_cached: int = 0

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "document_count": self.document_count,
            "error": self.error,
            "pages_processed": self.pages_processed,
            "pages_failed": self.pages_failed,
            "pages_cached": self.pages_cached,
        }


@dataclass
class PageOutcome:
    """Result of indexing one page."""

    url: str
    chunks: int = 0
    failed: bool = False
    cached: bool = False
    errors: list[str] = field(default_factory=list)


class WebsiteIndexer:
    """
    Turns a documentation source into passages and hands them to the sinks.

    Pages are processed in small concurrent batches with a pause between
    batches. A failing page is logged and contributes zero chunks; it never
    aborts the batch or the job.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        discoverer: PageDiscoverer,
        renderer: PageRenderer,
        ingestion: IngestionSink,
        search_index: SearchIndexSink,
        extractor: ContentExtractor | None = None,
        chunker: Chunker | None = None,
        cache: ParsedContentCache | None = None,
        batch_size: int = 3,
        batch_delay: float = 1.0,
        user_agent: str = "DocIndexBot/1.0",
    ):
        self.client = client
        self.discoverer = discoverer
        self.renderer = renderer
        self.ingestion = ingestion
        self.search_index = search_index
        self.extractor = extractor or ContentExtractor()
        self.chunker = chunker or Chunker()
        self.cache = cache
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.user_agent = user_agent

    async def index_website(self, source: SourceDescriptor) -> IndexOutcome:
        """
        Discover, render, extract, chunk and emit every page of a website.

        Returns:
            IndexOutcome with the total number of emitted chunks
        """
        logger.info("website_indexing_started", source=source.name, url=source.url)

        try:
            discovery = await self.discoverer.discover(source.url)
            urls = discovery.urls
            logger.info("website_pages_discovered", source=source.name, pages=len(urls))

            outcome = IndexOutcome(success=True)
            for start in range(0, len(urls), self.batch_size):
                batch = urls[start : start + self.batch_size]
                results = await asyncio.gather(*(self._index_page(source, url) for url in batch))

                batch_chunks = sum(r.chunks for r in results)
                outcome.document_count += batch_chunks
                outcome.pages_processed += len(results)
                outcome.pages_failed += sum(1 for r in results if r.failed)
                outcome.pages_cached += sum(1 for r in results if r.cached)

                logger.info(
                    "page_batch_complete",
                    source=source.name,
                    batch=start // self.batch_size + 1,
                    batch_chunks=batch_chunks,
                    total_chunks=outcome.document_count,
                )

                if start + self.batch_size < len(urls) and self.batch_delay > 0:
                    await asyncio.sleep(self.batch_delay)

        except Exception as e:
            logger.exception("website_indexing_failed", source=source.name, error=str(e))
            return IndexOutcome(success=False, error=str(e))

        logger.info(
            "website_indexing_complete",
            source=source.name,
            chunks=outcome.document_count,
            pages=outcome.pages_processed,
            failed=outcome.pages_failed,
        )
        return outcome

    async def index_manifest(self, source: SourceDescriptor) -> IndexOutcome:
        """
        Index a single manifest file such as ``llms.txt``.

        The manifest is chunked as Markdown; when chunking yields nothing
        the whole file is ingested as one document.
        """
        logger.info("manifest_indexing_started", source=source.name, url=source.url)
        record_source = f"{source.name}/llms.txt"

        try:
            response = await self.client.get(
                source.url,
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
            )
            if not response.is_success:
                raise ManifestFetchError(source.url, response.status_code)

            content = response.text
            chunks = self.chunker.chunk(content)
            texts = chunks.texts if chunks.chunks else [content]

            for text in texts:
                await self.ingestion.ingest(
                    IngestRecord(content=text, source=record_source, language=MANIFEST_LANGUAGE)
                )

        except (ManifestFetchError, httpx.HTTPError) as e:
            logger.error("manifest_indexing_failed", source=source.name, error=str(e))
            return IndexOutcome(success=False, error=str(e))

        logger.info("manifest_indexing_complete", source=source.name, chunks=len(texts))
        return IndexOutcome(success=True, document_count=len(texts), pages_processed=1)

    async def _index_page(self, source: SourceDescriptor, url: str) -> PageOutcome:
        try:
            return await self._process_page(source, url)
        except Exception as e:
            logger.warning("page_indexing_failed", url=url, error=str(e))
            return PageOutcome(url=url, failed=True, errors=[str(e)])

    async def _process_page(self, source: SourceDescriptor, url: str) -> PageOutcome:
        outcome = PageOutcome(url=url)
        content: str | None = None
        html = ""

        # No Last-Modified is known before fetching, so lookups use the URL alone
        cache_key = ParsedContentCache.generate_key(url)
        if self.cache is not None:
            entry = await self.cache.get(cache_key)
            if entry is not None and not await self.cache.is_content_modified(url):
                logger.debug("page_cache_reused", url=url)
                content = entry.parsed_content
                html = entry.raw_content
                outcome.cached = True

        if content is None:
            rendered = await self.renderer.render(url)
            html = rendered.html
            extraction = self.extractor.extract(html, url)
            content = extraction.text
            rendered.extracted_text = content

            if self.cache is not None:
                await self.cache.set(
                    cache_key,
                    html,
                    content,
                    self._cache_metadata(rendered, extraction.method, content),
                )

        if len(content.strip()) < MIN_PAGE_CONTENT:
            logger.info("page_content_too_short", url=url, length=len(content.strip()))
            return outcome

        title = extract_title(html) if html else None
        classification = classify_content(url, content, title)
        record_source = f"{source.name}/{source_name_from_url(url)}"

        chunks = self.chunker.chunk(content)
        for chunk in chunks.chunks:
            await self.ingestion.ingest(
                IngestRecord(
                    content=chunk.text,
                    source=record_source,
                    language=classification.language,
                )
            )
            await self.search_index.index_content(
                chunk.text,
                url,
                SearchMetadata(
                    content_type=classification.content_type,
                    language=classification.language,
                    title=title,
                    complexity=determine_complexity(chunk.text, classification.content_type),
                ),
            )

        outcome.chunks = len(chunks.chunks)
        logger.info(
            "page_indexed",
            url=url,
            chunks=outcome.chunks,
            content_type=classification.content_type,
            tier=chunks.tier,
        )
        return outcome

    @staticmethod
    def _cache_metadata(rendered: PageRenderResult, method: str, content: str) -> CacheMetadata:
        return CacheMetadata(
            word_count=len(content.split()),
            extraction_method=method,
            rendering_engine=rendered.rendering_engine.value,
            requires_dynamic_rendering=rendered.requires_dynamic_rendering,
        )


def build_indexer(
    client: httpx.AsyncClient,
    ingestion: IngestionSink,
    search_index: SearchIndexSink,
    headless: HeadlessRenderer | None = None,
    cache: ParsedContentCache | None = None,
    settings: Settings | None = None,
) -> WebsiteIndexer:
    """Wire a WebsiteIndexer from settings."""
    settings = settings or get_settings()

    fetcher = Fetcher(
        user_agent=settings.crawler_user_agent,
        timeout=settings.crawler_timeout,
        max_retries=settings.crawler_max_retries,
        min_delay_between_requests=settings.crawler_min_delay,
        client=client,
    )
    discoverer = PageDiscoverer(
        sitemaps=SitemapDiscoverer(client, user_agent=settings.crawler_user_agent),
        frontier=FrontierCrawler(
            fetcher,
            max_waves=settings.frontier_max_waves,
            max_urls_per_wave=settings.frontier_max_urls_per_wave,
            wave_delay=settings.frontier_wave_delay,
        ),
        frontier_threshold=settings.frontier_threshold,
        max_other_path_urls=settings.max_other_path_urls,
        denied_patterns=settings.denied_path_patterns,
    )
    renderer = PageRenderer(
        fetcher,
        decider=RenderingDecider(),
        headless=headless,
        timeout_ms=settings.render_timeout_ms,
        wait_until=settings.render_wait_until,
    )

    return WebsiteIndexer(
        client=client,
        discoverer=discoverer,
        renderer=renderer,
        ingestion=ingestion,
        search_index=search_index,
        chunker=Chunker(
            ChunkerConfig(
                min_chunk_size=settings.chunk_min_size,
                max_chunk_size=settings.chunk_max_size,
            )
        ),
        cache=cache,
        batch_size=settings.page_batch_size,
        batch_delay=settings.page_batch_delay,
        user_agent=settings.crawler_user_agent,
    )


async def index_documentation_source(
    source: SourceDescriptor, indexer: WebsiteIndexer
) -> IndexOutcome:
    """Index a source according to its type."""
    if source.source_type == SourceType.WEBSITE:
        return await indexer.index_website(source)
    if source.source_type == SourceType.MANIFEST:
        return await indexer.index_manifest(source)

    error = UnsupportedSourceError(source.source_type)
    logger.warning("source_type_unsupported", source=source.name, source_type=source.source_type)
    return IndexOutcome(success=False, error=error.message)


class DatabaseStatusStore:
    """Loads sources and records their indexing status."""

    async def load_source(self, source_id: str) -> SourceDescriptor:
        async with session_scope() as db:
            result = await db.execute(
                select(DocumentationSource).where(DocumentationSource.id == uuid.UUID(source_id))
            )
            source = result.scalar_one_or_none()
            if source is None:
                raise SourceNotFoundError(source_id)
            return SourceDescriptor.from_model(source)

    async def update_status(
        self,
        source_id: str,
        status: SourceStatus,
        document_count: int | None = None,
        error: str | None = None,
    ) -> None:
        """
        Update a source's indexing status.

        Failures are logged and swallowed; status is bookkeeping only.
        """
        try:
            async with session_scope() as db:
                result = await db.execute(
                    select(DocumentationSource).where(
                        DocumentationSource.id == uuid.UUID(source_id)
                    )
                )
                source = result.scalar_one_or_none()

                if not source:
                    logger.error("source_not_found", source_id=source_id)
                    return

                source.status = status.value
                source.last_error = error
                if document_count is not None:
                    source.document_count = document_count
                if status == SourceStatus.COMPLETED:
                    source.last_indexed_at = datetime.now(UTC)

                await db.commit()
                logger.info("source_status_updated", source_id=source_id, status=status.value)

        except Exception as e:
            logger.error(
                "source_status_update_failed",
                source_id=source_id,
                status=status.value,
                error=str(e),
            )


async def run_index_job(
    source_id: str,
    status_store: DatabaseStatusStore | None = None,
    ingestion: IngestionSink | None = None,
    search_index: SearchIndexSink | None = None,
) -> dict:
    """
    Index one documentation source end to end.

    Loads the source, marks it ``indexing``, runs the pipeline and records
    ``completed`` with the chunk count or ``error`` with a message.

    Args:
        source_id: DocumentationSource ID

    Returns:
        Dict with the indexing outcome
    """
    job = get_current_job()
    settings = get_settings()
    store = status_store or DatabaseStatusStore()

    bind_job_context(source_id=source_id, job_id=job.id if job else None)
    try:
        logger.info("index_job_started")
        source = await store.load_source(source_id)
        await store.update_status(source_id, SourceStatus.INDEXING)

        if job:
            job.meta["source_name"] = source.name
            job.meta["source_type"] = source.source_type.value
            job.save_meta()

        outcome = await _index_with_resources(source, settings, ingestion, search_index)

        if outcome.success:
            await store.update_status(source_id, SourceStatus.COMPLETED, outcome.document_count)
        else:
            await store.update_status(source_id, SourceStatus.ERROR, 0, outcome.error)

        logger.info("index_job_completed", **outcome.to_dict())
        return outcome.to_dict()

    except SourceNotFoundError:
        logger.error("index_job_source_missing")
        raise
    except Exception as e:
        logger.exception("index_job_failed", error=str(e))
        await store.update_status(source_id, SourceStatus.ERROR, 0, str(e))
        raise
    finally:
        clear_job_context()


async def _index_with_resources(
    source: SourceDescriptor,
    settings: Settings,
    ingestion: IngestionSink | None,
    search_index: SearchIndexSink | None,
) -> IndexOutcome:
    """Own the HTTP client and browser for the duration of one job."""
    headless = PlaywrightRenderer(settle_ms=settings.render_settle_ms)
    cache = ParsedContentCache(
        ttl_seconds=settings.content_cache_ttl_seconds,
        max_age=timedelta(days=settings.content_cache_max_age_days),
    )

    try:
        async with httpx.AsyncClient(
            timeout=settings.crawler_timeout,
            follow_redirects=True,
            max_redirects=5,
        ) as client:
            indexer = build_indexer(
                client,
                ingestion=ingestion or RedisIngestionSink(settings.ingest_queue_key),
                search_index=search_index or RedisSearchIndexSink(settings.search_index_queue_key),
                headless=headless,
                cache=cache if settings.content_cache_enabled else None,
                settings=settings,
            )
            return await index_documentation_source(source, indexer)
    finally:
        await headless.close()


def index_source_job(source_id: str) -> dict:
    """
    Synchronous wrapper for the indexing task.

    This is the entry point for RQ which requires sync functions.
    """
    # Fresh connections for the new event loop
    reset_engine()

    return asyncio.run(run_index_job(source_id))
