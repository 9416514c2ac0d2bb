#!/usr/bin/env python
"""Dry-run the documentation pipeline against a live site.

Passages are collected in memory instead of being queued for ingestion,
and nothing is written to the database.

Usage:
    python scripts/index_site.py https://docs.example.com/guide/ [--name guide]
    python scripts/index_site.py https://example.com/llms.txt --type manifest
"""

import argparse
import asyncio
import json
import sys

import httpx

# Add project root to path
sys.path.insert(0, ".")

from docindex.config import get_settings  # noqa: E402
from docindex.logging import setup_logging  # noqa: E402
from docindex.models import SourceType  # noqa: E402
from worker.crawler.render import PlaywrightRenderer  # noqa: E402
from worker.crawler.url import extract_domain  # noqa: E402
from worker.sinks import CollectingSink  # noqa: E402
from worker.tasks.index_source import (  # noqa: E402
    SourceDescriptor,
    build_indexer,
    index_documentation_source,
)


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    sink = CollectingSink()
    source = SourceDescriptor(
        id="dry-run",
        name=args.name or extract_domain(args.url) or "docs",
        source_type=SourceType(args.type),
        url=args.url,
    )

    headless = None if args.static_only else PlaywrightRenderer(settle_ms=settings.render_settle_ms)
    try:
        async with httpx.AsyncClient(timeout=settings.crawler_timeout, follow_redirects=True) as client:
            indexer = build_indexer(client, sink, sink, headless=headless, settings=settings)
            outcome = await index_documentation_source(source, indexer)
    finally:
        if headless is not None:
            await headless.close()

    print(json.dumps(outcome.to_dict(), indent=2))
    for record in sink.indexed[: args.show]:
        print(f"\n--- {record.url} [{record.metadata.content_type}, {record.metadata.complexity}]")
        print(record.content[:500])

    return 0 if outcome.success else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Crawl and chunk a documentation source without storing it")
    parser.add_argument("url", help="Website or manifest URL")
    parser.add_argument("--name", help="Source name (defaults to the domain)")
    parser.add_argument(
        "--type",
        choices=[SourceType.WEBSITE.value, SourceType.MANIFEST.value],
        default=SourceType.WEBSITE.value,
    )
    parser.add_argument("--static-only", action="store_true", help="Never launch a headless browser")
    parser.add_argument("--show", type=int, default=3, help="Number of passages to print")
    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
