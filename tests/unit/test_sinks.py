"""Tests for the passage sinks."""

import json

from worker.sinks import (
    CollectingSink,
    IngestRecord,
    RedisIngestionSink,
    RedisSearchIndexSink,
    SearchMetadata,
)


def metadata() -> SearchMetadata:
    return SearchMetadata(content_type="guide", language="python", title="Install", complexity="beginner")


class TestRecords:
    """Tests for record serialization."""

    def test_ingest_record_defaults(self) -> None:
        """Records are global documentation by default."""
        record = IngestRecord(content="text", source="docs/install", language="python")
        assert record.to_dict() == {
            "content": "text",
            "source": "docs/install",
            "language": "python",
            "type": "documentation",
            "project_id": "global",
            "scope": "global",
        }

    def test_search_metadata_keys(self) -> None:
        """Search facets use camelCase keys."""
        assert metadata().to_dict() == {
            "sourceType": "website",
            "contentType": "guide",
            "language": "python",
            "title": "Install",
            "complexity": "beginner",
        }


class TestRedisSinks:
    """Tests for the Redis list sinks."""

    async def test_ingestion_sink_pushes_json(self, fake_redis) -> None:
        """Ingest records are appended to the ingest list."""
        sink = RedisIngestionSink(redis=fake_redis)
        await sink.ingest(IngestRecord(content="text", source="docs/a", language="en"))

        payloads = [json.loads(p) for p in fake_redis.lists["docindex:ingest"]]
        assert payloads == [
            {
                "content": "text",
                "source": "docs/a",
                "language": "en",
                "type": "documentation",
                "project_id": "global",
                "scope": "global",
            }
        ]

    async def test_search_index_sink_pushes_json(self, fake_redis) -> None:
        """Search records carry content, URL and facets."""
        sink = RedisSearchIndexSink(key="custom:search", redis=fake_redis)
        await sink.index_content("text", "https://docs.example.com/a", metadata())

        payload = json.loads(fake_redis.lists["custom:search"][0])
        assert payload["url"] == "https://docs.example.com/a"
        assert payload["metadata"]["contentType"] == "guide"


async def test_collecting_sink() -> None:
    """The collecting sink keeps records in call order."""
    sink = CollectingSink()
    await sink.ingest(IngestRecord(content="a", source="s/a", language="en"))
    await sink.index_content("a", "https://x/a", metadata())

    assert [r.content for r in sink.ingested] == ["a"]
    assert sink.indexed[0].url == "https://x/a"
