"""Tests for the cascading chunker."""

from worker.chunking.chunker import Chunker, ChunkerConfig, chunk_text
from worker.chunking.splitter import SplitLevel

HEADED_DOC = "\n".join(
    f"## Topic {i}\n" + "This part of the manual explains one topic in plain words. " * 6
    for i in range(5)
)

PARAGRAPH_DOC = "\n\n".join("Paragraph text goes on. " * 29 for _ in range(5))

SENTENCE_DOC = " ".join(
    f"Sentence number {i} describes one configuration option in detail." for i in range(40)
)


def assert_bounded(result, config: ChunkerConfig = ChunkerConfig()) -> None:
    for chunk in result.chunks:
        assert len(chunk.text) <= config.max_chunk_size
        assert len(chunk.text) >= config.word_chunk_floor


class TestChunker:
    """Tests for Chunker."""

    def test_empty_text(self) -> None:
        """Blank input produces no chunks."""
        assert len(Chunker().chunk("")) == 0
        assert Chunker().chunk("   \n ").tier is None

    def test_header_tier(self) -> None:
        """Markdown headings decide boundaries when present."""
        result = Chunker().chunk(HEADED_DOC)

        assert result.tier == SplitLevel.HEADER
        assert len(result) == 5
        assert result.texts[0].startswith("## Topic 0")
        assert_bounded(result)

    def test_paragraph_tier(self) -> None:
        """Blank-line paragraphs are packed when there are no headings."""
        result = Chunker().chunk(PARAGRAPH_DOC)

        assert result.tier == SplitLevel.PARAGRAPH
        assert len(result) == 3
        assert all(200 <= len(text) <= 1500 for text in result.texts)

    def test_sentence_tier(self) -> None:
        """Unstructured prose is packed by sentence."""
        result = Chunker().chunk(SENTENCE_DOC)

        assert result.tier == SplitLevel.SENTENCE
        assert len(result) == 2
        assert all(200 <= len(text) <= 1500 for text in result.texts)

    def test_oversized_section_is_bounded(self) -> None:
        """A long unpunctuated section is re-split by words."""
        body = "This part of the manual explains one topic. " * 8
        text = f"# Intro\n{body}\n# Big\n{'alpha ' * 300}\n# End\n{body}"

        result = Chunker().chunk(text)

        assert result.tier == SplitLevel.HEADER
        assert result.word_packed >= 2
        assert_bounded(result)

    def test_huge_unpunctuated_text(self) -> None:
        """Text with no structure at all is word-packed within bounds."""
        result = Chunker().chunk("token " * 2000)
        assert result.word_packed == len(result) > 0
        assert_bounded(result)

    def test_deterministic(self) -> None:
        """Same text, same chunks."""
        for doc in (HEADED_DOC, PARAGRAPH_DOC, SENTENCE_DOC):
            assert Chunker().chunk(doc).texts == Chunker().chunk(doc).texts

    def test_ordinals(self) -> None:
        """Chunks are numbered in document order."""
        result = Chunker().chunk(HEADED_DOC)
        assert [c.ordinal for c in result.chunks] == list(range(len(result)))

    def test_custom_bounds(self) -> None:
        """Bounds come from the config."""
        config = ChunkerConfig(min_chunk_size=100, max_chunk_size=300)
        result = chunk_text(SENTENCE_DOC, config)

        assert len(result) > 2
        assert_bounded(result, config)

    def test_short_text_dropped(self) -> None:
        """Text under the minimum yields nothing."""
        assert len(chunk_text("Too short to index.")) == 0
