"""Cascading passage chunker for extracted page content."""

from dataclasses import dataclass, field

import structlog

from worker.chunking.splitter import (
    WORD_CHUNK_FLOOR,
    Piece,
    Split,
    SplitLevel,
    split_by_headers,
    split_by_paragraphs,
    split_by_sentences,
    split_by_words,
)

logger = structlog.get_logger(__name__)


@dataclass
class ContentChunk:
    """A single passage ready for ingestion."""

    text: str
    ordinal: int

    def __len__(self) -> int:
        return len(self.text)


@dataclass
class ChunkResult:
    """Chunks of one text and the tier that split it."""

    chunks: list[ContentChunk] = field(default_factory=list)
    tier: SplitLevel | None = None
    word_packed: int = 0

    @property
    def texts(self) -> list[str]:
        return [chunk.text for chunk in self.chunks]

    def __len__(self) -> int:
        return len(self.chunks)


@dataclass
class ChunkerConfig:
    """Size bounds in characters."""

    min_chunk_size: int = 200
    max_chunk_size: int = 1500
    word_chunk_floor: int = WORD_CHUNK_FLOOR


class Chunker:
    """
    Splits text into bounded passages.

    Tiers are tried in order (headers, paragraphs, sentences); the first
    that applies decides the boundaries. Pieces still larger than the
    maximum are re-split by words, and pieces below the minimum are
    dropped. Word-packed pieces use their own lower floor.
    """

    def __init__(self, config: ChunkerConfig | None = None):
        self.config = config or ChunkerConfig()

    def chunk(self, text: str) -> ChunkResult:
        """
        Chunk text deterministically.

        Args:
            text: Extracted page text (Markdown-ish)

        Returns:
            ChunkResult with ordered chunks
        """
        if not text or not text.strip():
            return ChunkResult()

        tier, pieces = self._cascade(text)
        pieces = self._bound(pieces)
        kept = [piece for piece in pieces if self._long_enough(piece)]

        result = ChunkResult(
            chunks=[ContentChunk(text=piece.text, ordinal=i) for i, piece in enumerate(kept)],
            tier=tier,
            word_packed=sum(1 for piece in kept if piece.word_packed),
        )

        logger.debug(
            "text_chunked",
            tier=tier,
            chunks=len(result.chunks),
            dropped=len(pieces) - len(kept),
        )
        return result

    def _cascade(self, text: str) -> tuple[SplitLevel, list[Piece]]:
        min_size = self.config.min_chunk_size
        max_size = self.config.max_chunk_size

        for level, tier in (
            (SplitLevel.HEADER, split_by_headers),
            (SplitLevel.PARAGRAPH, split_by_paragraphs),
        ):
            result = tier(text, min_size, max_size)
            if isinstance(result, Split):
                return level, result.pieces

        return SplitLevel.SENTENCE, split_by_sentences(text, min_size, max_size)

    def _bound(self, pieces: list[Piece]) -> list[Piece]:
        """Re-split oversized non-word pieces by words."""
        bounded: list[Piece] = []
        for piece in pieces:
            if not piece.word_packed and len(piece.text) > self.config.max_chunk_size:
                bounded.extend(
                    split_by_words(
                        piece.text,
                        self.config.max_chunk_size,
                        self.config.word_chunk_floor,
                    )
                )
            else:
                bounded.append(piece)
        return bounded

    def _long_enough(self, piece: Piece) -> bool:
        if piece.word_packed:
            return len(piece.text) >= self.config.word_chunk_floor
        return len(piece.text) >= self.config.min_chunk_size


def chunk_text(text: str, config: ChunkerConfig | None = None) -> ChunkResult:
    """Convenience function to chunk text with default bounds."""
    return Chunker(config).chunk(text)
