"""Passage chunking package."""

from worker.chunking.chunker import Chunker, ChunkerConfig, ChunkResult, ContentChunk, chunk_text
from worker.chunking.splitter import (
    Piece,
    SplitLevel,
    split_by_headers,
    split_by_paragraphs,
    split_by_sentences,
    split_by_words,
)

__all__ = [
    # Chunker
    "Chunker",
    "ChunkerConfig",
    "ChunkResult",
    "ContentChunk",
    "chunk_text",
    # Splitter
    "SplitLevel",
    "Piece",
    "split_by_headers",
    "split_by_paragraphs",
    "split_by_sentences",
    "split_by_words",
]
