"""Splitting tiers for passage chunking.

Each tier is a pure function of the text and the size bounds. Header and
paragraph tiers can decline (``NO_SPLIT``) when the text does not have the
structure they need; sentence and word packing always produce output.
"""

import re
from dataclasses import dataclass
from enum import StrEnum


class SplitLevel(StrEnum):
    """Hierarchy of split points, from coarsest to finest."""

    HEADER = "header"  # Markdown headings
    PARAGRAPH = "paragraph"  # Blank lines
    SENTENCE = "sentence"  # Period/question/exclamation
    WORD = "word"  # Individual words (last resort)


# Patterns for detecting structure
HEADING_BOUNDARY = re.compile(r"(?=^#{1,6}\s)", re.MULTILINE)
SUBHEADING_BOUNDARY = re.compile(r"(?=^#{2,6}\s)", re.MULTILINE)
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
WHITESPACE = re.compile(r"\s+")

# Units this short are dropped before packing
MIN_UNIT_LENGTH = 10

# Sub-sections this short are dropped when splitting an oversized section
MIN_SUBSECTION_LENGTH = 100

# Word packing never flushes below this many characters
WORD_CHUNK_FLOOR = 100

# Sentence-packed chunks larger than this multiple of max go to word packing
OVERSIZE_FACTOR = 1.5


@dataclass(frozen=True)
class Piece:
    """A candidate chunk and the level that produced it."""

    text: str
    level: SplitLevel

    @property
    def word_packed(self) -> bool:
        return self.level is SplitLevel.WORD


@dataclass(frozen=True)
class Split:
    """A tier produced pieces."""

    pieces: list[Piece]


class NoSplit:
    """A tier does not apply to this text."""

    def __repr__(self) -> str:
        return "NO_SPLIT"


NO_SPLIT = NoSplit()

SplitResult = Split | NoSplit


def _split_keep(pattern: re.Pattern[str], text: str) -> list[str]:
    # Zero-width splits yield a leading empty part when text starts at a boundary
    return [part for part in pattern.split(text) if part]


def pack(units: list[str], separator: str, min_size: int, max_size: int) -> list[str]:
    """
    Greedily pack units into chunks.

    A chunk is flushed when adding the next unit would exceed ``max_size``
    and the chunk already exceeds ``min_size``. The trailing chunk is kept
    only if it exceeds ``min_size``.
    """
    chunks: list[str] = []
    current = ""

    for unit in units:
        unit = unit.strip()
        joined_length = len(current) + len(separator) + len(unit) if current else len(unit)
        if joined_length > max_size and len(current) > min_size:
            chunks.append(current.strip())
            current = unit
        else:
            current = f"{current}{separator}{unit}" if current else unit

    if len(current.strip()) > min_size:
        chunks.append(current.strip())

    return chunks


def split_by_words(text: str, max_size: int, floor: int = WORD_CHUNK_FLOOR) -> list[Piece]:
    """Tier 4: pack whitespace-delimited words, flushing at ``max_size``."""
    words = [w for w in WHITESPACE.split(text) if w]
    return [Piece(chunk, SplitLevel.WORD) for chunk in pack(words, " ", floor, max_size)]


def split_by_sentences(text: str, min_size: int, max_size: int) -> list[Piece]:
    """
    Tier 3: pack sentences.

    Chunks more than ``OVERSIZE_FACTOR`` times ``max_size`` are re-split by
    words.
    """
    sentences = [s for s in SENTENCE_BOUNDARY.split(text) if len(s.strip()) > MIN_UNIT_LENGTH]

    pieces: list[Piece] = []
    for chunk in pack(sentences, " ", min_size, max_size):
        if len(chunk) > max_size * OVERSIZE_FACTOR:
            pieces.extend(split_by_words(chunk, max_size))
        else:
            pieces.append(Piece(chunk, SplitLevel.SENTENCE))
    return pieces


def split_by_paragraphs(text: str, min_size: int, max_size: int) -> SplitResult:
    """
    Tier 2: pack blank-line separated paragraphs.

    Declines when packing yields fewer than three chunks.
    """
    paragraphs = [p for p in text.split("\n\n") if len(p.strip()) > MIN_UNIT_LENGTH]
    chunks = pack(paragraphs, "\n\n", min_size, max_size)

    if len(chunks) < 3:
        return NO_SPLIT
    return Split([Piece(chunk, SplitLevel.PARAGRAPH) for chunk in chunks])


def split_large_section(section: str, min_size: int, max_size: int) -> list[Piece]:
    """Split an oversized section at sub-headings, then by sentence."""
    subsections = _split_keep(SUBHEADING_BOUNDARY, section)
    if len(subsections) <= 1:
        return split_by_sentences(section, min_size, max_size)

    pieces: list[Piece] = []
    for subsection in subsections:
        if len(subsection.strip()) <= MIN_SUBSECTION_LENGTH:
            continue
        if len(subsection) > max_size:
            pieces.extend(split_by_sentences(subsection, min_size, max_size))
        else:
            pieces.append(Piece(subsection.strip(), SplitLevel.HEADER))
    return pieces


def split_by_headers(text: str, min_size: int, max_size: int) -> SplitResult:
    """
    Tier 1: split before each Markdown heading.

    Usable only when there are more than two sections and at least one of
    them exceeds ``min_size`` after trimming. Short sections are dropped.
    """
    sections = _split_keep(HEADING_BOUNDARY, text)
    if len(sections) <= 2:
        return NO_SPLIT

    good_sections = [s.strip() for s in sections if len(s.strip()) > min_size]
    if not good_sections:
        return NO_SPLIT

    pieces: list[Piece] = []
    for section in good_sections:
        if len(section) > max_size:
            pieces.extend(split_large_section(section, min_size, max_size))
        else:
            pieces.append(Piece(section, SplitLevel.HEADER))
    return Split(pieces)
