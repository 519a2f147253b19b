"""Text chunking for embedding — paragraph, sentence, then word granularity.

Manually entered content (``SourceType.TEXT``) is already sized by the
editor and is returned as a single chunk. Everything else is split on
paragraph boundaries (blank lines, or the start of a legal article such as
``Art. 7.``) and greedily packed into chunks of at most ``max_chars``.

A paragraph longer than the limit is split into sentences; a sentence
longer than the limit is split into words. A chunk exceeds ``max_chars``
only when a single word does.
"""

import logging
import re

from lexbase.domain.entities import SourceType

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHUNK_CHARS = 1000

# Blank lines, or a position right before an article marker ("Art. 5.", "Art. 482.").
_PARAGRAPH_BOUNDARY = re.compile(r"\n\s*\n|(?=\bArt\.\s*\d+\.)")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE_RUN = re.compile(r"\s+")


class _ChunkBuffer:
    """Greedy accumulator — flushes whenever the next piece would overflow."""

    def __init__(self, max_chars: int):
        self._max_chars = max_chars
        self._current = ""
        self.chunks: list[str] = []

    def add(self, piece: str) -> None:
        if not piece:
            return
        if not self._current:
            self._current = piece
        elif len(self._current) + 1 + len(piece) > self._max_chars:
            self.flush()
            self._current = piece
        else:
            self._current = f"{self._current} {piece}"

    def flush(self) -> None:
        if self._current:
            self.chunks.append(self._current)
        self._current = ""


class TextChunker:
    """Splits ingested text into bounded-size semantic units."""

    def __init__(self, max_chars: int = DEFAULT_MAX_CHUNK_CHARS):
        if max_chars < 1:
            raise ValueError("max_chars must be positive")
        self._max_chars = max_chars

    @property
    def max_chars(self) -> int:
        return self._max_chars

    def chunk(self, text: str, source_type: SourceType) -> list[str]:
        """Split *text* according to the chunking policy of *source_type*."""
        if source_type == SourceType.TEXT:
            return [text]
        if not text:
            return []

        paragraphs = self.split_paragraphs(text)
        if not paragraphs:
            # Whitespace-only input: nothing to split, keep it whole.
            return [text]

        buffer = _ChunkBuffer(self._max_chars)
        for paragraph in paragraphs:
            if len(paragraph) <= self._max_chars:
                buffer.add(paragraph)
                continue
            for sentence in self.split_sentences(paragraph):
                if len(sentence) <= self._max_chars:
                    buffer.add(sentence)
                else:
                    for word in sentence.split(" "):
                        buffer.add(word)
        buffer.flush()

        logger.debug(
            "Chunked %d characters into %d chunks (source_type=%s, max_chars=%d)",
            len(text),
            len(buffer.chunks),
            source_type.value,
            self._max_chars,
        )
        return buffer.chunks

    @staticmethod
    def split_paragraphs(text: str) -> list[str]:
        """Split on blank lines and article markers; collapse whitespace inside each part."""
        parts = _PARAGRAPH_BOUNDARY.split(text)
        normalized = (_WHITESPACE_RUN.sub(" ", part).strip() for part in parts)
        return [part for part in normalized if part]

    @staticmethod
    def split_sentences(paragraph: str) -> list[str]:
        """Split after ``.``, ``!`` or ``?`` followed by whitespace."""
        return [s for s in _SENTENCE_BOUNDARY.split(paragraph) if s]
