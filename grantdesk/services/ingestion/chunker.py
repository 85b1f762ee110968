"""Deterministic sliding-window text chunking.

Splits an announcement's extracted text into fixed-size character windows
(default 1000) that overlap by a fixed amount (default 200).  The overlap is
a retrieval-recall trade-off: a sentence cut at one window's edge is whole
in the next window, so a question about it can still match a chunk.

The split is purely positional (no paragraph or sentence detection) so the
same text always yields the same chunks, and dropping the first
``overlap`` characters of every chunk but the first reconstructs the text
exactly.

    text:    |0 ........................................ 1500|
    chunk 0: |0 ............... 1000|
    chunk 1:               |800 ........................ 1500|
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_OVERLAP = 200


class TextChunker:
    """Splits text into overlapping fixed-size windows.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk.  Must be positive.
    overlap:
        Characters shared by consecutive chunks.  Must satisfy
        ``0 <= overlap < chunk_size`` so each step advances.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if not 0 <= overlap < chunk_size:
            raise ValueError(
                f"overlap must satisfy 0 <= overlap < chunk_size ({chunk_size}), got {overlap}"
            )
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[str]:
        """Split *text* into overlapping windows.

        Returns an empty list for empty text.  The loop emits
        ``text[start:start + chunk_size]``, advances ``start`` by
        ``chunk_size - overlap`` and stops once the remaining tail is fully
        covered by the window just emitted.
        """
        length = len(text)
        step = self._chunk_size - self._overlap

        chunks: list[str] = []
        start = 0
        while start < length:
            end = min(start + self._chunk_size, length)
            chunks.append(text[start:end])
            start += step
            if start >= length - self._overlap:
                break

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            text_chars=length,
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return chunks


def chunk_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP) -> list[str]:
    """Functional shorthand for ``TextChunker(chunk_size, overlap).chunk(text)``."""
    return TextChunker(chunk_size, overlap).chunk(text)
