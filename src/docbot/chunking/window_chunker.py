"""Fixed-size sliding-window chunkers with overlap.

Windows start every ``chunk_size - overlap_size`` units and span
``chunk_size`` units; the last window may be shorter. A window is only
emitted while the previous one stopped short of the end of the text, so a
text of length ``L > chunk_size`` yields ``ceil((L - overlap) / stride)``
chunks and anything shorter yields exactly one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from docbot.chunking.base import BaseChunker
from docbot.chunking.schemas import Chunk, ChunkConfig

logger = logging.getLogger(__name__)

TOKEN_ENCODING = "cl100k_base"


def iter_windows(length: int, config: ChunkConfig) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` offsets covering ``range(length)``."""
    if length <= 0:
        return
    start = 0
    while True:
        end = min(start + config.chunk_size, length)
        yield start, end
        if end >= length:
            return
        start += config.stride


def _number(chunks: list[Chunk]) -> list[Chunk]:
    total = len(chunks)
    for i, c in enumerate(chunks):
        c.chunk_index = i
        c.total_chunks = total
    return chunks


class CharWindowChunker(BaseChunker):
    """Sliding window measured in characters."""

    def chunk(self, text: str) -> list[Chunk]:
        if not text.strip():
            return []

        chunks: list[Chunk] = []
        for start, end in iter_windows(len(text), self.config):
            window = text[start:end]
            # Whitespace-only windows carry nothing worth embedding
            if not window.strip():
                continue
            chunks.append(Chunk(text=window, start=start, end=end))

        logger.debug(
            "CharWindowChunker produced %d chunks from %d chars",
            len(chunks), len(text),
        )
        return _number(chunks)


class TokenWindowChunker(BaseChunker):
    """Sliding window measured in tiktoken tokens."""

    def __init__(self, config: ChunkConfig | None = None, encoding: str = TOKEN_ENCODING):
        super().__init__(config)
        try:
            import tiktoken
        except ImportError as exc:
            raise ImportError(
                "tiktoken required: pip install docbot-retrieval[tokens]"
            ) from exc

        self._encoding: Any = tiktoken.get_encoding(encoding)

    def chunk(self, text: str) -> list[Chunk]:
        if not text.strip():
            return []

        tokens = self._encoding.encode(text)
        chunks: list[Chunk] = []
        for start, end in iter_windows(len(tokens), self.config):
            window = self._encoding.decode(tokens[start:end])
            if not window.strip():
                continue
            chunks.append(Chunk(text=window, start=start, end=end))

        logger.debug(
            "TokenWindowChunker produced %d chunks from %d tokens",
            len(chunks), len(tokens),
        )
        return _number(chunks)
