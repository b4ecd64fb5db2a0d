"""Abstract base class for all chunkers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docbot.chunking.schemas import Chunk, ChunkConfig


class BaseChunker(ABC):
    """Interface for document chunking strategies."""

    def __init__(self, config: ChunkConfig | None = None):
        self.config = config or ChunkConfig()
        self.config.validate()

    @abstractmethod
    def chunk(self, text: str) -> list[Chunk]:
        """Split text into chunks.

        Args:
            text: Full extracted document text.

        Returns:
            List of ``Chunk`` objects in document order.
        """

    @classmethod
    def strategy_name(cls) -> str:
        """Return human-readable strategy name."""
        return cls.__name__
