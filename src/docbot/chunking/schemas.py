"""Data models for chunks."""

from __future__ import annotations

from dataclasses import dataclass

from docbot.errors import InvalidChunkConfig

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_OVERLAP_SIZE = 100


@dataclass(frozen=True)
class ChunkConfig:
    """Sliding-window parameters, in chunker units (characters or tokens)."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    overlap_size: int = DEFAULT_OVERLAP_SIZE

    def validate(self) -> None:
        """Reject configurations whose window would never advance.

        Raises:
            InvalidChunkConfig: If ``chunk_size <= 0`` or the overlap is
                outside ``0 <= overlap_size < chunk_size``.
        """
        if self.chunk_size <= 0:
            raise InvalidChunkConfig(
                f"chunk_size must be positive, got {self.chunk_size}",
                details={"chunk_size": self.chunk_size},
            )
        if self.overlap_size < 0:
            raise InvalidChunkConfig(
                f"overlap_size must not be negative, got {self.overlap_size}",
                details={"overlap_size": self.overlap_size},
            )
        if self.overlap_size >= self.chunk_size:
            raise InvalidChunkConfig(
                "overlap_size must be smaller than chunk_size",
                details={
                    "chunk_size": self.chunk_size,
                    "overlap_size": self.overlap_size,
                },
            )

    @property
    def stride(self) -> int:
        """Distance between the starts of consecutive windows."""
        return self.chunk_size - self.overlap_size


@dataclass
class Chunk:
    """A single window of a document's text, before embedding."""

    text: str
    chunk_index: int = 0
    start: int = 0
    end: int = 0
    total_chunks: int = 0

    def position_metadata(self) -> dict[str, int]:
        """Window position, stored alongside the chunk text."""
        return {
            "chunk_index": self.chunk_index,
            "start": self.start,
            "end": self.end,
            "total_chunks": self.total_chunks,
        }
