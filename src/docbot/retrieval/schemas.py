"""Data models for retrieval operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_TOP_K = 5


@dataclass
class RetrievalConfig:
    """Configuration for a retrieval operation.

    ``min_score`` drops hits whose similarity is below it; ``None`` keeps
    everything the index returns.
    """

    top_k: int = DEFAULT_TOP_K
    min_score: float | None = None


@dataclass(frozen=True)
class RetrievedChunk:
    """One supporting chunk, ready to be merged into a prompt."""

    chunk_id: str
    text: str
    filename: str
    similarity: float
    metadata: dict[str, Any] = field(default_factory=dict)
