"""Data models for vector index operations."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SearchHit:
    """A single nearest-neighbour result: chunk id and cosine similarity."""

    chunk_id: str
    similarity: float


@dataclass(frozen=True)
class IndexEntry:
    """Bookkeeping for one indexed chunk (its vector is held separately)."""

    chunk_id: str
    chatbot_id: str
    document_id: str | None
    seq: int
