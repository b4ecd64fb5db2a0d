"""Exception hierarchy for the retrieval core.

Only configuration errors (``InvalidChunkConfig``, ``DimensionMismatch``)
reach callers. ``EmbeddingUnavailable`` is recovered by the retriever and
the ingestion pipeline, ``ChunkStoreError`` by the ingestion pipeline.
``ChunkStoreInconsistency`` is only ever logged.
"""

from __future__ import annotations

from typing import Any


class DocbotError(Exception):
    """Base class for all docbot errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class DimensionMismatch(DocbotError):
    """Embedding length differs from the index dimensionality."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Embedding has {actual} dimensions, index expects {expected}",
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class EmbeddingUnavailable(DocbotError):
    """The embedding provider failed or timed out."""


class InvalidChunkConfig(DocbotError):
    """Chunk size / overlap combination that cannot make forward progress."""


class ChunkStoreError(DocbotError):
    """The chunk store failed to write a document or chunk."""


class ChunkStoreInconsistency(DocbotError):
    """The vector index references a chunk the chunk store does not have."""

    def __init__(self, chunk_id: str, chatbot_id: str):
        super().__init__(
            f"Indexed chunk {chunk_id} missing from chunk store",
            details={"chunk_id": chunk_id, "chatbot_id": chatbot_id},
        )
        self.chunk_id = chunk_id
        self.chatbot_id = chatbot_id


class NotFound(DocbotError):
    """A document or chatbot does not exist."""


class GenerationUnavailable(DocbotError):
    """The LLM provider failed to produce an answer."""
