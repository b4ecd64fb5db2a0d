"""Data models for the ingestion and chat pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ChunkFailure:
    """A chunk that could not be embedded or stored."""

    chunk_index: int
    reason: str


@dataclass
class IngestResult:
    """Result of ingesting one document.

    ``chunk_count`` counts persisted chunks; failed chunks are not stored.
    """

    document_id: str
    chunk_count: int = 0
    failed_count: int = 0
    failures: list[ChunkFailure] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return self.failed_count > 0 and self.chunk_count > 0


@dataclass
class PageInput:
    """One crawled page, already fetched and reduced to plain text."""

    url: str
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PageError:
    url: str
    error: str


@dataclass
class BatchIngestResult:
    """Result of ingesting a batch of crawled pages."""

    processed_count: int = 0
    failed_count: int = 0
    total_chunks: int = 0
    results: list[IngestResult] = field(default_factory=list)
    errors: list[PageError] = field(default_factory=list)


@dataclass(frozen=True)
class Source:
    """A retrieved chunk as shown under a chat answer."""

    text: str
    filename: str
    source_id: str
    similarity: float


@dataclass
class ChatResponse:
    """Output of the chat pipeline."""

    message: str
    answer: str
    sources: list[Source] = field(default_factory=list)
    model: str = ""
