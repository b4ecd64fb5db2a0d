"""Data models for documents and their chunks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class SourceType(StrEnum):
    """Where a document's text came from."""

    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"
    URL = "url"


@dataclass(frozen=True)
class Document:
    """An uploaded file or a single crawled page owned by one chatbot."""

    id: str
    chatbot_id: str
    source_type: SourceType = SourceType.TXT
    filename: str | None = None
    source_url: str | None = None
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def display_name(self) -> str:
        """Name shown next to retrieved chunks."""
        return self.filename or self.source_url or self.id


@dataclass(frozen=True)
class ChunkRecord:
    """A persisted chunk. Its embedding lives in the vector index.

    ``metadata`` is opaque to the retrieval core and is returned verbatim.
    """

    id: str
    document_id: str
    chatbot_id: str
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)
