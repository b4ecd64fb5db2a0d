"""Abstract base class for chunk stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docbot.store.schemas import ChunkRecord, Document


class ChunkStore(ABC):
    """Durable mapping of documents and chunk records, scoped by chatbot."""

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @abstractmethod
    def create_document(self, document: Document) -> Document:
        """Insert or replace a document row."""

    @abstractmethod
    def get_document(self, document_id: str) -> Document | None:
        """Return the document, or ``None`` if it does not exist."""

    @abstractmethod
    def list_documents(self, chatbot_id: str) -> list[Document]:
        """Return a chatbot's documents, oldest first."""

    @abstractmethod
    def delete_document(self, document_id: str) -> bool:
        """Delete a document row (not its chunks).

        Returns:
            ``True`` if a row was deleted.
        """

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    @abstractmethod
    def create_chunk(self, chunk: ChunkRecord) -> ChunkRecord:
        """Insert or replace a chunk record."""

    @abstractmethod
    def get_chunks_by_ids(self, chunk_ids: list[str]) -> dict[str, ChunkRecord]:
        """Look up chunks by id. Unknown ids are absent from the result."""

    @abstractmethod
    def get_chunks_by_document(self, document_id: str) -> list[ChunkRecord]:
        """Return a document's chunks in insertion order."""

    @abstractmethod
    def delete_chunk(self, chunk_id: str) -> bool:
        """Delete one chunk record. Idempotent."""

    @abstractmethod
    def delete_chunks_by_document(self, document_id: str) -> list[str]:
        """Delete a document's chunks.

        Returns:
            Ids of the deleted chunks.
        """

    @abstractmethod
    def delete_chatbot(self, chatbot_id: str) -> int:
        """Delete every document and chunk of a chatbot.

        Returns:
            Number of chunks deleted.
        """

    @abstractmethod
    def count_chunks(self, chatbot_id: str | None = None) -> int:
        """Number of chunk records, optionally for one chatbot."""

    def close(self) -> None:
        """Release any held resources (optional)."""

    @classmethod
    def store_name(cls) -> str:
        """Return human-readable store name."""
        return cls.__name__
