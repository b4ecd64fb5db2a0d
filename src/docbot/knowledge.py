"""Knowledge base: keeps the chunk store and the vector index in lockstep.

Writes follow a write-then-publish order: the chunk record is stored
first and becomes visible to retrieval only once its embedding lands in the
index. Deletes run in the opposite order (index first), so a reader can at
worst see an index hit whose record has just gone, which the retriever
drops. No reader ever gets a chunk without its embedding or vice versa.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass

from docbot.errors import ChunkStoreError, NotFound
from docbot.store.base import ChunkStore
from docbot.store.schemas import ChunkRecord, Document
from docbot.vectorstore.base import VectorIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KnowledgeStats:
    """Per-chatbot counters shown on the knowledge dashboard."""

    chatbot_id: str
    document_count: int
    chunk_count: int
    indexed_count: int


class KnowledgeBase:
    """A chunk store and a vector index behind one write path.

    Construct once per process and pass it to the retriever and the
    ingestion pipeline.
    """

    def __init__(self, chunk_store: ChunkStore, vector_index: VectorIndex):
        self.chunk_store = chunk_store
        self.vector_index = vector_index
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_document(self, document: Document) -> Document:
        try:
            return self.chunk_store.create_document(document)
        except Exception as exc:
            raise ChunkStoreError(
                f"Failed to store document {document.id}: {exc}",
                details={"document_id": document.id, "chatbot_id": document.chatbot_id},
                original_error=exc,
            ) from exc

    def add_chunk(self, record: ChunkRecord, embedding: Sequence[float]) -> None:
        """Persist a chunk and publish its embedding as one unit.

        Raises:
            ChunkStoreError: If the store rejects the record. Nothing is
                published to the index.
            DimensionMismatch: If the embedding does not fit the index; the
                chunk record is removed again before the error propagates.
        """
        with self.chatbot_lock(record.chatbot_id):
            try:
                self.chunk_store.create_chunk(record)
            except Exception as exc:
                raise ChunkStoreError(
                    f"Failed to store chunk {record.id}: {exc}",
                    details={"chunk_id": record.id, "document_id": record.document_id},
                    original_error=exc,
                ) from exc
            try:
                self.vector_index.insert(
                    record.id,
                    record.chatbot_id,
                    embedding,
                    document_id=record.document_id,
                )
            except Exception:
                self.chunk_store.delete_chunk(record.id)
                raise

    def clear_document_chunks(self, document_id: str, chatbot_id: str) -> int:
        """Remove a document's chunks but keep the document row."""
        with self.chatbot_lock(chatbot_id):
            removed = self.vector_index.remove_by_document(document_id)
            chunk_ids = self.chunk_store.delete_chunks_by_document(document_id)
            # Entries indexed without a document id still go
            for chunk_id in chunk_ids:
                self.vector_index.remove_by_chunk(chunk_id)
        if removed != len(chunk_ids):
            logger.warning(
                "Document %s had %d indexed entries but %d chunk records",
                document_id, removed, len(chunk_ids),
            )
        return len(chunk_ids)

    def delete_document(self, document_id: str) -> int:
        """Delete a document with all its chunks and their embeddings.

        Returns:
            Number of chunks removed; 0 for an unknown document.
        """
        document = self.chunk_store.get_document(document_id)
        if document is None:
            logger.info("delete_document: %s not found", document_id)
            return 0

        removed = self.clear_document_chunks(document_id, document.chatbot_id)
        self.chunk_store.delete_document(document_id)
        logger.info("Deleted document %s (%d chunks)", document_id, removed)
        return removed

    def delete_chatbot(self, chatbot_id: str) -> int:
        """Delete a chatbot's index partition, documents and chunks.

        Returns:
            Number of chunks removed.
        """
        with self.chatbot_lock(chatbot_id):
            self.vector_index.remove_by_chatbot(chatbot_id)
            removed = self.chunk_store.delete_chatbot(chatbot_id)
        logger.info("Deleted chatbot %s (%d chunks)", chatbot_id, removed)
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def require_document(self, document_id: str) -> Document:
        """Return the document or raise ``NotFound``."""
        document = self.chunk_store.get_document(document_id)
        if document is None:
            raise NotFound(f"Document {document_id} not found")
        return document

    def stats(self, chatbot_id: str) -> KnowledgeStats:
        return KnowledgeStats(
            chatbot_id=chatbot_id,
            document_count=len(self.chunk_store.list_documents(chatbot_id)),
            chunk_count=self.chunk_store.count_chunks(chatbot_id),
            indexed_count=self.vector_index.count(chatbot_id),
        )

    def chatbot_lock(self, chatbot_id: str) -> threading.RLock:
        """Writer lock serialising mutations of one chatbot."""
        with self._locks_guard:
            lock = self._locks.get(chatbot_id)
            if lock is None:
                lock = self._locks[chatbot_id] = threading.RLock()
            return lock
