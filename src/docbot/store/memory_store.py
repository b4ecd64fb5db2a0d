"""In-process chunk store backed by dicts: for tests and single-process use."""

from __future__ import annotations

import logging
import threading

from docbot.store.base import ChunkStore
from docbot.store.schemas import ChunkRecord, Document

logger = logging.getLogger(__name__)


class InMemoryChunkStore(ChunkStore):
    """Dict-backed chunk store guarded by a single re-entrant lock."""

    def __init__(self):
        self._lock = threading.RLock()
        self._documents: dict[str, Document] = {}
        # Insertion-ordered; dicts keep order
        self._chunks: dict[str, ChunkRecord] = {}

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(self, document: Document) -> Document:
        with self._lock:
            self._documents[document.id] = document
        return document

    def get_document(self, document_id: str) -> Document | None:
        with self._lock:
            return self._documents.get(document_id)

    def list_documents(self, chatbot_id: str) -> list[Document]:
        with self._lock:
            docs = [d for d in self._documents.values() if d.chatbot_id == chatbot_id]
        return sorted(docs, key=lambda d: d.uploaded_at)

    def delete_document(self, document_id: str) -> bool:
        with self._lock:
            return self._documents.pop(document_id, None) is not None

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def create_chunk(self, chunk: ChunkRecord) -> ChunkRecord:
        with self._lock:
            self._chunks[chunk.id] = chunk
        return chunk

    def get_chunks_by_ids(self, chunk_ids: list[str]) -> dict[str, ChunkRecord]:
        with self._lock:
            return {cid: self._chunks[cid] for cid in chunk_ids if cid in self._chunks}

    def get_chunks_by_document(self, document_id: str) -> list[ChunkRecord]:
        with self._lock:
            return [c for c in self._chunks.values() if c.document_id == document_id]

    def delete_chunk(self, chunk_id: str) -> bool:
        with self._lock:
            return self._chunks.pop(chunk_id, None) is not None

    def delete_chunks_by_document(self, document_id: str) -> list[str]:
        with self._lock:
            ids = [cid for cid, c in self._chunks.items() if c.document_id == document_id]
            for cid in ids:
                del self._chunks[cid]
        return ids

    def delete_chatbot(self, chatbot_id: str) -> int:
        with self._lock:
            chunk_ids = [cid for cid, c in self._chunks.items() if c.chatbot_id == chatbot_id]
            for cid in chunk_ids:
                del self._chunks[cid]
            doc_ids = [did for did, d in self._documents.items() if d.chatbot_id == chatbot_id]
            for did in doc_ids:
                del self._documents[did]
        logger.info(
            "InMemoryChunkStore deleted chatbot %s (%d documents, %d chunks)",
            chatbot_id, len(doc_ids), len(chunk_ids),
        )
        return len(chunk_ids)

    def count_chunks(self, chatbot_id: str | None = None) -> int:
        with self._lock:
            if chatbot_id is None:
                return len(self._chunks)
            return sum(1 for c in self._chunks.values() if c.chatbot_id == chatbot_id)
