"""SQLite chunk store: durable, zero infrastructure.

Uses one reusable connection guarded by a re-entrant lock, WAL journaling
for concurrent readers, and a JSON column for the opaque chunk metadata.

Example:
    >>> with SQLiteChunkStore("chunks.db") as store:
    ...     store.create_document(Document(id="d1", chatbot_id="bot1"))
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from docbot.store.base import ChunkStore
from docbot.store.schemas import ChunkRecord, Document, SourceType

logger = logging.getLogger(__name__)

# Stay under SQLite's default host-parameter limit
_ID_BATCH = 500

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    chatbot_id TEXT NOT NULL,
    source_type TEXT NOT NULL,
    filename TEXT,
    source_url TEXT,
    uploaded_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_documents_chatbot ON documents (chatbot_id);

CREATE TABLE IF NOT EXISTS chunks (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    document_id TEXT NOT NULL,
    chatbot_id TEXT NOT NULL,
    text TEXT NOT NULL,
    metadata TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks (document_id);
CREATE INDEX IF NOT EXISTS idx_chunks_chatbot ON chunks (chatbot_id);
"""


class SQLiteChunkStore(ChunkStore):
    """Chunk store persisted to a SQLite file (or ``:memory:``)."""

    def __init__(self, db_path: str = "chunks.db", timeout: float = 30.0):
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()
        self._closed = False
        self._conn = sqlite3.connect(db_path, timeout=timeout, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        with self._lock:
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        logger.debug("SQLiteChunkStore opened %s", db_path)

    def __enter__(self) -> SQLiteChunkStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(self, document: Document) -> Document:
        with self._lock:
            self._check_closed()
            self._conn.execute(
                "INSERT OR REPLACE INTO documents "
                "(id, chatbot_id, source_type, filename, source_url, uploaded_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    document.id,
                    document.chatbot_id,
                    document.source_type.value,
                    document.filename,
                    document.source_url,
                    document.uploaded_at.isoformat(),
                ),
            )
            self._conn.commit()
        return document

    def get_document(self, document_id: str) -> Document | None:
        with self._lock:
            self._check_closed()
            row = self._conn.execute(
                "SELECT * FROM documents WHERE id = ?", (document_id,)
            ).fetchone()
        return self._row_to_document(row) if row else None

    def list_documents(self, chatbot_id: str) -> list[Document]:
        with self._lock:
            self._check_closed()
            rows = self._conn.execute(
                "SELECT * FROM documents WHERE chatbot_id = ? ORDER BY uploaded_at",
                (chatbot_id,),
            ).fetchall()
        return [self._row_to_document(r) for r in rows]

    def delete_document(self, document_id: str) -> bool:
        with self._lock:
            self._check_closed()
            cur = self._conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            self._conn.commit()
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def create_chunk(self, chunk: ChunkRecord) -> ChunkRecord:
        with self._lock:
            self._check_closed()
            self._conn.execute(
                "INSERT OR REPLACE INTO chunks (id, document_id, chatbot_id, text, metadata) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    chunk.id,
                    chunk.document_id,
                    chunk.chatbot_id,
                    chunk.text,
                    json.dumps(chunk.metadata),
                ),
            )
            self._conn.commit()
        return chunk

    def get_chunks_by_ids(self, chunk_ids: list[str]) -> dict[str, ChunkRecord]:
        found: dict[str, ChunkRecord] = {}
        with self._lock:
            self._check_closed()
            for i in range(0, len(chunk_ids), _ID_BATCH):
                batch = chunk_ids[i : i + _ID_BATCH]
                placeholders = ",".join("?" * len(batch))
                rows = self._conn.execute(
                    f"SELECT * FROM chunks WHERE id IN ({placeholders})", batch
                ).fetchall()
                for row in rows:
                    found[row["id"]] = self._row_to_chunk(row)
        return found

    def get_chunks_by_document(self, document_id: str) -> list[ChunkRecord]:
        with self._lock:
            self._check_closed()
            rows = self._conn.execute(
                "SELECT * FROM chunks WHERE document_id = ? ORDER BY seq", (document_id,)
            ).fetchall()
        return [self._row_to_chunk(r) for r in rows]

    def delete_chunk(self, chunk_id: str) -> bool:
        with self._lock:
            self._check_closed()
            cur = self._conn.execute("DELETE FROM chunks WHERE id = ?", (chunk_id,))
            self._conn.commit()
        return cur.rowcount > 0

    def delete_chunks_by_document(self, document_id: str) -> list[str]:
        with self._lock:
            self._check_closed()
            ids = [
                r["id"]
                for r in self._conn.execute(
                    "SELECT id FROM chunks WHERE document_id = ?", (document_id,)
                )
            ]
            self._conn.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
            self._conn.commit()
        return ids

    def delete_chatbot(self, chatbot_id: str) -> int:
        with self._lock:
            self._check_closed()
            cur = self._conn.execute("DELETE FROM chunks WHERE chatbot_id = ?", (chatbot_id,))
            deleted = cur.rowcount
            self._conn.execute("DELETE FROM documents WHERE chatbot_id = ?", (chatbot_id,))
            self._conn.commit()
        logger.info("SQLiteChunkStore deleted chatbot %s (%d chunks)", chatbot_id, deleted)
        return deleted

    def count_chunks(self, chatbot_id: str | None = None) -> int:
        with self._lock:
            self._check_closed()
            if chatbot_id is None:
                row = self._conn.execute("SELECT COUNT(*) FROM chunks").fetchone()
            else:
                row = self._conn.execute(
                    "SELECT COUNT(*) FROM chunks WHERE chatbot_id = ?", (chatbot_id,)
                ).fetchone()
        return int(row[0])

    def close(self) -> None:
        with self._lock:
            if not self._closed:
                self._conn.close()
                self._closed = True

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _check_closed(self) -> None:
        if self._closed:
            raise RuntimeError("SQLiteChunkStore connection has been closed")

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Document:
        return Document(
            id=row["id"],
            chatbot_id=row["chatbot_id"],
            source_type=SourceType(row["source_type"]),
            filename=row["filename"],
            source_url=row["source_url"],
            uploaded_at=datetime.fromisoformat(row["uploaded_at"]),
        )

    @staticmethod
    def _row_to_chunk(row: sqlite3.Row) -> ChunkRecord:
        return ChunkRecord(
            id=row["id"],
            document_id=row["document_id"],
            chatbot_id=row["chatbot_id"],
            text=row["text"],
            metadata=json.loads(row["metadata"]),
        )
