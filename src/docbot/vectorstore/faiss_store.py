"""FAISS vector index: one flat inner-product index per chatbot.

Vectors are L2-normalised before insertion so inner product equals cosine
similarity. FAISS ids are the global insertion sequence numbers, which lets
results be re-sorted into the stable tie order. FAISS mutates its index in
place, so reads and writes on a chatbot share that chatbot's lock.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np

from docbot.vectorstore.base import VectorIndex
from docbot.vectorstore.schemas import IndexEntry, SearchHit
from docbot.vectorstore.similarity import check_dimension, clamp, to_unit_vector

logger = logging.getLogger(__name__)


class _FaissPartition:
    def __init__(self, index: Any):
        self.index = index
        self.entries: dict[int, IndexEntry] = {}  # seq -> entry
        self.by_chunk: dict[str, int] = {}  # chunk_id -> seq

    def remove(self, seqs: list[int]) -> None:
        if not seqs:
            return
        self.index.remove_ids(np.asarray(seqs, dtype=np.int64))
        for seq in seqs:
            entry = self.entries.pop(seq)
            self.by_chunk.pop(entry.chunk_id, None)


class FAISSVectorIndex(VectorIndex):
    """FAISS-backed index with the same contract as ``InMemoryVectorIndex``."""

    manifest_file = "manifest.json"

    def __init__(self, dimension: int | None = None):
        try:
            import faiss
        except ImportError as exc:
            raise ImportError(
                "faiss-cpu required: pip install docbot-retrieval[faiss]"
            ) from exc

        self._faiss = faiss
        self._dimension = dimension
        self._partitions: dict[str, _FaissPartition] = {}
        self._owners: dict[str, str] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._meta_lock = threading.Lock()
        self._next_seq = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def insert(
        self,
        chunk_id: str,
        chatbot_id: str,
        embedding: Sequence[float],
        document_id: str | None = None,
    ) -> None:
        # A malformed embedding must not fix the dimension
        unit = to_unit_vector(embedding)

        with self._meta_lock:
            check_dimension(unit, self._dimension)
            if self._dimension is None:
                self._dimension = len(unit)
            previous_owner = self._owners.get(chunk_id)
            seq = self._next_seq
            self._next_seq += 1

        if previous_owner is not None and previous_owner != chatbot_id:
            self.remove_by_chunk(chunk_id)

        vector = unit.astype(np.float32)[None, :]

        with self._lock_for(chatbot_id):
            part = self._partitions.get(chatbot_id)
            if part is None:
                part = _FaissPartition(self._new_index())
                with self._meta_lock:
                    self._partitions[chatbot_id] = part

            if chunk_id in part.by_chunk:
                part.remove([part.by_chunk[chunk_id]])

            part.index.add_with_ids(vector, np.asarray([seq], dtype=np.int64))
            part.entries[seq] = IndexEntry(
                chunk_id=chunk_id,
                chatbot_id=chatbot_id,
                document_id=document_id,
                seq=seq,
            )
            part.by_chunk[chunk_id] = seq
            with self._meta_lock:
                self._owners[chunk_id] = chatbot_id

    def remove_by_chunk(self, chunk_id: str) -> bool:
        with self._meta_lock:
            chatbot_id = self._owners.get(chunk_id)
        if chatbot_id is None:
            return False

        with self._lock_for(chatbot_id):
            part = self._partitions.get(chatbot_id)
            if part is None or chunk_id not in part.by_chunk:
                return False
            part.remove([part.by_chunk[chunk_id]])
            with self._meta_lock:
                if self._owners.get(chunk_id) == chatbot_id:
                    del self._owners[chunk_id]
        return True

    def remove_by_document(self, document_id: str) -> int:
        with self._meta_lock:
            chatbot_ids = list(self._partitions)

        removed = 0
        for chatbot_id in chatbot_ids:
            with self._lock_for(chatbot_id):
                part = self._partitions.get(chatbot_id)
                if part is None:
                    continue
                seqs = [s for s, e in part.entries.items() if e.document_id == document_id]
                chunk_ids = [part.entries[s].chunk_id for s in seqs]
                part.remove(seqs)
                with self._meta_lock:
                    for cid in chunk_ids:
                        self._owners.pop(cid, None)
                removed += len(seqs)
        return removed

    def remove_by_chatbot(self, chatbot_id: str) -> int:
        with self._lock_for(chatbot_id), self._meta_lock:
            part = self._partitions.pop(chatbot_id, None)
            if part is None:
                return 0
            for chunk_id in part.by_chunk:
                self._owners.pop(chunk_id, None)
        return len(part.entries)

    def query(
        self,
        chatbot_id: str,
        query_embedding: Sequence[float],
        k: int,
    ) -> list[SearchHit]:
        if self._dimension is None:
            return []
        check_dimension(query_embedding, self._dimension)
        if k <= 0:
            return []

        q = to_unit_vector(query_embedding).astype(np.float32)[None, :]

        with self._lock_for(chatbot_id):
            part = self._partitions.get(chatbot_id)
            if part is None or part.index.ntotal == 0:
                return []

            total = part.index.ntotal
            k = min(k, total)
            # Widen the search until every candidate tied with the k-th is in
            fetch = min(total, k + 1)
            while True:
                scores, ids = part.index.search(q, fetch)
                if fetch >= total or scores[0][fetch - 1] < scores[0][k - 1]:
                    break
                fetch = min(total, fetch * 2)

            candidates = [
                (float(score), int(seq))
                for score, seq in zip(scores[0], ids[0], strict=True)
                if seq != -1
            ]
            candidates.sort(key=lambda c: (-c[0], c[1]))
            return [
                SearchHit(chunk_id=part.entries[seq].chunk_id, similarity=clamp(score))
                for score, seq in candidates[:k]
            ]

    def count(self, chatbot_id: str | None = None) -> int:
        if chatbot_id is not None:
            part = self._partitions.get(chatbot_id)
            return len(part.entries) if part else 0
        with self._meta_lock:
            return len(self._owners)

    def contains(self, chunk_id: str) -> bool:
        with self._meta_lock:
            return chunk_id in self._owners

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def save(self, path: str) -> None:
        """Write one ``.faiss`` file per chatbot plus a JSON manifest."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        manifest: dict[str, Any] = {
            "dimension": self._dimension,
            "next_seq": self._next_seq,
            "partitions": [],
        }
        with self._meta_lock:
            chatbot_ids = list(self._partitions)

        for i, chatbot_id in enumerate(chatbot_ids):
            with self._lock_for(chatbot_id):
                part = self._partitions.get(chatbot_id)
                if part is None:
                    continue
                filename = f"partition_{i}.faiss"
                self._faiss.write_index(part.index, str(p / filename))
                manifest["partitions"].append({
                    "chatbot_id": chatbot_id,
                    "file": filename,
                    "entries": [
                        {"chunk_id": e.chunk_id, "document_id": e.document_id, "seq": e.seq}
                        for e in part.entries.values()
                    ],
                })

        with open(p / self.manifest_file, "w", encoding="utf-8") as f:
            json.dump(manifest, f)
        logger.info("FAISSVectorIndex saved to %s (%d entries)", path, self.count())

    def load(self, path: str) -> None:
        """Replace the index contents with a directory written by ``save``."""
        p = Path(path)
        with open(p / self.manifest_file, encoding="utf-8") as f:
            manifest = json.load(f)

        partitions: dict[str, _FaissPartition] = {}
        owners: dict[str, str] = {}
        for raw in manifest["partitions"]:
            chatbot_id = raw["chatbot_id"]
            part = _FaissPartition(self._faiss.read_index(str(p / raw["file"])))
            for e in raw["entries"]:
                entry = IndexEntry(
                    chunk_id=e["chunk_id"],
                    chatbot_id=chatbot_id,
                    document_id=e.get("document_id"),
                    seq=int(e["seq"]),
                )
                part.entries[entry.seq] = entry
                part.by_chunk[entry.chunk_id] = entry.seq
                owners[entry.chunk_id] = chatbot_id
            partitions[chatbot_id] = part

        with self._meta_lock:
            self._dimension = manifest.get("dimension")
            self._next_seq = int(manifest.get("next_seq", 0))
            self._partitions = partitions
            self._owners = owners
        logger.info("FAISSVectorIndex loaded from %s (%d entries)", path, self.count())

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _new_index(self) -> Any:
        flat = self._faiss.IndexFlatIP(self._dimension)
        return self._faiss.IndexIDMap2(flat)

    def _lock_for(self, chatbot_id: str) -> threading.RLock:
        with self._meta_lock:
            lock = self._locks.get(chatbot_id)
            if lock is None:
                lock = self._locks[chatbot_id] = threading.RLock()
            return lock
