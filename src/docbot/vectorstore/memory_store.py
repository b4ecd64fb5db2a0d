"""Brute-force in-memory vector index: exact cosine search with numpy.

Each chatbot owns an immutable partition snapshot: vectors are normalised
once at insert time, so a query costs one matrix-vector product over the
partition plus a bounded top-k heap. Writers build a new snapshot under the
chatbot's write lock and swap it in; readers grab whatever snapshot is
current and never lock, so they see the state before or after a mutation.

This is the substitution point for a proper ANN index on larger corpora;
``FAISSVectorIndex`` implements the same contract.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Sequence
from pathlib import Path

import numpy as np

from docbot.vectorstore.base import VectorIndex
from docbot.vectorstore.schemas import IndexEntry, SearchHit
from docbot.vectorstore.similarity import (
    check_dimension,
    clamp,
    select_top_k,
    to_unit_vector,
)

logger = logging.getLogger(__name__)


class _Partition:
    """Immutable snapshot of one chatbot's entries."""

    __slots__ = ("entries", "vectors")

    def __init__(self, entries: tuple[IndexEntry, ...], vectors: np.ndarray):
        self.entries = entries
        self.vectors = vectors

    def __len__(self) -> int:
        return len(self.entries)

    def without(self, keep: list[bool]) -> _Partition:
        entries = tuple(e for e, k in zip(self.entries, keep, strict=True) if k)
        return _Partition(entries, self.vectors[np.asarray(keep, dtype=bool)])

    def with_entry(self, entry: IndexEntry, vector: np.ndarray) -> _Partition:
        return _Partition(self.entries + (entry,), np.vstack([self.vectors, vector[None, :]]))


class InMemoryVectorIndex(VectorIndex):
    """Exact cosine-similarity index partitioned by chatbot."""

    manifest_file = "entries.json"

    def __init__(self, dimension: int | None = None):
        self._dimension = dimension
        self._partitions: dict[str, _Partition] = {}
        self._owners: dict[str, str] = {}  # chunk_id -> chatbot_id
        self._write_locks: dict[str, threading.RLock] = {}
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
        vector = to_unit_vector(embedding)

        with self._meta_lock:
            check_dimension(vector, self._dimension)
            if self._dimension is None:
                self._dimension = len(vector)
            previous_owner = self._owners.get(chunk_id)

        # A chunk moving between chatbots leaves its old partition first
        if previous_owner is not None and previous_owner != chatbot_id:
            self.remove_by_chunk(chunk_id)

        with self._lock_for(chatbot_id):
            part = self._partitions.get(chatbot_id) or self._empty_partition()
            keep = [e.chunk_id != chunk_id for e in part.entries]
            if not all(keep):
                part = part.without(keep)

            with self._meta_lock:
                seq = self._next_seq
                self._next_seq += 1

            entry = IndexEntry(
                chunk_id=chunk_id,
                chatbot_id=chatbot_id,
                document_id=document_id,
                seq=seq,
            )
            new_part = part.with_entry(entry, vector)
            with self._meta_lock:
                self._partitions[chatbot_id] = new_part
                self._owners[chunk_id] = chatbot_id

    def remove_by_chunk(self, chunk_id: str) -> bool:
        with self._meta_lock:
            chatbot_id = self._owners.get(chunk_id)
        if chatbot_id is None:
            return False
        removed = self._remove_where(chatbot_id, lambda e: e.chunk_id == chunk_id)
        return removed > 0

    def remove_by_document(self, document_id: str) -> int:
        with self._meta_lock:
            chatbot_ids = list(self._partitions)
        removed = 0
        for chatbot_id in chatbot_ids:
            removed += self._remove_where(chatbot_id, lambda e: e.document_id == document_id)
        if removed:
            logger.info(
                "InMemoryVectorIndex removed %d entries of document %s",
                removed, document_id,
            )
        return removed

    def remove_by_chatbot(self, chatbot_id: str) -> int:
        with self._lock_for(chatbot_id), self._meta_lock:
            part = self._partitions.pop(chatbot_id, None)
            if part is None:
                return 0
            for entry in part.entries:
                self._owners.pop(entry.chunk_id, None)
        logger.info(
            "InMemoryVectorIndex dropped partition %s (%d entries)",
            chatbot_id, len(part),
        )
        return len(part)

    def query(
        self,
        chatbot_id: str,
        query_embedding: Sequence[float],
        k: int,
    ) -> list[SearchHit]:
        dimension = self._dimension
        if dimension is None:
            # Nothing has ever been inserted
            return []
        check_dimension(query_embedding, dimension)

        if k <= 0:
            return []

        part = self._partitions.get(chatbot_id)
        if part is None or len(part) == 0:
            return []

        scores = part.vectors @ to_unit_vector(query_embedding)
        best = select_top_k(scores, [e.seq for e in part.entries], k)
        return [
            SearchHit(chunk_id=part.entries[pos].chunk_id, similarity=clamp(score))
            for pos, score in best
        ]

    def count(self, chatbot_id: str | None = None) -> int:
        if chatbot_id is not None:
            part = self._partitions.get(chatbot_id)
            return len(part) if part else 0
        with self._meta_lock:
            return len(self._owners)

    def contains(self, chunk_id: str) -> bool:
        with self._meta_lock:
            return chunk_id in self._owners

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def clear(self) -> None:
        with self._meta_lock:
            self._partitions.clear()
            self._owners.clear()
            self._next_seq = 0

    def save(self, path: str) -> None:
        """Save normalised vectors and entry bookkeeping to a directory."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        with self._meta_lock:
            partitions = list(self._partitions.values())
            dimension = self._dimension
            next_seq = self._next_seq

        entries = [e for part in partitions for e in part.entries]
        if partitions:
            vectors = np.vstack([part.vectors for part in partitions])
        else:
            vectors = np.zeros((0, dimension or 0), dtype=np.float64)

        np.savez_compressed(p / "vectors.npz", vectors=vectors)
        with open(p / self.manifest_file, "w", encoding="utf-8") as f:
            json.dump(
                {
                    "dimension": dimension,
                    "next_seq": next_seq,
                    "entries": [
                        {
                            "chunk_id": e.chunk_id,
                            "chatbot_id": e.chatbot_id,
                            "document_id": e.document_id,
                            "seq": e.seq,
                        }
                        for e in entries
                    ],
                },
                f,
            )

        logger.info("InMemoryVectorIndex saved to %s (%d entries)", path, len(entries))

    def load(self, path: str) -> None:
        """Replace the index contents with a directory written by ``save``."""
        p = Path(path)

        with open(p / self.manifest_file, encoding="utf-8") as f:
            data = json.load(f)
        with np.load(p / "vectors.npz") as npz:
            vectors = npz["vectors"]

        grouped: dict[str, tuple[list[IndexEntry], list[int]]] = {}
        for row, raw in enumerate(data["entries"]):
            entry = IndexEntry(
                chunk_id=raw["chunk_id"],
                chatbot_id=raw["chatbot_id"],
                document_id=raw.get("document_id"),
                seq=int(raw["seq"]),
            )
            entries, rows = grouped.setdefault(entry.chatbot_id, ([], []))
            entries.append(entry)
            rows.append(row)

        partitions = {
            chatbot_id: _Partition(tuple(entries), vectors[rows])
            for chatbot_id, (entries, rows) in grouped.items()
        }

        with self._meta_lock:
            self._dimension = data.get("dimension")
            self._next_seq = int(data.get("next_seq", len(data["entries"])))
            self._partitions = partitions
            self._owners = {
                e.chunk_id: e.chatbot_id for part in partitions.values() for e in part.entries
            }

        logger.info("InMemoryVectorIndex loaded from %s (%d entries)", path, self.count())

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _lock_for(self, chatbot_id: str) -> threading.RLock:
        with self._meta_lock:
            lock = self._write_locks.get(chatbot_id)
            if lock is None:
                lock = self._write_locks[chatbot_id] = threading.RLock()
            return lock

    def _empty_partition(self) -> _Partition:
        return _Partition((), np.zeros((0, self._dimension or 0), dtype=np.float64))

    def _remove_where(self, chatbot_id: str, predicate) -> int:
        with self._lock_for(chatbot_id):
            part = self._partitions.get(chatbot_id)
            if part is None:
                return 0
            keep = [not predicate(e) for e in part.entries]
            removed = keep.count(False)
            if removed == 0:
                return 0
            new_part = part.without(keep)
            with self._meta_lock:
                self._partitions[chatbot_id] = new_part
                for entry, kept in zip(part.entries, keep, strict=True):
                    if not kept and self._owners.get(entry.chunk_id) == chatbot_id:
                        del self._owners[entry.chunk_id]
        return removed
