"""Abstract base class for vector indexes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from docbot.vectorstore.schemas import SearchHit


class VectorIndex(ABC):
    """Chunk embeddings partitioned by chatbot.

    Entries of different chatbots are never compared with each other.
    The first insert fixes the dimensionality of the whole index.
    """

    #: File ``save`` writes last; ``None`` for indexes without persistence.
    manifest_file: str | None = None

    @abstractmethod
    def insert(
        self,
        chunk_id: str,
        chatbot_id: str,
        embedding: Sequence[float],
        document_id: str | None = None,
    ) -> None:
        """Add or replace the entry for ``chunk_id``.

        A replaced entry counts as newly inserted for tie-breaking.

        Raises:
            DimensionMismatch: If ``len(embedding)`` differs from the index
                dimensionality. The index is left unchanged.
        """

    @abstractmethod
    def remove_by_chunk(self, chunk_id: str) -> bool:
        """Remove one entry. Idempotent.

        Returns:
            ``True`` if an entry was removed.
        """

    @abstractmethod
    def remove_by_document(self, document_id: str) -> int:
        """Remove every entry inserted with ``document_id``.

        Returns:
            Number of entries removed.
        """

    @abstractmethod
    def remove_by_chatbot(self, chatbot_id: str) -> int:
        """Drop a chatbot's whole partition.

        Returns:
            Number of entries removed.
        """

    @abstractmethod
    def query(
        self,
        chatbot_id: str,
        query_embedding: Sequence[float],
        k: int,
    ) -> list[SearchHit]:
        """Return up to ``k`` hits from one chatbot's partition.

        Hits are ordered by descending cosine similarity, ties broken by
        insertion order. An empty partition yields an empty list.

        Raises:
            DimensionMismatch: If the query length differs from the index
                dimensionality.
        """

    @abstractmethod
    def count(self, chatbot_id: str | None = None) -> int:
        """Number of entries, optionally for one chatbot."""

    @abstractmethod
    def contains(self, chunk_id: str) -> bool:
        """Whether ``chunk_id`` is indexed."""

    @property
    @abstractmethod
    def dimension(self) -> int | None:
        """Established dimensionality, or ``None`` before the first insert."""

    def has_saved_index(self, path: str) -> bool:
        """Whether ``path`` holds a complete index written by ``save``."""
        return self.manifest_file is not None and (Path(path) / self.manifest_file).is_file()

    def save(self, path: str) -> None:
        """Persist the index to disk (optional)."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support save()")

    def load(self, path: str) -> None:
        """Load the index from disk (optional)."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support load()")

    @classmethod
    def store_name(cls) -> str:
        """Return human-readable index name."""
        return cls.__name__
