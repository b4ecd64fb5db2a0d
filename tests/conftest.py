"""Shared fixtures for tests: deterministic embeddings, no network calls."""

from __future__ import annotations

import hashlib
import sqlite3
import textwrap

import numpy as np
import pytest

from docbot.embeddings.base import EmbeddingProvider
from docbot.errors import EmbeddingUnavailable
from docbot.knowledge import KnowledgeBase
from docbot.store.memory_store import InMemoryChunkStore
from docbot.store.schemas import ChunkRecord
from docbot.vectorstore.memory_store import InMemoryVectorIndex

DIM = 32


# ---------------------------------------------------------------------------
# Mock embedding provider
# ---------------------------------------------------------------------------


class MockEmbedder(EmbeddingProvider):
    """Hash-based embeddings; texts containing a poison word fail."""

    def __init__(
        self,
        dim: int = DIM,
        fail_on: str | None = None,
        down: bool = False,
        error: type[Exception] = EmbeddingUnavailable,
    ):
        self._dim = dim
        self.fail_on = fail_on
        self.down = down
        self.error = error
        self.calls = 0

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(t) for t in texts]

    def embed_query(self, query: str) -> list[float]:
        return self._embed(query)

    @property
    def dimension(self) -> int:
        return self._dim

    def _embed(self, text: str) -> list[float]:
        self.calls += 1
        if self.down or (self.fail_on and self.fail_on in text):
            raise self.error("mock provider unavailable")
        h = hashlib.sha256(text.encode()).digest()
        vec = np.array([h[i % len(h)] / 255.0 - 0.5 for i in range(self._dim)])
        vec /= np.linalg.norm(vec)
        return vec.tolist()


# ---------------------------------------------------------------------------
# Failing chunk store
# ---------------------------------------------------------------------------


class FlakyChunkStore(InMemoryChunkStore):
    """In-memory store whose Nth ``create_chunk`` calls raise."""

    def __init__(self, fail_calls: set[int], error: Exception | None = None):
        super().__init__()
        self.fail_calls = fail_calls
        self.error = error or sqlite3.OperationalError("database is locked")
        self.create_calls = 0

    def create_chunk(self, chunk: ChunkRecord) -> ChunkRecord:
        self.create_calls += 1
        if self.create_calls in self.fail_calls:
            raise self.error
        return super().create_chunk(chunk)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def embedder() -> MockEmbedder:
    return MockEmbedder()


@pytest.fixture
def make_embedder() -> type[MockEmbedder]:
    return MockEmbedder


@pytest.fixture
def chunk_store() -> InMemoryChunkStore:
    return InMemoryChunkStore()


@pytest.fixture
def vector_index() -> InMemoryVectorIndex:
    return InMemoryVectorIndex()


@pytest.fixture
def knowledge_base(
    chunk_store: InMemoryChunkStore,
    vector_index: InMemoryVectorIndex,
) -> KnowledgeBase:
    return KnowledgeBase(chunk_store=chunk_store, vector_index=vector_index)


@pytest.fixture
def faq_text() -> str:
    return textwrap.dedent("""\
        Acme Cloud: Customer FAQ

        How do I reset my password? Open the login page, click "Forgot
        password" and follow the link we email you. Links expire after
        thirty minutes.

        Which plans do you offer? Starter is free for up to three projects.
        Team costs $12 per seat per month and adds shared workspaces.
        Enterprise adds SSO, audit logs and a dedicated support engineer.

        How do I cancel? Go to Billing, choose "Cancel subscription" and
        confirm. Your data stays available for export for thirty days.
    """)
