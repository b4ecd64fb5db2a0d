"""Ollama embedding provider: local-first, no API keys needed.

Uses the Ollama REST API (http://localhost:11434) with models like
``nomic-embed-text``, ``mxbai-embed-large``, etc.
"""

from __future__ import annotations

import logging

import httpx

from docbot.embeddings.base import EmbeddingProvider
from docbot.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed text via a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        dimension: int = DEFAULT_DIM,
        timeout: float = 30.0,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts with one ``/api/embed`` call."""
        if not texts:
            return []

        data = self._post("/api/embed", {"model": self.model, "input": texts})
        try:
            embeddings = data["embeddings"]
        except (KeyError, TypeError) as exc:
            raise EmbeddingUnavailable(
                "Ollama response has no 'embeddings' field",
                details={"model": self.model},
                original_error=exc,
            ) from exc

        got = len(embeddings) if isinstance(embeddings, list) else 0
        if got != len(texts):
            raise EmbeddingUnavailable(
                f"Ollama returned {got} embeddings for {len(texts)} inputs",
                details={"model": self.model},
            )
        return embeddings

    def embed_query(self, query: str) -> list[float]:
        """Embed a single query."""
        return self.embed_texts([query])[0]

    @property
    def dimension(self) -> int:
        return self._dimension

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _post(self, path: str, payload: dict) -> dict:
        try:
            resp = self._client.post(path, json=payload)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            # httpx.TimeoutException is an HTTPError
            raise EmbeddingUnavailable(
                f"Ollama embedding call failed: {exc}",
                details={"model": self.model, "base_url": self.base_url},
                original_error=exc,
            ) from exc
