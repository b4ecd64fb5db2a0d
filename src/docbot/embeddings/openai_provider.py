"""OpenAI embedding provider: text-embedding-3-small/large.

Requires ``openai`` extra and an API key via ``OPENAI_API_KEY`` env var.
"""

from __future__ import annotations

import logging
from typing import Any

from docbot.embeddings.base import EmbeddingProvider
from docbot.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"
DEFAULT_TIMEOUT = 30.0

_DIMENSION_MAP = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

BATCH_SIZE = 2048  # OpenAI max batch size


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embed text via the OpenAI Embeddings API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
        dimensions: int | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        try:
            import openai
        except ImportError as exc:
            raise ImportError(
                "openai package required: pip install docbot-retrieval[openai]"
            ) from exc

        self.model = model
        self._dimensions = dimensions or _DIMENSION_MAP.get(model, 1536)
        # Only the v3 models can shorten their output
        self._request_dimensions = (
            dimensions
            if dimensions and model.startswith("text-embedding-3")
            and dimensions != _DIMENSION_MAP.get(model)
            else None
        )
        self._error_type: type[Exception] = openai.OpenAIError
        # Single attempt; retry policy is left to the caller
        self._client: Any = openai.OpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        all_embeddings: list[list[float]] = []

        for i in range(0, len(texts), BATCH_SIZE):
            batch = texts[i : i + BATCH_SIZE]
            resp = self._create(batch)
            # Sort by index to guarantee order
            sorted_data = sorted(resp.data, key=lambda x: x.index)
            all_embeddings.extend([d.embedding for d in sorted_data])

        return all_embeddings

    def embed_query(self, query: str) -> list[float]:
        resp = self._create([query])
        return resp.data[0].embedding

    @property
    def dimension(self) -> int:
        return self._dimensions

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create(self, batch: list[str]) -> Any:
        kwargs: dict[str, Any] = {"model": self.model, "input": batch}
        if self._request_dimensions:
            kwargs["dimensions"] = self._request_dimensions
        try:
            return self._client.embeddings.create(**kwargs)
        except self._error_type as exc:
            raise EmbeddingUnavailable(
                f"OpenAI embedding call failed: {exc}",
                details={"model": self.model, "batch_size": len(batch)},
                original_error=exc,
            ) from exc
