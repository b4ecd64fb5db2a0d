"""Embedding provider factory: registry, lazy import, per-configuration cache."""

from __future__ import annotations

import importlib
import logging
from typing import Any

from docbot.config import EmbeddingSettings
from docbot.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Provider registry: (provider_key, module_path, class_name)
# ---------------------------------------------------------------------------

_PROVIDER_REGISTRY: list[tuple[str, str, str]] = [
    ("openai", "docbot.embeddings.openai_provider", "OpenAIEmbeddingProvider"),
    ("ollama", "docbot.embeddings.ollama_provider", "OllamaEmbeddingProvider"),
]

# One client per (provider, constructor arguments)
_provider_cache: dict[tuple[str, tuple[tuple[str, Any], ...]], EmbeddingProvider] = {}


def get_embedding_provider(
    provider: str = "openai",
    **kwargs,
) -> EmbeddingProvider:
    """Get an embedding provider by name.

    Providers hold an HTTP client, so identical requests share one instance.

    Args:
        provider: One of ``openai``, ``ollama``.
        **kwargs: Passed to the provider constructor.

    Returns:
        An ``EmbeddingProvider`` instance.
    """
    key = provider.lower()
    cache_key = (key, tuple(sorted(kwargs.items())))
    if cache_key in _provider_cache:
        return _provider_cache[cache_key]

    for reg_key, module_path, cls_name in _PROVIDER_REGISTRY:
        if reg_key != key:
            continue
        cls = getattr(importlib.import_module(module_path), cls_name)
        instance = cls(**kwargs)
        _provider_cache[cache_key] = instance
        logger.debug("Created %s (%s)", cls_name, ", ".join(f"{k}={v}" for k, v in kwargs.items()))
        return instance

    raise ValueError(
        f"Unknown embedding provider '{provider}'. Available: {available_providers()}"
    )


def embedding_provider_from_settings(settings: EmbeddingSettings) -> EmbeddingProvider:
    """Build the provider described by the ``embedding`` settings section.

    The configured ``dimension`` is what the vector index will enforce, so
    it is handed to the provider as well.
    """
    kwargs: dict[str, Any] = {"model": settings.model, "timeout": settings.timeout}
    if settings.provider.lower() == "openai":
        kwargs["dimensions"] = settings.dimension
    else:
        kwargs["dimension"] = settings.dimension
    if settings.base_url:
        kwargs["base_url"] = settings.base_url
    return get_embedding_provider(settings.provider, **kwargs)


def available_providers() -> list[str]:
    """Return names of registered embedding providers."""
    return [k for k, _, _ in _PROVIDER_REGISTRY]


def clear_cache() -> None:
    """Clear the provider cache (for testing)."""
    _provider_cache.clear()
