"""LLM provider factory, mirroring ``docbot.embeddings.factory``."""

from __future__ import annotations

import importlib
import logging
from typing import Any

from docbot.config import LLMSettings
from docbot.llm.base import LLMProvider

logger = logging.getLogger(__name__)

_PROVIDER_REGISTRY: list[tuple[str, str, str]] = [
    ("openai", "docbot.llm.openai_provider", "OpenAILLMProvider"),
    ("ollama", "docbot.llm.ollama_provider", "OllamaLLMProvider"),
]

_provider_cache: dict[tuple[str, tuple[tuple[str, Any], ...]], LLMProvider] = {}


def get_llm_provider(provider: str = "openai", **kwargs) -> LLMProvider:
    """Get an LLM provider by name; ``kwargs`` go to its constructor."""
    key = provider.lower()
    cache_key = (key, tuple(sorted(kwargs.items())))
    if cache_key in _provider_cache:
        return _provider_cache[cache_key]

    for reg_key, module_path, cls_name in _PROVIDER_REGISTRY:
        if reg_key == key:
            cls = getattr(importlib.import_module(module_path), cls_name)
            instance = _provider_cache[cache_key] = cls(**kwargs)
            return instance

    raise ValueError(f"Unknown LLM provider '{provider}'. Available: {available_providers()}")


def llm_provider_from_settings(settings: LLMSettings) -> LLMProvider:
    """Build the generator described by the ``llm`` settings section."""
    kwargs: dict[str, Any] = {
        "model": settings.model,
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "timeout": settings.timeout,
    }
    if settings.base_url:
        kwargs["base_url"] = settings.base_url
    return get_llm_provider(settings.provider, **kwargs)


def available_providers() -> list[str]:
    return [k for k, _, _ in _PROVIDER_REGISTRY]


def clear_cache() -> None:
    _provider_cache.clear()
