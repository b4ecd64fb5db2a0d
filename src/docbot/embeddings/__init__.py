"""Embedding providers: OpenAI, Ollama."""

from docbot.embeddings.base import EmbeddingProvider
from docbot.embeddings.factory import available_providers, get_embedding_provider

__all__ = [
    "EmbeddingProvider",
    "available_providers",
    "get_embedding_provider",
]
