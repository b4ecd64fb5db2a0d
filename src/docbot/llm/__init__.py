"""LLM providers: OpenAI, Ollama. The generation step is a black box."""

from docbot.llm.base import LLMProvider
from docbot.llm.factory import available_providers, get_llm_provider

__all__ = ["LLMProvider", "available_providers", "get_llm_provider"]
