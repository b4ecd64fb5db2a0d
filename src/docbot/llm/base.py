"""Abstract base class for the answer generator."""

from __future__ import annotations

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """Black-box text generator consulted after retrieval."""

    @abstractmethod
    def generate(self, prompt: str, system: str | None = None) -> str:
        """Generate a reply to the user's message.

        Args:
            prompt: The user's message.
            system: System message carrying the retrieved context.

        Raises:
            GenerationUnavailable: If the backing model errors or times out.
        """

    @classmethod
    def provider_name(cls) -> str:
        return cls.__name__
