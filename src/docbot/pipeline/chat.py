"""Chat pipeline: question → retrieve → prompt → generate.

Retrieval failures already degrade to "no context"; a failed generation
call degrades to an apology so the caller always gets an answer.
"""

from __future__ import annotations

import logging

from docbot.errors import GenerationUnavailable
from docbot.llm.base import LLMProvider
from docbot.pipeline.prompts import (
    ERROR_ANSWER,
    FALLBACK_ANSWER,
    build_system_message,
    summarize_sources,
)
from docbot.pipeline.schemas import ChatResponse
from docbot.retrieval.retriever import Retriever

logger = logging.getLogger(__name__)


class ChatPipeline:
    """Answers a message for one chatbot, grounded in its documents."""

    def __init__(self, retriever: Retriever, llm_provider: LLMProvider):
        self.retriever = retriever
        self.llm_provider = llm_provider

    def answer(
        self,
        chatbot_id: str,
        message: str,
        system_prompt: str | None = None,
        top_k: int | None = None,
    ) -> ChatResponse:
        """Retrieve context for ``message`` and generate a reply.

        Args:
            chatbot_id: Chatbot whose knowledge grounds the answer.
            message: The user's message.
            system_prompt: The chatbot's configured system prompt.
            top_k: Overrides the retriever's configured ``top_k``.

        Returns:
            A ``ChatResponse``; ``sources`` is empty when nothing was found.
        """
        chunks = self.retriever.retrieve(chatbot_id, message, top_k=top_k)
        system = build_system_message(system_prompt, chunks)

        try:
            answer = self.llm_provider.generate(message, system=system) or FALLBACK_ANSWER
        except GenerationUnavailable as exc:
            logger.error("Generation failed for chatbot %s: %s", chatbot_id, exc)
            answer = ERROR_ANSWER

        logger.info(
            "Answered message for chatbot %s with %d context chunks",
            chatbot_id, len(chunks),
        )
        return ChatResponse(
            message=message,
            answer=answer,
            sources=summarize_sources(chunks),
            model=getattr(self.llm_provider, "model", "unknown"),
        )
