"""Prompt assembly for grounded chat answers."""

from __future__ import annotations

from collections.abc import Sequence

from docbot.pipeline.schemas import Source
from docbot.retrieval.schemas import RetrievedChunk

# ---------------------------------------------------------------------------
# System prompts
# ---------------------------------------------------------------------------

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based on the provided context."
)

CONTEXT_HEADER = "\n\nContext information is below.\n---------------------\n"

CONTEXT_FOOTER = (
    "---------------------\n"
    "Given this information, please answer the user's question or respond to "
    "their request."
)

NO_CONTEXT_NOTICE = (
    "\n\nYou don't have specific context for this query. If you don't know the "
    "answer, say so clearly."
)

FALLBACK_ANSWER = "I'm sorry, I couldn't generate a response."

ERROR_ANSWER = (
    "I'm sorry, but I encountered an error while processing your request. "
    "Please try again."
)

SOURCE_PREVIEW_CHARS = 150


def format_context(chunks: Sequence[RetrievedChunk]) -> str:
    """Number retrieved chunks as ``[Document N] filename`` blocks."""
    return "".join(
        f"[Document {i}] {chunk.filename}\n{chunk.text}\n\n"
        for i, chunk in enumerate(chunks, 1)
    )


def build_system_message(
    system_prompt: str | None,
    chunks: Sequence[RetrievedChunk],
) -> str:
    """Combine the chatbot's system prompt with the retrieved context.

    Args:
        system_prompt: The chatbot's configured prompt; falls back to
            ``DEFAULT_SYSTEM_PROMPT`` when empty.
        chunks: Retrieved chunks, best first. May be empty.

    Returns:
        The system message for the generation call.
    """
    message = system_prompt or DEFAULT_SYSTEM_PROMPT
    if not chunks:
        return message + NO_CONTEXT_NOTICE
    return message + CONTEXT_HEADER + format_context(chunks) + CONTEXT_FOOTER


def summarize_sources(
    chunks: Sequence[RetrievedChunk],
    preview_chars: int = SOURCE_PREVIEW_CHARS,
) -> list[Source]:
    """Short previews of the chunks an answer was grounded on."""
    return [
        Source(
            text=chunk.text[:preview_chars] + "...",
            filename=chunk.filename,
            source_id=chunk.chunk_id,
            similarity=chunk.similarity,
        )
        for chunk in chunks
    ]
