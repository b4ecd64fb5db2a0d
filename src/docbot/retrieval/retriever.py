"""Retriever: embed query, search one chatbot's partition, hydrate chunks."""

from __future__ import annotations

import logging

from docbot.embeddings.base import EmbeddingProvider
from docbot.errors import ChunkStoreInconsistency
from docbot.knowledge import KnowledgeBase
from docbot.retrieval.schemas import RetrievalConfig, RetrievedChunk

logger = logging.getLogger(__name__)


class Retriever:
    """Orchestrates embedding → index search → chunk store lookup.

    Fails open: if the question cannot be embedded, whatever the provider
    raised, the result is an empty list, so the chat flow can still answer
    without context.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        knowledge_base: KnowledgeBase,
        config: RetrievalConfig | None = None,
    ):
        self.embedding_provider = embedding_provider
        self.knowledge_base = knowledge_base
        self.config = config or RetrievalConfig()

    def retrieve(
        self,
        chatbot_id: str,
        query: str,
        top_k: int | None = None,
    ) -> list[RetrievedChunk]:
        """Return up to ``top_k`` chunks supporting ``query``, best first.

        Args:
            chatbot_id: Chatbot whose knowledge is searched.
            query: The user's question.
            top_k: Overrides the configured ``top_k``.

        Raises:
            DimensionMismatch: If the provider's vectors do not fit the index.
        """
        k = self.config.top_k if top_k is None else top_k
        if k <= 0:
            return []

        # Step 1: Embed the query
        try:
            query_embedding = self.embedding_provider.embed_query(query)
        except Exception as exc:
            logger.warning(
                "Embedding unavailable for chatbot %s, retrieving no context: %s: %s",
                chatbot_id, type(exc).__name__, exc,
            )
            return []

        # Step 2: Search the chatbot's partition
        hits = self.knowledge_base.vector_index.query(chatbot_id, query_embedding, k)
        if not hits:
            logger.info("No indexed chunks for chatbot %s", chatbot_id)
            return []

        # Step 3: Hydrate from the chunk store
        store = self.knowledge_base.chunk_store
        records = store.get_chunks_by_ids([h.chunk_id for h in hits])
        filenames: dict[str, str] = {}

        # Step 4: Re-assemble in index order
        results: list[RetrievedChunk] = []
        for hit in hits:
            record = records.get(hit.chunk_id)
            if record is None:
                err = ChunkStoreInconsistency(hit.chunk_id, chatbot_id)
                logger.warning("Dropping search hit: %s", err)
                continue

            if self.config.min_score is not None and hit.similarity < self.config.min_score:
                continue

            if record.document_id not in filenames:
                document = store.get_document(record.document_id)
                filenames[record.document_id] = (
                    document.display_name if document else record.document_id
                )

            results.append(RetrievedChunk(
                chunk_id=record.id,
                text=record.text,
                filename=filenames[record.document_id],
                similarity=hit.similarity,
                metadata=record.metadata,
            ))

        logger.info(
            "Retrieved %d chunks for chatbot %s (hits=%d, k=%d)",
            len(results), chatbot_id, len(hits), k,
        )
        return results

