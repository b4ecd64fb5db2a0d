"""Ingestion pipeline: text → chunk → embed → store + index.

Each chunk is embedded and published on its own. A chunk whose embedding
or storage fails is skipped and reported; the chunks that made it stay, so
a document can end up partially ingested.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from typing import Any

from docbot.chunking.factory import get_chunker
from docbot.chunking.schemas import ChunkConfig
from docbot.embeddings.base import EmbeddingProvider
from docbot.errors import ChunkStoreError, DimensionMismatch, EmbeddingUnavailable
from docbot.knowledge import KnowledgeBase
from docbot.pipeline.schemas import (
    BatchIngestResult,
    ChunkFailure,
    IngestResult,
    PageError,
    PageInput,
)
from docbot.store.schemas import ChunkRecord, Document, SourceType

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Orchestrates document ingestion: chunk → embed → store."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        knowledge_base: KnowledgeBase,
        chunk_config: ChunkConfig | None = None,
        unit: str = "chars",
    ):
        self.embedding_provider = embedding_provider
        self.knowledge_base = knowledge_base
        self.chunk_config = chunk_config or ChunkConfig()
        self.unit = unit

    def ingest_document(
        self,
        document_id: str,
        chatbot_id: str,
        raw_text: str,
        chunk_config: ChunkConfig | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> IngestResult:
        """Chunk, embed and store one document's extracted text.

        Re-ingesting a document replaces its previous chunks.

        Args:
            document_id: Owning document; created if the store lacks it.
            chatbot_id: Owning chatbot.
            raw_text: Extracted plain text.
            chunk_config: Overrides the pipeline's chunk size and overlap.
            metadata: Extra metadata copied onto every chunk.

        Raises:
            InvalidChunkConfig: Before anything is touched, if the overlap
                is not smaller than the chunk size.
        """
        # Validates the config up front
        chunker = get_chunker(self.unit, chunk_config or self.chunk_config)

        kb = self.knowledge_base
        if kb.chunk_store.get_document(document_id) is None:
            kb.add_document(Document(id=document_id, chatbot_id=chatbot_id))

        replaced = kb.clear_document_chunks(document_id, chatbot_id)
        if replaced:
            logger.info("Re-ingesting %s: dropped %d old chunks", document_id, replaced)

        result = IngestResult(document_id=document_id)
        chunks = chunker.chunk(raw_text)
        if not chunks:
            result.warnings.append("Document contains no extractable text")
            return result

        for chunk in chunks:
            try:
                embedding = self.embedding_provider.embed_texts([chunk.text])[0]
                kb.add_chunk(
                    ChunkRecord(
                        id=str(uuid.uuid4()),
                        document_id=document_id,
                        chatbot_id=chatbot_id,
                        text=chunk.text,
                        metadata={**(metadata or {}), **chunk.position_metadata()},
                    ),
                    embedding,
                )
            except (EmbeddingUnavailable, DimensionMismatch, ChunkStoreError) as exc:
                logger.warning(
                    "Skipping chunk %d of %s: %s", chunk.chunk_index, document_id, exc,
                )
                result.failures.append(ChunkFailure(chunk.chunk_index, str(exc)))
                continue
            result.chunk_count += 1

        result.failed_count = len(result.failures)
        logger.info(
            "Ingested %s: %d chunks stored, %d failed",
            document_id, result.chunk_count, result.failed_count,
        )
        return result

    def ingest_text(
        self,
        chatbot_id: str,
        text: str,
        filename: str | None = None,
        source_url: str | None = None,
        source_type: SourceType = SourceType.TXT,
        chunk_config: ChunkConfig | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> IngestResult:
        """Register a new document and ingest its text."""
        get_chunker(self.unit, chunk_config or self.chunk_config)

        document = self.knowledge_base.add_document(Document(
            id=str(uuid.uuid4()),
            chatbot_id=chatbot_id,
            source_type=source_type,
            filename=filename,
            source_url=source_url,
        ))
        return self.ingest_document(
            document.id,
            chatbot_id,
            text,
            chunk_config=chunk_config,
            metadata=metadata,
        )

    def ingest_pages(
        self,
        chatbot_id: str,
        pages: Iterable[PageInput],
        chunk_config: ChunkConfig | None = None,
    ) -> BatchIngestResult:
        """Ingest crawled pages one by one; a bad page never stops the batch.

        A page counts as processed when at least one of its chunks is stored.
        Pages that end up with no chunks are recorded as errors and their
        document rows removed.
        """
        get_chunker(self.unit, chunk_config or self.chunk_config)

        batch = BatchIngestResult()
        for page in pages:
            if not page.text.strip():
                batch.failed_count += 1
                batch.errors.append(PageError(page.url, "Page contains no extractable text"))
                continue

            try:
                result = self.ingest_text(
                    chatbot_id,
                    page.text,
                    source_url=page.url,
                    source_type=SourceType.URL,
                    chunk_config=chunk_config,
                    metadata={**page.metadata, "source_url": page.url},
                )
                if result.chunk_count == 0:
                    self.knowledge_base.delete_document(result.document_id)
            except Exception as exc:
                logger.warning("Failed to ingest %s: %s", page.url, exc)
                batch.failed_count += 1
                batch.errors.append(PageError(page.url, str(exc)))
                continue

            batch.results.append(result)
            if result.chunk_count == 0:
                batch.failed_count += 1
                reason = result.failures[0].reason if result.failures else "No chunks stored"
                batch.errors.append(PageError(page.url, reason))
                continue

            batch.processed_count += 1
            batch.total_chunks += result.chunk_count

        logger.info(
            "Crawl batch for %s: %d pages processed, %d failed, %d chunks",
            chatbot_id, batch.processed_count, batch.failed_count, batch.total_chunks,
        )
        return batch
