"""Pipelines: document ingestion and grounded chat."""

from docbot.pipeline.chat import ChatPipeline
from docbot.pipeline.ingest import IngestPipeline
from docbot.pipeline.schemas import (
    BatchIngestResult,
    ChatResponse,
    ChunkFailure,
    IngestResult,
    PageInput,
    Source,
)

__all__ = [
    "BatchIngestResult",
    "ChatPipeline",
    "ChatResponse",
    "ChunkFailure",
    "IngestPipeline",
    "IngestResult",
    "PageInput",
    "Source",
]
