"""Chunk store backends: in-memory and SQLite."""

from docbot.store.base import ChunkStore
from docbot.store.factory import available_chunk_stores, get_chunk_store
from docbot.store.schemas import ChunkRecord, Document, SourceType

__all__ = [
    "ChunkRecord",
    "ChunkStore",
    "Document",
    "SourceType",
    "available_chunk_stores",
    "get_chunk_store",
]
