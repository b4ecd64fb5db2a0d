"""Sliding-window document chunking."""

from docbot.chunking.base import BaseChunker
from docbot.chunking.factory import available_chunkers, get_chunker
from docbot.chunking.schemas import Chunk, ChunkConfig

__all__ = ["BaseChunker", "Chunk", "ChunkConfig", "available_chunkers", "get_chunker"]
