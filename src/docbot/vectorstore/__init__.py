"""Vector index backends: numpy brute force (default) and FAISS."""

from docbot.vectorstore.base import VectorIndex
from docbot.vectorstore.factory import available_indexes, get_vector_index
from docbot.vectorstore.schemas import IndexEntry, SearchHit

__all__ = [
    "IndexEntry",
    "SearchHit",
    "VectorIndex",
    "available_indexes",
    "get_vector_index",
]
