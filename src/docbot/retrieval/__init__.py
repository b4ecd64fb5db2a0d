"""Retrieval: embed the question, search one chatbot's chunks."""

from docbot.retrieval.retriever import Retriever
from docbot.retrieval.schemas import RetrievalConfig, RetrievedChunk

__all__ = ["Retriever", "RetrievalConfig", "RetrievedChunk"]
