"""Retrieval core for document-grounded chatbots."""

__version__ = "0.1.0"
