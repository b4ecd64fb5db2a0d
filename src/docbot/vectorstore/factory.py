"""Vector index factory: registry and lazy import.

Indexes hold the searchable state of every chatbot, so each call builds a
new one. Share the instance through ``KnowledgeBase`` instead.
"""

from __future__ import annotations

import importlib
import logging

from docbot.config import VectorStoreSettings
from docbot.vectorstore.base import VectorIndex

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Index registry: (index_key, module_path, class_name)
# ---------------------------------------------------------------------------

_INDEX_REGISTRY: list[tuple[str, str, str]] = [
    ("memory", "docbot.vectorstore.memory_store", "InMemoryVectorIndex"),
    ("faiss", "docbot.vectorstore.faiss_store", "FAISSVectorIndex"),
]


def get_vector_index(backend: str = "memory", **kwargs) -> VectorIndex:
    """Create a vector index by name.

    Args:
        backend: One of ``memory``, ``faiss``.
        **kwargs: Passed to the index constructor (e.g. ``dimension``).

    Raises:
        ValueError: If ``backend`` is not registered.
    """
    key = backend.lower()
    for reg_key, module_path, cls_name in _INDEX_REGISTRY:
        if reg_key == key:
            cls = getattr(importlib.import_module(module_path), cls_name)
            return cls(**kwargs)

    raise ValueError(f"Unknown vector index '{backend}'. Available: {available_indexes()}")


def vector_index_from_settings(
    settings: VectorStoreSettings,
    dimension: int | None = None,
) -> VectorIndex:
    """Create the configured index, restoring it from ``settings.path`` if saved."""
    index = get_vector_index(settings.backend, dimension=dimension)
    if index.has_saved_index(settings.path):
        index.load(settings.path)
        if dimension is not None and index.dimension not in (None, dimension):
            logger.warning(
                "Index at %s has dimension %s, settings say %d",
                settings.path, index.dimension, dimension,
            )
    return index


def available_indexes() -> list[str]:
    """Return names of registered vector indexes."""
    return [k for k, _, _ in _INDEX_REGISTRY]
