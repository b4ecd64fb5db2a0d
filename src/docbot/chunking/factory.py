"""Chunker factory: pick a window chunker by measuring unit."""

from __future__ import annotations

import importlib
import logging

from docbot.chunking.base import BaseChunker
from docbot.chunking.schemas import ChunkConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Chunker registry
#
# Each entry: (unit, module_path, class_name)
# ---------------------------------------------------------------------------

_CHUNKER_REGISTRY: list[tuple[str, str, str]] = [
    ("chars", "docbot.chunking.window_chunker", "CharWindowChunker"),
    ("tokens", "docbot.chunking.window_chunker", "TokenWindowChunker"),
]


def get_chunker(unit: str = "chars", config: ChunkConfig | None = None) -> BaseChunker:
    """Get a chunker for the given measuring unit.

    Args:
        unit: ``chars`` or ``tokens``.
        config: Window size and overlap; validated before any work.

    Raises:
        InvalidChunkConfig: If ``config`` cannot make forward progress.
        ValueError: If ``unit`` is not registered.
    """
    key = unit.lower()
    for reg_key, module_path, cls_name in _CHUNKER_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            return cls(config)

    available = [k for k, _, _ in _CHUNKER_REGISTRY]
    raise ValueError(f"Unknown chunking unit '{unit}'. Available: {available}")


def available_chunkers() -> list[str]:
    """Return names of registered chunking units."""
    return [k for k, _, _ in _CHUNKER_REGISTRY]
