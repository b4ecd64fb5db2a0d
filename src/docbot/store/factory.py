"""Chunk store factory."""

from __future__ import annotations

import importlib

from docbot.config import ChunkStoreSettings
from docbot.store.base import ChunkStore

_STORE_REGISTRY: list[tuple[str, str, str]] = [
    ("memory", "docbot.store.memory_store", "InMemoryChunkStore"),
    ("sqlite", "docbot.store.sqlite_store", "SQLiteChunkStore"),
]


def get_chunk_store(backend: str = "memory", **kwargs) -> ChunkStore:
    """Open a chunk store by name (``memory`` or ``sqlite``)."""
    key = backend.lower()
    for reg_key, module_path, cls_name in _STORE_REGISTRY:
        if reg_key == key:
            cls = getattr(importlib.import_module(module_path), cls_name)
            return cls(**kwargs)

    raise ValueError(
        f"Unknown chunk store '{backend}'. Available: {available_chunk_stores()}"
    )


def chunk_store_from_settings(settings: ChunkStoreSettings) -> ChunkStore:
    if settings.backend.lower() == "sqlite":
        return get_chunk_store("sqlite", db_path=settings.path)
    return get_chunk_store(settings.backend)


def available_chunk_stores() -> list[str]:
    return [k for k, _, _ in _STORE_REGISTRY]
