"""Application settings loaded from YAML with environment variable overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from docbot.chunking.schemas import ChunkConfig

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "openai"
    model: str = "text-embedding-3-small"
    dimension: int = 1536
    timeout: float = 30.0
    base_url: str | None = None


class VectorStoreSettings(BaseModel):
    backend: str = "memory"
    path: str = "local_data/index"


class ChunkStoreSettings(BaseModel):
    backend: str = "sqlite"
    path: str = "local_data/chunks.db"


class ChunkingSettings(BaseModel):
    chunk_size: int = 1000
    overlap_size: int = 100
    unit: str = "chars"

    def to_chunk_config(self) -> ChunkConfig:
        """Build a validated ``ChunkConfig`` from these settings."""
        config = ChunkConfig(chunk_size=self.chunk_size, overlap_size=self.overlap_size)
        config.validate()
        return config


class RetrievalSettings(BaseModel):
    top_k: int = 5
    similarity_threshold: float | None = None


class LLMSettings(BaseModel):
    provider: str = "openai"
    model: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout: float = 60.0
    base_url: str | None = None


class LoggingSettings(BaseModel):
    level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    chunkstore: ChunkStoreSettings = Field(default_factory=ChunkStoreSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("DOCBOT_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML file, falling back to defaults."""
    path = Path(path) if path else _find_settings_file()
    if path is None:
        return Settings()

    with open(path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    settings = Settings(**raw)
    if "LOG_LEVEL" in os.environ:
        settings.logging.level = os.environ["LOG_LEVEL"]
    return settings
