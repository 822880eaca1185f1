"""Application settings and configuration schema."""

import os
from pathlib import Path
from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, Field


CONFIG_ENV_VAR = "SEMANTIC_MEMORY_CONFIG"
LOG_LEVEL_ENV_VAR = "SEMANTIC_MEMORY_LOG_LEVEL"


class EmbeddingCfg(BaseModel):
    """Embedding gateway configuration."""
    provider: Literal["sentence-transformers", "ollama"] = "sentence-transformers"
    model_name: str = "all-MiniLM-L6-v2"
    dimensions: int = Field(384, gt=0)
    base_url: str = "http://localhost:11434"
    timeout_s: float = Field(30.0, gt=0)

    class Config:
        frozen = True


class StoreCfg(BaseModel):
    """Vector store configuration."""
    backend: Literal["sqlite", "memory"] = "sqlite"
    path: str = "data/memory/vectors.db"
    index_name: str = "agent-memories"
    metric: Literal["cosine"] = "cosine"
    batch_size: int = Field(100, ge=1, le=100)
    filter_fields: Tuple[str, ...] = ("owner", "category")
    timeout_s: float = Field(10.0, gt=0)

    class Config:
        frozen = True


class ChunkCfg(BaseModel):
    """Chunking configuration."""
    max_chars: int = Field(500, gt=0)

    class Config:
        frozen = True


class RetrievalCfg(BaseModel):
    """Query defaults and clamping bounds."""
    default_top_k: int = Field(5, ge=1)
    max_top_k: int = Field(100, ge=1)
    default_min_score: float = Field(0.7, ge=0.0, le=1.0)

    class Config:
        frozen = True


class CaptureCfg(BaseModel):
    """Capture classifier gates and duplicate suppression."""
    min_chars: int = 10
    max_chars: int = 500
    max_emoji: int = 3
    dedup_enabled: bool = True
    dedup_threshold: float = Field(0.95, ge=0.0, le=1.0)
    source: str = "auto-capture"
    max_stored_chars: int = Field(1000, gt=0)

    class Config:
        frozen = True


class BlobCfg(BaseModel):
    """Owner-scoped blob buckets (owner -> directory)."""
    buckets: Dict[str, str] = Field(
        default_factory=lambda: {
            "dev": "data/buckets/dev",
            "flo": "data/buckets/flo",
        }
    )
    timeout_s: float = Field(10.0, gt=0)

    class Config:
        frozen = True


class HooksCfg(BaseModel):
    """Auto-recall / auto-capture orchestration policy."""
    auto_recall: bool = True
    auto_capture: bool = True
    recall_limit: int = Field(3, ge=1)
    min_recall_score: float = Field(0.5, ge=0.0, le=1.0)
    tool_min_score: float = Field(0.4, ge=0.0, le=1.0)
    max_captures_per_turn: int = Field(3, ge=0)
    min_prompt_chars: int = 5
    default_owner: str = "flo"

    class Config:
        frozen = True


class Settings(BaseModel):
    """Main application settings."""
    service_name: str = "semantic-memory"
    log_level: str = "INFO"
    embedding: EmbeddingCfg = EmbeddingCfg()
    store: StoreCfg = StoreCfg()
    chunking: ChunkCfg = ChunkCfg()
    retrieval: RetrievalCfg = RetrievalCfg()
    capture: CaptureCfg = CaptureCfg()
    blobs: BlobCfg = BlobCfg()
    hooks: HooksCfg = HooksCfg()

    class Config:
        frozen = True


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Build the process-wide settings value.

    Reads a JSON file from ``path`` or from the ``SEMANTIC_MEMORY_CONFIG``
    environment variable; falls back to defaults when neither is set.
    ``SEMANTIC_MEMORY_LOG_LEVEL`` overrides the log level.

    Args:
        path: Optional path to a JSON settings file

    Returns:
        Frozen Settings instance
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)

    if path:
        settings = Settings.model_validate_json(Path(path).read_text(encoding="utf-8"))
    else:
        settings = Settings()

    log_level = os.environ.get(LOG_LEVEL_ENV_VAR)
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level.upper()})

    return settings
