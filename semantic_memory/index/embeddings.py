"""
Embedding gateways: text -> fixed-length vector.

The pipelines only see the ``EmbeddingGateway`` interface; concrete providers
are a local SentenceTransformer model or an Ollama server.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

import requests

from ..config.settings import EmbeddingCfg
from ..errors import ConfigurationError


class EmbeddingGateway(ABC):
    """Abstract text -> vector mapping with a fixed dimensionality."""

    def __init__(self, model_name: str, dimensions: int):
        self.model_name = model_name
        self.dimensions = dimensions

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """Embed a single text."""

    def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed several texts; order of results matches input order."""
        return [self.embed(text) for text in texts]


_MODEL_LOCK = threading.Lock()
_MODEL_CACHE: Dict[str, Any] = {}


def _load_sentence_transformer(model_name: str) -> Any:
    from sentence_transformers import SentenceTransformer

    with _MODEL_LOCK:
        model = _MODEL_CACHE.get(model_name)
        if model is None:
            model = SentenceTransformer(model_name)
            _MODEL_CACHE[model_name] = model
        return model


class SentenceTransformerEmbedder(EmbeddingGateway):
    """
    Local SentenceTransformer embeddings.

    The model is loaded on first use and shared per model name. Embeddings
    are L2-normalized so cosine similarity equals the dot product.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", dimensions: int = 384):
        super().__init__(model_name, dimensions)

    def embed(self, text: str) -> List[float]:
        return self.embed_many([text])[0]

    def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        model = _load_sentence_transformer(self.model_name)
        vectors = model.encode(
            list(texts),
            convert_to_numpy=True,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return [vector.astype(float).tolist() for vector in vectors]


class OllamaEmbedder(EmbeddingGateway):
    """
    Embeddings from an Ollama server (``POST /api/embeddings``).

    Ollama must be running (default: http://localhost:11434).
    """

    def __init__(
        self,
        model_name: str = "nomic-embed-text",
        dimensions: int = 768,
        base_url: str = "http://localhost:11434",
        timeout: float = 30.0,
    ):
        super().__init__(model_name, dimensions)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def embed(self, text: str) -> List[float]:
        response = requests.post(
            f"{self.base_url}/api/embeddings",
            json={"model": self.model_name, "prompt": text},
            timeout=self.timeout,
        )
        response.raise_for_status()

        embedding = response.json().get("embedding")
        if not isinstance(embedding, list):
            raise ValueError("Ollama embeddings API returned unexpected format")
        return [float(x) for x in embedding]


def create_embedder(cfg: EmbeddingCfg) -> EmbeddingGateway:
    """
    Build the configured embedding gateway.

    Args:
        cfg: Embedding configuration

    Returns:
        EmbeddingGateway instance
    """
    if cfg.provider == "sentence-transformers":
        return SentenceTransformerEmbedder(cfg.model_name, cfg.dimensions)
    if cfg.provider == "ollama":
        return OllamaEmbedder(cfg.model_name, cfg.dimensions, cfg.base_url, cfg.timeout_s)
    raise ConfigurationError(f"Unknown embedding provider: {cfg.provider}")
