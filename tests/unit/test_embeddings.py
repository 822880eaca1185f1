"""
Unit tests for semantic_memory/index/embeddings.py

Network and model loading are mocked.
"""
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
import requests

from semantic_memory.config.settings import EmbeddingCfg
from semantic_memory.index import embeddings
from semantic_memory.index.embeddings import (
    OllamaEmbedder,
    SentenceTransformerEmbedder,
    create_embedder,
)


def test_create_embedder_selects_provider():
    st = create_embedder(EmbeddingCfg())
    assert isinstance(st, SentenceTransformerEmbedder)
    assert st.dimensions == 384

    ollama = create_embedder(EmbeddingCfg(provider="ollama", model_name="nomic-embed-text", dimensions=768))
    assert isinstance(ollama, OllamaEmbedder)
    assert ollama.model_name == "nomic-embed-text"
    assert ollama.dimensions == 768


def test_ollama_embed_posts_prompt():
    response = MagicMock()
    response.json.return_value = {"embedding": [0.1, 0.2, 0.3]}

    with patch("semantic_memory.index.embeddings.requests.post", return_value=response) as post:
        vector = OllamaEmbedder("nomic-embed-text", 3, "http://ollama:11434/", timeout=5).embed("hello")

    assert vector == [0.1, 0.2, 0.3]
    post.assert_called_once_with(
        "http://ollama:11434/api/embeddings",
        json={"model": "nomic-embed-text", "prompt": "hello"},
        timeout=5,
    )


def test_ollama_unexpected_payload():
    response = MagicMock()
    response.json.return_value = {"error": "model not found"}

    with patch("semantic_memory.index.embeddings.requests.post", return_value=response):
        with pytest.raises(ValueError):
            OllamaEmbedder().embed("hello")


def test_ollama_http_error_propagates():
    response = MagicMock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("500 Server Error")

    with patch("semantic_memory.index.embeddings.requests.post", return_value=response):
        with pytest.raises(requests.exceptions.HTTPError):
            OllamaEmbedder().embed("hello")


def test_sentence_transformer_embed_many(monkeypatch):
    model = MagicMock()
    model.encode.return_value = np.array([[0.6, 0.8], [1.0, 0.0]], dtype=np.float32)
    monkeypatch.setattr(embeddings, "_load_sentence_transformer", lambda name: model)

    embedder = SentenceTransformerEmbedder("tiny", 2)
    vectors = embedder.embed_many(["a", "b"])

    assert len(vectors) == 2
    for got, want in zip(vectors, [[0.6, 0.8], [1.0, 0.0]]):
        assert got == pytest.approx(want)
    assert model.encode.call_args.kwargs["normalize_embeddings"] is True
    assert embedder.embed_many([]) == []
