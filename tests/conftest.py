"""Test configuration and fixtures."""

import hashlib
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import pytest
from fastapi.testclient import TestClient

from semantic_memory.api.main import app, get_service, get_settings
from semantic_memory.config.settings import (
    BlobCfg,
    EmbeddingCfg,
    Settings,
    StoreCfg,
)
from semantic_memory.index.embeddings import EmbeddingGateway
from semantic_memory.index.vector_store import InMemoryVectorStore, VectorStore
from semantic_memory.ingest.blobs import LocalBlobStore
from semantic_memory.memory.integrate import MemoryService
from semantic_memory.memory.schemas import MemoryMatch, MemoryRecord


TEST_DIMS = 64
TOKEN = re.compile(r"\w+")


class FakeEmbedder(EmbeddingGateway):
    """
    Deterministic bag-of-words embedder.

    Each lowercased token is hashed into one of ``dimensions`` buckets and the
    count vector is L2-normalized, so identical texts score 1.0.
    """

    def __init__(self, dimensions: int = TEST_DIMS):
        super().__init__("fake-bow", dimensions)
        self.calls = 0

    def embed(self, text: str) -> List[float]:
        self.calls += 1
        vec = np.zeros(self.dimensions, dtype=np.float32)
        for token in TOKEN.findall(text.lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            vec[int.from_bytes(digest[:4], "little") % self.dimensions] += 1.0
        norm = np.linalg.norm(vec)
        if norm > 0:
            vec /= norm
        return vec.tolist()


class StubStore(VectorStore):
    """Store returning canned matches and recording every call."""

    def __init__(self, matches: Optional[List[MemoryMatch]] = None, dimensions: int = TEST_DIMS):
        super().__init__(dimensions)
        self.matches = matches or []
        self.queries: List[Dict] = []
        self.upserts: List[int] = []

    def upsert(self, records: Sequence[MemoryRecord]) -> int:
        self.upserts.append(len(records))
        return len(records)

    def query(self, vector, top_k, filters=None):
        self.check_filters(filters)
        self.queries.append({"top_k": top_k, "filters": dict(filters or {})})
        return self.matches[:top_k]

    def count(self) -> int:
        return sum(self.upserts)


def make_match(id: str, score: float, **metadata) -> MemoryMatch:
    meta = {"owner": "dev", "category": "context", "raw_text": id}
    meta.update(metadata)
    return MemoryMatch(id=id, score=score, metadata=meta)


@pytest.fixture
def buckets(tmp_path) -> Dict[str, Path]:
    """Blob bucket directories for the 'dev' and 'flo' owners."""
    dirs = {"dev": tmp_path / "buckets" / "dev", "flo": tmp_path / "buckets" / "flo"}
    for d in dirs.values():
        d.mkdir(parents=True)
    return dirs


@pytest.fixture
def settings(buckets) -> Settings:
    """Settings wired for tests: fake embedder dims, in-memory store, tmp buckets."""
    return Settings(
        embedding=EmbeddingCfg(model_name="fake-bow", dimensions=TEST_DIMS),
        store=StoreCfg(backend="memory"),
        blobs=BlobCfg(buckets={owner: str(path) for owner, path in buckets.items()}),
    )


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore(TEST_DIMS)


@pytest.fixture
def service(settings, embedder, store) -> MemoryService:
    """Memory service over the fake embedder and in-memory store."""
    return MemoryService(settings, embedder, store, LocalBlobStore.from_config(settings.blobs))


@pytest.fixture
def api_client(settings, service):
    """Create test client with the memory service overridden."""
    app.dependency_overrides[get_service] = lambda: service
    app.dependency_overrides[get_settings] = lambda: settings

    client = TestClient(app, raise_server_exceptions=False)
    yield client

    # Clean up
    app.dependency_overrides.clear()
