"""Vector store interface and an exact in-memory cosine implementation."""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..config.settings import StoreCfg
from ..errors import ConfigurationError
from ..memory.schemas import MemoryMatch, MemoryRecord


class MissingFilterIndexError(RuntimeError):
    """A query filtered on a metadata field that has no filter index."""


class VectorStore(ABC):
    """
    Persists (id, vector, metadata) triples and answers nearest-neighbour
    queries under cosine similarity with exact-equality metadata filters.

    Only fields listed in ``filter_fields`` can be filtered on; anything else
    is a store-level error, never a silent full scan.
    """

    metric = "cosine"

    def __init__(
        self,
        dimensions: int,
        name: str = "agent-memories",
        filter_fields: Sequence[str] = ("owner", "category"),
    ):
        self.dimensions = dimensions
        self.name = name
        self.filter_fields = tuple(filter_fields)

    @abstractmethod
    def upsert(self, records: Sequence[MemoryRecord]) -> int:
        """Insert or overwrite records by id; returns number written."""

    @abstractmethod
    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filters: Optional[Dict[str, str]] = None,
    ) -> List[MemoryMatch]:
        """Return up to ``top_k`` matches in descending score order."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored records (approximate by contract)."""

    def describe(self) -> dict:
        """Index introspection for the stats endpoint."""
        return {
            "index": self.name,
            "dimensions": self.dimensions,
            "metric": self.metric,
            "filter_fields": list(self.filter_fields),
            "approx_records": self.count(),
        }

    def check_vector(self, vector: Sequence[float]) -> None:
        if len(vector) != self.dimensions:
            raise ConfigurationError(
                "Vector dimensionality mismatch",
                details=f"store '{self.name}' expects {self.dimensions}, got {len(vector)}",
            )

    def check_filters(self, filters: Optional[Dict[str, str]]) -> None:
        missing = sorted(set(filters or {}) - set(self.filter_fields))
        if missing:
            raise MissingFilterIndexError(
                f"No metadata index for filter field(s): {', '.join(missing)}"
            )


def _normalize(vector: Sequence[float]) -> np.ndarray:
    arr = np.asarray(vector, dtype=np.float32)
    norm = np.linalg.norm(arr)
    return arr / norm if norm > 0 else arr


class InMemoryVectorStore(VectorStore):
    """Simple in-memory implementation of VectorStore using exact cosine similarity."""

    def __init__(
        self,
        dimensions: int,
        name: str = "agent-memories",
        filter_fields: Sequence[str] = ("owner", "category"),
    ):
        super().__init__(dimensions, name, filter_fields)
        self._records: Dict[str, MemoryRecord] = {}  # record_id -> MemoryRecord
        self._index: Dict[str, np.ndarray] = {}      # record_id -> normalized vector
        self._lock = threading.Lock()

    def upsert(self, records: Sequence[MemoryRecord]) -> int:
        for record in records:
            self.check_vector(record.vector)

        with self._lock:
            for record in records:
                self._records[record.id] = record
                self._index[record.id] = _normalize(record.vector)

        return len(records)

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filters: Optional[Dict[str, str]] = None,
    ) -> List[MemoryMatch]:
        self.check_filters(filters)
        self.check_vector(vector)

        query_vec = _normalize(vector)
        if not np.any(query_vec):
            return []

        with self._lock:
            candidates = [
                record for record in self._records.values()
                if all(getattr(record, field) == value for field, value in (filters or {}).items())
            ]
            if not candidates:
                return []
            matrix = np.vstack([self._index[record.id] for record in candidates])

        scores = matrix @ query_vec
        order = np.argsort(-scores, kind="stable")[:top_k]

        return [
            MemoryMatch(
                id=candidates[i].id,
                score=float(scores[i]),
                metadata=candidates[i].metadata(),
            )
            for i in order
        ]

    def count(self) -> int:
        return len(self._records)


def create_vector_store(cfg: StoreCfg, dimensions: int) -> VectorStore:
    """
    Build the configured vector store.

    Args:
        cfg: Store configuration
        dimensions: Embedding dimensionality shared by all records

    Returns:
        VectorStore instance
    """
    if cfg.backend == "memory":
        return InMemoryVectorStore(dimensions, cfg.index_name, cfg.filter_fields)
    if cfg.backend == "sqlite":
        from ..persist.sqlite_store import SQLiteVectorStore
        return SQLiteVectorStore(cfg.path, dimensions, cfg.index_name, cfg.filter_fields)
    raise ConfigurationError(f"Unknown vector store backend: {cfg.backend}")
