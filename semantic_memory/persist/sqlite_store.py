"""
SQLite-backed vector store.

One table per index holding memory records:
- id: deterministic memory id (primary key, upsert target)
- vector: float32 bytes
- owner, category, source, created_at, chunk_index, raw_text: metadata columns
- ts: last write time

Filterable metadata fields get a SQL index; filtering on any other field is
refused. Scoring is exact cosine similarity over the filtered candidates.
"""

import re
import sqlite3
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from ..errors import ConfigurationError
from ..index.vector_store import VectorStore
from ..memory.schemas import MemoryMatch, MemoryRecord
from .hashing import stable_hash


METADATA_COLUMNS = ("owner", "category", "source", "created_at", "chunk_index", "raw_text")


class SQLiteVectorStore(VectorStore):
    """
    File-backed vector store on SQLite.

    Thread-safe with WAL mode and a process-local write lock.
    """

    def __init__(
        self,
        db_path: Path | str,
        dimensions: int,
        name: str = "agent-memories",
        filter_fields: Sequence[str] = ("owner", "category"),
    ):
        """
        Open (or create) the store at the given path.

        Args:
            db_path: Path to SQLite database file
            dimensions: Vector dimensionality for this index
            name: Index name (one table per index)
            filter_fields: Metadata fields that get a filter index

        Raises:
            ConfigurationError: If a filter field is not a metadata column, or the
                index already exists with a different dimensionality
        """
        super().__init__(dimensions, name, filter_fields)

        unknown = sorted(set(self.filter_fields) - set(METADATA_COLUMNS))
        if unknown:
            raise ConfigurationError(f"Cannot index unknown metadata field(s): {', '.join(unknown)}")

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._table = re.sub(r"\W", "_", name)
        self._lock = threading.Lock()

        self._conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,  # calls arrive on upstream worker threads
            timeout=10.0,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")

        self._init_tables()

    def _init_tables(self) -> None:
        """Create record/meta tables and filter indexes if they don't exist."""
        self._conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {self._table} (
                id TEXT PRIMARY KEY,
                vector BLOB NOT NULL,
                owner TEXT NOT NULL,
                category TEXT NOT NULL,
                source TEXT NOT NULL,
                created_at TEXT NOT NULL,
                chunk_index INTEGER NOT NULL,
                raw_text TEXT NOT NULL,
                ts INTEGER NOT NULL
            )
        """)
        for field in self.filter_fields:
            self._conn.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{self._table}_{field}
                ON {self._table}({field})
            """)
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS store_meta (
                index_name TEXT PRIMARY KEY,
                fingerprint TEXT NOT NULL,
                dimensions INTEGER NOT NULL
            )
        """)

        fingerprint = stable_hash({"dimensions": self.dimensions, "metric": self.metric})
        row = self._conn.execute(
            "SELECT fingerprint, dimensions FROM store_meta WHERE index_name = ?",
            (self.name,),
        ).fetchone()

        if row is None:
            self._conn.execute(
                "INSERT INTO store_meta (index_name, fingerprint, dimensions) VALUES (?, ?, ?)",
                (self.name, fingerprint, self.dimensions),
            )
        elif row[0] != fingerprint:
            raise ConfigurationError(
                "Vector dimensionality mismatch",
                details=f"index '{self.name}' was created with {row[1]} dimensions, configured {self.dimensions}",
            )

        self._conn.commit()

    def upsert(self, records: Sequence[MemoryRecord]) -> int:
        for record in records:
            self.check_vector(record.vector)

        ts = int(time.time())
        rows = [
            (
                record.id,
                np.asarray(record.vector, dtype=np.float32).tobytes(),
                record.owner,
                record.category,
                record.source,
                record.created_at,
                record.chunk_index,
                record.raw_text,
                ts,
            )
            for record in records
        ]

        with self._lock:
            self._conn.executemany(
                f"INSERT OR REPLACE INTO {self._table} "
                f"(id, vector, owner, category, source, created_at, chunk_index, raw_text, ts) "
                f"VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                rows,
            )
            self._conn.commit()

        return len(rows)

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filters: Optional[Dict[str, str]] = None,
    ) -> List[MemoryMatch]:
        self.check_filters(filters)
        self.check_vector(vector)

        filters = filters or {}
        where = " AND ".join(f"{field} = ?" for field in filters)
        sql = f"SELECT id, vector, {', '.join(METADATA_COLUMNS)} FROM {self._table}"
        if where:
            sql += f" WHERE {where}"

        with self._lock:
            rows = self._conn.execute(sql, tuple(filters.values())).fetchall()

        if not rows:
            return []

        matrix = np.vstack([np.frombuffer(row[1], dtype=np.float32) for row in rows])
        query_vec = np.asarray(vector, dtype=np.float32).reshape(1, -1)
        scores = cosine_similarity(query_vec, matrix)[0]
        order = np.argsort(-scores, kind="stable")[:top_k]

        return [
            MemoryMatch(
                id=rows[i][0],
                score=float(scores[i]),
                metadata=dict(zip(METADATA_COLUMNS, rows[i][2:])),
            )
            for i in order
        ]

    def count(self) -> int:
        with self._lock:
            row = self._conn.execute(f"SELECT COUNT(*) FROM {self._table}").fetchone()
        return row[0] or 0

    def close(self) -> None:
        """Close database connection."""
        self._conn.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
