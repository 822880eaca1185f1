"""
Persistence layer.

Provides:
- Stable hashing for deterministic memory ids
- SQLite-backed vector store (``persist.sqlite_store``)
"""

from .hashing import stable_hash, content_hash, memory_id

__all__ = ["stable_hash", "content_hash", "memory_id"]
