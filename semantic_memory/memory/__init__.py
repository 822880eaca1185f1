"""
Memory data model and capture policy.

Provides:
- Record, match and result models
- Capture classification (gates, triggers, category precedence)

Pipelines live in ``capture``, ``integrate`` and ``hooks``; import them
directly.
"""

from .schemas import (
    MemoryCategory,
    CATEGORIES,
    DEFAULT_CATEGORY,
    MemoryRecord,
    MemoryMatch,
    QueryIntent,
    QueryResult,
    IndexResult,
    FileIndexResult,
    CaptureResult,
    CaptureDecision,
)
from .policy import CapturePolicy, classify, detect_category

__all__ = [
    "MemoryCategory",
    "CATEGORIES",
    "DEFAULT_CATEGORY",
    "MemoryRecord",
    "MemoryMatch",
    "QueryIntent",
    "QueryResult",
    "IndexResult",
    "FileIndexResult",
    "CaptureResult",
    "CaptureDecision",
    "CapturePolicy",
    "classify",
    "detect_category",
]
