"""
Memory system data models.

Defines MemoryRecord structure, query intents and pipeline results.
"""

from dataclasses import dataclass
from typing import Literal, Optional, List, Dict, Any, get_args
from pydantic import BaseModel, Field


# Type aliases
MemoryCategory = Literal["decision", "correction", "learning", "preference", "context", "user_profile"]
CATEGORIES: tuple = get_args(MemoryCategory)
DEFAULT_CATEGORY: MemoryCategory = "context"


def is_category(value: Any) -> bool:
    """True if value is one of the closed category set."""
    return isinstance(value, str) and value in CATEGORIES


class MemoryRecord(BaseModel):
    """
    A single indexed text unit stored in the vector store.

    The id is derived from (owner, source, text), so writing the same
    record twice overwrites it in place.
    """

    id: str = Field(..., description="Deterministic id: owner:source:hash")
    vector: List[float] = Field(..., description="Embedding of the full chunk text")

    owner: str = Field(..., description="Agent/subject the memory belongs to")
    category: MemoryCategory = Field(DEFAULT_CATEGORY, description="Closed-set semantic kind")
    source: str = Field("manual", description="Provenance: file name, 'manual', 'auto-capture'")
    created_at: str = Field(..., description="ISO-8601 UTC write time")
    chunk_index: int = Field(0, ge=0, description="Position within the source document")
    raw_text: str = Field(..., description="Stored text snippet (truncated)")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "dev:manual:3f2a9c1d0b7e4a55",
                "vector": [0.01, -0.12, 0.08],
                "owner": "dev",
                "category": "decision",
                "source": "manual",
                "created_at": "2026-01-05T10:00:00+00:00",
                "chunk_index": 0,
                "raw_text": "Decided to use batching for all writes.",
            }
        }

    def metadata(self) -> Dict[str, Any]:
        """Metadata stored alongside the vector (everything but id/vector)."""
        return self.model_dump(exclude={"id", "vector"})


class MemoryMatch(BaseModel):
    """A stored record returned by a similarity query."""

    id: str
    score: float = Field(..., description="Cosine similarity to the query vector")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def category(self) -> str:
        return str(self.metadata.get("category", DEFAULT_CATEGORY))

    @property
    def raw_text(self) -> str:
        return str(self.metadata.get("raw_text", ""))


class QueryIntent(BaseModel):
    """Query parameters for memory retrieval (never persisted)."""

    query: str = Field(..., description="Query text to match against")
    owner: Optional[str] = Field(None, description="Exact-match owner filter")
    category: Optional[str] = Field(None, description="Exact-match category filter")
    top_k: int = Field(5, description="Maximum results to return")
    min_score: float = Field(0.7, description="Minimum similarity score threshold")

    def clamped(self, max_top_k: int) -> "QueryIntent":
        """Copy with top_k in [1, max_top_k] and min_score in [0, 1]."""
        return self.model_copy(update={
            "top_k": max(1, min(int(self.top_k), max_top_k)),
            "min_score": max(0.0, min(float(self.min_score), 1.0)),
        })

    def filters(self) -> Dict[str, str]:
        """Equality filters for the supplied owner/category only."""
        filters: Dict[str, str] = {}
        if self.owner:
            filters["owner"] = self.owner
        if self.category:
            filters["category"] = self.category
        return filters


class QueryResult(BaseModel):
    """Ranked, thresholded matches for a query."""

    query: str
    count: int = 0
    matches: List[MemoryMatch] = Field(default_factory=list)


class IndexResult(BaseModel):
    """Outcome of indexing one text body."""

    indexed: int = 0
    ids: List[str] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return self.indexed


class FileIndexResult(BaseModel):
    """Outcome of indexing a document fetched from a blob bucket."""

    file: str
    chunks: int = 0
    indexed: int = 0


class CaptureResult(BaseModel):
    """Outcome of a capture request."""

    captured: bool
    category: Optional[MemoryCategory] = None
    id: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class CaptureDecision:
    """Classifier verdict for a piece of conversational text."""

    capture: bool
    category: MemoryCategory = DEFAULT_CATEGORY
    reason: Optional[str] = None
