"""
Pydantic schemas for FastAPI endpoints.

Request fields the pipelines validate themselves are Optional here, so that a
missing field yields the pipeline's error message rather than a schema error.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class QueryRequest(BaseModel):
    """Request model for /query endpoint."""

    query: Optional[str] = Field(default=None, description="Query text")
    owner: Optional[str] = Field(default=None, description="Exact-match owner filter")
    category: Optional[str] = Field(default=None, description="Exact-match category filter")
    top_k: Optional[int] = Field(default=None, alias="topK", description="Maximum results")
    min_score: Optional[float] = Field(default=None, alias="minScore", description="Minimum cosine score")

    class Config:
        populate_by_name = True


class IndexRequest(BaseModel):
    """Request model for /index endpoint."""

    owner: Optional[str] = Field(default=None, description="Memory owner")
    text: Optional[str] = Field(default=None, description="Text to chunk and index")
    category: Optional[str] = Field(default=None, description="Memory category (default: context)")
    source: Optional[str] = Field(default=None, description="Provenance label (default: manual)")


class CaptureRequest(BaseModel):
    """Request model for /capture endpoint."""

    owner: Optional[str] = Field(default=None, description="Memory owner")
    content: Optional[str] = Field(default=None, description="Conversational turn text")
    classification: Optional[str] = Field(default=None, description="Pre-computed category")


class IndexFileRequest(BaseModel):
    """Request model for /index-file endpoint."""

    owner: Optional[str] = Field(default=None, description="Memory owner; selects the bucket")
    file: Optional[str] = Field(default=None, description="Object name inside the bucket")


class StatsResponse(BaseModel):
    """Response model for /stats endpoint."""

    index: str = Field(..., description="Index name")
    dimensions: int = Field(..., description="Vector dimensionality")
    metric: str = Field(..., description="Similarity metric")
    model: str = Field(..., description="Embedding model name")
    filter_fields: List[str] = Field(default_factory=list, description="Fields with a metadata index")
    approx_records: int = Field(0, description="Approximate record count")
    status: str = Field("healthy", description="Service status")


class HealthResponse(BaseModel):
    """Response model for /health endpoint."""

    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    timestamp: str = Field(..., description="ISO-8601 UTC time")


def error_payload(error: str, details: Optional[Any] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": error}
    if details:
        payload["details"] = details
    return payload
