"""
Memory service wiring.

Assembles the indexing, retrieval and capture pipelines around one embedding
gateway, one vector store and one blob store, all built from a single
Settings value.
"""

from typing import Any, Dict, Optional
import logging

from ..config.settings import Settings
from ..errors import ConfigurationError
from ..index.embeddings import EmbeddingGateway, create_embedder
from ..index.vector_store import VectorStore, create_vector_store
from ..ingest.blobs import BlobStore, LocalBlobStore
from ..ingest.service import IndexingPipeline, require_text
from ..ops.upstream import call_upstream
from ..retrieval.recall import RetrievalPipeline
from .capture import CaptureService
from .schemas import (
    DEFAULT_CATEGORY,
    CaptureResult,
    FileIndexResult,
    IndexResult,
    QueryResult,
)


logger = logging.getLogger(__name__)


class MemoryService:
    """
    Facade over the memory pipelines.

    Provides:
    - index / index_file: write path
    - query: read path
    - capture: classified, de-duplicated write path
    - stats: index introspection
    """

    def __init__(
        self,
        settings: Settings,
        embedder: EmbeddingGateway,
        store: VectorStore,
        blobs: Optional[BlobStore] = None,
    ):
        """
        Initialize memory service.

        Args:
            settings: Process-wide settings
            embedder: Embedding gateway
            store: Vector store; its dimensionality must match the embedder's
            blobs: Blob store for file ingestion (default: local buckets from settings)
        """
        if embedder.dimensions != store.dimensions:
            raise ConfigurationError(
                "Vector dimensionality mismatch",
                details=f"embedder produces {embedder.dimensions}, store expects {store.dimensions}",
            )

        self.settings = settings
        self.embedder = embedder
        self.store = store
        self.blobs = blobs or LocalBlobStore.from_config(settings.blobs)

        self.indexer = IndexingPipeline(settings, embedder, store)
        self.retriever = RetrievalPipeline(settings, embedder, store)
        self.capturer = CaptureService(settings, self.indexer, self.retriever)

    def index(
        self,
        owner: str,
        text: str,
        category: Optional[str] = None,
        source: Optional[str] = None,
    ) -> IndexResult:
        return self.indexer.index(owner, text, category or DEFAULT_CATEGORY, source or "manual")

    def index_file(self, owner: str, file: str) -> FileIndexResult:
        """
        Index a document from the owner's bucket.

        Raises:
            ValidationError: Missing owner/file or a name escaping the bucket
            ConfigurationError: Owner has no bucket (caller fault)
            NotFoundError: File absent from the bucket
        """
        owner = require_text(owner, "owner")
        file = require_text(file, "file")
        bucket = self.blobs.bucket_for(owner)
        return self.indexer.index_document(owner, file, lambda: bucket.get(file))

    def query(
        self,
        query: str,
        owner: Optional[str] = None,
        category: Optional[str] = None,
        top_k: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> QueryResult:
        return self.retriever.query(query, owner, category, top_k, min_score)

    def capture(
        self,
        owner: str,
        content: str,
        classification: Optional[str] = None,
    ) -> CaptureResult:
        return self.capturer.capture(owner, content, classification)

    def stats(self) -> Dict[str, Any]:
        """Index statistics; record counts are approximate."""
        description = call_upstream(
            self.store.describe,
            timeout_s=self.settings.store.timeout_s,
            operation="stats",
        )
        return {
            **description,
            "model": self.embedder.model_name,
            "status": "healthy",
        }


def create_memory_service(settings: Optional[Settings] = None) -> MemoryService:
    """
    Factory function to build the memory service from settings.

    Args:
        settings: Settings value (default: built-in defaults)

    Returns:
        MemoryService instance

    Raises:
        ConfigurationError: If the persisted index has another dimensionality
    """
    settings = settings or Settings()

    embedder = create_embedder(settings.embedding)
    store = create_vector_store(settings.store, settings.embedding.dimensions)

    logger.info(
        "Memory service ready: model=%s dims=%d store=%s",
        embedder.model_name, embedder.dimensions, settings.store.backend,
    )
    return MemoryService(settings, embedder, store)
