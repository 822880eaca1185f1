from __future__ import annotations
from datetime import datetime, timezone
from typing import Callable, List, Optional
import logging

from ..config.settings import Settings
from ..errors import NotFoundError, UpstreamError, ValidationError
from ..index.embeddings import EmbeddingGateway
from ..index.vector_store import VectorStore
from ..memory.schemas import (
    DEFAULT_CATEGORY,
    CATEGORIES,
    FileIndexResult,
    IndexResult,
    MemoryRecord,
    is_category,
)
from ..ops.upstream import call_upstream
from ..persist.hashing import memory_id
from .chunker import chunk_text


logger = logging.getLogger(__name__)


def require_text(value: object, field: str) -> str:
    """Return value if it is a non-blank string, else raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class IndexingPipeline:
    """
    Chunk -> identify -> embed -> upsert.

    Writes go out in batches of ``store.batch_size``; any failing batch fails
    the whole operation (earlier batches may already be written, and the
    caller retries the whole ingestion).
    """

    def __init__(self, settings: Settings, embedder: EmbeddingGateway, store: VectorStore):
        self.settings = settings
        self.embedder = embedder
        self.store = store

    def index(
        self,
        owner: str,
        text: str,
        category: str = DEFAULT_CATEGORY,
        source: str = "manual",
    ) -> IndexResult:
        """
        Index free text for an owner.

        Args:
            owner: Agent/subject the memory belongs to
            text: Text body; chunked before embedding
            category: One of the closed category set
            source: Provenance label, part of the id

        Returns:
            IndexResult with count and ids in chunk order

        Raises:
            ValidationError: Missing owner/text or unknown category
            UpstreamError: Embedding or store failure
            ConfigurationError: Embedding dimensionality differs from the store
        """
        owner = require_text(owner, "owner")
        text = require_text(text, "text")
        if not is_category(category):
            raise ValidationError(
                f"Invalid category: {category}",
                details=f"expected one of {', '.join(CATEGORIES)}",
            )
        source = source or "manual"

        chunks = chunk_text(text, max_chars=self.settings.chunking.max_chars)
        records = self.embed_and_write(owner, chunks, category, source)

        logger.info("Indexed %d chunk(s) for owner=%s source=%s", len(records), owner, source)
        return IndexResult(indexed=len(records), ids=[r.id for r in records])

    def index_document(
        self,
        owner: str,
        source: str,
        fetch: Callable[[], Optional[str]],
    ) -> FileIndexResult:
        """
        Fetch a document and index it chunk by chunk as ``context`` memories.

        Args:
            owner: Agent/subject the memory belongs to
            source: Document name; used as the record source
            fetch: Returns the document text, or None if absent

        Returns:
            FileIndexResult with chunk and written counts

        Raises:
            NotFoundError: If the document is absent
            UpstreamError: Blob, embedding or store failure
        """
        owner = require_text(owner, "owner")
        source = require_text(source, "file")

        text = call_upstream(
            fetch,
            timeout_s=self.settings.blobs.timeout_s,
            operation="blob_fetch",
        )
        if text is None:
            raise NotFoundError(f"File not found: {source}")

        chunks = chunk_text(text, max_chars=self.settings.chunking.max_chars)
        records = self.embed_and_write(owner, chunks, DEFAULT_CATEGORY, source)

        logger.info("Indexed file %s for owner=%s: %d chunk(s)", source, owner, len(records))
        return FileIndexResult(file=source, chunks=len(chunks), indexed=len(records))

    def build_records(
        self,
        owner: str,
        chunks: List[str],
        category: str,
        source: str,
        first_index: int = 0,
    ) -> List[MemoryRecord]:
        """
        Embed chunks and assemble records.

        The full chunk is embedded and hashed; only the stored ``raw_text``
        is truncated.
        """
        vectors = call_upstream(
            self.embedder.embed_many,
            chunks,
            timeout_s=self.settings.embedding.timeout_s,
            operation="embed",
        )
        if len(vectors) != len(chunks):
            raise UpstreamError(
                "embed returned wrong number of vectors",
                details=f"expected {len(chunks)}, got {len(vectors)}",
            )

        created_at = utc_now()
        max_stored = self.settings.capture.max_stored_chars
        records = []

        for offset, (chunk, vector) in enumerate(zip(chunks, vectors)):
            self.store.check_vector(vector)
            records.append(MemoryRecord(
                id=memory_id(owner, source, chunk),
                vector=vector,
                owner=owner,
                category=category,
                source=source,
                created_at=created_at,
                chunk_index=first_index + offset,
                raw_text=chunk[:max_stored],
            ))

        return records

    def write(self, records: List[MemoryRecord]) -> int:
        """Upsert one batch; bounded by the store timeout."""
        return call_upstream(
            self.store.upsert,
            records,
            timeout_s=self.settings.store.timeout_s,
            operation="upsert",
        )

    def embed_and_write(
        self,
        owner: str,
        chunks: List[str],
        category: str,
        source: str,
    ) -> List[MemoryRecord]:
        batch_size = self.settings.store.batch_size
        written: List[MemoryRecord] = []

        for start in range(0, len(chunks), batch_size):
            batch = self.build_records(owner, chunks[start:start + batch_size], category, source, start)
            self.write(batch)
            written.extend(batch)

        return written
