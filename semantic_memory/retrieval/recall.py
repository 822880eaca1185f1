"""
Memory recall: query text -> filtered, thresholded, ranked matches.

The vector store's ranking is authoritative; this layer only clamps inputs,
applies equality filters and drops matches under the score threshold.
"""

from typing import List, Optional, Sequence
import logging

from ..config.settings import Settings
from ..index.embeddings import EmbeddingGateway
from ..index.vector_store import VectorStore
from ..ingest.service import require_text
from ..memory.schemas import MemoryMatch, QueryIntent, QueryResult
from ..ops.upstream import call_upstream


logger = logging.getLogger(__name__)


class RetrievalPipeline:
    """
    Retrieves memories relevant to a query.

    Scoring is the store's cosine similarity; results keep the store's order.
    """

    def __init__(self, settings: Settings, embedder: EmbeddingGateway, store: VectorStore):
        self.settings = settings
        self.embedder = embedder
        self.store = store

    def build_intent(
        self,
        text: str,
        owner: Optional[str] = None,
        category: Optional[str] = None,
        top_k: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> QueryIntent:
        """
        Fill defaults and clamp to sane bounds.

        Out-of-range top_k/min_score are corrected, never rejected.
        """
        cfg = self.settings.retrieval
        intent = QueryIntent(
            query=require_text(text, "query"),
            owner=owner or None,
            category=category or None,
            top_k=cfg.default_top_k if top_k is None else top_k,
            min_score=cfg.default_min_score if min_score is None else min_score,
        )
        return intent.clamped(cfg.max_top_k)

    def query(
        self,
        text: str,
        owner: Optional[str] = None,
        category: Optional[str] = None,
        top_k: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> QueryResult:
        """
        Retrieve memories for a query.

        Args:
            text: Query text
            owner: Exact-match owner filter
            category: Exact-match category filter
            top_k: Maximum results (default from settings, clamped to >= 1)
            min_score: Minimum cosine score (default from settings, clamped to [0, 1])

        Returns:
            QueryResult with matches in descending score order

        Raises:
            ValidationError: Missing query text
            UpstreamError: Embedding or store failure
        """
        intent = self.build_intent(text, owner, category, top_k, min_score)

        vector = self.embed(intent.query)
        matches = self.search(vector, intent.top_k, intent.filters())
        kept = [m for m in matches if m.score >= intent.min_score]

        logger.debug(
            "Query returned %d/%d match(es) above %.2f",
            len(kept), len(matches), intent.min_score,
        )
        return QueryResult(query=intent.query, count=len(kept), matches=kept)

    def embed(self, text: str) -> List[float]:
        vector = call_upstream(
            self.embedder.embed,
            text,
            timeout_s=self.settings.embedding.timeout_s,
            operation="embed",
        )
        self.store.check_vector(vector)
        return vector

    def search(self, vector: Sequence[float], top_k: int, filters: dict) -> List[MemoryMatch]:
        return call_upstream(
            self.store.query,
            vector,
            top_k,
            filters,
            timeout_s=self.settings.store.timeout_s,
            operation="query",
        )

    def find_duplicate(
        self,
        owner: str,
        category: str,
        vector: Sequence[float],
        threshold: float,
    ) -> Optional[MemoryMatch]:
        """
        Best same-owner, same-category match at or above ``threshold``, if any.

        Args:
            owner: Owner whose memories are compared
            category: Category the candidate was classified as
            vector: Embedding of the candidate text
            threshold: Similarity at which the candidate counts as known

        Returns:
            The matching memory, or None
        """
        matches = self.search(vector, 1, {"owner": owner, "category": category})
        if matches and matches[0].score >= threshold:
            return matches[0]
        return None
