"""
Capture pipeline: classify -> suppress near-duplicates -> write one record.
"""

import logging
import time
from typing import Optional

from ..config.settings import Settings
from ..errors import ValidationError
from ..ingest.service import IndexingPipeline, require_text
from ..retrieval.recall import RetrievalPipeline
from ..telemetry import log_step
from .policy import CapturePolicy, is_injected_memory
from .schemas import CATEGORIES, CaptureResult, is_category


logger = logging.getLogger(__name__)


class CaptureService:
    """
    Persists conversational text the policy deems memory-worthy.

    Unclassifiable text is never an error: the result says ``captured=False``
    with a reason.
    """

    def __init__(
        self,
        settings: Settings,
        indexer: IndexingPipeline,
        retriever: RetrievalPipeline,
        policy: Optional[CapturePolicy] = None,
    ):
        self.settings = settings
        self.indexer = indexer
        self.retriever = retriever
        self.policy = policy or CapturePolicy(settings.capture)

    def capture(
        self,
        owner: str,
        content: str,
        classification: Optional[str] = None,
    ) -> CaptureResult:
        """
        Capture a conversational turn.

        An explicit classification skips the trigger and length gates (the
        caller has classified already) but never the injected-memory gate.

        Args:
            owner: Agent/subject the memory belongs to
            content: Raw turn text
            classification: Optional pre-computed category

        Returns:
            CaptureResult

        Raises:
            ValidationError: Missing owner/content or unknown classification
            UpstreamError: Embedding or store failure
        """
        owner = require_text(owner, "owner")
        content = require_text(content, "content")
        cfg = self.settings.capture

        if classification:
            if not is_category(classification):
                raise ValidationError(
                    f"Invalid classification: {classification}",
                    details=f"expected one of {', '.join(CATEGORIES)}",
                )
            if is_injected_memory(content):
                return CaptureResult(captured=False, reason="injected memory block")
            category = classification
        else:
            decision = self.policy.classify(content)
            if not decision.capture:
                return CaptureResult(captured=False, reason=f"Not a capture-worthy turn: {decision.reason}")
            category = decision.category

        start = time.perf_counter()
        record = self.indexer.build_records(owner, [content], category, cfg.source)[0]

        if cfg.dedup_enabled:
            duplicate = self.retriever.find_duplicate(owner, category, record.vector, cfg.dedup_threshold)
            if duplicate is not None:
                logger.info("Suppressed duplicate capture for owner=%s (%.3f vs %s)",
                            owner, duplicate.score, duplicate.id)
                log_step("capture", (time.perf_counter() - start) * 1000, {"captured": False})
                return CaptureResult(captured=False, id=duplicate.id, reason="duplicate")

        self.indexer.write([record])
        logger.info("Captured %s memory %s", category, record.id)
        log_step("capture", (time.perf_counter() - start) * 1000, {"captured": True, "category": category})

        return CaptureResult(captured=True, category=category, id=record.id)
