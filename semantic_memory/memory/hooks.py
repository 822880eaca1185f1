"""
Agent lifecycle integration.

MemoryHooks injects relevant memories before an agent run and captures
memory-worthy turns after it. MemoryTools exposes explicit recall/store
operations to the agent. Both work against any backend with
``query``/``capture``/``index``: the in-process MemoryService or the HTTP
MemoryClient.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol
import logging

from ..config.settings import Settings
from .policy import MEMORY_BLOCK_CLOSE, MEMORY_BLOCK_OPEN, CapturePolicy
from .schemas import CaptureResult, IndexResult, MemoryMatch, QueryResult


logger = logging.getLogger(__name__)

CAPTURE_ROLES = ("user", "assistant")
TOOL_SOURCE = "plugin-capture"
TOOL_PREVIEW_CHARS = 200


class MemoryBackend(Protocol):
    def query(
        self,
        query: str,
        owner: Optional[str] = None,
        category: Optional[str] = None,
        top_k: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> QueryResult: ...

    def capture(
        self,
        owner: str,
        content: str,
        classification: Optional[str] = None,
    ) -> CaptureResult: ...

    def index(
        self,
        owner: str,
        text: str,
        category: Optional[str] = None,
        source: Optional[str] = None,
    ) -> IndexResult: ...


def format_memory_block(matches: List[MemoryMatch]) -> str:
    lines = [f"- [{m.category}] {m.raw_text}" for m in matches]
    return "\n".join([
        MEMORY_BLOCK_OPEN,
        "The following memories may be relevant to this conversation:",
        *lines,
        MEMORY_BLOCK_CLOSE,
    ])


def message_texts(messages: Iterable[Any]) -> List[str]:
    """
    Extract user/assistant text from agent messages.

    Content may be a plain string or a list of blocks; only ``text`` blocks
    are kept. Anything else is ignored.
    """
    texts: List[str] = []
    for msg in messages:
        if not isinstance(msg, dict) or msg.get("role") not in CAPTURE_ROLES:
            continue

        content = msg.get("content")
        if isinstance(content, str):
            texts.append(content)
        elif isinstance(content, list):
            for block in content:
                if (
                    isinstance(block, dict)
                    and block.get("type") == "text"
                    and isinstance(block.get("text"), str)
                ):
                    texts.append(block["text"])
    return texts


class MemoryHooks:
    """Auto-recall and auto-capture around an agent run."""

    def __init__(
        self,
        backend: MemoryBackend,
        settings: Optional[Settings] = None,
        policy: Optional[CapturePolicy] = None,
    ):
        self.backend = backend
        self.settings = settings or Settings()
        self.policy = policy or CapturePolicy(self.settings.capture)

    def before_agent_start(self, prompt: Any, owner: Optional[str] = None) -> Optional[str]:
        """
        Build the context block to prepend to the agent's prompt.

        Args:
            prompt: The user prompt starting the run
            owner: Memory owner (default: hooks.default_owner)

        Returns:
            The ``<relevant-memories>`` block, or None when nothing qualifies
        """
        cfg = self.settings.hooks
        if not cfg.auto_recall:
            return None
        if not isinstance(prompt, str) or len(prompt) < cfg.min_prompt_chars:
            return None

        try:
            result = self.backend.query(
                prompt,
                owner=owner or cfg.default_owner,
                top_k=cfg.recall_limit,
                min_score=cfg.min_recall_score,
            )
        except Exception as e:
            logger.warning("Memory recall failed: %s", e)
            return None

        if not result.matches:
            return None

        logger.info("Injecting %d memories into context", len(result.matches))
        return format_memory_block(result.matches)

    def agent_end(
        self,
        messages: Optional[List[Any]],
        success: bool = True,
        owner: Optional[str] = None,
    ) -> int:
        """
        Capture memory-worthy turns from a finished run.

        Args:
            messages: Conversation messages of the run
            success: Whether the run completed
            owner: Memory owner (default: hooks.default_owner)

        Returns:
            Number of memories stored
        """
        cfg = self.settings.hooks
        if not cfg.auto_capture or not success or not messages:
            return 0

        try:
            candidates = []
            for text in message_texts(messages):
                decision = self.policy.classify(text)
                if decision.capture:
                    candidates.append((text, decision.category))

            stored = 0
            for text, category in candidates[:cfg.max_captures_per_turn]:
                result = self.backend.capture(
                    owner or cfg.default_owner,
                    text,
                    classification=category,
                )
                if result.captured:
                    stored += 1
        except Exception as e:
            logger.warning("Memory capture failed: %s", e)
            return 0

        if stored:
            logger.info("Auto-captured %d memories", stored)
        return stored


@dataclass
class ToolResponse:
    """Agent tool result: human-readable text plus machine details."""

    text: str
    details: Dict[str, Any] = field(default_factory=dict)


class MemoryTools:
    """Explicit memory tools for agents."""

    def __init__(self, backend: MemoryBackend, settings: Optional[Settings] = None):
        self.backend = backend
        self.settings = settings or Settings()

    def recall(self, query: str, owner: Optional[str] = None, limit: int = 5) -> ToolResponse:
        cfg = self.settings.hooks
        try:
            result = self.backend.query(
                query,
                owner=owner or cfg.default_owner,
                top_k=limit,
                min_score=cfg.tool_min_score,
            )
        except Exception as e:
            logger.warning("memory_recall tool failed: %s", e)
            return ToolResponse(text=f"Memory recall failed: {e}", details={"error": str(e)})

        if not result.matches:
            return ToolResponse(text="No relevant memories found.", details={"count": 0})

        lines = [
            f"{i}. [{m.category}] {m.raw_text[:TOOL_PREVIEW_CHARS]}... ({m.score * 100:.0f}%)"
            for i, m in enumerate(result.matches, start=1)
        ]
        return ToolResponse(
            text=f"Found {len(result.matches)} memories:\n\n" + "\n".join(lines),
            details={
                "count": len(result.matches),
                "memories": [m.model_dump() for m in result.matches],
            },
        )

    def store(self, text: str, category: str = "context", owner: Optional[str] = None) -> ToolResponse:
        owner = owner or self.settings.hooks.default_owner
        try:
            result = self.backend.index(
                owner,
                text,
                category=category,
                source=TOOL_SOURCE,
            )
        except Exception as e:
            logger.warning("memory_store tool failed: %s", e)
            return ToolResponse(text=f"Memory store failed: {e}", details={"error": str(e)})

        preview = text[:100]
        return ToolResponse(
            text=f'Stored memory for {owner}: "{preview}..."',
            details={"action": "created", "ids": result.ids},
        )
