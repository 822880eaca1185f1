"""
Memory capture policy.

Decides whether a piece of conversational text is worth remembering and, if
so, which category it belongs to. Pure: no I/O, never raises.
"""

import re
from typing import Any, Optional, Pattern, Tuple

from ..config.settings import CaptureCfg
from .schemas import CaptureDecision, MemoryCategory


# Wrapper tag around memories injected into the agent's context. Text carrying
# it is our own output and must never be captured again.
MEMORY_BLOCK_TAG = "relevant-memories"
MEMORY_BLOCK_OPEN = f"<{MEMORY_BLOCK_TAG}>"
MEMORY_BLOCK_CLOSE = f"</{MEMORY_BLOCK_TAG}>"

EMOJI = re.compile("[\U0001F300-\U0001F9FF]")

CORRECTION = re.compile(r"\b(?:actually|correction)\b|\bno,|\bthat[’']s wrong\b", re.IGNORECASE)
PREFERENCE = re.compile(r"\b(?:prefer\w*|like[sd]?|love[sd]?|hate[sd]?|want(?:s|ed)?|radši)\b", re.IGNORECASE)
DECISION = re.compile(r"\b(?:decided|decision|will use|budeme)\b", re.IGNORECASE)
LEARNING = re.compile(r"\b(?:learned|learnt|realized|realised|discovered)\b", re.IGNORECASE)

# Any one match makes text capture-worthy, provided no gate rejected it
TRIGGERS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("remember", re.compile(r"\b(?:remember|zapamatuj)", re.IGNORECASE)),
    ("preference", PREFERENCE),
    ("need", re.compile(r"\bneed(?:s|ed)?\b", re.IGNORECASE)),
    ("decision", DECISION),
    ("learning", LEARNING),
    ("correction", CORRECTION),
    ("emphasis", re.compile(r"\b(?:important|always|never)\b", re.IGNORECASE)),
    ("phone", re.compile(r"\+\d{10,}")),
    ("email", re.compile(r"[\w.-]+@[\w.-]+\.\w+")),
    ("possessive", re.compile(r"\bmy\s+\w+\s+is\b|\bis\s+my\b", re.IGNORECASE)),
)

# First match wins; corrections must not be shadowed by weaker categories
CATEGORY_RULES: Tuple[Tuple[MemoryCategory, Pattern[str]], ...] = (
    ("correction", CORRECTION),
    ("preference", PREFERENCE),
    ("decision", DECISION),
    ("learning", LEARNING),
)


def detect_category(text: str) -> MemoryCategory:
    """Category by precedence table; ``context`` when nothing matches."""
    for category, pattern in CATEGORY_RULES:
        if pattern.search(text):
            return category
    return "context"


def matched_trigger(text: str) -> Optional[str]:
    """Name of the first trigger that matches, or None."""
    for name, pattern in TRIGGERS:
        if pattern.search(text):
            return name
    return None


def is_injected_memory(text: str) -> bool:
    """True if text carries the injected-memory wrapper."""
    return MEMORY_BLOCK_OPEN in text


class CapturePolicy:
    """
    Gate + trigger + precedence classifier.

    Gates (any rejects):
    - too short (noise) or too long (not a single discrete fact)
    - contains the injected-memory wrapper
    - looks like markup: opens with a tag and closes one
    - looks like a formatted list: bold markup plus a bulleted line
    - more than ``max_emoji`` pictographs
    """

    def __init__(self, cfg: Optional[CaptureCfg] = None):
        self.cfg = cfg or CaptureCfg()

    def gate(self, text: str) -> Optional[str]:
        """
        Return the rejection reason, or None if text passes every gate.

        Args:
            text: Candidate text

        Returns:
            Reason string or None
        """
        if len(text) < self.cfg.min_chars:
            return "too short"
        if len(text) > self.cfg.max_chars:
            return "too long"
        if is_injected_memory(text):
            return "injected memory block"
        if text.startswith("<") and "</" in text:
            return "markup"
        if "**" in text and "\n-" in text:
            return "formatted list"
        if len(EMOJI.findall(text)) > self.cfg.max_emoji:
            return "emoji-dense"
        return None

    def classify(self, text: Any) -> CaptureDecision:
        """
        Decide whether to capture text and with which category.

        Args:
            text: Raw conversational text

        Returns:
            CaptureDecision; non-capture carries the reason
        """
        if not isinstance(text, str):
            return CaptureDecision(capture=False, reason="not text")

        reason = self.gate(text)
        if reason:
            return CaptureDecision(capture=False, reason=reason)

        if matched_trigger(text) is None:
            return CaptureDecision(capture=False, reason="no trigger")

        return CaptureDecision(capture=True, category=detect_category(text))


_default_policy = CapturePolicy()


def classify(text: Any) -> CaptureDecision:
    """Classify with default thresholds."""
    return _default_policy.classify(text)
