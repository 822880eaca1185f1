"""
Unit tests for the capture classifier.

Tests gates, triggers and category precedence.
"""
import pytest

from semantic_memory.config.settings import CaptureCfg
from semantic_memory.memory.policy import (
    CATEGORY_RULES,
    MEMORY_BLOCK_OPEN,
    CapturePolicy,
    classify,
    detect_category,
    matched_trigger,
)


# ============================================================================
# Category precedence
# ============================================================================

@pytest.mark.parametrize("text, category", [
    ("Actually, that's wrong, I prefer spaces over tabs.", "correction"),
    ("No, the deadline moved to Friday.", "correction"),
    ("I prefer dark mode in every editor.", "preference"),
    ("She likes short answers without preamble.", "preference"),
    ("We decided to use Postgres for the queue.", "decision"),
    ("I learned that the cache is shared across workers.", "learning"),
    ("Remember the deploy key rotates monthly.", "context"),
    ("Call me at +420123456789 tomorrow.", "context"),
    ("My email is jane@example.com for invoices.", "context"),
])
def test_detected_category(text, category):
    decision = classify(text)
    assert decision.capture is True
    assert decision.category == category


def test_correction_beats_preference():
    """Correction language is never shadowed by preference language."""
    text = "Actually, that's wrong. I prefer the blue theme."
    assert detect_category(text) == "correction"
    assert classify(text).category == "correction"


def test_precedence_table_order():
    assert [name for name, _ in CATEGORY_RULES] == ["correction", "preference", "decision", "learning"]


def test_triggers_respect_word_boundaries():
    assert matched_trigger("That seemed unlikely to matter.") is None
    assert classify("That seemed unlikely to matter.").reason == "no trigger"


# ============================================================================
# Gates
# ============================================================================

def test_short_repeated_word_is_never_captured():
    decision = classify("ok ok ok")
    assert decision.capture is False
    assert decision.reason == "too short"


def test_short_text_with_trigger_is_rejected():
    assert classify("remember").reason == "too short"


def test_thousand_chars_is_never_captured():
    text = ("I prefer tabs. " * 100)[:1000]
    assert len(text) == 1000

    decision = classify(text)
    assert decision.capture is False
    assert decision.reason == "too long"


def test_length_bounds_are_inclusive():
    assert classify("I want tea").capture is True  # exactly 10 chars
    assert classify("I prefer " + "x" * 491).capture is True  # exactly 500
    assert classify("I prefer " + "x" * 492).reason == "too long"


def test_wrapper_marker_alone_is_never_captured():
    decision = classify(MEMORY_BLOCK_OPEN)
    assert MEMORY_BLOCK_OPEN == "<relevant-memories>"
    assert decision.capture is False
    assert decision.reason == "injected memory block"


def test_injected_block_is_never_captured():
    text = f"{MEMORY_BLOCK_OPEN}\n- [preference] I prefer tabs\n</relevant-memories>"
    assert classify(text).reason == "injected memory block"


def test_markup_is_rejected():
    assert classify("<div>I prefer tabs always</div>").reason == "markup"


def test_formatted_list_is_rejected():
    text = "**Summary** of what I prefer:\n- tabs\n- dark mode"
    assert classify(text).reason == "formatted list"


def test_emoji_density():
    assert classify("I love these \U0001F389\U0001F389\U0001F389 a lot").capture is True
    assert classify("I love these \U0001F389\U0001F389\U0001F389\U0001F389 a lot").reason == "emoji-dense"


def test_no_trigger():
    decision = classify("The weather is mild today.")
    assert decision.capture is False
    assert decision.reason == "no trigger"


@pytest.mark.parametrize("value", [None, 42, ["I prefer tabs"], b"I prefer tabs"])
def test_non_text_is_not_captured(value):
    decision = classify(value)
    assert decision.capture is False
    assert decision.reason == "not text"


def test_policy_uses_configured_bounds():
    policy = CapturePolicy(CaptureCfg(min_chars=20, max_emoji=0))
    assert policy.classify("I want some tea").reason == "too short"
    assert policy.classify("I really love this \U0001F389 a lot").reason == "emoji-dense"
