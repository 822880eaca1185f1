"""
Stable hashing utilities for deterministic memory identity.

Provides deterministic hashing of dicts, lists, strings, and bytes, plus the
``owner:source:hash`` memory id built on top of it.
Uses JSON canonicalization for dicts/lists and UTF-8 NFC normalization for strings.
"""

import hashlib
import json
import unicodedata


# 8-byte digest = 16 hex chars; plenty for accidental-collision resistance
CONTENT_DIGEST_SIZE = 8


def _to_bytes(obj: dict | list | str | bytes) -> bytes:
    if isinstance(obj, (dict, list)):
        # Sort keys for determinism
        canonical = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        return canonical.encode("utf-8")
    if isinstance(obj, str):
        return unicodedata.normalize("NFC", obj).encode("utf-8")
    if isinstance(obj, bytes):
        return obj
    raise TypeError(f"Cannot hash type {type(obj)}: {obj}")


def stable_hash(obj: dict | list | str | bytes) -> str:
    """
    Compute stable hash of an object.

    - Dicts: sorted by keys, then JSON-serialized
    - Lists: JSON-serialized in order
    - Strings: UTF-8 normalized (NFC)
    - Bytes: used directly

    Returns:
        64-character hex string (blake2b)

    Examples:
        >>> stable_hash({"b": 2, "a": 1}) == stable_hash({"a": 1, "b": 2})
        True
    """
    return hashlib.blake2b(_to_bytes(obj), digest_size=32).hexdigest()


def content_hash(text: str) -> str:
    """
    Short content hash used inside memory ids.

    Args:
        text: Text to hash

    Returns:
        16-character hex string
    """
    return hashlib.blake2b(_to_bytes(text), digest_size=CONTENT_DIGEST_SIZE).hexdigest()


def memory_id(owner: str, source: str, text: str) -> str:
    """
    Derive the deterministic id of a memory record.

    Same (owner, source, text) always yields the same id, so re-indexing
    unchanged content upserts in place. Owner and source are part of the id:
    identical text under another owner or source is a separate memory.

    Args:
        owner: Agent/subject the memory belongs to
        source: Provenance ("manual", "auto-capture", file name)
        text: Full chunk text

    Returns:
        Id of the form ``owner:source:<16 hex chars>``
    """
    return f"{owner}:{source}:{content_hash(text)}"
