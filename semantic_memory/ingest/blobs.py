"""
Owner-scoped blob storage for source documents.

Each owner maps to one bucket; documents are fetched by name from the
owner's bucket before bulk indexing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from ..config.settings import BlobCfg
from ..errors import ConfigurationError, ValidationError


class Bucket(ABC):
    """A named container of text documents."""

    @abstractmethod
    def get(self, name: str) -> Optional[str]:
        """Return document text, or None if absent."""


class BlobStore(ABC):
    """Resolves an owner to its bucket."""

    @abstractmethod
    def bucket_for(self, owner: str) -> Bucket:
        """
        Return the owner's bucket.

        Raises:
            ConfigurationError: (caller fault) if the owner has no bucket
        """


class DirectoryBucket(Bucket):
    """Bucket backed by a local directory."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def get(self, name: str) -> Optional[str]:
        root = self.root.resolve()
        path = (root / name).resolve()

        if path != root and root not in path.parents:
            raise ValidationError(f"Invalid file name: {name}")

        if not path.is_file():
            return None

        return path.read_text(encoding="utf-8")


class LocalBlobStore(BlobStore):
    """Owner -> directory mapping on the local filesystem."""

    def __init__(self, buckets: Dict[str, str]):
        self.buckets = dict(buckets)

    @classmethod
    def from_config(cls, cfg: BlobCfg) -> "LocalBlobStore":
        return cls(cfg.buckets)

    def bucket_for(self, owner: str) -> Bucket:
        root = self.buckets.get(owner)
        if root is None:
            raise ConfigurationError(f"Unknown owner: {owner}", caller_fault=True)
        return DirectoryBucket(root)
