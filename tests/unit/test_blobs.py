"""
Unit tests for semantic_memory/ingest/blobs.py
"""
import pytest

from semantic_memory.config.settings import BlobCfg
from semantic_memory.errors import ConfigurationError, ValidationError
from semantic_memory.ingest.blobs import DirectoryBucket, LocalBlobStore


def test_get_existing_document(tmp_path):
    (tmp_path / "notes.md").write_text("hello\n\nworld", encoding="utf-8")
    assert DirectoryBucket(tmp_path).get("notes.md") == "hello\n\nworld"


def test_get_nested_document(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "a.txt").write_text("nested", encoding="utf-8")
    assert DirectoryBucket(tmp_path).get("sub/a.txt") == "nested"


def test_missing_document_returns_none(tmp_path):
    assert DirectoryBucket(tmp_path).get("absent.md") is None


def test_directory_is_not_a_document(tmp_path):
    (tmp_path / "sub").mkdir()
    assert DirectoryBucket(tmp_path).get("sub") is None


@pytest.mark.parametrize("name", ["../outside.md", "sub/../../outside.md", "/etc/passwd"])
def test_names_escaping_bucket_are_rejected(tmp_path, name):
    bucket_root = tmp_path / "bucket"
    bucket_root.mkdir()
    (tmp_path / "outside.md").write_text("secret", encoding="utf-8")

    with pytest.raises(ValidationError):
        DirectoryBucket(bucket_root).get(name)


def test_bucket_for_known_owner(tmp_path):
    blobs = LocalBlobStore({"dev": str(tmp_path)})
    bucket = blobs.bucket_for("dev")

    assert isinstance(bucket, DirectoryBucket)
    assert bucket.root == tmp_path


def test_bucket_for_unknown_owner_is_caller_fault(tmp_path):
    blobs = LocalBlobStore({"dev": str(tmp_path)})

    with pytest.raises(ConfigurationError, match="Unknown owner: eve") as exc:
        blobs.bucket_for("eve")

    assert exc.value.caller_fault is True
    assert exc.value.status_code == 400


def test_from_config_defaults():
    blobs = LocalBlobStore.from_config(BlobCfg())
    assert set(blobs.buckets) == {"dev", "flo"}
