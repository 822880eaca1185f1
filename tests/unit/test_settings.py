"""
Unit tests for settings loading.
"""
import json

import pytest
from pydantic import ValidationError

from semantic_memory.config.settings import (
    CONFIG_ENV_VAR,
    LOG_LEVEL_ENV_VAR,
    Settings,
    StoreCfg,
    load_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.delenv(LOG_LEVEL_ENV_VAR, raising=False)


def test_defaults():
    settings = load_settings()

    assert settings.embedding.dimensions == 384
    assert settings.store.index_name == "agent-memories"
    assert settings.store.batch_size == 100
    assert settings.chunking.max_chars == 500
    assert settings.retrieval.default_top_k == 5
    assert settings.retrieval.default_min_score == 0.7
    assert settings.capture.dedup_threshold == 0.95
    assert settings.capture.source == "auto-capture"
    assert settings.hooks.recall_limit == 3
    assert settings.hooks.min_recall_score == 0.5
    assert settings.hooks.default_owner == "flo"


def test_load_from_explicit_path(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "service_name": "memory-test",
        "embedding": {"provider": "ollama", "model_name": "nomic-embed-text", "dimensions": 768},
        "store": {"backend": "memory"},
    }))

    settings = load_settings(str(path))

    assert settings.service_name == "memory-test"
    assert settings.embedding.provider == "ollama"
    assert settings.embedding.dimensions == 768
    assert settings.store.backend == "memory"
    assert settings.store.batch_size == 100


def test_load_from_env(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"retrieval": {"default_min_score": 0.5}}))
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert load_settings().retrieval.default_min_score == 0.5


def test_log_level_override(monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "debug")
    assert load_settings().log_level == "DEBUG"


def test_settings_are_frozen():
    settings = Settings()
    with pytest.raises(ValidationError):
        settings.log_level = "DEBUG"


def test_batch_size_limited_to_100():
    with pytest.raises(ValidationError):
        StoreCfg(batch_size=101)


def test_unknown_provider_rejected(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"embedding": {"provider": "openai"}}))

    with pytest.raises(ValidationError):
        load_settings(str(path))
