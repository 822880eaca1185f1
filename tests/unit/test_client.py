"""
Unit tests for semantic_memory/client.py

The requests session is mocked; no server is started.
"""
from unittest.mock import MagicMock

import pytest
import requests

from semantic_memory.client import MemoryClient
from semantic_memory.errors import UpstreamError
from semantic_memory.memory.schemas import CaptureResult, FileIndexResult, IndexResult, QueryResult


def response(status: int = 200, body=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body if body is not None else {}
    resp.text = ""
    return resp


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return MemoryClient("http://memory.local/", timeout_s=2.5, session=session)


def test_query_sends_camel_case_and_parses(client, session):
    session.request.return_value = response(body={
        "query": "tabs",
        "count": 1,
        "matches": [{"id": "dev:manual:ab", "score": 0.91, "metadata": {"category": "preference", "raw_text": "I prefer tabs"}}],
    })

    result = client.query("tabs", owner="dev", top_k=3, min_score=0.5)

    session.request.assert_called_once_with(
        "POST",
        "http://memory.local/query",
        json={"query": "tabs", "owner": "dev", "topK": 3, "minScore": 0.5},
        timeout=2.5,
    )
    assert isinstance(result, QueryResult)
    assert result.matches[0].category == "preference"


def test_optional_fields_are_omitted(client, session):
    session.request.return_value = response(body={"indexed": 1, "ids": ["dev:manual:ab"]})

    result = client.index("dev", "Some fact.")

    assert session.request.call_args.kwargs["json"] == {"owner": "dev", "text": "Some fact."}
    assert isinstance(result, IndexResult)
    assert result.ids == ["dev:manual:ab"]


def test_capture_and_index_file(client, session):
    session.request.return_value = response(body={"captured": False, "reason": "duplicate", "id": "dev:auto-capture:ab"})
    assert client.capture("dev", "I prefer tabs.") == CaptureResult(
        captured=False, reason="duplicate", id="dev:auto-capture:ab",
    )

    session.request.return_value = response(body={"file": "notes.md", "chunks": 2, "indexed": 2})
    result = client.index_file("dev", "notes.md")
    assert isinstance(result, FileIndexResult)
    assert session.request.call_args.args[1] == "http://memory.local/index-file"


def test_health_and_stats(client, session):
    session.request.return_value = response(body={"status": "ok", "service": "semantic-memory", "timestamp": "t"})
    assert client.health()["status"] == "ok"
    assert session.request.call_args.args == ("GET", "http://memory.local/health")

    session.request.return_value = response(body={"index": "agent-memories"})
    assert client.stats()["index"] == "agent-memories"


def test_http_error_raises_upstream_error(client, session):
    session.request.return_value = response(404, {"error": "File not found: x.md"})

    with pytest.raises(UpstreamError) as exc:
        client.index_file("dev", "x.md")

    assert exc.value.message == "index_file failed: 404"
    assert exc.value.details == "File not found: x.md"


def test_timeout_raises_upstream_error(client, session):
    session.request.side_effect = requests.exceptions.Timeout()

    with pytest.raises(UpstreamError, match="timed out"):
        client.query("tabs")


def test_connection_error_raises_upstream_error(client, session):
    session.request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(UpstreamError) as exc:
        client.stats()
    assert exc.value.message == "stats failed"
