"""
HTTP client for a remote memory service.

Mirrors MemoryService's surface so agents can swap the in-process service for
a deployed one without touching hook or tool code.
"""

from typing import Any, Dict, Optional
import logging

import requests

from .errors import UpstreamError
from .memory.schemas import CaptureResult, FileIndexResult, IndexResult, QueryResult


logger = logging.getLogger(__name__)


class MemoryClient:
    """
    Thin requests-based client for the memory HTTP API.

    Every failure, transport or HTTP, is raised as UpstreamError.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout_s: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: Service root URL
            timeout_s: Per-request timeout in seconds
            session: Optional requests session (default: new session)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def _request(self, op: str, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout_s)
        except requests.exceptions.Timeout:
            raise UpstreamError(f"{op} timed out after {self.timeout_s}s")
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"{op} failed", details=str(e))

        if not 200 <= response.status_code < 300:
            try:
                body = response.json()
                details = body.get("details") or body.get("error")
            except ValueError:
                details = response.text or None
            logger.warning("%s %s -> %d", method, path, response.status_code)
            raise UpstreamError(f"{op} failed: {response.status_code}", details=details)

        try:
            return response.json()
        except ValueError:
            raise UpstreamError(f"{op} failed", details="response is not JSON")

    @staticmethod
    def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in payload.items() if v is not None}

    def query(
        self,
        query: str,
        owner: Optional[str] = None,
        category: Optional[str] = None,
        top_k: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> QueryResult:
        payload = self._compact({
            "query": query,
            "owner": owner,
            "category": category,
            "topK": top_k,
            "minScore": min_score,
        })
        return QueryResult.model_validate(self._request("query", "POST", "/query", payload))

    def index(
        self,
        owner: str,
        text: str,
        category: Optional[str] = None,
        source: Optional[str] = None,
    ) -> IndexResult:
        payload = self._compact({"owner": owner, "text": text, "category": category, "source": source})
        return IndexResult.model_validate(self._request("index", "POST", "/index", payload))

    def capture(
        self,
        owner: str,
        content: str,
        classification: Optional[str] = None,
    ) -> CaptureResult:
        payload = self._compact({"owner": owner, "content": content, "classification": classification})
        return CaptureResult.model_validate(self._request("capture", "POST", "/capture", payload))

    def index_file(self, owner: str, file: str) -> FileIndexResult:
        payload = {"owner": owner, "file": file}
        return FileIndexResult.model_validate(self._request("index_file", "POST", "/index-file", payload))

    def stats(self) -> Dict[str, Any]:
        return self._request("stats", "GET", "/stats")

    def health(self) -> Dict[str, Any]:
        return self._request("health", "GET", "/health")
