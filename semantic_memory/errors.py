"""
Error types for the memory service.

Each error carries the HTTP status it maps to, so the API layer can render
every failure as ``{"error": ..., "details": ...}`` without a lookup table.
"""

from typing import Any, Dict, Optional


class MemoryServiceError(Exception):
    """Base class for all errors raised by the memory pipelines."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        """Render as the JSON error envelope."""
        payload: Dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(MemoryServiceError):
    """Missing or malformed required request fields (client fault)."""

    status_code = 400


class NotFoundError(MemoryServiceError):
    """A referenced external resource, e.g. a source file, is absent."""

    status_code = 404


class UpstreamError(MemoryServiceError):
    """Embedding, vector store or blob call failed or timed out."""

    status_code = 500


class ConfigurationError(MemoryServiceError):
    """
    Deployment-level misconfiguration.

    Dimensionality mismatches are the deployer's fault (500); an owner with no
    bucket mapping is the caller's fault (400).
    """

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        caller_fault: bool = False,
    ):
        super().__init__(message, details)
        self.caller_fault = caller_fault
        self.status_code = 400 if caller_fault else 500
