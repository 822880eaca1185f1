"""
Semantic memory for conversational agents.

Indexes text as embedded chunks, recalls it by similarity and captures
memory-worthy conversation turns automatically.
"""

from .config.settings import Settings, load_settings
from .errors import (
    MemoryServiceError,
    ValidationError,
    NotFoundError,
    UpstreamError,
    ConfigurationError,
)
from .memory.integrate import MemoryService, create_memory_service

__version__ = "1.0.0"

__all__ = [
    "Settings",
    "load_settings",
    "MemoryServiceError",
    "ValidationError",
    "NotFoundError",
    "UpstreamError",
    "ConfigurationError",
    "MemoryService",
    "create_memory_service",
]
