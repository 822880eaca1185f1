"""
Telemetry and logging infrastructure for the memory service.
"""

import logging
from typing import Any, Dict, Optional

import structlog


# Structured events render to JSON and are emitted through stdlib logging
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger("semantic_memory.telemetry")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure stdlib logging for the service process.

    Structured step events arrive already rendered as JSON, so the handler
    emits the message unchanged.

    Args:
        level: Root log level name (e.g. "INFO", "DEBUG")
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
    )


def log_step(
    step_name: str,
    ms: float,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log a pipeline step execution with timing.

    Args:
        step_name: Name of the step (e.g., "embed", "upsert", "query")
        ms: Duration in milliseconds
        extra: Optional extra fields to log
    """
    logger.info(
        "step_executed",
        step=step_name,
        duration_ms=round(ms, 3),
        **(extra or {}),
    )
