"""
Bounded calls to external collaborators.

Every embedding, vector store and blob call goes through ``call_upstream`` so
that nothing in the pipelines blocks indefinitely and every failure surfaces
as a typed error.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable, TypeVar

from ..errors import MemoryServiceError, UpstreamError
from ..telemetry import log_step


logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_upstream(
    fn: Callable[..., T],
    *args: Any,
    timeout_s: float,
    operation: str,
    **kwargs: Any,
) -> T:
    """
    Run ``fn(*args, **kwargs)`` on a worker thread, bounded by a timeout.

    No retries are attempted; the caller decides what to do with the failure.

    Args:
        fn: Callable to invoke
        timeout_s: Seconds to wait for a result
        operation: Name used in log events and error messages

    Returns:
        Whatever ``fn`` returns

    Raises:
        UpstreamError: On timeout or on any non-service exception from ``fn``
        MemoryServiceError: Subclasses raised by ``fn`` pass through unchanged
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"upstream-{operation}")
    start = time.perf_counter()
    try:
        future = executor.submit(fn, *args, **kwargs)
        result = future.result(timeout=timeout_s)
    except FutureTimeout:
        future.cancel()
        logger.warning("%s timed out after %ss", operation, timeout_s)
        raise UpstreamError(f"{operation} timed out after {timeout_s}s")
    except MemoryServiceError:
        raise
    except Exception as e:
        logger.warning("%s failed: %s", operation, e)
        raise UpstreamError(f"{operation} failed", details=str(e)) from e
    finally:
        # Do not wait for a hung worker; it is abandoned, not joined
        executor.shutdown(wait=False)

    log_step(operation, (time.perf_counter() - start) * 1000)
    return result
