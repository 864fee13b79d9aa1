"""Deadline racing for backend calls.

The backend call runs as its own task raced against a timer. Whichever
finishes first decides the outcome. On expiry the call is detached rather
than cancelled: it keeps running and its result is discarded.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from shared.config import get_settings
from shared.errors import RequestTimeoutError
from shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Strong references to abandoned calls until they settle
_detached: set[asyncio.Future] = set()


def _discard_outcome(task: asyncio.Future) -> None:
    """Consume the late outcome of an abandoned call."""
    _detached.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug("Abandoned call failed after timeout", error=str(error))


async def with_timeout(
    operation: Awaitable[T],
    timeout_ms: Optional[int] = None
) -> T:
    """
    Await an operation, failing with RequestTimeoutError past the deadline.

    Args:
        operation: Awaitable backend call
        timeout_ms: Deadline in milliseconds; defaults to the configured
            request timeout

    Returns:
        The operation's result if it finishes first

    Raises:
        RequestTimeoutError: If the deadline fires first
    """
    if timeout_ms is None:
        timeout_ms = get_settings().request_timeout_ms

    task = asyncio.ensure_future(operation)

    # asyncio.wait cancels its internal timer as soon as the task finishes
    done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)

    if task in done:
        return task.result()

    _detached.add(task)
    task.add_done_callback(_discard_outcome)

    logger.warning("Request timed out", timeout_ms=timeout_ms)
    raise RequestTimeoutError("Request timeout", details={"timeout_ms": timeout_ms})


def pending_detached() -> int:
    """Number of abandoned calls still running."""
    return len(_detached)
