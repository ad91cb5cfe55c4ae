"""
Timeout Guard - Race one provider attempt against a deadline.

The attempt is wrapped in a task and awaited with asyncio.wait_for, which
owns the deadline timer and cancels it on every outcome. When the deadline
wins, the attempt is cancelled so its late completion has no effect, and
a ProviderTimeoutError is raised in its place.

Retries are not handled here; the orchestrator decides what happens next.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from forgepad.core.errors import ProviderTimeoutError
from forgepad.registry.providers import ProviderKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_timeout(
    operation: Awaitable[T],
    timeout_ms: int,
    provider: ProviderKind,
) -> T:
    """
    Await an operation, failing with kind=timeout once timeout_ms elapses.

    Args:
        operation: Coroutine or future performing the attempt.
        timeout_ms: Deadline in milliseconds.
        provider: Provider named in the timeout message.

    Returns:
        The operation's own result.

    Raises:
        ProviderTimeoutError: The deadline passed first.
        Exception: Whatever the operation raised, unchanged.
    """
    task = asyncio.ensure_future(operation)
    try:
        return await asyncio.wait_for(task, timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
        if not task.cancelled():
            # The operation raised TimeoutError itself; keep its own failure.
            error = task.exception()
            if error is not None:
                raise
        logger.warning(f"{provider.value} attempt exceeded {timeout_ms}ms")
        raise ProviderTimeoutError(provider, timeout_ms) from None
