"""Bounded awaits for collaborator calls.

Stores, grant validators and lookups must never hang a request. Every such
await goes through ``run_bounded`` which turns a timeout into
``ServiceUnavailableError``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from oidcore.errors import ServiceUnavailableError
from oidcore.observability import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def run_bounded(awaitable: Awaitable[T], timeout: float | None, operation: str) -> T:
    """Await ``awaitable`` for at most ``timeout`` seconds.

    Args:
        awaitable: The collaborator call.
        timeout: Budget in seconds; None disables the bound.
        operation: Name used in logs and in the raised error.

    Returns:
        The awaited result.

    Raises:
        ServiceUnavailableError: If the budget is exceeded.
    """
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("oidcore.timeout", operation=operation, timeout_seconds=timeout)
        raise ServiceUnavailableError(operation, timeout_seconds=timeout) from exc
