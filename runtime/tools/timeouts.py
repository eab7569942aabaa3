"""Per-handler time limits.

The dispatch layer has no cancellation primitive; a handler that wants
bounded execution wraps its own work with ``with_timeout``.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from contracts.config import LimitsConfig
from contracts.errors import ToolTimeoutError

T = TypeVar("T")


def normalize_timeout(
    timeout: float | None,
    default: float = 120,
    maximum: float = 600,
) -> float:
    """Return *timeout* (seconds) clamped to ``[1, maximum]``, or *default*."""
    seconds = default if timeout is None else timeout
    return float(min(max(seconds, 1), maximum))


def limit_for(timeout: float | None, limits: LimitsConfig) -> float:
    return normalize_timeout(timeout, limits.default_time_limit, limits.max_time_limit)


async def with_timeout(awaitable: Awaitable[T], seconds: float, message: str | None = None) -> T:
    """Await *awaitable*, raising ``ToolTimeoutError`` after *seconds*."""
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        raise ToolTimeoutError(message or f"Operation timed out after {seconds:g}s") from exc
