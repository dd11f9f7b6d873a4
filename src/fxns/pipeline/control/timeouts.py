from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from ...errors import StepExecutionError

T = TypeVar("T")

__all__ = ["run_with_timeout"]


async def run_with_timeout(awaitable: Awaitable[T], timeout: float, *, step_id: str, what: str) -> T:
    """Await ``awaitable`` for at most ``timeout`` seconds.

    On expiry the inner call is cancelled and a ``StepExecutionError`` with
    ``cause="timeout"`` is raised. Cancellation of the caller propagates as-is.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise StepExecutionError(
            f"{what} timed out after {timeout:g} seconds.",
            step_id=step_id,
            cause="timeout",
        ) from exc
