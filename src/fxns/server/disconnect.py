from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Optional

from fastapi import Request

logger = logging.getLogger("fxns.server")

CLIENT_CLOSED_REQUEST = 499


async def run_until_disconnect(request: Request, work: Awaitable[Any], *, poll_interval: float = 0.25) -> Optional[Any]:
    """Await ``work`` but cancel it if the client goes away first.

    Returns ``None`` when the run was cancelled because of a disconnect.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("client disconnected from %s; cancelling run", request.url.path)
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                return None
    finally:
        if not task.done():
            task.cancel()
