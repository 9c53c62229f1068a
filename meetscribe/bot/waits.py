"""
Racing waits: run several awaitables, keep the first to finish, discard the rest.

Used for every state transition; e.g. "waiting banner" vs "in-call control",
or "meeting ended" vs the session's shutdown event.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Optional


async def first_settled(
    contenders: dict[str, Awaitable[Any]],
    timeout: Optional[float] = None,
) -> tuple[str, Any]:
    """
    Return (label, result) of the first contender to finish.

    If that contender raised, its exception propagates. Losers are cancelled.
    Raises asyncio.TimeoutError if nothing finishes within `timeout` seconds
    (None = wait forever). Ties in the same loop iteration go to the earliest
    label in `contenders`.
    """
    tasks = {asyncio.ensure_future(aw): label for label, aw in contenders.items()}
    try:
        done, _ = await asyncio.wait(tasks, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        if not done:
            raise asyncio.TimeoutError()
        winner = next(task for task in tasks if task in done)
        return tasks[winner], winner.result()
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        # collect losers so their cancellation/exceptions are not reported as unretrieved
        await asyncio.gather(*tasks, return_exceptions=True)


async def wait_visible(locator: Any, timeout_ms: float = 0) -> Any:
    """Wait until a Playwright locator is visible. timeout_ms=0 waits forever."""
    await locator.wait_for(state="visible", timeout=timeout_ms)
    return locator
