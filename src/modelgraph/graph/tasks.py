"""Fan-out helpers for concurrent store calls.

A save or load either completes as a whole or fails as a whole: when one
call fails, its siblings are cancelled and drained before the error
reaches the caller, so no write lands after the failure is reported.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from collections.abc import Iterable
from typing import TypeVar

T = TypeVar("T")


async def cancel_all(futures: Iterable[asyncio.Future]) -> None:
    """Cancel whatever is still running and retrieve every outcome."""
    futures = list(futures)
    for future in futures:
        future.cancel()
    await asyncio.gather(*futures, return_exceptions=True)


async def gather_or_cancel(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Like ``asyncio.gather``, but the first failure cancels the rest."""
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        await cancel_all(tasks)
        raise
