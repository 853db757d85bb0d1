# moviecatalog/core/control.py

import asyncio
from typing import Awaitable, Optional, TypeVar

from moviecatalog.core.errors import OperationCancelled

T = TypeVar("T")


async def run_with_deadline(aw: Awaitable[T], timeout: Optional[float]) -> T:
    """
    Await `aw`, cancelling it once `timeout` seconds have elapsed.

    Cancellation unwinds the awaited work first, so any `async with`
    transaction rolls back and its pooled connection is released before
    OperationCancelled reaches the caller. A timeout of None waits forever.
    """
    if timeout is None:
        return await aw
    try:
        return await asyncio.wait_for(aw, timeout)
    except asyncio.TimeoutError as exc:
        raise OperationCancelled(f"operation exceeded its {timeout:g}s deadline") from exc
