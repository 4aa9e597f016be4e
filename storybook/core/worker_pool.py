"""
Bounded-concurrency fan-out for async work.

map_bounded() runs one coroutine per item with at most `concurrency` in
flight, keeps results in input order, reports each success as it lands, and
fails fast: the first error cancels every sibling and is re-raised.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# Type alias for completion callback: (completed, total)
CompletionCallback = Callable[[int, int], None]


async def map_bounded(
    func: Callable[[int, T], Awaitable[R]],
    items: Sequence[T],
    concurrency: int,
    on_complete: Optional[CompletionCallback] = None,
) -> list[R]:
    """
    Apply an async function to every item with bounded concurrency.

    Args:
        func: Coroutine function called as func(index, item)
        items: Inputs, in order
        concurrency: Maximum calls in flight (clamped to len(items))
        on_complete: Called as on_complete(completed, total) after each
            success; completed goes up by exactly one per call

    Returns:
        Results where result[i] is func(i, items[i])

    Raises:
        ValueError: If concurrency is less than 1
        Exception: The first error raised by func; remaining work is cancelled
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    total = len(items)
    if total == 0:
        return []

    results: list[Optional[R]] = [None] * total
    semaphore = asyncio.Semaphore(min(concurrency, total))
    completed = 0

    async def run_one(index: int, item: T) -> None:
        nonlocal completed
        async with semaphore:
            results[index] = await func(index, item)
        completed += 1
        if on_complete:
            on_complete(completed, total)

    tasks = [asyncio.create_task(run_one(i, item)) for i, item in enumerate(items)]

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        await _cancel_all(tasks)
        raise

    failed = [t for t in tasks if t in done and not t.cancelled() and t.exception() is not None]
    if failed:
        await _cancel_all(pending)
        if pending:
            logger.debug(f"Cancelled {len(pending)} in-flight tasks after failure")
        # Lowest index wins when several tasks failed in the same tick
        raise failed[0].exception()

    return results


async def _cancel_all(tasks) -> None:
    """Cancel tasks and wait until they have all finished unwinding."""
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
