"""site_crawl.utils: cancellation-aware suspension points shared by the crawler."""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from site_crawl.crawler.errors import CrawlCancelled

__all__: Sequence[str] = (
    "check_cancelled",
    "sleep_or_cancel",
    "run_cancellable",
    "jittered_delay",
)

T = TypeVar("T")


def check_cancelled(cancel: Optional[asyncio.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise CrawlCancelled("crawl cancelled")


async def sleep_or_cancel(delay: float, cancel: Optional[asyncio.Event] = None) -> None:
    """Sleep *delay* seconds; raise :class:`CrawlCancelled` as soon as *cancel* is set."""
    check_cancelled(cancel)
    if delay <= 0:
        return
    if cancel is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return
    raise CrawlCancelled("crawl cancelled")


async def run_cancellable(aw: Awaitable[T], cancel: Optional[asyncio.Event] = None) -> T:
    """Await *aw* unless *cancel* fires first, in which case *aw* is cancelled."""
    check_cancelled(cancel)
    if cancel is None:
        return await aw
    task = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
    if task in done:
        return task.result()
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    raise CrawlCancelled("crawl cancelled")


def jittered_delay(delay: float, rand: Callable[[], float] = random.random) -> float:
    """Politeness delay plus up to 25% random jitter."""
    if delay <= 0:
        return 0.0
    return delay + rand() * delay / 4
