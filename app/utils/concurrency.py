# app/utils/concurrency.py
from __future__ import annotations
import asyncio
from typing import Awaitable, Callable, Iterable, List, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def bounded_gather(fn: Callable[[T], Awaitable[R]], items: Iterable[T], *, limit: int = 16) -> List[R]:
    """
    Run fn(item) for every item inside a task group, at most `limit` at a time.
    Results keep the input order. The first failing task cancels its siblings
    and its exception is re-raised as-is (not wrapped in an ExceptionGroup).
    Per-item soft failures must be handled inside fn.
    """
    sem = asyncio.Semaphore(max(1, limit))

    async def _run(item: T) -> R:
        async with sem:
            return await fn(item)

    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_run(item)) for item in items]
    except ExceptionGroup as eg:
        raise eg.exceptions[0] from eg
    return [t.result() for t in tasks]
