# app/utils/fallback.py
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_fallback(
    primary: Callable[[], Awaitable[T]],
    fallback: Callable[[], Awaitable[T]],
    *,
    label: str,
) -> T:
    """
    Await primary(); if it raises, log the failure under `label` and return
    fallback() instead. Errors raised by the fallback propagate.
    """
    try:
        return await primary()
    except Exception as e:
        logger.error("%s failed, using fallback err=%s", label, e, exc_info=True)
        return await fallback()
