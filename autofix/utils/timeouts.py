"""
Timeouts
========
Race an awaitable against a timer that resolves to a sentinel.

A timed-out language-model call is an ordinary, expected outcome for the fix
engine, so it is represented by the TIMED_OUT marker value instead of an
exception. Callers compare with ``is TIMED_OUT``.
"""
import asyncio
import logging
from typing import Any, Awaitable, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TimedOut:
    """Marker type for "the operation did not finish in time"."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "TIMED_OUT"


TIMED_OUT = TimedOut()


async def race_with_timeout(awaitable: Awaitable[T], seconds: float) -> Union[T, TimedOut]:
    """
    Await ``awaitable`` for at most ``seconds``.

    Parameters
    ----------
    awaitable : Awaitable
        Coroutine or future to run.
    seconds : float
        Timer length. Non-positive values time out immediately.

    Returns
    -------
    Any | TimedOut
        The awaitable's result, or TIMED_OUT if the timer fired first.
        Exceptions raised by the awaitable propagate unchanged.
    """
    task: asyncio.Future[Any] = asyncio.ensure_future(awaitable)
    if seconds <= 0:
        task.cancel()
        return TIMED_OUT

    done, _ = await asyncio.wait({task}, timeout=seconds)
    if task in done:
        return task.result()

    # Loser of the race: its result, if it ever arrives, is discarded
    task.cancel()
    logger.debug("Operation timed out after %.1fs", seconds)
    return TIMED_OUT
