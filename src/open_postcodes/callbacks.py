"""Adapter that lets every client operation be awaited or given a callback."""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Callback = Callable[[BaseException | None, Any], Any]


async def settle(operation: Awaitable[T], callback: Callback | None = None) -> T | None:
    """Await ``operation`` and report the outcome.

    Without a callback the result is returned and errors are raised. With a
    callback it is called exactly once, as ``callback(None, result)`` or
    ``callback(error, None)``, and the error is not raised again. Callbacks
    may be plain functions or coroutine functions.
    """
    if callback is None:
        return await operation

    try:
        result = await operation
    except Exception as exc:
        logger.debug("Reporting %s to callback", type(exc).__name__)
        await _invoke(callback, exc, None)
        return None

    await _invoke(callback, None, result)
    return result


async def _invoke(callback: Callback, error: BaseException | None, result: Any) -> None:
    outcome = callback(error, result)
    if inspect.isawaitable(outcome):
        await outcome
