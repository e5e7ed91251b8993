# src/tandem/flow/adapters.py
"""Adapters between callback-style and async functions.

Callback-style functions take a Node-style ``callback(error, result)`` as
their last positional argument and report through it exactly once.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Awaitable, Callable, Generator
from dataclasses import dataclass
from typing import Any

from tandem.errors import OperationCancelledError, as_exception
from tandem.models import Settlement

Callback = Callable[..., None]


@dataclass
class CancellationToken:
    """Cooperative cancellation flag.

    Nothing is interrupted when the token is cancelled; code holding the
    token decides when to look at it.
    """

    is_cancelled: bool = False

    def cancel(self) -> None:
        self.is_cancelled = True


def future_callback(
    future: asyncio.Future[Any], token: CancellationToken | None = None
) -> Callback:
    """Return a Node-style callback that settles ``future`` once."""
    loop = future.get_loop()

    def settle(error: Any, result: Any) -> None:
        if future.done():
            return
        if token is not None and token.is_cancelled:
            future.set_exception(OperationCancelledError())
        elif error is not None:
            future.set_exception(as_exception(error))
        else:
            future.set_result(result)

    def callback(error: Any = None, result: Any = None) -> None:
        # The callee may report from a worker thread.
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            settle(error, result)
        else:
            loop.call_soon_threadsafe(settle, error, result)

    return callback


def callback_to_async(
    func: Callable[..., Any],
) -> Callable[..., Awaitable[Any]]:
    """Turn ``func(*args, callback)`` into ``await wrapper(*args)``.

    Each call invokes ``func`` afresh; results are not cached.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any) -> Any:
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        func(*args, future_callback(future))
        return await future

    return wrapper


def async_to_callback(
    func: Callable[..., Awaitable[Any]],
) -> Callable[..., asyncio.Task[Any]]:
    """Turn ``await func(*args)`` into ``wrapper(*args, callback)``.

    Must be called with an event loop running. The returned asyncio Task
    can be awaited or ignored; ``callback`` is invoked either way.
    """

    @functools.wraps(func)
    def wrapper(*args: Any) -> asyncio.Task[Any]:
        if not args:
            raise TypeError("callback argument is required")
        *call_args, callback = args

        async def runner() -> Any:
            try:
                result = await func(*call_args)
            except Exception as exc:
                callback(exc, None)
                return None
            callback(None, result)
            return result

        return asyncio.get_running_loop().create_task(runner())

    return wrapper


class CancellableCall:
    """Awaitable result of a cancellable callback call."""

    def __init__(self, future: asyncio.Future[Any], token: CancellationToken) -> None:
        self._future = future
        self.token = token

    def cancel(self) -> None:
        """Request cancellation; takes effect when the callback fires."""
        self.token.cancel()

    def done(self) -> bool:
        return self._future.done()

    def __await__(self) -> Generator[Any, None, Any]:
        return self._future.__await__()


def callback_to_async_with_cancellation(
    func: Callable[..., Any],
) -> Callable[..., CancellableCall]:
    """Like :func:`callback_to_async`, with a per-call cancellation token.

    If the call is cancelled before ``func`` reports, awaiting it raises
    :class:`OperationCancelledError` whatever ``func`` reported.
    """

    @functools.wraps(func)
    def wrapper(*args: Any) -> CancellableCall:
        token = CancellationToken()
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        func(*args, future_callback(future, token))
        return CancellableCall(future, token)

    return wrapper


def reflect(
    func: Callable[..., Awaitable[Any]],
) -> Callable[..., Awaitable[Settlement]]:
    """Wrap ``func`` so that it returns a :class:`Settlement` instead of raising."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Settlement:
        try:
            value = await func(*args, **kwargs)
        except Exception as exc:
            return Settlement.rejected(exc)
        return Settlement.fulfilled(value)

    return wrapper


__all__ = [
    "CancellationToken",
    "CancellableCall",
    "future_callback",
    "callback_to_async",
    "async_to_callback",
    "callback_to_async_with_cancellation",
    "reflect",
]
