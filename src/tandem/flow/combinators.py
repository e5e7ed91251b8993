# src/tandem/flow/combinators.py
"""Execution disciplines and derived combinators.

``series``, ``waterfall``, ``reduce`` and ``each`` are strictly sequential.
``parallel``, ``all_settled``, ``props`` and ``any`` start everything at
once. ``queue`` and ``map`` go through :class:`BoundedScheduler`.

Nothing here cancels work that is already running: when a combinator
fails fast, the remaining in-flight awaitables keep running and their
outcomes are ignored.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from tandem.config import config
from tandem.core.logging import log_calls
from tandem.core.scheduler import SchedulerMode, Task, invoke, run
from tandem.errors import AggregateFailure
from tandem.flow.adapters import future_callback
from tandem.models import Settlement

T = TypeVar("T")
R = TypeVar("R")
K = TypeVar("K")

Continuation = Callable[[tuple[Any, ...], Callable[..., None]], Any]


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _default_mode() -> SchedulerMode:
    return SchedulerMode(config.scheduler.mode)


async def _settle(awaitable: Awaitable[Any]) -> Settlement:
    try:
        value = await awaitable
    except Exception as exc:
        return Settlement.rejected(exc)
    return Settlement.fulfilled(value)


@log_calls
async def series(tasks: Iterable[Task]) -> list[Any]:
    """Run tasks one after another; results are in input order."""
    results: list[Any] = []
    for task in tasks:
        results.append(await invoke(task))
    return results


@log_calls
async def parallel(tasks: Iterable[Task]) -> list[Any]:
    """Start every task at once; the first failure is raised.

    Results are in input order regardless of completion order.
    """
    return list(await asyncio.gather(*(invoke(task) for task in tasks)))


async def _run_continuation(task: Continuation, previous: tuple[Any, ...]) -> Any:
    outcome: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
    returned = task(previous, future_callback(outcome))
    if inspect.isawaitable(returned):
        value = await returned
        # An async continuation may return its result instead of reporting it.
        if not outcome.done():
            outcome.set_result(value)
    return await outcome


@log_calls
async def waterfall(tasks: Iterable[Continuation]) -> list[Any]:
    """Run continuation-style tasks in order, threading earlier results.

    Each task is called as ``task(previous_results, callback)`` where
    ``previous_results`` is a tuple of everything produced so far and
    ``callback(error=None, result=None)`` reports the outcome. A non-None
    ``error`` aborts the chain.
    """
    results: list[Any] = []
    for task in tasks:
        results.append(await _run_continuation(task, tuple(results)))
    return results


@log_calls
async def queue(
    tasks: Sequence[Task],
    concurrency: int | None = None,
    *,
    priorities: Sequence[float] | None = None,
    mode: SchedulerMode | None = None,
) -> list[Any]:
    """Run tasks through the bounded scheduler; results in completion order."""
    if concurrency is None:
        concurrency = config.scheduler.default_concurrency
    return await run(
        tasks,
        concurrency,
        priorities=priorities,
        mode=mode or _default_mode(),
    )


async def _indexed(index: int, mapper: Callable[[T], Any], item: T) -> tuple[int, Any]:
    return index, await _resolve(mapper(item))


@log_calls
async def map(
    items: Iterable[T],
    mapper: Callable[[T], Awaitable[R] | R],
    concurrency: int | None = None,
    *,
    mode: SchedulerMode | None = None,
) -> list[R]:
    """Apply ``mapper`` to every item with bounded concurrency.

    The scheduler hands back results in completion order; they are put back
    into input order before returning.
    """
    items = list(items)
    tasks = [
        functools.partial(_indexed, index, mapper, item)
        for index, item in enumerate(items)
    ]
    completed = await queue(tasks, concurrency, mode=mode)
    results: list[Any] = [None] * len(items)
    for index, value in completed:
        results[index] = value
    return results


@log_calls
async def reduce(
    items: Iterable[T],
    reducer: Callable[[R, T], Awaitable[R] | R],
    initial: R,
) -> R:
    """Left fold with one reduction step in flight at a time."""
    accumulator = initial
    for item in items:
        accumulator = await _resolve(reducer(accumulator, item))
    return accumulator


@log_calls
async def each(items: Iterable[T], iterator: Callable[[T], Any]) -> None:
    """Call ``iterator`` on every item in order, stopping at the first failure."""
    for item in items:
        await _resolve(iterator(item))


@log_calls
async def any(awaitables: Iterable[Awaitable[T]]) -> T:
    """Return the first fulfilled value.

    Raises:
        AggregateFailure: If every awaitable fails (or none were given),
            carrying the failures in the order they happened.
    """
    # Settling each input keeps late failures from going unretrieved once a
    # winner has been returned.
    futures = [asyncio.ensure_future(_settle(aw)) for aw in awaitables]
    errors: list[BaseException] = []
    for next_done in asyncio.as_completed(futures):
        settlement = await next_done
        if settlement.is_fulfilled:
            return settlement.value
        errors.append(settlement.reason)
    raise AggregateFailure(errors)


@log_calls
async def all_settled(awaitables: Iterable[Awaitable[Any]]) -> list[Settlement]:
    """Wait for every awaitable and describe each outcome, in input order."""
    return list(await asyncio.gather(*(_settle(aw) for aw in awaitables)))


@log_calls
async def props(mapping: Mapping[K, Awaitable[Any]]) -> dict[K, Any]:
    """Resolve the values of ``mapping`` concurrently, keeping its keys.

    Values that are not awaitable are passed through as they are.
    """
    keys = list(mapping.keys())
    values = await asyncio.gather(*(_resolve(mapping[key]) for key in keys))
    return dict(zip(keys, values))


__all__ = [
    "series",
    "parallel",
    "waterfall",
    "queue",
    "map",
    "reduce",
    "each",
    "any",
    "all_settled",
    "props",
]
