# src/tandem/core/scheduler.py
"""Bounded-concurrency task scheduler.

A :class:`BoundedScheduler` runs a fixed list of tasks with at most
``ceiling`` of them in flight, collecting results in completion order and
settling exactly once. Bookkeeping happens synchronously inside asyncio
done-callbacks, so no two scheduling steps ever interleave and no locking
is needed.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from tandem.core.admission import PriorityAdmissionList
from tandem.core.logging import get_logger
from tandem.errors import SchedulerError

logger = get_logger(__name__)

Task = Callable[[], Any]


class SchedulerState(Enum):
    """Lifecycle of a scheduler instance; RESOLVED and REJECTED are final."""

    IDLE = "idle"
    RUNNING = "running"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class SchedulerMode(Enum):
    """What the scheduler does when a task fails."""

    # Reject at once; in-flight siblings are left to finish unobserved.
    FAIL_FAST = "fail_fast"
    # Stop admitting, wait for in-flight siblings, then reject.
    DRAIN = "drain"


async def invoke(task: Task) -> Any:
    """Call a zero-argument task and await its result if it is awaitable."""
    result = task()
    if inspect.isawaitable(result):
        result = await result
    return result


class BoundedScheduler:
    """Run tasks with a concurrency ceiling and a single terminal outcome.

    Args:
        tasks: Zero-argument callables returning awaitables.
        ceiling: Maximum number of tasks in flight, at least 1.
        priorities: Optional admission priority per task; higher runs first,
            equal priorities run in input order.
        mode: Failure policy, see :class:`SchedulerMode`.

    A scheduler is single-use: construct one per batch and await
    :meth:`run` once.
    """

    def __init__(
        self,
        tasks: Sequence[Task],
        ceiling: int,
        *,
        priorities: Sequence[float] | None = None,
        mode: SchedulerMode = SchedulerMode.FAIL_FAST,
    ) -> None:
        if isinstance(ceiling, bool) or not isinstance(ceiling, int) or ceiling < 1:
            raise ValueError(f"ceiling must be an integer >= 1, got {ceiling!r}")
        tasks = list(tasks)
        if priorities is not None and len(priorities) != len(tasks):
            raise ValueError(
                f"got {len(priorities)} priorities for {len(tasks)} tasks"
            )

        self._ceiling = ceiling
        self._mode = SchedulerMode(mode)
        self._admission = PriorityAdmissionList()
        for index, task in enumerate(tasks):
            self._admission.enqueue(task, priorities[index] if priorities else 0)

        self._total = len(tasks)
        self._active = 0
        self._peak_active = 0
        self._results: list[Any] = []
        self._first_error: BaseException | None = None
        self._in_flight: set[asyncio.Future[Any]] = set()
        self._outcome: asyncio.Future[list[Any]] | None = None
        self._state = SchedulerState.IDLE

    @property
    def ceiling(self) -> int:
        return self._ceiling

    @property
    def mode(self) -> SchedulerMode:
        return self._mode

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def active_count(self) -> int:
        """Number of tasks started and not yet settled."""
        return self._active

    @property
    def peak_active(self) -> int:
        """Highest ``active_count`` observed so far."""
        return self._peak_active

    @property
    def queued_count(self) -> int:
        """Number of tasks still waiting for admission."""
        return len(self._admission)

    @property
    def completed_count(self) -> int:
        return len(self._results)

    async def run(self) -> list[Any]:
        """Drive every task to completion.

        Returns:
            Task results in the order the tasks completed.

        Raises:
            SchedulerError: If this scheduler has already been started.
            Exception: The first exception raised by any task, unchanged.
        """
        if self._state is not SchedulerState.IDLE:
            raise SchedulerError(f"scheduler already {self._state.value}")

        self._outcome = asyncio.get_running_loop().create_future()
        self._state = SchedulerState.RUNNING
        logger.debug(
            "Scheduler start | tasks=%d ceiling=%d mode=%s",
            self._total,
            self._ceiling,
            self._mode.value,
        )
        self._schedule()
        try:
            return await self._outcome
        except asyncio.CancelledError:
            # The caller gave up; nothing more will be admitted.
            if self._state is SchedulerState.RUNNING:
                self._state = SchedulerState.REJECTED
                logger.debug(
                    "Scheduler cancelled | in_flight=%d queued=%d",
                    self._active,
                    len(self._admission),
                )
            raise

    def _schedule(self) -> None:
        """Admit tasks up to the ceiling, or settle if nothing is left."""
        if self._terminal():
            return

        if self._first_error is not None:
            # Draining after a failure: no new admissions.
            if self._active == 0:
                self._reject(self._first_error)
            return

        while self._active < self._ceiling and not self._admission.is_empty():
            task = self._admission.dequeue_highest()
            self._active += 1
            self._peak_active = max(self._peak_active, self._active)
            future = asyncio.ensure_future(invoke(task))
            self._in_flight.add(future)
            future.add_done_callback(self._on_settled)
            logger.debug(
                "Admitted task | active=%d queued=%d",
                self._active,
                len(self._admission),
            )

        if self._active == 0 and self._admission.is_empty():
            self._resolve()

    def _on_settled(self, future: asyncio.Future[Any]) -> None:
        self._in_flight.discard(future)
        self._active -= 1

        error: BaseException | None
        if future.cancelled():
            error = asyncio.CancelledError()
        else:
            # Always retrieve the exception so stragglers are not reported
            # as "never retrieved" after the outcome is settled.
            error = future.exception()

        if self._terminal():
            if error is not None:
                logger.debug(
                    "Ignoring failure after settlement: %s", type(error).__name__
                )
            return

        if error is None:
            self._results.append(future.result())
        elif self._mode is SchedulerMode.FAIL_FAST:
            self._reject(error)
            return
        elif self._first_error is None:
            self._first_error = error
            logger.debug(
                "Task failed, draining %d in-flight task(s) | error=%s",
                self._active,
                type(error).__name__,
            )

        self._schedule()

    def _terminal(self) -> bool:
        # The outcome future is also done if the awaiting caller was cancelled.
        return self._outcome is None or self._outcome.done()

    def _started_outcome(self) -> asyncio.Future[list[Any]]:
        if self._outcome is None:
            raise SchedulerError("scheduler has not been started")
        return self._outcome

    def _resolve(self) -> None:
        outcome = self._started_outcome()
        self._state = SchedulerState.RESOLVED
        outcome.set_result(self._results)
        logger.debug("Scheduler resolved | results=%d", len(self._results))

    def _reject(self, error: BaseException) -> None:
        outcome = self._started_outcome()
        self._state = SchedulerState.REJECTED
        outcome.set_exception(error)
        logger.debug(
            "Scheduler rejected | error=%s in_flight=%d queued=%d",
            type(error).__name__,
            self._active,
            len(self._admission),
        )


async def run(
    tasks: Sequence[Task],
    ceiling: int,
    *,
    priorities: Sequence[float] | None = None,
    mode: SchedulerMode = SchedulerMode.FAIL_FAST,
) -> list[Any]:
    """Run ``tasks`` with at most ``ceiling`` in flight; see :class:`BoundedScheduler`."""
    scheduler = BoundedScheduler(tasks, ceiling, priorities=priorities, mode=mode)
    return await scheduler.run()


__all__ = [
    "Task",
    "SchedulerState",
    "SchedulerMode",
    "BoundedScheduler",
    "invoke",
    "run",
]
