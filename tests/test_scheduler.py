"""Tests for the bounded-concurrency scheduler.

Covers the concurrency ceiling, completion-order results, fail-fast and
drain failure policies, priorities, single settlement and lifecycle errors.
"""

from __future__ import annotations

import asyncio

import pytest

from tandem.core.scheduler import (
    BoundedScheduler,
    SchedulerMode,
    SchedulerState,
    run,
)
from tandem.errors import SchedulerError


class Probe:
    """Builds instrumented tasks and records what happened to them."""

    def __init__(self) -> None:
        self.active = 0
        self.peak = 0
        self.started: list[str] = []
        self.finished: list[str] = []

    def task(self, name: str, delay: float = 0.0, error: BaseException | None = None):
        async def run_task():
            self.active += 1
            self.peak = max(self.peak, self.active)
            self.started.append(name)
            try:
                await asyncio.sleep(delay)
                if error is not None:
                    raise error
                return name
            finally:
                self.active -= 1
                self.finished.append(name)

        return run_task


# ─── Ceiling ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_active_count_never_exceeds_ceiling():
    probe = Probe()
    delays = [0.03, 0.01, 0.02, 0.01, 0.03, 0.02, 0.01, 0.02]
    tasks = [probe.task(f"t{i}", d) for i, d in enumerate(delays)]
    scheduler = BoundedScheduler(tasks, 3)

    results = await scheduler.run()

    assert probe.peak == 3
    assert scheduler.peak_active == 3
    assert scheduler.active_count == 0
    assert sorted(results) == sorted(f"t{i}" for i in range(len(delays)))


@pytest.mark.asyncio
async def test_ceiling_observed_from_inside_tasks():
    observed: list[int] = []
    scheduler: BoundedScheduler

    def make(delay):
        async def task():
            observed.append(scheduler.active_count)
            await asyncio.sleep(delay)
            observed.append(scheduler.active_count)
            return delay

        return task

    scheduler = BoundedScheduler([make(0.001 * (i % 4)) for i in range(12)], 2)
    await scheduler.run()

    assert observed
    assert max(observed) <= 2


@pytest.mark.asyncio
async def test_ceiling_larger_than_task_count():
    probe = Probe()
    results = await run([probe.task("a", 0.01), probe.task("b", 0.01)], 10)

    assert sorted(results) == ["a", "b"]
    assert probe.peak == 2


# ─── Result ordering ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_results_are_in_completion_order():
    probe = Probe()
    tasks = [
        probe.task("slow", 0.05),
        probe.task("fast", 0.01),
        probe.task("medium", 0.03),
    ]

    results = await run(tasks, 3)

    assert results == ["fast", "medium", "slow"]


@pytest.mark.asyncio
async def test_ceiling_of_one_runs_in_input_order():
    probe = Probe()
    tasks = [probe.task(name, 0.01 * (3 - i)) for i, name in enumerate("abc")]

    results = await run(tasks, 1)

    assert results == ["a", "b", "c"]
    assert probe.started == ["a", "b", "c"]
    assert probe.peak == 1


@pytest.mark.asyncio
async def test_refill_starts_next_task_when_one_finishes():
    probe = Probe()
    tasks = [
        probe.task("long", 0.05),
        probe.task("short", 0.01),
        probe.task("third", 0.01),
    ]

    results = await run(tasks, 2)

    # "third" takes the slot freed by "short" and finishes before "long".
    assert results == ["short", "third", "long"]


@pytest.mark.asyncio
async def test_priorities_control_admission_order():
    probe = Probe()
    tasks = [probe.task(name) for name in ("p0", "p5a", "p1", "p5b")]

    results = await run(tasks, 1, priorities=[0, 5, 1, 5])

    assert probe.started == ["p5a", "p5b", "p1", "p0"]
    assert results == ["p5a", "p5b", "p1", "p0"]


@pytest.mark.asyncio
async def test_sync_tasks_and_plain_values_are_accepted():
    results = await run([lambda: 1, lambda: 2], 1)
    assert results == [1, 2]


# ─── Empty input ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_empty_task_list_resolves_immediately():
    scheduler = BoundedScheduler([], 4)

    assert await scheduler.run() == []
    assert scheduler.state is SchedulerState.RESOLVED
    assert scheduler.peak_active == 0
    assert scheduler.completed_count == 0


# ─── Failures ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_first_failure_rejects_and_stops_admission():
    probe = Probe()
    boom = ValueError("boom")
    tasks = [
        probe.task("fails", 0.01, error=boom),
        probe.task("sibling", 0.04),
        probe.task("queued", 0.0),
    ]
    scheduler = BoundedScheduler(tasks, 2)

    with pytest.raises(ValueError) as excinfo:
        await scheduler.run()

    assert excinfo.value is boom
    assert scheduler.state is SchedulerState.REJECTED
    assert "queued" not in probe.started
    # The in-flight sibling is not cancelled.
    assert "sibling" not in probe.finished
    await asyncio.sleep(0.06)
    assert "sibling" in probe.finished
    assert "queued" not in probe.started
    assert scheduler.state is SchedulerState.REJECTED


@pytest.mark.asyncio
async def test_only_the_first_failure_is_reported():
    probe = Probe()
    first = KeyError("first")
    tasks = [
        probe.task("second", 0.03, error=RuntimeError("second")),
        probe.task("first", 0.01, error=first),
        probe.task("ok", 0.02),
    ]
    scheduler = BoundedScheduler(tasks, 3)

    with pytest.raises(KeyError) as excinfo:
        await scheduler.run()
    await asyncio.sleep(0.05)

    assert excinfo.value is first
    assert scheduler.state is SchedulerState.REJECTED
    assert scheduler.completed_count == 0
    assert sorted(probe.finished) == ["first", "ok", "second"]


@pytest.mark.asyncio
async def test_synchronous_raise_in_task_rejects():
    def broken():
        raise RuntimeError("sync failure")

    with pytest.raises(RuntimeError, match="sync failure"):
        await run([broken], 1)


@pytest.mark.asyncio
async def test_drain_mode_waits_for_in_flight_tasks():
    probe = Probe()
    boom = ValueError("boom")
    tasks = [
        probe.task("fails", 0.01, error=boom),
        probe.task("sibling", 0.04),
        probe.task("queued", 0.0),
    ]
    scheduler = BoundedScheduler(tasks, 2, mode=SchedulerMode.DRAIN)

    with pytest.raises(ValueError) as excinfo:
        await scheduler.run()

    assert excinfo.value is boom
    assert "sibling" in probe.finished
    assert "queued" not in probe.started
    assert scheduler.active_count == 0
    assert scheduler.state is SchedulerState.REJECTED


@pytest.mark.asyncio
async def test_drain_mode_accepts_string_value():
    scheduler = BoundedScheduler([lambda: 1], 1, mode="drain")
    assert scheduler.mode is SchedulerMode.DRAIN
    assert await scheduler.run() == [1]


# ─── Lifecycle and preconditions ───────────────────────────────────────


@pytest.mark.asyncio
async def test_state_transitions():
    gate = asyncio.Event()

    async def wait_for_gate():
        await gate.wait()
        return "done"

    scheduler = BoundedScheduler([wait_for_gate], 1)
    assert scheduler.state is SchedulerState.IDLE

    running = asyncio.create_task(scheduler.run())
    await asyncio.sleep(0)
    assert scheduler.state is SchedulerState.RUNNING
    assert scheduler.active_count == 1
    assert scheduler.queued_count == 0

    gate.set()
    assert await running == ["done"]
    assert scheduler.state is SchedulerState.RESOLVED


@pytest.mark.asyncio
async def test_cancelled_caller_leaves_scheduler_rejected():
    probe = Probe()
    scheduler = BoundedScheduler(
        [probe.task("running", 0.02), probe.task("queued")], 1
    )

    caller = asyncio.create_task(scheduler.run())
    await asyncio.sleep(0)
    caller.cancel()
    with pytest.raises(asyncio.CancelledError):
        await caller

    assert scheduler.state is SchedulerState.REJECTED
    await asyncio.sleep(0.04)
    assert scheduler.state is SchedulerState.REJECTED
    assert scheduler.active_count == 0
    assert "queued" not in probe.started
    assert "running" in probe.finished


def test_settling_before_start_is_a_scheduler_error():
    scheduler = BoundedScheduler([lambda: 1], 1)

    with pytest.raises(SchedulerError):
        scheduler._resolve()
    with pytest.raises(SchedulerError):
        scheduler._reject(RuntimeError("boom"))
    assert scheduler.state is SchedulerState.IDLE


@pytest.mark.asyncio
async def test_scheduler_cannot_run_twice():
    scheduler = BoundedScheduler([lambda: 1], 1)
    await scheduler.run()

    with pytest.raises(SchedulerError):
        await scheduler.run()


@pytest.mark.parametrize("ceiling", [0, -1, 1.5, True, None])
def test_invalid_ceiling_rejected(ceiling):
    with pytest.raises(ValueError):
        BoundedScheduler([lambda: 1], ceiling)


def test_priorities_must_match_tasks():
    with pytest.raises(ValueError):
        BoundedScheduler([lambda: 1, lambda: 2], 1, priorities=[1])


def test_all_tasks_are_queued_on_construction():
    scheduler = BoundedScheduler([lambda: 1, lambda: 2, lambda: 3], 2)
    assert scheduler.queued_count == 3
    assert scheduler.active_count == 0
    assert scheduler.ceiling == 2
