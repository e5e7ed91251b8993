# src/tandem/core/admission.py
"""Priority-ordered waiting room for tasks that have not started yet."""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any

from tandem.errors import EmptyQueueError


@dataclass(order=True, slots=True)
class TaskRecord:
    """A pending task with its admission priority.

    Records sort by ``(-priority, sequence)`` so the heap head is always the
    highest priority record, and among equal priorities the one enqueued
    first.
    """

    sort_key: tuple[float, int] = field(init=False, repr=False)
    task: Any = field(compare=False)
    priority: float = field(default=0, compare=False)
    sequence: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        self.sort_key = (-self.priority, self.sequence)


class PriorityAdmissionList:
    """Max-priority admission list with stable FIFO tie-breaking.

    Ties between equal priorities are resolved by insertion order, so a list
    filled with default priorities behaves as a plain FIFO queue.
    """

    def __init__(self) -> None:
        self._heap: list[TaskRecord] = []
        self._counter = itertools.count()

    def enqueue(self, task: Any, priority: float = 0) -> None:
        """Insert ``task``; it is available to :meth:`dequeue_highest` at once."""
        if task is None:
            raise ValueError("task must not be None")
        record = TaskRecord(task=task, priority=priority, sequence=next(self._counter))
        heapq.heappush(self._heap, record)

    def dequeue_highest(self) -> Any:
        """Remove and return the task with the highest priority."""
        if not self._heap:
            raise EmptyQueueError("dequeue from an empty admission list")
        return heapq.heappop(self._heap).task

    def is_empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)


__all__ = ["TaskRecord", "PriorityAdmissionList"]
