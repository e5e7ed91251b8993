# src/tandem/errors.py
"""Exception taxonomy for tandem.

Task exceptions are never wrapped: whatever a task raises is what the
caller of ``run``/``series``/``parallel`` sees. The classes here cover the
library's own failure modes.
"""

from __future__ import annotations

from typing import Any


class TandemError(Exception):
    """Base class for errors raised by tandem itself."""


class EmptyQueueError(TandemError, IndexError):
    """Dequeue attempted on an empty admission list.

    The scheduler checks for emptiness before every dequeue, so seeing this
    outside of direct ``PriorityAdmissionList`` use means a scheduler defect.
    """


class SchedulerError(TandemError, RuntimeError):
    """A scheduler was used outside its lifecycle (e.g. run twice)."""


class TaskFailure(TandemError):
    """A callback-style task reported an error that is not an exception."""

    def __init__(self, reason: Any) -> None:
        super().__init__(f"Task failed: {reason!r}")
        self.reason = reason


class AggregateFailure(TandemError):
    """Every input given to ``any`` failed."""

    def __init__(self, errors: list[BaseException], message: str | None = None) -> None:
        super().__init__(message or "All awaitables were rejected")
        self.errors = list(errors)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.args[0]!r}, errors={self.errors!r})"


class OperationCancelledError(TandemError):
    """Operation cancelled through its cancellation token."""

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message)


def as_exception(error: Any) -> BaseException:
    """Return ``error`` unchanged if it is an exception, else wrap it."""
    if isinstance(error, BaseException):
        return error
    return TaskFailure(error)


__all__ = [
    "TandemError",
    "EmptyQueueError",
    "SchedulerError",
    "TaskFailure",
    "AggregateFailure",
    "OperationCancelledError",
    "as_exception",
]
