# src/tandem/core/__init__.py
"""Core scheduling primitives for tandem."""

from .admission import PriorityAdmissionList, TaskRecord
from .env import load_env
from .logging import get_logger, init_logging, log_calls
from .scheduler import BoundedScheduler, SchedulerMode, SchedulerState, run

__all__ = [
    "PriorityAdmissionList",
    "TaskRecord",
    "BoundedScheduler",
    "SchedulerMode",
    "SchedulerState",
    "run",
    "load_env",
    "init_logging",
    "get_logger",
    "log_calls",
]
