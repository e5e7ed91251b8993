# src/tandem/__init__.py
"""tandem: asyncio task orchestration.

Run awaitable work in series, in parallel, as a waterfall or through a
bounded-concurrency scheduler, plus map/reduce style helpers on top.
"""

__version__ = "0.1.0"

from .core import (
    BoundedScheduler,
    PriorityAdmissionList,
    SchedulerMode,
    SchedulerState,
    get_logger,
    init_logging,
    load_env,
    run,
)
from .errors import (
    AggregateFailure,
    EmptyQueueError,
    OperationCancelledError,
    SchedulerError,
    TandemError,
    TaskFailure,
)
from .flow import (
    CancellableCall,
    CancellationToken,
    all_settled,
    any,
    async_to_callback,
    callback_to_async,
    callback_to_async_with_cancellation,
    each,
    map,
    parallel,
    props,
    queue,
    reduce,
    reflect,
    series,
    waterfall,
)
from .models import Settlement

__all__ = [
    "__version__",
    # Core
    "BoundedScheduler",
    "PriorityAdmissionList",
    "SchedulerMode",
    "SchedulerState",
    "run",
    # Combinators
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
    # Adapters
    "CancellationToken",
    "CancellableCall",
    "callback_to_async",
    "async_to_callback",
    "callback_to_async_with_cancellation",
    "reflect",
    # Models
    "Settlement",
    # Errors
    "TandemError",
    "EmptyQueueError",
    "SchedulerError",
    "TaskFailure",
    "AggregateFailure",
    "OperationCancelledError",
    # Setup
    "load_env",
    "init_logging",
    "get_logger",
]
