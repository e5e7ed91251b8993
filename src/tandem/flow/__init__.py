# src/tandem/flow/__init__.py
"""Combinators and callback adapters built on the core scheduler."""

from .adapters import (
    CancellableCall,
    CancellationToken,
    async_to_callback,
    callback_to_async,
    callback_to_async_with_cancellation,
    reflect,
)
from .combinators import (
    all_settled,
    any,
    each,
    map,
    parallel,
    props,
    queue,
    reduce,
    series,
    waterfall,
)

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
    "CancellationToken",
    "CancellableCall",
    "callback_to_async",
    "async_to_callback",
    "callback_to_async_with_cancellation",
    "reflect",
]
