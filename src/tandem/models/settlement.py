# src/tandem/models/settlement.py
"""Descriptor for the outcome of a single awaitable."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_validator


class Settlement(BaseModel):
    """Outcome of one awaitable, as produced by ``all_settled`` and ``reflect``.

    ``value`` is only meaningful when fulfilled, ``reason`` only when
    rejected.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: Literal["fulfilled", "rejected"]
    value: Any = None
    reason: BaseException | None = None

    @model_validator(mode="after")
    def _check_reason(self) -> Settlement:
        if self.status == "rejected" and self.reason is None:
            raise ValueError("a rejected settlement needs a reason")
        return self

    @classmethod
    def fulfilled(cls, value: Any) -> Settlement:
        return cls(status="fulfilled", value=value)

    @classmethod
    def rejected(cls, reason: BaseException) -> Settlement:
        return cls(status="rejected", reason=reason)

    @property
    def is_fulfilled(self) -> bool:
        return self.status == "fulfilled"

    @property
    def is_rejected(self) -> bool:
        return self.status == "rejected"


__all__ = ["Settlement"]
