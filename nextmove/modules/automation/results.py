"""Outcome type returned by the automation workflows."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, TypeVar

from nextmove.exceptions import AppException

T = TypeVar("T")


class AutomationOutcome(str, enum.Enum):
    COMPLETED = "completed"
    # The workflow already ran for this input; nothing was written
    ALREADY_DONE = "already_done"
    # A user opt-out stopped the workflow before any write
    SUPPRESSED = "suppressed"
    FAILED = "failed"


@dataclass(frozen=True)
class AutomationResult(Generic[T]):
    outcome: AutomationOutcome
    value: T | None = None
    error: AppException | None = None

    @property
    def ok(self) -> bool:
        return self.outcome != AutomationOutcome.FAILED

    @classmethod
    def completed(cls, value: T | None = None) -> AutomationResult[T]:
        return cls(AutomationOutcome.COMPLETED, value=value)

    @classmethod
    def already_done(cls, value: T | None = None) -> AutomationResult[T]:
        return cls(AutomationOutcome.ALREADY_DONE, value=value)

    @classmethod
    def suppressed(cls) -> AutomationResult[T]:
        return cls(AutomationOutcome.SUPPRESSED)

    @classmethod
    def failed(cls, error: AppException) -> AutomationResult[T]:
        return cls(AutomationOutcome.FAILED, error=error)
