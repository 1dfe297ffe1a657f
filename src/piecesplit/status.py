"""Run status published by the engine and read by observers on other threads."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

__all__ = ["EngineStatus", "Outcome"]


class Outcome(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class EngineStatus:
    """Immutable snapshot of a split or join run.

    The engine never mutates a snapshot; it publishes a new one for every
    change, so a reader always sees a consistent set of fields.
    """

    validated: bool = False
    finished: bool = False
    errored: bool = False
    cancelled: bool = False
    message: str = ""
    processed: int = 0
    total: int = 0

    @property
    def outcome(self) -> Outcome:
        if not self.finished:
            return Outcome.PENDING
        if self.cancelled:
            return Outcome.CANCELLED
        if self.errored:
            return Outcome.FAILED
        return Outcome.SUCCEEDED

    def evolve(self, **changes: object) -> "EngineStatus":
        return replace(self, **changes)
