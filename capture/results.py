# capture/results.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class Outcome(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    ERRORED = "errored"
    DENIED = "denied"


@dataclass(frozen=True)
class FieldResult(Generic[T]):
    """
    What one provider call produced for one field (or coupled unit of fields).

    ABSENT means the source answered with no data; ERRORED means it failed or
    timed out; DENIED means the user refused access to the source.
    """
    source: str
    outcome: Outcome
    value: Optional[T] = None
    reason: Optional[str] = None

    @classmethod
    def present(cls, source: str, value: T) -> "FieldResult[T]":
        return cls(source, Outcome.PRESENT, value)

    @classmethod
    def absent(cls, source: str) -> "FieldResult[T]":
        return cls(source, Outcome.ABSENT)

    @classmethod
    def errored(cls, source: str, reason: str) -> "FieldResult[T]":
        return cls(source, Outcome.ERRORED, reason=reason)

    @classmethod
    def denied(cls, source: str, reason: str = "authorization denied") -> "FieldResult[T]":
        return cls(source, Outcome.DENIED, reason=reason)

    @property
    def is_present(self) -> bool:
        return self.outcome is Outcome.PRESENT

    def value_or(self, default: Any) -> Any:
        return self.value if self.is_present else default

    def describe(self) -> str:
        if self.reason:
            return f"{self.source}: {self.outcome.value} ({self.reason})"
        return f"{self.source}: {self.outcome.value}"


__all__ = ["FieldResult", "Outcome"]
