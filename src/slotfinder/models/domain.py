"""Domain value types for locations, working windows, appointments and slots."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from datetime import date, time
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class Location:
    """Geographic point in decimal degrees."""

    latitude: float
    longitude: float

    def offset(self, delta: float) -> "Location":
        return Location(latitude=self.latitude + delta, longitude=self.longitude + delta)


@dataclass(frozen=True, slots=True)
class WorkingWindow:
    """A bookable interval on a single day."""

    date: date
    start_time: time
    end_time: time
    is_available: bool = True
    source: str = "manual"


@dataclass(frozen=True, slots=True)
class ExistingAppointment:
    """A confirmed booking as seen by the slot finder."""

    id: str
    date: date
    start_time: time
    end_time: time
    location: Location


@dataclass(frozen=True, slots=True)
class Unscored:
    """Marker for a slot that has not been evaluated yet."""

    def __repr__(self) -> str:
        return "UNSCORED"


UNSCORED = Unscored()


@dataclass(frozen=True, slots=True, order=True)
class Scored:
    value: float


Score = Union[Unscored, Scored]


@dataclass(frozen=True, slots=True)
class CandidateSlot:
    """A possible appointment window produced by the generator."""

    date: date
    start_time: time
    end_time: time
    duration_mins: int
    score: Score = UNSCORED

    @property
    def is_scored(self) -> bool:
        return isinstance(self.score, Scored)

    @property
    def score_value(self) -> float:
        if not isinstance(self.score, Scored):
            raise TypeError(f"Slot {self.date} {self.start_time} has not been scored.")
        return self.score.value

    def with_score(self, value: float) -> "CandidateSlot":
        return replace(self, score=Scored(float(value)))


class RejectionReason(str, enum.Enum):
    OVERLAP = "overlap"
    DRIVE_WINDOW = "drive_window"
    ROUTE_UNAVAILABLE = "route_unavailable"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    score: Optional[float] = None
    reason: Optional[RejectionReason] = None

    @classmethod
    def accepted(cls, score: float) -> "ValidationResult":
        return cls(valid=True, score=score)

    @classmethod
    def rejected(cls, reason: RejectionReason) -> "ValidationResult":
        return cls(valid=False, reason=reason)


@dataclass(frozen=True, slots=True)
class SlotRequest:
    """A candidate start time for a client location, as passed to the validator."""

    date: date
    start_time: time
    duration_mins: int
    location: Location
