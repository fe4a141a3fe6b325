"""Feasibility checks and insertion-cost scoring for candidate slots."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import time
from typing import Optional, Sequence

from ...errors import RouteUnavailable
from ...models.domain import (
    ExistingAppointment,
    Location,
    RejectionReason,
    SlotRequest,
    ValidationResult,
)
from ..routing.estimator import DriveTimeEstimator
from .timeutils import minute_of_day

DEFAULT_DAY_START = time(9, 0)
DEFAULT_DAY_END = time(17, 0)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Neighbor:
    """Where the technician comes from (or goes to) and the time they are free there."""

    location: Location
    boundary_min: int
    appointment_id: Optional[str] = None


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval overlap; touching endpoints do not count."""
    return a_start < b_end and a_end > b_start


def find_neighbors(
    start_min: int,
    end_min: int,
    existing: Sequence[ExistingAppointment],
    home_base: Location,
    day_start: time = DEFAULT_DAY_START,
    day_end: time = DEFAULT_DAY_END,
) -> tuple[Neighbor, Neighbor]:
    ordered = sorted(existing, key=lambda appt: appt.start_time)

    prev = Neighbor(location=home_base, boundary_min=minute_of_day(day_start))
    for appt in reversed(ordered):
        if minute_of_day(appt.end_time) <= start_min:
            prev = Neighbor(location=appt.location, boundary_min=minute_of_day(appt.end_time), appointment_id=appt.id)
            break

    following = Neighbor(location=home_base, boundary_min=minute_of_day(day_end))
    for appt in ordered:
        if minute_of_day(appt.start_time) >= end_min:
            following = Neighbor(location=appt.location, boundary_min=minute_of_day(appt.start_time), appointment_id=appt.id)
            break

    return prev, following


class SlotValidator:
    """Decide whether a candidate fits into a day and what it costs in extra driving."""

    def __init__(
        self,
        estimator: DriveTimeEstimator,
        home_base: Location,
        day_start: time = DEFAULT_DAY_START,
        day_end: time = DEFAULT_DAY_END,
        buffer_mins: int = 0,
    ) -> None:
        if buffer_mins < 0:
            raise ValueError("Buffer minutes cannot be negative.")
        self.estimator = estimator
        self.home_base = home_base
        self.day_start = day_start
        self.day_end = day_end
        self.buffer_mins = buffer_mins

    async def validate(self, candidate: SlotRequest, existing: Sequence[ExistingAppointment]) -> ValidationResult:
        start_min = minute_of_day(candidate.start_time)
        end_min = start_min + candidate.duration_mins
        same_day = [appt for appt in existing if appt.date == candidate.date]

        for appt in same_day:
            if overlaps(start_min, end_min, minute_of_day(appt.start_time), minute_of_day(appt.end_time)):
                return ValidationResult.rejected(RejectionReason.OVERLAP)

        prev, following = find_neighbors(start_min, end_min, same_day, self.home_base, self.day_start, self.day_end)

        try:
            prev_drive, next_drive = await asyncio.gather(
                self.estimator.estimate(prev.location, candidate.location),
                self.estimator.estimate(candidate.location, following.location),
            )
        except RouteUnavailable as exc:
            logger.warning(f"Rejecting {candidate.date} {candidate.start_time}: {exc}")
            return ValidationResult.rejected(RejectionReason.ROUTE_UNAVAILABLE)

        available_from_prev = start_min - prev.boundary_min - self.buffer_mins
        available_to_next = following.boundary_min - end_min - self.buffer_mins
        if prev_drive > available_from_prev or next_drive > available_to_next:
            return ValidationResult.rejected(RejectionReason.DRIVE_WINDOW)

        if prev.location == following.location:
            direct_drive = 0
        else:
            try:
                direct_drive = await self.estimator.estimate(prev.location, following.location)
            except RouteUnavailable as exc:
                logger.warning(f"Rejecting {candidate.date} {candidate.start_time}: {exc}")
                return ValidationResult.rejected(RejectionReason.ROUTE_UNAVAILABLE)

        return ValidationResult.accepted(float(prev_drive + next_drive - direct_drive))
