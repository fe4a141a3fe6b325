"""Candidate slot generation within a working window."""

from __future__ import annotations

from ...models.domain import UNSCORED, CandidateSlot, WorkingWindow
from .timeutils import minute_of_day, time_from_minutes

DEFAULT_STEP_MINS = 15


def generate_candidate_slots(
    window: WorkingWindow,
    duration_mins: int,
    step_mins: int = DEFAULT_STEP_MINS,
) -> list[CandidateSlot]:
    """Enumerate start times every ``step_mins`` that fit entirely inside ``window``."""
    if step_mins <= 0:
        raise ValueError("Slot step must be positive.")

    window_start = minute_of_day(window.start_time)
    window_end = minute_of_day(window.end_time)
    if duration_mins <= 0 or window_end <= window_start:
        return []

    slots: list[CandidateSlot] = []
    cursor = window_start
    while cursor + duration_mins <= window_end:
        slots.append(
            CandidateSlot(
                date=window.date,
                start_time=time_from_minutes(cursor),
                end_time=time_from_minutes(cursor + duration_mins),
                duration_mins=duration_mins,
                score=UNSCORED,
            )
        )
        cursor += step_mins
    return slots
