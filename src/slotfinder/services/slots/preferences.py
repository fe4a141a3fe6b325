"""Client time-of-day preferences and preference-biased re-scoring."""

from __future__ import annotations

import enum
from datetime import time
from typing import Iterable

from ...models.domain import CandidateSlot
from .selector import SelectionPolicy
from .timeutils import minute_of_day

PENALTY_MINUTES_PER_POINT = 10


class PreferredWindow(str, enum.Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


PREFERRED_RANGES: dict[PreferredWindow, tuple[time, time]] = {
    PreferredWindow.MORNING: (time(8, 0), time(12, 0)),
    PreferredWindow.AFTERNOON: (time(12, 0), time(17, 0)),
    PreferredWindow.EVENING: (time(17, 0), time(20, 0)),
}

# Single-day pool, so fewer results, a shorter gap and a higher cap than the main search.
PREFERRED_SELECTION = SelectionPolicy(
    count=3,
    min_gap_mins=30,
    max_per_day=3,
    target_days=1,
    target_bands=1,
)


def preferred_range_minutes(window: PreferredWindow) -> tuple[int, int]:
    start, end = PREFERRED_RANGES[PreferredWindow(window)]
    return minute_of_day(start), minute_of_day(end)


def minutes_outside(slot: CandidateSlot, window: PreferredWindow) -> int:
    low, high = preferred_range_minutes(window)
    start = minute_of_day(slot.start_time)
    end = minute_of_day(slot.end_time)
    return max(0, low - start) + max(0, end - high)


def fits_window(slot: CandidateSlot, window: PreferredWindow) -> bool:
    return minutes_outside(slot, window) == 0


def preference_penalty(slot: CandidateSlot, window: PreferredWindow) -> float:
    return minutes_outside(slot, window) / PENALTY_MINUTES_PER_POINT


def rescore_for_preference(slots: Iterable[CandidateSlot], window: PreferredWindow) -> list[CandidateSlot]:
    """Add the out-of-window penalty to each slot's insertion cost, sorted best first."""
    rescored = [slot.with_score(slot.score_value + preference_penalty(slot, window)) for slot in slots]
    return sorted(rescored, key=lambda slot: slot.score_value)
