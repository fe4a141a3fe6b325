"""Pick a small, well-spread set of featured slots from a scored pool.

Raw insertion cost dominates the ranking; repeated days and times of day only
add fractional penalties. Selection progress lives in an immutable
``SelectionState`` so every step can be inspected on its own.
"""

from __future__ import annotations

import enum
from collections import Counter
from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, Optional, Sequence

from ...models.domain import CandidateSlot
from .timeutils import minute_of_day


class TimeBand(str, enum.Enum):
    MORNING = "morning"
    MIDDAY = "midday"
    LATE_DAY = "late_day"


def time_band(value: time) -> TimeBand:
    if value < time(12, 0):
        return TimeBand.MORNING
    if value < time(15, 0):
        return TimeBand.MIDDAY
    return TimeBand.LATE_DAY


@dataclass(frozen=True, slots=True)
class SelectionPolicy:
    count: int
    min_gap_mins: int = 60
    max_per_day: int = 2
    target_days: int = 0
    target_bands: int = 0
    day_weight: float = 8.0
    band_weight: float = 5.0
    day_coverage_penalty: float = 15.0
    band_coverage_penalty: float = 10.0
    seed_days: bool = False

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("count cannot be negative")
        if self.max_per_day < 1:
            raise ValueError("max_per_day must be at least 1")
        if self.min_gap_mins < 0:
            raise ValueError("min_gap_mins cannot be negative")


@dataclass(frozen=True, slots=True)
class SelectionState:
    picked: tuple[int, ...] = ()
    slots: tuple[CandidateSlot, ...] = ()

    def add(self, index: int, slot: CandidateSlot) -> "SelectionState":
        return SelectionState(picked=self.picked + (index,), slots=self.slots + (slot,))

    def day_counts(self) -> Counter[date]:
        return Counter(slot.date for slot in self.slots)

    def band_counts(self) -> Counter[TimeBand]:
        return Counter(time_band(slot.start_time) for slot in self.slots)

    def contains(self, index: int) -> bool:
        return index in self.picked

    def __len__(self) -> int:
        return len(self.slots)


def under_day_cap(state: SelectionState, slot: CandidateSlot, policy: SelectionPolicy) -> bool:
    return state.day_counts()[slot.date] < policy.max_per_day


def respects_gap(state: SelectionState, slot: CandidateSlot, min_gap_mins: int) -> bool:
    start = minute_of_day(slot.start_time)
    return all(
        abs(minute_of_day(chosen.start_time) - start) >= min_gap_mins
        for chosen in state.slots
        if chosen.date == slot.date
    )


def adjusted_score(state: SelectionState, slot: CandidateSlot, policy: SelectionPolicy) -> float:
    days = state.day_counts()
    bands = state.band_counts()
    band = time_band(slot.start_time)

    adjusted = slot.score_value
    adjusted += policy.day_weight * days[slot.date]
    adjusted += policy.band_weight * bands[band]
    if len(days) < policy.target_days and slot.date in days:
        adjusted += policy.day_coverage_penalty
    if len(bands) < policy.target_bands and band in bands:
        adjusted += policy.band_coverage_penalty
    return adjusted


def seed_distinct_days(pool: Sequence[CandidateSlot], state: SelectionState, policy: SelectionPolicy) -> SelectionState:
    """Walk the pool once in score order taking the best slot of each unseen day."""
    for index, slot in enumerate(pool):
        if len(state) >= policy.count or len(state.day_counts()) >= policy.target_days:
            break
        if slot.date in state.day_counts() or state.contains(index):
            continue
        if under_day_cap(state, slot, policy) and respects_gap(state, slot, policy.min_gap_mins):
            state = state.add(index, slot)
    return state


def best_next(
    pool: Sequence[CandidateSlot],
    state: SelectionState,
    policy: SelectionPolicy,
    enforce_gap: bool,
) -> Optional[int]:
    """Index of the eligible slot with the lowest adjusted score, or None."""
    best_index: Optional[int] = None
    best_score = float("inf")
    for index, slot in enumerate(pool):
        if state.contains(index) or not under_day_cap(state, slot, policy):
            continue
        if enforce_gap and not respects_gap(state, slot, policy.min_gap_mins):
            continue
        score = adjusted_score(state, slot, policy)
        if best_index is None or score < best_score:
            best_index, best_score = index, score
    return best_index


def greedy_fill(
    pool: Sequence[CandidateSlot],
    state: SelectionState,
    policy: SelectionPolicy,
    enforce_gap: bool = True,
) -> SelectionState:
    while len(state) < policy.count:
        index = best_next(pool, state, policy, enforce_gap)
        if index is None:
            break
        state = state.add(index, pool[index])
    return state


def select_diverse_slots(scored: Iterable[CandidateSlot], policy: SelectionPolicy) -> list[CandidateSlot]:
    """Choose up to ``policy.count`` slots, returned ordered by score.

    Passes: optional one-per-day seeding, a gap-respecting greedy fill, then a
    fill that drops the minimum gap (but keeps the per-day cap) if supply was
    short.
    """
    pool = sorted(scored, key=lambda slot: slot.score_value)
    state = SelectionState()
    if policy.count == 0 or not pool:
        return []

    if policy.seed_days:
        state = seed_distinct_days(pool, state, policy)
    state = greedy_fill(pool, state, policy, enforce_gap=True)
    if len(state) < policy.count:
        state = greedy_fill(pool, state, policy, enforce_gap=False)

    ranked = sorted(zip(state.picked, state.slots), key=lambda pair: (pair[1].score_value, pair[0]))
    return [slot for _, slot in ranked]
