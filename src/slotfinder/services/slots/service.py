"""Slot search orchestration across working days."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Optional, Sequence

from ...config import Settings, settings as default_settings
from ...models.domain import (
    CandidateSlot,
    ExistingAppointment,
    Location,
    RejectionReason,
    SlotRequest,
    WorkingWindow,
)
from ...persistence.stores import AppointmentStore, WorkingHoursSource
from .generator import generate_candidate_slots
from .preferences import PREFERRED_SELECTION, PreferredWindow, fits_window, rescore_for_preference
from .selector import SelectionPolicy, select_diverse_slots
from .validator import SlotValidator

FEATURED_SELECTION = SelectionPolicy(
    count=5,
    min_gap_mins=60,
    max_per_day=2,
    target_days=4,
    target_bands=3,
    seed_days=True,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EvaluationBudget:
    """Caps how many candidates are validated once enough feasible ones exist."""

    max_checked: int
    min_feasible: int
    checked: int = 0
    feasible: int = 0
    rejections: Counter = field(default_factory=Counter)

    @property
    def exhausted(self) -> bool:
        return self.checked >= self.max_checked and self.feasible >= self.min_feasible

    def batch_size(self, concurrency: int) -> int:
        remaining = self.max_checked - self.checked
        if remaining > 0:
            return max(1, min(concurrency, remaining))
        return concurrency


@dataclass(frozen=True, slots=True)
class SlotSearchResult:
    featured: list[CandidateSlot]
    all_slots: dict[date, list[CandidateSlot]]
    checked: int = 0
    rejections: dict[str, int] = field(default_factory=dict)


def group_by_date(slots: Sequence[CandidateSlot]) -> dict[date, list[CandidateSlot]]:
    grouped: dict[date, list[CandidateSlot]] = defaultdict(list)
    for slot in sorted(slots, key=lambda item: (item.date, item.start_time)):
        grouped[slot.date].append(slot)
    return dict(grouped)


class SlotFinder:
    """Find feasible, low-detour appointment slots for a client location."""

    def __init__(
        self,
        hours_source: WorkingHoursSource,
        appointment_store: AppointmentStore,
        validator: SlotValidator,
        config: Settings | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        config = config or default_settings
        self.hours_source = hours_source
        self.appointment_store = appointment_store
        self.validator = validator
        self.search_days = config.search_days
        self.step_mins = config.slot_step_mins
        self.max_candidates_checked = config.max_candidates_checked
        self.min_feasible_results = config.min_feasible_results
        self.validation_concurrency = config.validation_concurrency
        self._today = today

    def _new_budget(self) -> EvaluationBudget:
        return EvaluationBudget(max_checked=self.max_candidates_checked, min_feasible=self.min_feasible_results)

    async def _appointments_for(
        self, day: date, snapshots: dict[date, tuple[ExistingAppointment, ...]]
    ) -> tuple[ExistingAppointment, ...]:
        if day not in snapshots:
            snapshots[day] = tuple(await self.appointment_store.list_confirmed_appointments(day))
        return snapshots[day]

    async def _score_candidates(
        self,
        candidates: Sequence[CandidateSlot],
        location: Location,
        existing: Sequence[ExistingAppointment],
        budget: EvaluationBudget,
        stop_on_first: bool = False,
    ) -> list[CandidateSlot]:
        scored: list[CandidateSlot] = []
        index = 0
        while index < len(candidates) and not budget.exhausted:
            batch = candidates[index : index + budget.batch_size(self.validation_concurrency)]
            index += len(batch)
            results = await asyncio.gather(
                *(
                    self.validator.validate(
                        SlotRequest(
                            date=candidate.date,
                            start_time=candidate.start_time,
                            duration_mins=candidate.duration_mins,
                            location=location,
                        ),
                        existing,
                    )
                    for candidate in batch
                )
            )
            for candidate, result in zip(batch, results):
                budget.checked += 1
                if result.valid and result.score is not None:
                    budget.feasible += 1
                    scored.append(candidate.with_score(result.score))
                else:
                    budget.rejections[(result.reason or RejectionReason.ROUTE_UNAVAILABLE).value] += 1
            if stop_on_first and scored:
                break
        return scored

    async def _windows_between(self, start: date, days: int) -> list[WorkingWindow]:
        last_day = start + timedelta(days=days - 1)
        windows = await self.hours_source.list_working_windows(start, days)
        return sorted(
            (window for window in windows if window.is_available and start <= window.date <= last_day),
            key=lambda window: (window.date, window.start_time),
        )

    async def find_best_slots(
        self,
        location: Location,
        duration_mins: int,
        from_date: Optional[date] = None,
    ) -> SlotSearchResult:
        if duration_mins <= 0:
            raise ValueError("Duration must be a positive number of minutes.")
        start = from_date or self._today()
        windows = await self._windows_between(start, self.search_days)

        budget = self._new_budget()
        snapshots: dict[date, tuple[ExistingAppointment, ...]] = {}
        feasible: list[CandidateSlot] = []
        for window in windows:
            if budget.exhausted:
                break
            existing = await self._appointments_for(window.date, snapshots)
            candidates = generate_candidate_slots(window, duration_mins, self.step_mins)
            feasible.extend(await self._score_candidates(candidates, location, existing, budget))

        ranked = sorted(feasible, key=lambda slot: slot.score_value)
        featured = select_diverse_slots(ranked, FEATURED_SELECTION)
        sources = Counter(window.source for window in windows)
        logger.info(
            f"Slot search from {start}: {budget.checked} candidates checked across {len(snapshots)} day(s), "
            f"{len(feasible)} feasible, {len(featured)} featured, rejections={dict(budget.rejections)}, "
            f"window sources={dict(sources)}"
        )
        return SlotSearchResult(
            featured=featured,
            all_slots=group_by_date(feasible),
            checked=budget.checked,
            rejections=dict(budget.rejections),
        )

    async def find_preferred_slots(
        self,
        location: Location,
        duration_mins: int,
        preferred_date: date,
        preferred_window: PreferredWindow,
    ) -> list[CandidateSlot]:
        """Best slots on one day, biased toward the client's preferred time of day."""
        if duration_mins <= 0:
            raise ValueError("Duration must be a positive number of minutes.")
        preferred_window = PreferredWindow(preferred_window)
        windows = await self._windows_between(preferred_date, 1)
        if not windows:
            logger.info(f"No working hours on {preferred_date}; no preferred slots")
            return []

        existing = await self._appointments_for(preferred_date, {})
        budget = self._new_budget()
        feasible: list[CandidateSlot] = []
        for window in windows:
            candidates = generate_candidate_slots(window, duration_mins, self.step_mins)
            feasible.extend(await self._score_candidates(candidates, location, existing, budget))

        rescored = rescore_for_preference(feasible, preferred_window)
        selected = select_diverse_slots(rescored, PREFERRED_SELECTION)
        logger.info(
            f"Preferred search on {preferred_date} ({preferred_window.value}): "
            f"{len(feasible)} feasible, {len(selected)} selected"
        )
        return selected

    async def find_available_dates(
        self,
        location: Location,
        duration_mins: int,
        preferred_window: PreferredWindow,
        from_date: Optional[date] = None,
        days_ahead: int = 14,
    ) -> list[date]:
        """Dates with at least one feasible slot fully inside the preferred window."""
        if duration_mins <= 0:
            raise ValueError("Duration must be a positive number of minutes.")
        if days_ahead < 1:
            raise ValueError("days_ahead must be at least 1.")
        preferred_window = PreferredWindow(preferred_window)
        start = from_date or self._today()
        windows = await self._windows_between(start, days_ahead)

        by_date: dict[date, list[WorkingWindow]] = defaultdict(list)
        for window in windows:
            by_date[window.date].append(window)

        available: list[date] = []
        for day in sorted(by_date):
            candidates = [
                slot
                for window in by_date[day]
                for slot in generate_candidate_slots(window, duration_mins, self.step_mins)
                if fits_window(slot, preferred_window)
            ]
            if not candidates:
                continue
            existing = await self._appointments_for(day, {})
            # Each date gets its own budget: one feasible slot is enough to list it.
            budget = EvaluationBudget(max_checked=len(candidates), min_feasible=1)
            if await self._score_candidates(candidates, location, existing, budget, stop_on_first=True):
                available.append(day)
        return available
