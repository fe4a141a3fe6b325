from collections import Counter
from datetime import date, time

import pytest

from slotfinder.models.domain import CandidateSlot
from slotfinder.services.slots.selector import (
    SelectionPolicy,
    SelectionState,
    TimeBand,
    select_diverse_slots,
    time_band,
)
from slotfinder.services.slots.timeutils import add_minutes, minute_of_day

DAY_1 = date(2026, 3, 10)
DAY_2 = date(2026, 3, 11)
DAY_3 = date(2026, 3, 12)
DAY_4 = date(2026, 3, 13)

SCORE_ONLY = SelectionPolicy(
    count=4,
    min_gap_mins=60,
    max_per_day=2,
    day_weight=0.0,
    band_weight=0.0,
    day_coverage_penalty=0.0,
    band_coverage_penalty=0.0,
)


def _slot(day: date, hour: int, minute: int, score: float, duration: int = 60) -> CandidateSlot:
    start = time(hour, minute)
    return CandidateSlot(
        date=day,
        start_time=start,
        end_time=add_minutes(start, duration),
        duration_mins=duration,
    ).with_score(score)


def test_time_band_boundaries():
    assert time_band(time(11, 59)) is TimeBand.MORNING
    assert time_band(time(12, 0)) is TimeBand.MIDDAY
    assert time_band(time(14, 59)) is TimeBand.MIDDAY
    assert time_band(time(15, 0)) is TimeBand.LATE_DAY


def test_selection_state_is_immutable():
    state = SelectionState()
    slot = _slot(DAY_1, 9, 0, 1.0)

    grown = state.add(0, slot)

    assert len(state) == 0
    assert len(grown) == 1
    assert grown.contains(0)
    assert grown.day_counts() == Counter({DAY_1: 1})


def test_score_only_policy_takes_best_respecting_cap_and_gap():
    pool = [
        _slot(DAY_1, 9, 0, 1.0),
        _slot(DAY_1, 9, 30, 1.5),
        _slot(DAY_1, 11, 0, 2.0),
        _slot(DAY_1, 13, 0, 3.0),
        _slot(DAY_2, 9, 0, 10.0),
        _slot(DAY_3, 9, 0, 20.0),
    ]

    picked = select_diverse_slots(pool, SCORE_ONLY)

    assert [(slot.date, slot.start_time) for slot in picked] == [
        (DAY_1, time(9, 0)),
        (DAY_1, time(11, 0)),
        (DAY_2, time(9, 0)),
        (DAY_3, time(9, 0)),
    ]


def test_seeding_reaches_distinct_days_first():
    pool = [
        _slot(DAY_1, 9, 0, 1.0),
        _slot(DAY_1, 11, 0, 2.0),
        _slot(DAY_1, 13, 0, 3.0),
        _slot(DAY_1, 15, 0, 4.0),
        _slot(DAY_2, 9, 0, 10.0),
        _slot(DAY_3, 9, 0, 20.0),
        _slot(DAY_4, 9, 0, 30.0),
    ]
    policy = SelectionPolicy(count=4, target_days=4, target_bands=3, seed_days=True)

    picked = select_diverse_slots(pool, policy)

    assert {slot.date for slot in picked} == {DAY_1, DAY_2, DAY_3, DAY_4}
    assert [slot.score_value for slot in picked] == [1.0, 10.0, 20.0, 30.0]


def test_per_day_cap_survives_relaxation():
    pool = [_slot(DAY_1, 9, minute, float(minute)) for minute in (0, 15, 30, 45)]
    policy = SelectionPolicy(count=5, min_gap_mins=60, max_per_day=2)

    picked = select_diverse_slots(pool, policy)

    assert len(picked) == 2


def test_gap_is_respected_when_supply_allows():
    pool = [_slot(DAY_1, 9, 0, 1.0), _slot(DAY_1, 9, 15, 1.1), _slot(DAY_1, 10, 0, 1.2)]
    policy = SelectionPolicy(count=2, min_gap_mins=60, max_per_day=2)

    picked = select_diverse_slots(pool, policy)

    starts = sorted(minute_of_day(slot.start_time) for slot in picked)
    assert starts[1] - starts[0] >= 60


def test_gap_is_relaxed_to_fill_count():
    pool = [_slot(DAY_1, 9, 0, 1.0), _slot(DAY_1, 9, 15, 2.0), _slot(DAY_1, 9, 30, 3.0)]
    policy = SelectionPolicy(count=3, min_gap_mins=60, max_per_day=3)

    picked = select_diverse_slots(pool, policy)

    assert [slot.start_time for slot in picked] == [time(9, 0), time(9, 15), time(9, 30)]


def test_band_penalty_breaks_near_ties():
    pool = [
        _slot(DAY_1, 9, 0, 1.0),
        _slot(DAY_2, 9, 0, 2.0),
        _slot(DAY_2, 15, 0, 3.0),
    ]
    policy = SelectionPolicy(count=2, target_bands=3, day_weight=0.0, day_coverage_penalty=0.0)

    picked = select_diverse_slots(pool, policy)

    # the second morning slot pays the band weight plus the coverage penalty
    assert [slot.start_time for slot in picked] == [time(9, 0), time(15, 0)]


def test_result_is_ordered_by_score_and_never_exceeds_count():
    pool = [_slot(DAY_1 if i % 2 else DAY_2, 8 + i, 0, 10.0 - i) for i in range(8)]

    picked = select_diverse_slots(pool, SCORE_ONLY)

    assert len(picked) <= SCORE_ONLY.count
    assert [slot.score_value for slot in picked] == sorted(slot.score_value for slot in picked)
    assert all(count <= 2 for count in Counter(slot.date for slot in picked).values())


def test_empty_pool_and_zero_count():
    assert select_diverse_slots([], SCORE_ONLY) == []
    assert select_diverse_slots([_slot(DAY_1, 9, 0, 1.0)], SelectionPolicy(count=0)) == []


def test_unscored_slots_are_rejected():
    unscored = CandidateSlot(date=DAY_1, start_time=time(9, 0), end_time=time(10, 0), duration_mins=60)

    with pytest.raises(TypeError):
        select_diverse_slots([unscored], SCORE_ONLY)


def test_policy_validation():
    with pytest.raises(ValueError):
        SelectionPolicy(count=3, max_per_day=0)
