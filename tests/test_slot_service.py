import asyncio
import logging
from collections import Counter
from datetime import date, time, timedelta

import pytest

from slotfinder.config import Settings
from slotfinder.errors import RouteUnavailable, UpstreamStoreError
from slotfinder.models.domain import ExistingAppointment, Location, WorkingWindow
from slotfinder.persistence.stores import InMemoryAppointmentStore, InMemoryWorkingHoursSource
from slotfinder.services.routing.cache import DriveTimeCache
from slotfinder.services.routing.estimator import DriveTimeEstimator
from slotfinder.services.slots.preferences import PreferredWindow
from slotfinder.services.slots.service import SlotFinder
from slotfinder.services.slots.timeutils import minute_of_day
from slotfinder.services.slots.validator import SlotValidator

DAY_1 = date(2026, 3, 9)
HOME = Location(latitude=55.7956, longitude=-3.7939)
CLIENT = Location(latitude=55.80, longitude=-3.80)
APPT_A = Location(latitude=55.81, longitude=-3.81)


class ConstantProvider:
    name = "constant"

    def __init__(self, minutes: int = 10, fail: bool = False):
        self.minutes = minutes
        self.fail = fail

    async def duration_seconds(self, origin: Location, destination: Location) -> float:
        if self.fail:
            raise RouteUnavailable(self.name, "no route")
        return self.minutes * 60.0


class BrokenAppointmentStore:
    async def list_confirmed_appointments(self, day: date):
        raise UpstreamStoreError("appointments table unreachable")


class BrokenHoursSource:
    async def list_working_windows(self, from_date: date, limit: int):
        raise UpstreamStoreError("working hours table unreachable")


def _day(offset: int) -> date:
    return DAY_1 + timedelta(days=offset)


def _window(day: date, start: time = time(9, 0), end: time = time(17, 0)) -> WorkingWindow:
    return WorkingWindow(date=day, start_time=start, end_time=end)


def _finder(windows, appointments=(), provider=None, hours=None, store=None) -> SlotFinder:
    estimator = DriveTimeEstimator([provider or ConstantProvider()], DriveTimeCache())
    validator = SlotValidator(estimator, home_base=HOME)
    return SlotFinder(
        hours or InMemoryWorkingHoursSource(windows),
        store or InMemoryAppointmentStore(appointments),
        validator,
        config=Settings(_env_file=None),
        today=lambda: DAY_1,
    )


def test_best_slots_spread_across_days():
    finder = _finder([_window(_day(i)) for i in range(3)])

    result = asyncio.run(finder.find_best_slots(CLIENT, 60))

    assert result.checked == 87
    assert result.rejections == {"drive_window": 6}
    assert sorted(result.all_slots) == [_day(0), _day(1), _day(2)]
    assert all(len(slots) == 27 for slots in result.all_slots.values())

    assert len(result.featured) == 5
    per_day = Counter(slot.date for slot in result.featured)
    assert set(per_day) == {_day(0), _day(1), _day(2)}
    assert max(per_day.values()) <= 2
    for day in per_day:
        starts = sorted(minute_of_day(slot.start_time) for slot in result.featured if slot.date == day)
        assert all(later - earlier >= 60 for earlier, later in zip(starts, starts[1:]))


def test_search_summary_reports_window_sources(caplog: pytest.LogCaptureFixture):
    windows = [
        _window(_day(0)),
        WorkingWindow(date=_day(1), start_time=time(9, 0), end_time=time(17, 0), source="google_open_slots"),
    ]
    finder = _finder(windows)

    with caplog.at_level(logging.INFO, logger="slotfinder.services.slots.service"):
        asyncio.run(finder.find_best_slots(CLIENT, 60))

    assert "window sources={'manual': 1, 'google_open_slots': 1}" in caplog.text


def test_search_stops_once_budget_is_met():
    store = InMemoryAppointmentStore()
    finder = _finder([_window(_day(i)) for i in range(7)], store=store)

    result = asyncio.run(finder.find_best_slots(CLIENT, 60))

    assert result.checked == 120
    assert store.fetches == [_day(i) for i in range(5)]


def test_search_continues_while_feasible_results_are_short():
    finder = _finder([_window(_day(i)) for i in range(7)], provider=ConstantProvider(minutes=300))

    result = asyncio.run(finder.find_best_slots(CLIENT, 60))

    assert result.checked == 7 * 29
    assert result.featured == []
    assert result.all_slots == {}
    assert result.rejections == {"drive_window": 7 * 29}


def test_route_failures_reject_candidates_without_aborting():
    finder = _finder([_window(_day(0))], provider=ConstantProvider(fail=True))

    result = asyncio.run(finder.find_best_slots(CLIENT, 60))

    assert result.featured == []
    assert result.rejections == {"route_unavailable": 29}


def test_appointments_fetched_once_per_date():
    store = InMemoryAppointmentStore([
        ExistingAppointment(id="a1", date=_day(0), start_time=time(12, 0), end_time=time(13, 0), location=APPT_A),
    ])
    windows = [_window(_day(0), time(9, 0), time(12, 0)), _window(_day(0), time(13, 0), time(17, 0))]
    finder = _finder(windows, store=store)

    result = asyncio.run(finder.find_best_slots(CLIENT, 60))

    assert store.fetches == [_day(0)]
    assert all(slot.start_time != time(12, 0) for slot in result.all_slots[_day(0)])


def test_from_date_overrides_today():
    store = InMemoryAppointmentStore()
    finder = _finder([_window(_day(0)), _window(_day(10))], store=store)

    result = asyncio.run(finder.find_best_slots(CLIENT, 60, from_date=_day(10)))

    assert list(result.all_slots) == [_day(10)]


def test_store_failures_propagate():
    finder = _finder([_window(_day(0))], store=BrokenAppointmentStore())
    with pytest.raises(UpstreamStoreError):
        asyncio.run(finder.find_best_slots(CLIENT, 60))

    finder = _finder([], hours=BrokenHoursSource())
    with pytest.raises(UpstreamStoreError):
        asyncio.run(finder.find_best_slots(CLIENT, 60))


def test_invalid_duration_is_rejected():
    finder = _finder([_window(_day(0))])

    with pytest.raises(ValueError):
        asyncio.run(finder.find_best_slots(CLIENT, 0))


def test_preferred_slots_lean_toward_window():
    finder = _finder([_window(_day(0))])

    slots = asyncio.run(finder.find_preferred_slots(CLIENT, 60, _day(0), PreferredWindow.AFTERNOON))

    assert [slot.start_time for slot in slots] == [time(12, 0), time(15, 0), time(11, 30)]
    assert [slot.score_value for slot in slots] == pytest.approx([20.0, 20.0, 23.0])


def test_preferred_slots_without_working_hours():
    store = InMemoryAppointmentStore()
    finder = _finder([_window(_day(1))], store=store)

    assert asyncio.run(finder.find_preferred_slots(CLIENT, 60, _day(0), PreferredWindow.MORNING)) == []
    assert store.fetches == []


def test_available_dates_need_a_feasible_slot_inside_window():
    store = InMemoryAppointmentStore([
        ExistingAppointment(id="a1", date=_day(2), start_time=time(9, 0), end_time=time(12, 0), location=APPT_A),
    ])
    windows = [_window(_day(0)), _window(_day(1), time(13, 0), time(17, 0)), _window(_day(2))]
    finder = _finder(windows, store=store)

    dates = asyncio.run(finder.find_available_dates(CLIENT, 60, PreferredWindow.MORNING, days_ahead=3))

    assert dates == [_day(0)]
    assert store.fetches == [_day(0), _day(2)]


def test_available_dates_validates_horizon():
    finder = _finder([])

    with pytest.raises(ValueError):
        asyncio.run(finder.find_available_dates(CLIENT, 60, PreferredWindow.MORNING, days_ahead=0))
