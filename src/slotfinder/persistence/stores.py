"""Working-hours and appointment sources used by the slot finder."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Iterable, Protocol

from ..errors import ConfigurationError, UpstreamStoreError
from ..models.domain import ExistingAppointment, Location, WorkingWindow
from ..services.slots.timeutils import parse_date, parse_time

logger = logging.getLogger(__name__)


class WorkingHoursSource(Protocol):
    async def list_working_windows(self, from_date: date, limit: int) -> list[WorkingWindow]:
        """Available windows dated ``from_date`` .. ``from_date + limit - 1``, by date then start."""
        ...


class AppointmentStore(Protocol):
    async def list_confirmed_appointments(self, day: date) -> list[ExistingAppointment]:
        """Confirmed appointments on ``day`` ordered by start time."""
        ...


def _window_from_row(row: dict[str, Any]) -> WorkingWindow:
    try:
        return WorkingWindow(
            date=parse_date(row["date"]),
            start_time=parse_time(row["start_time"]),
            end_time=parse_time(row["end_time"]),
            is_available=bool(row.get("is_available", True)),
            source=row.get("source") or "manual",
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise UpstreamStoreError(f"Malformed working hours row {row!r}: {exc}") from exc


def _appointment_from_row(row: dict[str, Any]) -> ExistingAppointment:
    try:
        return ExistingAppointment(
            id=str(row["id"]),
            date=parse_date(row["date"]),
            start_time=parse_time(row["start_time"]),
            end_time=parse_time(row["end_time"]),
            location=Location(latitude=float(row["lat"]), longitude=float(row["lng"])),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise UpstreamStoreError(f"Malformed appointment row {row!r}: {exc}") from exc


def _sort_windows(windows: Iterable[WorkingWindow]) -> list[WorkingWindow]:
    return sorted(windows, key=lambda window: (window.date, window.start_time))


class SupabaseWorkingHoursSource:
    """Reads the ``working_hour_windows`` table (manual and calendar-imported hours)."""

    table = "working_hour_windows"

    def __init__(self, client: Any) -> None:
        if client is None:
            raise ConfigurationError("Supabase is not configured; cannot read working hours.")
        self._client = client

    def _fetch(self, from_date: date, limit: int) -> list[WorkingWindow]:
        end_date = from_date + timedelta(days=max(limit, 1) - 1)
        try:
            response = (
                self._client.table(self.table)
                .select("date,start_time,end_time,is_available,source")
                .gte("date", from_date.isoformat())
                .lte("date", end_date.isoformat())
                .eq("is_available", True)
                .order("date")
                .order("start_time")
                .execute()
            )
        except Exception as exc:
            raise UpstreamStoreError(f"Failed to fetch working hours from {from_date}: {exc}") from exc
        return _sort_windows(_window_from_row(row) for row in (response.data or []))

    async def list_working_windows(self, from_date: date, limit: int) -> list[WorkingWindow]:
        return await asyncio.to_thread(self._fetch, from_date, limit)


class SupabaseAppointmentStore:
    table = "appointments"

    def __init__(self, client: Any) -> None:
        if client is None:
            raise ConfigurationError("Supabase is not configured; cannot read appointments.")
        self._client = client

    def _fetch(self, day: date) -> list[ExistingAppointment]:
        try:
            response = (
                self._client.table(self.table)
                .select("id,date,start_time,end_time,lat,lng")
                .eq("date", day.isoformat())
                .eq("status", "confirmed")
                .order("start_time")
                .execute()
            )
        except Exception as exc:
            raise UpstreamStoreError(f"Failed to fetch appointments for {day}: {exc}") from exc
        appointments = [_appointment_from_row(row) for row in (response.data or [])]
        logger.debug(f"Loaded {len(appointments)} confirmed appointment(s) for {day}")
        return sorted(appointments, key=lambda appt: appt.start_time)

    async def list_confirmed_appointments(self, day: date) -> list[ExistingAppointment]:
        return await asyncio.to_thread(self._fetch, day)


class InMemoryWorkingHoursSource:
    def __init__(self, windows: Iterable[WorkingWindow] = ()) -> None:
        self.windows = list(windows)

    async def list_working_windows(self, from_date: date, limit: int) -> list[WorkingWindow]:
        end_date = from_date + timedelta(days=max(limit, 1) - 1)
        return _sort_windows(
            window for window in self.windows if window.is_available and from_date <= window.date <= end_date
        )


class InMemoryAppointmentStore:
    def __init__(self, appointments: Iterable[ExistingAppointment] = ()) -> None:
        self.appointments = list(appointments)
        self.fetches: list[date] = []

    async def list_confirmed_appointments(self, day: date) -> list[ExistingAppointment]:
        self.fetches.append(day)
        return sorted((appt for appt in self.appointments if appt.date == day), key=lambda appt: appt.start_time)
