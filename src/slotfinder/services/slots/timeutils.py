"""Minute-of-day helpers for working with naive local times."""

from __future__ import annotations

from datetime import date, datetime, time

MINUTES_PER_DAY = 24 * 60


def minute_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def time_from_minutes(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minute of day out of range: {minutes}")
    return time(minutes // 60, minutes % 60)


def add_minutes(value: time, minutes: int) -> time:
    return time_from_minutes(minute_of_day(value) + minutes)


def parse_time(value: str | time) -> time:
    """Parse "HH:MM" or "HH:MM:SS" (as stored by Postgres) into a time."""
    if isinstance(value, time):
        return value
    text = value.strip()
    parts = text.split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time value: {value!r}")
    return time(int(parts[0]), int(parts[1]))


def parse_date(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def format_time(value: time) -> str:
    return value.strftime("%H:%M")
