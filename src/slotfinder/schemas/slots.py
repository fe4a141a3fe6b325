"""Slot search request/response schemas."""

from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.domain import CandidateSlot
from ..services.slots.preferences import PreferredWindow
from ..services.slots.timeutils import format_time


class SlotSearchRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    duration_mins: int = Field(..., ge=30, le=180)
    from_date: Optional[dt.date] = Field(default=None, description="First day to search; defaults to today.")


class PreferredSlotsRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    duration_mins: int = Field(..., ge=30, le=180)
    preferred_date: dt.date
    preferred_window: PreferredWindow


class AvailableDatesRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    duration_mins: int = Field(..., ge=30, le=180)
    preferred_window: PreferredWindow
    from_date: Optional[dt.date] = None
    days_ahead: int = Field(default=14, ge=1, le=60)


class SlotModel(BaseModel):
    date: dt.date
    start_time: str
    end_time: str
    duration_mins: int
    score: float

    @classmethod
    def from_slot(cls, slot: CandidateSlot) -> "SlotModel":
        return cls(
            date=slot.date,
            start_time=format_time(slot.start_time),
            end_time=format_time(slot.end_time),
            duration_mins=slot.duration_mins,
            score=slot.score_value,
        )


class SlotSearchResponse(BaseModel):
    featured_slots: List[SlotModel]
    all_slots: Dict[str, List[SlotModel]]


class PreferredSlotsResponse(BaseModel):
    slots: List[SlotModel]


class AvailableDatesResponse(BaseModel):
    available_dates: List[dt.date]
