"""Slot search endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...errors import UpstreamStoreError
from ...models.domain import Location
from ...schemas.slots import (
    AvailableDatesRequest,
    AvailableDatesResponse,
    PreferredSlotsRequest,
    PreferredSlotsResponse,
    SlotModel,
    SlotSearchRequest,
    SlotSearchResponse,
)
from ...services.slots.service import SlotFinder

router = APIRouter(prefix="/slots", tags=["slots"])

logger = logging.getLogger(__name__)


def get_slot_finder(request: Request) -> SlotFinder:
    return request.app.state.slot_finder


def _store_failure(exc: UpstreamStoreError) -> HTTPException:
    logger.error(f"Store failure during slot search: {exc}")
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Availability could not be loaded: {exc}",
    )


@router.post("/available", response_model=SlotSearchResponse, status_code=status.HTTP_200_OK)
async def available_slots(payload: SlotSearchRequest, finder: SlotFinder = Depends(get_slot_finder)) -> SlotSearchResponse:
    try:
        result = await finder.find_best_slots(
            Location(latitude=payload.lat, longitude=payload.lng),
            payload.duration_mins,
            payload.from_date,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except UpstreamStoreError as exc:
        raise _store_failure(exc) from exc
    except Exception as exc:
        logging.exception(f"Error finding slots: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to find slots: {str(exc)}",
        ) from exc

    return SlotSearchResponse(
        featured_slots=[SlotModel.from_slot(slot) for slot in result.featured],
        all_slots={
            day.isoformat(): [SlotModel.from_slot(slot) for slot in slots]
            for day, slots in result.all_slots.items()
        },
    )


@router.post("/preferred", response_model=PreferredSlotsResponse, status_code=status.HTTP_200_OK)
async def preferred_slots(
    payload: PreferredSlotsRequest, finder: SlotFinder = Depends(get_slot_finder)
) -> PreferredSlotsResponse:
    try:
        slots = await finder.find_preferred_slots(
            Location(latitude=payload.lat, longitude=payload.lng),
            payload.duration_mins,
            payload.preferred_date,
            payload.preferred_window,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except UpstreamStoreError as exc:
        raise _store_failure(exc) from exc
    except Exception as exc:
        logging.exception(f"Error finding preferred slots: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to find preferred slots: {str(exc)}",
        ) from exc

    return PreferredSlotsResponse(slots=[SlotModel.from_slot(slot) for slot in slots])


@router.post("/dates", response_model=AvailableDatesResponse, status_code=status.HTTP_200_OK)
async def available_dates(
    payload: AvailableDatesRequest, finder: SlotFinder = Depends(get_slot_finder)
) -> AvailableDatesResponse:
    try:
        dates = await finder.find_available_dates(
            Location(latitude=payload.lat, longitude=payload.lng),
            payload.duration_mins,
            payload.preferred_window,
            payload.from_date,
            payload.days_ahead,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except UpstreamStoreError as exc:
        raise _store_failure(exc) from exc
    except Exception as exc:
        logging.exception(f"Error finding available dates: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to find available dates: {str(exc)}",
        ) from exc

    return AvailableDatesResponse(available_dates=dates)
