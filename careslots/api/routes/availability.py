from fastapi import APIRouter, Depends, HTTPException, Query, status

from careslots.api.deps import get_blocking_statuses, get_data_source, get_timezone
from careslots.api.schemas.availability import (
    AvailableDatesResponse,
    AvailableSlotsResponse,
    SlotCheckResponse,
    SlotInfo,
)
from careslots.core.config import settings
from careslots.core.errors import ErrorKind
from careslots.core.timeutil import to_utc
from careslots.models.slot import ErrorResult
from careslots.services.availability_service import is_slot_available, resolve_available_slots
from careslots.services.data_access import AvailabilityDataSource
from careslots.services.monthly_service import resolve_available_dates_in_month

router = APIRouter(prefix="/providers", tags=["availability"])

_ERROR_STATUS = {
    ErrorKind.invalid_input: status.HTTP_422_UNPROCESSABLE_ENTITY,
    # Retryable: the caller can tell this apart from "no openings"
    ErrorKind.data_access: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _raise_for(result: ErrorResult) -> None:
    raise HTTPException(status_code=_ERROR_STATUS[result.error], detail=result.detail)


def _duration(duration: int | None) -> int:
    return settings.default_appointment_duration_minutes if duration is None else duration


@router.get("/{provider_id}/slots", response_model=AvailableSlotsResponse)
async def available_slots(
    provider_id: str,
    date_param: str = Query(..., alias="date"),
    duration: int | None = Query(None),
    data_source: AvailabilityDataSource = Depends(get_data_source),
    tz_name: str = Depends(get_timezone),
    blocking_statuses: frozenset[str] = Depends(get_blocking_statuses),
):
    """Bookable slots for one local date (YYYY-MM-DD in the provider's zone), ascending."""
    result = await resolve_available_slots(
        data_source, provider_id, date_param, _duration(duration), tz_name, blocking_statuses
    )
    if isinstance(result, ErrorResult):
        _raise_for(result)
    return AvailableSlotsResponse(
        date=result.date,
        timezone=tz_name,
        slots=[
            SlotInfo(start_utc=s.start_utc, end_utc=s.end_utc, local_label=s.local_label)
            for s in result.slots
        ],
    )


@router.get("/{provider_id}/available-dates", response_model=AvailableDatesResponse)
async def available_dates(
    provider_id: str,
    year: int = Query(...),
    month: int = Query(...),
    duration: int | None = Query(None),
    data_source: AvailabilityDataSource = Depends(get_data_source),
    tz_name: str = Depends(get_timezone),
    blocking_statuses: frozenset[str] = Depends(get_blocking_statuses),
):
    """Dates of the month with at least one bookable slot. Dates without openings are omitted."""
    result = await resolve_available_dates_in_month(
        data_source, provider_id, year, month, _duration(duration), tz_name, blocking_statuses
    )
    if isinstance(result, ErrorResult):
        _raise_for(result)
    return AvailableDatesResponse(
        year=result.year, month=result.month, timezone=tz_name, dates=sorted(result.dates)
    )


@router.get("/{provider_id}/slots/check", response_model=SlotCheckResponse)
async def check_slot(
    provider_id: str,
    start_utc: str = Query(...),
    duration: int | None = Query(None),
    data_source: AvailabilityDataSource = Depends(get_data_source),
    tz_name: str = Depends(get_timezone),
    blocking_statuses: frozenset[str] = Depends(get_blocking_statuses),
):
    """Advisory check for a booking path; the insert must still do its own uniqueness check."""
    minutes = _duration(duration)
    result = await is_slot_available(
        data_source, provider_id, start_utc, minutes, tz_name, blocking_statuses
    )
    if isinstance(result, ErrorResult):
        _raise_for(result)
    return SlotCheckResponse(start_utc=to_utc(start_utc), duration_minutes=minutes, available=result)
