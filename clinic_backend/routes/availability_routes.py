import uuid
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from clinic_backend.auth.dependencies import ensure_can_edit_calendar, get_current_user
from clinic_backend.core import config
from clinic_backend.core.errors import StorageUnavailable
from clinic_backend.database import get_db
from clinic_backend.models.user import User
from clinic_backend.scheduling.availability import day_name, format_time_slot
from clinic_backend.scheduling.intervals import end_of_day, require_naive, start_of_day
from clinic_backend.scheduling.types import AvailabilityRuleData, BusyIntervalData
from clinic_backend.services.booking_service import BookingService
from clinic_backend.services.store import SqlBookingStore

router = APIRouter(tags=['availability'])

STORAGE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


class AvailabilityRuleInput(BaseModel):
    day_of_week: int
    start_time: str
    end_time: str
    is_break: bool = False


class SaveAvailabilityRequest(BaseModel):
    rules: list[AvailabilityRuleInput]


class AvailabilityRuleResponse(BaseModel):
    id: str
    therapist_id: str
    day_of_week: int
    day_name: str
    start_time: str
    end_time: str
    is_break: bool


class TimeSlotResponse(BaseModel):
    start_time: str
    label: str
    date: datetime
    is_available: bool


class CreateBusyIntervalRequest(BaseModel):
    start: datetime
    end: datetime
    reason: str | None = None

    @field_validator('start', 'end')
    @classmethod
    def validate_local_time(cls, value: datetime) -> datetime:
        return require_naive(value)

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None

    @model_validator(mode='after')
    def validate_range(self) -> 'CreateBusyIntervalRequest':
        if self.start >= self.end:
            raise ValueError('Busy interval must end after it starts.')
        return self


class BusyIntervalResponse(BaseModel):
    id: str
    therapist_id: str
    start: datetime
    end: datetime
    reason: str | None = None


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(SqlBookingStore(db))


def storage_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=STORAGE_UNAVAILABLE_DETAIL,
    )


def to_rule_response(rule: AvailabilityRuleData) -> AvailabilityRuleResponse:
    return AvailabilityRuleResponse(
        id=rule.id,
        therapist_id=rule.therapist_id,
        day_of_week=rule.day_of_week,
        day_name=day_name(rule.day_of_week),
        start_time=rule.start_time,
        end_time=rule.end_time,
        is_break=rule.is_break,
    )


@router.get('/{therapist_id}/rules', response_model=list[AvailabilityRuleResponse])
def list_availability_rules(therapist_id: str, service: BookingService = Depends(get_booking_service)):
    # Never fails on storage errors; the default schedule is served instead.
    return [to_rule_response(rule) for rule in service.get_availability(therapist_id)]


@router.put('/{therapist_id}/rules', response_model=list[AvailabilityRuleResponse])
def save_availability_rules(
    therapist_id: str,
    data: SaveAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    ensure_can_edit_calendar(current_user, therapist_id)

    try:
        rules = [
            AvailabilityRuleData(
                id=str(uuid.uuid4()),
                therapist_id=therapist_id,
                day_of_week=rule.day_of_week,
                start_time=rule.start_time,
                end_time=rule.end_time,
                is_break=rule.is_break,
            )
            for rule in data.rules
        ]
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        service.save_availability(therapist_id, rules)
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    return [to_rule_response(rule) for rule in rules]


@router.get('/{therapist_id}/dates', response_model=list[date])
def list_available_dates(
    therapist_id: str,
    days: int = Query(default=config.CALENDAR_DAYS, ge=1, le=config.MAX_CALENDAR_DAYS),
    service: BookingService = Depends(get_booking_service),
):
    return [current_day.date() for current_day in service.get_available_dates(therapist_id, days)]


@router.get('/{therapist_id}/slots', response_model=list[TimeSlotResponse])
def list_time_slots(
    therapist_id: str,
    day: date = Query(..., alias='date'),
    exclude_booking_id: str | None = Query(default=None),
    available_only: bool = Query(default=False),
    service: BookingService = Depends(get_booking_service),
):
    try:
        slots = service.get_available_slots(therapist_id, day, exclude_booking_id=exclude_booking_id)
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    if available_only:
        slots = [slot for slot in slots if slot.is_available]

    return [
        TimeSlotResponse(
            start_time=slot.start_time,
            label=format_time_slot(slot.start_time),
            date=slot.date,
            is_available=slot.is_available,
        )
        for slot in slots
    ]


@router.get('/{therapist_id}/busy', response_model=list[BusyIntervalResponse])
def list_busy_intervals(
    therapist_id: str,
    start: date = Query(...),
    end: date = Query(...),
    service: BookingService = Depends(get_booking_service),
):
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='start must not be after end.',
        )

    try:
        intervals = service.get_busy_intervals(therapist_id, start_of_day(start), end_of_day(end))
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    return [BusyIntervalResponse(**interval.model_dump()) for interval in intervals]


@router.post('/{therapist_id}/busy', response_model=BusyIntervalResponse, status_code=status.HTTP_201_CREATED)
def create_busy_interval(
    therapist_id: str,
    data: CreateBusyIntervalRequest,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    ensure_can_edit_calendar(current_user, therapist_id)

    interval = BusyIntervalData(
        id=str(uuid.uuid4()),
        therapist_id=therapist_id,
        start=data.start,
        end=data.end,
        reason=data.reason,
    )

    try:
        service.add_busy_interval(interval)
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    return BusyIntervalResponse(**interval.model_dump())


@router.delete('/{therapist_id}/busy/{busy_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_busy_interval(
    therapist_id: str,
    busy_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    ensure_can_edit_calendar(current_user, therapist_id)

    try:
        removed = service.remove_busy_interval(therapist_id, busy_id)
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Busy interval not found.',
        )
