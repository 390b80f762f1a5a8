from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator

from clinic_backend.auth.dependencies import ensure_can_edit_calendar, get_current_user
from clinic_backend.core import config
from clinic_backend.core.errors import BookingNotFound, ConflictError, StorageUnavailable
from clinic_backend.models.user import User
from clinic_backend.routes.availability_routes import get_booking_service, storage_unavailable
from clinic_backend.scheduling.intervals import end_of_day, require_naive, start_of_day
from clinic_backend.scheduling.types import BookingData, FeedbackData
from clinic_backend.services.booking_service import BookingService, session_end

router = APIRouter(tags=['bookings'])


class CreateBookingRequest(BaseModel):
    therapist_id: str
    therapist_name: str
    client_name: str
    session_start: datetime
    duration_minutes: int = config.SESSION_DURATION_MINUTES
    amount: float = 0.0
    service_id: str | None = None
    service_name: str | None = None
    notes: str | None = None

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if value != config.SESSION_DURATION_MINUTES:
            raise ValueError(f'Sessions last exactly {config.SESSION_DURATION_MINUTES} minutes.')
        return value

    @field_validator('client_name', 'therapist_name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('session_start')
    @classmethod
    def validate_session_start(cls, value: datetime) -> datetime:
        return require_naive(value).replace(second=0, microsecond=0)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_BOOKING_NOTES_LENGTH:
            raise ValueError(f'Notes must be {config.MAX_BOOKING_NOTES_LENGTH} characters or fewer.')

        return normalized


class RescheduleBookingRequest(BaseModel):
    session_start: datetime

    @field_validator('session_start')
    @classmethod
    def validate_session_start(cls, value: datetime) -> datetime:
        return require_naive(value).replace(second=0, microsecond=0)


class CreateFeedbackRequest(BaseModel):
    booking_id: str
    rating: int
    comment: str | None = None
    is_public: bool = True

    @field_validator('rating')
    @classmethod
    def validate_rating(cls, value: int) -> int:
        if not 1 <= value <= 5:
            raise ValueError('Rating must be between 1 and 5.')
        return value


class BookingResponse(BaseModel):
    id: str
    client_id: str
    client_name: str
    client_email: str
    therapist_id: str
    therapist_name: str
    session_start: datetime
    session_end: datetime
    duration_minutes: int
    status: str
    payment_status: str
    amount: float
    service_name: str | None = None
    notes: str | None = None


class FeedbackResponse(BaseModel):
    id: str
    booking_id: str
    therapist_id: str
    rating: int


def to_booking_response(booking: BookingData) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        client_id=booking.client_id,
        client_name=booking.client_name,
        client_email=booking.client_email,
        therapist_id=booking.therapist_id,
        therapist_name=booking.therapist_name,
        session_start=booking.session_start,
        session_end=session_end(booking),
        duration_minutes=booking.duration_minutes,
        status=booking.status.value,
        payment_status=booking.payment_status.value,
        amount=booking.amount,
        service_name=booking.service_name,
        notes=booking.notes,
    )


def ensure_can_manage_booking(user: User, booking: BookingData) -> None:
    if user.role == 'admin':
        return
    if user.role == 'therapist' and user.therapist_id == booking.therapist_id:
        return
    if booking.client_id == str(user.id):
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail='Only the client or therapist of this booking can change it.',
    )


def load_booking(service: BookingService, booking_id: str) -> BookingData:
    try:
        return service.get_booking(booking_id)
    except BookingNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Booking not found.') from exc
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc


@router.post('', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: CreateBookingRequest,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    if data.session_start <= service.clock():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Sessions must be scheduled in the future.',
        )

    booking = BookingData(
        client_id=str(current_user.id),
        client_name=data.client_name,
        client_email=current_user.email,
        therapist_id=data.therapist_id,
        therapist_name=data.therapist_name,
        session_start=data.session_start,
        duration_minutes=data.duration_minutes,
        amount=data.amount,
        service_id=data.service_id,
        service_name=data.service_name,
        notes=data.notes,
    )

    try:
        booking_id = service.create_booking(booking)
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    return to_booking_response(load_booking(service, booking_id))


@router.get('/therapist/{therapist_id}', response_model=list[BookingResponse])
def list_therapist_bookings(
    therapist_id: str,
    start: date = Query(...),
    end: date = Query(...),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    ensure_can_edit_calendar(current_user, therapist_id)

    try:
        bookings = service.get_bookings(therapist_id, start_of_day(start), end_of_day(end))
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    return [to_booking_response(booking) for booking in bookings]


@router.get('/{booking_id}', response_model=BookingResponse)
def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = load_booking(service, booking_id)
    ensure_can_manage_booking(current_user, booking)
    return to_booking_response(booking)


@router.post('/{booking_id}/reschedule', response_model=BookingResponse)
def reschedule_booking(
    booking_id: str,
    data: RescheduleBookingRequest,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = load_booking(service, booking_id)
    ensure_can_manage_booking(current_user, booking)

    if data.session_start <= service.clock():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Sessions must be scheduled in the future.',
        )

    try:
        service.reschedule_booking(booking_id, data.session_start, booking.therapist_id)
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    return to_booking_response(load_booking(service, booking_id))


@router.post('/{booking_id}/cancel', response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = load_booking(service, booking_id)
    ensure_can_manage_booking(current_user, booking)

    try:
        service.cancel_booking(booking_id)
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    return to_booking_response(load_booking(service, booking_id))


@router.post('/{booking_id}/complete', response_model=BookingResponse)
def complete_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = load_booking(service, booking_id)
    ensure_can_edit_calendar(current_user, booking.therapist_id)

    try:
        service.complete_booking(booking_id)
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    return to_booking_response(load_booking(service, booking_id))


@router.post('/feedback', response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
def submit_feedback(
    data: CreateFeedbackRequest,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = load_booking(service, data.booking_id)
    if booking.client_id != str(current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only the client who attended this session can leave feedback.',
        )

    feedback = FeedbackData(
        booking_id=booking.id,
        client_id=booking.client_id,
        client_name=booking.client_name,
        therapist_id=booking.therapist_id,
        rating=data.rating,
        comment=data.comment,
        is_public=data.is_public,
    )

    try:
        feedback_id = service.submit_feedback(feedback)
    except StorageUnavailable as exc:
        raise storage_unavailable() from exc

    return FeedbackResponse(
        id=feedback_id,
        booking_id=booking.id,
        therapist_id=booking.therapist_id,
        rating=data.rating,
    )
