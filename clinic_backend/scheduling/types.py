"""In-memory snapshots the scheduling core computes over.

These are detached from the database session: the store converts ORM rows
into these models before handing them to the slot generator or the conflict
guard, so the core never touches storage directly.
"""

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, field_validator, model_validator

TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


class BookingStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class PaymentStatus(str, Enum):
    PENDING = 'pending'
    PAID = 'paid'
    REFUNDED = 'refunded'


def minutes_of_day(value: str) -> int:
    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


class AvailabilityRuleData(BaseModel):
    id: str
    therapist_id: str
    day_of_week: int
    start_time: str
    end_time: str
    is_break: bool = False

    class Config:
        from_attributes = True

    @field_validator('day_of_week')
    @classmethod
    def validate_day_of_week(cls, value: int) -> int:
        if not 0 <= value <= 6:
            raise ValueError('day_of_week must be between 0 (Sunday) and 6 (Saturday).')
        return value

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_wall_clock(cls, value: str) -> str:
        normalized = value.strip()
        if not TIME_PATTERN.match(normalized):
            raise ValueError('Times must use the HH:MM 24-hour format.')
        return normalized

    @model_validator(mode='after')
    def validate_window(self) -> 'AvailabilityRuleData':
        if minutes_of_day(self.start_time) >= minutes_of_day(self.end_time):
            raise ValueError('start_time must be earlier than end_time.')
        return self


class BusyIntervalData(BaseModel):
    id: str
    therapist_id: str
    start: datetime
    end: datetime
    reason: str | None = None

    class Config:
        from_attributes = True

    @model_validator(mode='after')
    def validate_range(self) -> 'BusyIntervalData':
        if self.start >= self.end:
            raise ValueError('start must be earlier than end.')
        return self


class BookingData(BaseModel):
    id: str | None = None
    client_id: str
    client_name: str
    client_email: str
    therapist_id: str
    therapist_name: str
    session_start: datetime
    duration_minutes: int = 60
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    amount: float = 0.0
    service_id: str | None = None
    service_name: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED


class FeedbackData(BaseModel):
    id: str | None = None
    booking_id: str
    client_id: str
    client_name: str
    therapist_id: str
    rating: int
    comment: str | None = None
    created_at: datetime | None = None
    is_public: bool = True

    class Config:
        from_attributes = True

    @field_validator('rating')
    @classmethod
    def validate_rating(cls, value: int) -> int:
        if not 1 <= value <= 5:
            raise ValueError('Rating must be between 1 and 5.')
        return value


class TherapistData(BaseModel):
    id: str
    name: str
    email: str | None = None
    rating: float = 0.0
    review_count: int = 0

    class Config:
        from_attributes = True


class TimeSlot(BaseModel):
    start_time: str
    date: datetime
    is_available: bool
