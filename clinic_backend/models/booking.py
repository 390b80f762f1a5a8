"""Booking model definitions."""

import uuid

from sqlalchemy import Column, DateTime, Float, Integer, String

from clinic_backend.database import Base


class Booking(Base):
    """Represents a booked therapy session. Cancelled rows are kept."""
    __tablename__ = "bookings"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    client_id = Column(String(64), nullable=False)
    client_name = Column(String, nullable=False)
    client_email = Column(String, nullable=False)
    therapist_id = Column(String(64), nullable=False)
    therapist_name = Column(String, nullable=False)
    session_start = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(String, nullable=False)
    payment_status = Column(String, nullable=False)
    amount = Column(Float, default=0.0, nullable=False)
    service_id = Column(String(64), nullable=True)
    service_name = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)
