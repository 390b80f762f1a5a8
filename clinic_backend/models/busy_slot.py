"""Busy slot model definitions."""

import uuid

from sqlalchemy import Column, DateTime, String

from clinic_backend.database import Base


class BusySlot(Base):
    """An ad-hoc block of unavailable time layered over the weekly rules."""
    __tablename__ = "busy_slots"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    therapist_id = Column(String(64), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    reason = Column(String, nullable=True)
