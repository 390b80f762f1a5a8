"""Availability rule model definitions."""

import uuid

from sqlalchemy import Boolean, Column, Integer, String

from clinic_backend.database import Base


class AvailabilityRule(Base):
    """One recurring weekly window, either working time or a break."""
    __tablename__ = "availability_rules"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    therapist_id = Column(String(64), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_break = Column(Boolean, default=False, nullable=False)
