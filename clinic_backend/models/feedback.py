"""Feedback model definitions."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from clinic_backend.database import Base


class Feedback(Base):
    """A client's rating of a completed session."""
    __tablename__ = "feedback"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    booking_id = Column(String(64), nullable=False)
    client_id = Column(String(64), nullable=False)
    client_name = Column(String, nullable=False)
    therapist_id = Column(String(64), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
