"""Therapist model definitions."""

from sqlalchemy import Column, Float, Integer, String

from clinic_backend.database import Base


class Therapist(Base):
    __tablename__ = "therapists"

    id = Column(String(64), primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True)
    rating = Column(Float, default=0.0, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)
