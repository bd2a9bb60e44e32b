"""Doctor profile model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from carebridge.database import Base
from carebridge.models.user import User


class Doctor(Base):
    """A user's professional profile; only verified doctors take bookings."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True)
    profile_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    specialization = Column(String, nullable=False)
    license_number = Column(String, unique=True, nullable=False)
    years_of_experience = Column(Integer, nullable=False, default=0)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.now)

    profile = relationship(User)
