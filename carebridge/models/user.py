"""User profile model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from carebridge.database import Base

ROLE_USER = 'user'
ROLE_DOCTOR = 'doctor'
ROLE_ADMIN = 'admin'


class User(Base):
    """Represents a portal user profile."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String)
    role = Column(String, nullable=False, default=ROLE_USER)  # user/doctor/admin
    created_at = Column(DateTime, default=datetime.now)
