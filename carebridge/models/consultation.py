"""Consultation model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from carebridge.database import Base

STATUS_PENDING = 'pending'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_CANCELLED})


class Consultation(Base):
    """
    A patient's claim on a slot.

    The slot row is deleted once the consultation is resolved, so the slot's
    doctor and times are copied here at booking time.
    """
    __tablename__ = "consultations"

    id = Column(Integer, primary_key=True)
    # Plain reference: the slot row is gone after resolution.
    slot_id = Column(Integer, nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    phone_number = Column(String, nullable=False)
    medical_condition = Column(Text, nullable=False)
    status = Column(String, nullable=False, default=STATUS_PENDING)
    doctor_notes = Column(Text)
    slot_start_time = Column(DateTime, nullable=False)
    slot_end_time = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    resolved_at = Column(DateTime)
