from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from carebridge.auth.dependencies import get_current_user
from carebridge.booking.coordinator import book_slot
from carebridge.booking.doctors import get_verified_doctor
from carebridge.booking.lifecycle import (
    list_doctor_consultations,
    list_patient_consultations,
    resolve_consultation,
)
from carebridge.database import get_db
from carebridge.models.consultation import TERMINAL_STATUSES
from carebridge.models.user import User
from carebridge.routes.common import ensure_database_ready, run_booking_operation

router = APIRouter(tags=['consultations'])


class BookConsultationRequest(BaseModel):
    slot_id: int
    phone_number: str
    medical_condition: str


class ResolveConsultationRequest(BaseModel):
    outcome: str
    notes: str | None = None

    @field_validator('outcome')
    @classmethod
    def validate_outcome(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in TERMINAL_STATUSES:
            raise ValueError('Outcome must be either completed or cancelled.')
        return normalized


class ConsultationResponse(BaseModel):
    id: int
    slot_id: int
    patient_id: int
    doctor_id: int
    phone_number: str
    medical_condition: str
    status: str
    doctor_notes: str | None = None
    slot_start_time: datetime
    slot_end_time: datetime
    created_at: datetime | None = None
    resolved_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('', response_model=ConsultationResponse, status_code=status.HTTP_201_CREATED)
def create_consultation(
    data: BookConsultationRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    return run_booking_operation(
        lambda: book_slot(db, data.slot_id, current_user.id, data.phone_number, data.medical_condition),
        description='book slot',
    )


@router.get('/mine', response_model=list[ConsultationResponse])
def list_my_consultations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    return run_booking_operation(
        lambda: list_patient_consultations(db, current_user.id),
        description='list patient consultations',
    )


@router.get('/doctor', response_model=list[ConsultationResponse])
def list_doctor_queue(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    def load():
        doctor = get_verified_doctor(db, current_user)
        return list_doctor_consultations(db, doctor.id)

    return run_booking_operation(load, description='list doctor consultations')


@router.post('/{consultation_id}/resolve', response_model=ConsultationResponse)
def resolve(
    consultation_id: int,
    data: ResolveConsultationRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    def apply():
        doctor = get_verified_doctor(db, current_user)
        return resolve_consultation(db, consultation_id, data.outcome, data.notes, doctor_id=doctor.id)

    return run_booking_operation(apply, description='resolve consultation')
