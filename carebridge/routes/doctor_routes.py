from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from carebridge.auth.dependencies import get_current_user, require_admin
from carebridge.booking.doctors import (
    get_doctor_for_user,
    get_verification_stats,
    list_doctors,
    list_verified_doctors,
    register_doctor,
    set_verification,
)
from carebridge.database import get_db
from carebridge.models.doctor import Doctor
from carebridge.models.user import User
from carebridge.routes.common import ensure_database_ready, run_booking_operation

router = APIRouter(tags=['doctors'])


class DoctorProfileRequest(BaseModel):
    specialization: str
    license_number: str
    years_of_experience: int = Field(ge=0)

    @field_validator('specialization', 'license_number')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('This field is required.')
        return normalized


class VerificationRequest(BaseModel):
    is_verified: bool


class DoctorResponse(BaseModel):
    id: int
    full_name: str
    specialization: str
    years_of_experience: int
    is_verified: bool


class DoctorProfileResponse(DoctorResponse):
    profile_id: int
    license_number: str
    created_at: datetime | None = None


class VerificationStatsResponse(BaseModel):
    total_users: int
    total_doctors: int
    pending_verifications: int


def to_doctor_response(doctor: Doctor) -> DoctorResponse:
    return DoctorResponse(
        id=doctor.id,
        full_name=(doctor.profile.full_name if doctor.profile else None) or '',
        specialization=doctor.specialization,
        years_of_experience=doctor.years_of_experience,
        is_verified=doctor.is_verified,
    )


def to_doctor_profile_response(doctor: Doctor) -> DoctorProfileResponse:
    return DoctorProfileResponse(
        **to_doctor_response(doctor).model_dump(),
        profile_id=doctor.profile_id,
        license_number=doctor.license_number,
        created_at=doctor.created_at,
    )


@router.get('', response_model=list[DoctorResponse])
def list_available_doctors(db: Session = Depends(get_db)):
    ensure_database_ready()

    doctors = run_booking_operation(lambda: list_verified_doctors(db), description='list verified doctors')
    return [to_doctor_response(doctor) for doctor in doctors]


@router.get('/me', response_model=DoctorProfileResponse)
def my_doctor_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    doctor = run_booking_operation(lambda: get_doctor_for_user(db, current_user), description='load doctor profile')
    return to_doctor_profile_response(doctor)


@router.post('/profile', response_model=DoctorProfileResponse)
def submit_doctor_profile(
    data: DoctorProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    doctor = run_booking_operation(
        lambda: register_doctor(
            db,
            current_user,
            data.specialization,
            data.license_number,
            data.years_of_experience,
        ),
        description='register doctor',
    )
    return to_doctor_profile_response(doctor)


@router.get('/all', response_model=list[DoctorProfileResponse])
def list_all_doctors(
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    doctors = run_booking_operation(lambda: list_doctors(db), description='list doctors')
    return [to_doctor_profile_response(doctor) for doctor in doctors]


@router.get('/stats', response_model=VerificationStatsResponse)
def verification_stats(
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    stats = run_booking_operation(lambda: get_verification_stats(db), description='load verification stats')
    return VerificationStatsResponse(**stats)


@router.patch('/{doctor_id}/verification', response_model=DoctorProfileResponse)
def update_verification(
    doctor_id: int,
    data: VerificationRequest,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    doctor = run_booking_operation(
        lambda: set_verification(db, doctor_id, data.is_verified),
        description='update doctor verification',
    )
    return to_doctor_profile_response(doctor)
