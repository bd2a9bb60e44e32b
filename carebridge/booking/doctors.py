"""Doctor registration and admin verification."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from carebridge.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from carebridge.models.doctor import Doctor
from carebridge.models.user import ROLE_ADMIN, ROLE_DOCTOR, User

logger = logging.getLogger(__name__)

MAX_YEARS_OF_EXPERIENCE = 80


def register_doctor(
    db: Session,
    user: User,
    specialization: str,
    license_number: str,
    years_of_experience: int,
) -> Doctor:
    """
    Create or update the caller's doctor profile.

    Any change puts the profile back into the verification queue.
    """
    specialization = (specialization or '').strip()
    license_number = (license_number or '').strip().upper()

    if not specialization:
        raise ValidationError('Specialization is required.')
    if not license_number:
        raise ValidationError('License number is required.')
    if years_of_experience < 0 or years_of_experience > MAX_YEARS_OF_EXPERIENCE:
        raise ValidationError('Years of experience is out of range.')

    doctor = db.query(Doctor).filter(Doctor.profile_id == user.id).first()
    if doctor is None:
        doctor = Doctor(profile_id=user.id)
        db.add(doctor)

    doctor.specialization = specialization
    doctor.license_number = license_number
    doctor.years_of_experience = years_of_experience
    doctor.is_verified = False
    if user.role != ROLE_ADMIN:
        user.role = ROLE_DOCTOR

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError('This license number is already registered.') from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(doctor)
    logger.info('User %s submitted doctor profile %s for verification', user.id, doctor.id)
    return doctor


def get_doctor_for_user(db: Session, user: User) -> Doctor:
    doctor = db.query(Doctor).filter(Doctor.profile_id == user.id).first()
    if doctor is None:
        raise NotFoundError('Doctor profile not found. Please complete your profile first.')
    return doctor


def get_verified_doctor(db: Session, user: User) -> Doctor:
    doctor = get_doctor_for_user(db, user)
    if not doctor.is_verified:
        raise PermissionDeniedError('Your doctor profile is pending verification.')
    return doctor


def set_verification(db: Session, doctor_id: int, verified: bool) -> Doctor:
    doctor = db.get(Doctor, doctor_id)
    if doctor is None:
        raise NotFoundError('Doctor not found.')

    doctor.is_verified = verified
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(doctor)
    logger.info('Doctor %s %s', doctor_id, 'verified' if verified else 'unverified')
    return doctor


def list_verified_doctors(db: Session) -> list[Doctor]:
    return db.query(Doctor).filter(
        Doctor.is_verified.is_(True),
    ).order_by(Doctor.years_of_experience.desc(), Doctor.id.asc()).all()


def list_doctors(db: Session) -> list[Doctor]:
    return db.query(Doctor).order_by(Doctor.created_at.desc(), Doctor.id.desc()).all()


def get_verification_stats(db: Session) -> dict[str, int]:
    return {
        'total_users': db.query(func.count(User.id)).scalar() or 0,
        'total_doctors': db.query(func.count(Doctor.id)).scalar() or 0,
        'pending_verifications': db.query(func.count(Doctor.id)).filter(
            Doctor.is_verified.is_(False),
        ).scalar() or 0,
    }
