"""Resolution of pending consultations.

pending -> completed and pending -> cancelled are the only transitions. The
status change and the slot release commit together.
"""

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from carebridge.booking.slot_registry import release_slot
from carebridge.core.errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from carebridge.models.consultation import STATUS_PENDING, TERMINAL_STATUSES, Consultation

logger = logging.getLogger(__name__)

MAX_DOCTOR_NOTES_LENGTH = 2000


def normalize_outcome(outcome: str) -> str:
    normalized = (outcome or '').strip().lower()
    if normalized not in TERMINAL_STATUSES:
        raise ValidationError('Outcome must be either completed or cancelled.')
    return normalized


def normalize_notes(notes: str | None) -> str | None:
    if notes is None:
        return None

    normalized = notes.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_DOCTOR_NOTES_LENGTH:
        raise ValidationError(f'Notes must be {MAX_DOCTOR_NOTES_LENGTH} characters or fewer.')

    return normalized


def get_consultation(db: Session, consultation_id: int) -> Consultation:
    consultation = db.get(Consultation, consultation_id)
    if consultation is None:
        raise NotFoundError('Consultation not found.')
    return consultation


def resolve_consultation(
    db: Session,
    consultation_id: int,
    outcome: str,
    notes: str | None = None,
    doctor_id: int | None = None,
) -> Consultation:
    outcome = normalize_outcome(outcome)
    notes = normalize_notes(notes)

    consultation = get_consultation(db, consultation_id)
    if doctor_id is not None and consultation.doctor_id != doctor_id:
        raise PermissionDeniedError('Only the doctor for this consultation can update it.')
    if consultation.status != STATUS_PENDING:
        raise InvalidTransitionError(f'Consultation is already {consultation.status}.')

    patch = {'status': outcome, 'resolved_at': datetime.now()}
    if notes is not None:
        patch['doctor_notes'] = notes

    try:
        result = db.execute(
            update(Consultation)
            .where(
                Consultation.id == consultation_id,
                Consultation.status == STATUS_PENDING,
            )
            .values(**patch)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidTransitionError('Consultation was resolved by another request.')

        release_slot(db, consultation.slot_id, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(consultation)
    logger.info('Consultation %s marked %s; slot %s released', consultation_id, outcome, consultation.slot_id)
    return consultation


def list_patient_consultations(db: Session, patient_id: int) -> list[Consultation]:
    return db.query(Consultation).filter(
        Consultation.patient_id == patient_id,
    ).order_by(Consultation.created_at.desc(), Consultation.id.desc()).all()


def list_doctor_consultations(db: Session, doctor_id: int) -> list[Consultation]:
    return db.query(Consultation).filter(
        Consultation.doctor_id == doctor_id,
    ).order_by(Consultation.created_at.desc(), Consultation.id.desc()).all()
