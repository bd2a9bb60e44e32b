"""Turns a free slot into a pending consultation.

The claim is a single conditional ``UPDATE ... WHERE is_booked = false``; the
number of rows it touched decides who wins a slot, so two requesters on
different processes can never both book it. The consultation insert rides in
the same transaction and a failure anywhere rolls the claim back.
"""

import logging
import re
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from carebridge.core.errors import NotFoundError, SlotUnavailableError, ValidationError
from carebridge.models.consultation import STATUS_PENDING, Consultation
from carebridge.models.slot import ConsultationSlot

logger = logging.getLogger(__name__)

MAX_MEDICAL_CONDITION_LENGTH = 2000
PHONE_NUMBER_PATTERN = re.compile(r'^\+?[0-9 ()\-]{7,20}$')
MIN_PHONE_DIGITS = 7


def normalize_phone_number(value: str | None) -> str:
    normalized = (value or '').strip()
    if not normalized:
        raise ValidationError('Phone number is required.')
    digits = sum(character.isdigit() for character in normalized)
    if not PHONE_NUMBER_PATTERN.match(normalized) or digits < MIN_PHONE_DIGITS:
        raise ValidationError('Enter a valid phone number.')
    return normalized


def normalize_medical_condition(value: str | None) -> str:
    normalized = (value or '').strip()
    if not normalized:
        raise ValidationError('Please describe your medical condition.')
    if len(normalized) > MAX_MEDICAL_CONDITION_LENGTH:
        raise ValidationError(
            f'Medical condition must be {MAX_MEDICAL_CONDITION_LENGTH} characters or fewer.'
        )
    return normalized


def claim_slot(db: Session, slot_id: int, now: datetime) -> bool:
    """Mark the slot booked if it is still free and upcoming. Does not commit."""
    result = db.execute(
        update(ConsultationSlot)
        .where(
            ConsultationSlot.id == slot_id,
            ConsultationSlot.is_booked.is_(False),
            ConsultationSlot.start_time > now,
        )
        .values(is_booked=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def book_slot(
    db: Session,
    slot_id: int,
    patient_id: int,
    phone_number: str,
    medical_condition: str,
    now: datetime | None = None,
) -> Consultation:
    phone_number = normalize_phone_number(phone_number)
    medical_condition = normalize_medical_condition(medical_condition)
    now = now or datetime.now()

    try:
        if not claim_slot(db, slot_id, now):
            slot_exists = db.query(ConsultationSlot.id).filter(ConsultationSlot.id == slot_id).first()
            if slot_exists is None:
                raise NotFoundError('Consultation slot not found.')
            logger.info('Patient %s lost slot %s to an earlier booking', patient_id, slot_id)
            raise SlotUnavailableError()

        doctor_id, start_time, end_time = db.query(
            ConsultationSlot.doctor_id,
            ConsultationSlot.start_time,
            ConsultationSlot.end_time,
        ).filter(ConsultationSlot.id == slot_id).one()

        consultation = Consultation(
            slot_id=slot_id,
            patient_id=patient_id,
            doctor_id=doctor_id,
            phone_number=phone_number,
            medical_condition=medical_condition,
            status=STATUS_PENDING,
            slot_start_time=start_time,
            slot_end_time=end_time,
        )
        db.add(consultation)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(consultation)
    logger.info('Patient %s booked slot %s as consultation %s', patient_id, slot_id, consultation.id)
    return consultation
