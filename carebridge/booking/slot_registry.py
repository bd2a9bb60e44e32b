"""Bookable time windows published by doctors."""

import logging
from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.orm import Session

from carebridge.core.errors import (
    NotFoundError,
    PermissionDeniedError,
    SlotUnavailableError,
    ValidationError,
)
from carebridge.models.slot import ConsultationSlot

logger = logging.getLogger(__name__)


def normalize_timestamp(value: datetime) -> datetime:
    """Convert an aware datetime to naive server-local time; naive values pass through."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def validate_slot_window(start_time: datetime, end_time: datetime, now: datetime) -> None:
    if end_time <= start_time:
        raise ValidationError('End time must be after start time.')

    if start_time <= now:
        raise ValidationError('Slot must be in the future.')


def publish_slot(
    db: Session,
    doctor_id: int,
    start_time: datetime,
    end_time: datetime,
    now: datetime | None = None,
) -> ConsultationSlot:
    start_time = normalize_timestamp(start_time)
    end_time = normalize_timestamp(end_time)
    validate_slot_window(start_time, end_time, now or datetime.now())

    slot = ConsultationSlot(
        doctor_id=doctor_id,
        start_time=start_time,
        end_time=end_time,
        is_booked=False,
    )

    try:
        db.add(slot)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(slot)
    logger.info('Doctor %s published slot %s (%s - %s)', doctor_id, slot.id, start_time, end_time)
    return slot


def list_available_slots(
    db: Session,
    doctor_id: int,
    from_time: datetime | None = None,
) -> list[ConsultationSlot]:
    from_time = normalize_timestamp(from_time) if from_time else datetime.now()

    return db.query(ConsultationSlot).filter(
        ConsultationSlot.doctor_id == doctor_id,
        ConsultationSlot.is_booked.is_(False),
        ConsultationSlot.start_time >= from_time,
    ).order_by(ConsultationSlot.start_time.asc(), ConsultationSlot.id.asc()).all()


def get_slot(db: Session, slot_id: int) -> ConsultationSlot:
    slot = db.get(ConsultationSlot, slot_id)
    if slot is None:
        raise NotFoundError('Consultation slot not found.')
    return slot


def release_slot(db: Session, slot_id: int, commit: bool = True) -> bool:
    """
    Delete a slot. Returns False when no such slot exists.

    With ``commit=False`` the delete joins the caller's open transaction.
    """
    result = db.execute(
        delete(ConsultationSlot)
        .where(ConsultationSlot.id == slot_id)
        .execution_options(synchronize_session=False)
    )
    released = result.rowcount > 0

    if commit:
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise

    if released:
        logger.info('Released slot %s', slot_id)
    else:
        logger.debug('Slot %s already released', slot_id)
    return released


def withdraw_slot(db: Session, slot_id: int, doctor_id: int) -> None:
    slot = get_slot(db, slot_id)
    if slot.doctor_id != doctor_id:
        raise PermissionDeniedError('Only the doctor who published this slot can remove it.')

    try:
        result = db.execute(
            delete(ConsultationSlot)
            .where(
                ConsultationSlot.id == slot_id,
                ConsultationSlot.is_booked.is_(False),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise SlotUnavailableError('This slot has been booked and can only be freed by resolving its consultation.')
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info('Doctor %s withdrew slot %s', doctor_id, slot_id)
