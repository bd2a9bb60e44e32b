from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from carebridge.auth.dependencies import get_current_user
from carebridge.booking.doctors import get_verified_doctor
from carebridge.booking.slot_registry import list_available_slots, publish_slot, withdraw_slot
from carebridge.database import get_db
from carebridge.models.user import User
from carebridge.routes.common import ensure_database_ready, run_booking_operation

router = APIRouter(tags=['slots'])


class PublishSlotRequest(BaseModel):
    start_time: datetime
    end_time: datetime


class SlotResponse(BaseModel):
    id: int
    doctor_id: int
    start_time: datetime
    end_time: datetime
    is_booked: bool

    class Config:
        from_attributes = True


@router.post('', response_model=SlotResponse, status_code=status.HTTP_201_CREATED)
def create_slot(
    data: PublishSlotRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    def publish():
        doctor = get_verified_doctor(db, current_user)
        return publish_slot(db, doctor.id, data.start_time, data.end_time)

    # Publishing is not idempotent, so transient failures are reported, not retried.
    return run_booking_operation(publish, description='publish slot', max_attempts=1)


@router.get('', response_model=list[SlotResponse])
def list_slots(
    doctor_id: int = Query(...),
    from_time: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    return run_booking_operation(
        lambda: list_available_slots(db, doctor_id, from_time),
        description='list available slots',
    )


@router.delete('/{slot_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_slot(
    slot_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    def withdraw():
        doctor = get_verified_doctor(db, current_user)
        withdraw_slot(db, slot_id, doctor.id)

    run_booking_operation(withdraw, description='withdraw slot')
