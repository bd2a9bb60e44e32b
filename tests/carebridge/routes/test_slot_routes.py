from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from carebridge.models.slot import ConsultationSlot
from carebridge.routes.slot_routes import PublishSlotRequest, create_slot, list_slots, remove_slot


@pytest.fixture(autouse=True)
def skip_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('carebridge.routes.slot_routes.ensure_database_ready', lambda: None)


def test_create_slot_publishes_for_verified_doctor(db, doctor, at_tomorrow) -> None:
    request = PublishSlotRequest(start_time=at_tomorrow(10, 0), end_time=at_tomorrow(10, 30))

    slot = create_slot(data=request, current_user=doctor.profile, db=db)

    assert slot.doctor_id == doctor.id
    assert [listed.id for listed in list_slots(doctor_id=doctor.id, from_time=None, db=db)] == [slot.id]


def test_create_slot_rejects_past_start(db, doctor) -> None:
    request = PublishSlotRequest(
        start_time=datetime.now() - timedelta(seconds=1),
        end_time=datetime.now() + timedelta(minutes=30),
    )

    with pytest.raises(HTTPException) as exception_info:
        create_slot(data=request, current_user=doctor.profile, db=db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Slot must be in the future.'


def test_create_slot_rejects_unverified_doctor(db, make_doctor, at_tomorrow) -> None:
    pending = make_doctor('dr.pending@example.com', 'LIC-9009', verified=False)
    request = PublishSlotRequest(start_time=at_tomorrow(10, 0), end_time=at_tomorrow(10, 30))

    with pytest.raises(HTTPException) as exception_info:
        create_slot(data=request, current_user=pending.profile, db=db)

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail == 'Your doctor profile is pending verification.'


def test_create_slot_rejects_user_without_doctor_profile(db, patient, at_tomorrow) -> None:
    request = PublishSlotRequest(start_time=at_tomorrow(10, 0), end_time=at_tomorrow(10, 30))

    with pytest.raises(HTTPException) as exception_info:
        create_slot(data=request, current_user=patient, db=db)

    assert exception_info.value.status_code == 404


def test_remove_slot_by_other_doctor_is_forbidden(db, other_doctor, slot) -> None:
    with pytest.raises(HTTPException) as exception_info:
        remove_slot(slot_id=slot.id, current_user=other_doctor.profile, db=db)

    assert exception_info.value.status_code == 403


def test_remove_slot_deletes_free_slot(db, doctor, slot) -> None:
    remove_slot(slot_id=slot.id, current_user=doctor.profile, db=db)

    assert list_slots(doctor_id=doctor.id, from_time=None, db=db) == []


def test_create_slot_does_not_retry_failed_publish(db, doctor, at_tomorrow, monkeypatch: pytest.MonkeyPatch) -> None:
    attempts = []

    def flaky_publish(*_args, **_kwargs):
        attempts.append(1)
        raise OperationalError('INSERT INTO consultation_slots', {}, Exception('connection reset'))

    monkeypatch.setattr('carebridge.routes.slot_routes.publish_slot', flaky_publish)
    request = PublishSlotRequest(start_time=at_tomorrow(10, 0), end_time=at_tomorrow(10, 30))

    with pytest.raises(HTTPException) as exception_info:
        create_slot(data=request, current_user=doctor.profile, db=db)

    assert exception_info.value.status_code == 503
    assert len(attempts) == 1
    assert db.query(ConsultationSlot).count() == 0
