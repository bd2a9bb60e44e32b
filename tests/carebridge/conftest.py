import os
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from carebridge.core import config  # noqa: E402
from carebridge.database import Base  # noqa: E402
from carebridge.models.consultation import Consultation  # noqa: E402,F401
from carebridge.models.doctor import Doctor  # noqa: E402
from carebridge.models.slot import ConsultationSlot  # noqa: E402
from carebridge.models.user import ROLE_ADMIN, ROLE_DOCTOR, ROLE_USER, User  # noqa: E402


def tomorrow_at(hour: int, minute: int = 0) -> datetime:
    return (datetime.now() + timedelta(days=1)).replace(hour=hour, minute=minute, second=0, microsecond=0)


@pytest.fixture
def db_engine(tmp_path):
    engine = create_engine(
        f'sqlite:///{tmp_path / "carebridge-test.db"}',
        connect_args={'check_same_thread': False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def add_user(db, email: str, role: str = ROLE_USER, full_name: str | None = None) -> User:
    user = User(email=email, role=role, full_name=full_name or email.split('@')[0].title())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_doctor(
    db,
    email: str,
    license_number: str,
    verified: bool = True,
    years_of_experience: int = 10,
) -> Doctor:
    user = add_user(db, email, role=ROLE_DOCTOR)
    doctor = Doctor(
        profile_id=user.id,
        specialization='Oncology',
        license_number=license_number,
        years_of_experience=years_of_experience,
        is_verified=verified,
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


def add_slot(db, doctor_id: int, start_time: datetime, end_time: datetime, is_booked: bool = False) -> ConsultationSlot:
    slot = ConsultationSlot(doctor_id=doctor_id, start_time=start_time, end_time=end_time, is_booked=is_booked)
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


@pytest.fixture
def patient(db) -> User:
    return add_user(db, 'patient.a@example.com', full_name='Patient A')


@pytest.fixture
def other_patient(db) -> User:
    return add_user(db, 'patient.b@example.com', full_name='Patient B')


@pytest.fixture
def admin(db) -> User:
    return add_user(db, 'admin@example.com', role=ROLE_ADMIN, full_name='Admin')


@pytest.fixture
def doctor(db) -> Doctor:
    return add_doctor(db, 'dr.p@example.com', 'LIC-1001')


@pytest.fixture
def other_doctor(db) -> Doctor:
    return add_doctor(db, 'dr.q@example.com', 'LIC-2002')


@pytest.fixture
def slot(db, doctor) -> ConsultationSlot:
    return add_slot(db, doctor.id, tomorrow_at(10, 0), tomorrow_at(10, 30))


@pytest.fixture
def make_user(db):
    return lambda email, role=ROLE_USER, full_name=None: add_user(db, email, role=role, full_name=full_name)


@pytest.fixture
def make_doctor(db):
    def factory(email, license_number, verified=True, years_of_experience=10):
        return add_doctor(db, email, license_number, verified=verified, years_of_experience=years_of_experience)

    return factory


@pytest.fixture
def make_slot(db):
    def factory(doctor_id, start_time, end_time, is_booked=False):
        return add_slot(db, doctor_id, start_time, end_time, is_booked=is_booked)

    return factory


@pytest.fixture
def at_tomorrow():
    return tomorrow_at


@pytest.fixture
def issue_token():
    """Sign a bearer token the way the hosted identity service does."""

    def factory(subject: str, expires_minutes: int = 30) -> str:
        issued_at = datetime.now(timezone.utc)
        payload = {'sub': subject, 'iat': issued_at, 'exp': issued_at + timedelta(minutes=expires_minutes)}
        return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)

    return factory
