from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from carebridge.core import config


def _engine_options(database_url: str) -> dict:
    if database_url.startswith('sqlite'):
        return {'connect_args': {'check_same_thread': False}}
    return {'pool_pre_ping': True}


engine = create_engine(config.DATABASE_URL, **_engine_options(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_slot_schema_checked = False
_consultation_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_slot_schema() -> None:
    global _slot_schema_checked

    if _slot_schema_checked:
        return

    with _schema_lock:
        if _slot_schema_checked:
            return

        if 'consultation_slots' not in inspect(engine).get_table_names():
            _slot_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_consultation_slots_doctor_open '
                    'ON consultation_slots(doctor_id, is_booked, start_time)'
                )
            )

        _slot_schema_checked = True


def ensure_consultation_schema() -> None:
    global _consultation_schema_checked

    if _consultation_schema_checked:
        return

    with _schema_lock:
        if _consultation_schema_checked:
            return

        if 'consultations' not in inspect(engine).get_table_names():
            _consultation_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_consultations_patient_created ON consultations(patient_id, created_at)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_consultations_doctor_created ON consultations(doctor_id, created_at)')
            )

        _consultation_schema_checked = True
