import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from carebridge.core import config
from carebridge.core.logging import setup_logging
from carebridge.database import Base, engine, ensure_consultation_schema, ensure_slot_schema
from carebridge.models import consultation, doctor, slot, user  # noqa: F401
from carebridge.routes import auth_routes, consultation_routes, doctor_routes, slot_routes

setup_logging()
config.validate_runtime_config()

app = FastAPI(title='CareBridge Consultations API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_slot_schema()
        ensure_consultation_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'CareBridge API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(doctor_routes.router, prefix='/doctors')
app.include_router(slot_routes.router, prefix='/slots')
app.include_router(consultation_routes.router, prefix='/consultations')
