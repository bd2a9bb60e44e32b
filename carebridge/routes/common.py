from typing import Callable, TypeVar

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from carebridge.core.errors import BookingError, StoreUnavailableError, to_http_exception
from carebridge.core.retry import run_with_retry
from carebridge.database import ensure_consultation_schema, ensure_slot_schema

T = TypeVar('T')


def ensure_database_ready() -> None:
    try:
        ensure_slot_schema()
        ensure_consultation_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=StoreUnavailableError.default_message,
        ) from exc


def run_booking_operation(operation: Callable[[], T], description: str, max_attempts: int | None = None) -> T:
    try:
        return run_with_retry(operation, description=description, max_attempts=max_attempts)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
