"""Error kinds raised by the consultation booking workflow.

Domain functions raise these; the HTTP layer turns them into responses with
``to_http_exception``. None of them are retried automatically.
"""

from fastapi import HTTPException, status


class BookingError(Exception):
    """Base class for booking workflow failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Request could not be completed.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BookingError):
    """Malformed input, e.g. a slot that ends before it starts."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid input.'


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Record not found.'


class SlotUnavailableError(BookingError):
    """The slot was claimed by someone else (or is otherwise no longer bookable)."""

    status_code = status.HTTP_409_CONFLICT
    default_message = 'This slot has already been booked. Please choose another slot.'


class InvalidTransitionError(BookingError):
    """A consultation that already left ``pending`` cannot be resolved again."""

    status_code = status.HTTP_409_CONFLICT
    default_message = 'This consultation has already been resolved.'


class PermissionDeniedError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'You are not allowed to perform this action.'


class StoreUnavailableError(BookingError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def to_http_exception(exc: BookingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
