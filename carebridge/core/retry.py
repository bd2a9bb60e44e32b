import logging
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from carebridge.core import config
from carebridge.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar('T')

TRANSIENT_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


def run_with_retry(
    operation: Callable[[], T],
    *,
    description: str = 'database operation',
    max_attempts: int | None = None,
    retry_delay: float | None = None,
) -> T:
    """
    Run ``operation`` and retry it with exponential backoff on transient
    database failures.

    The operation must own its transaction (commit on success, rollback on
    failure) so that each attempt starts from committed state. Booking errors
    such as ``SlotUnavailableError`` propagate untouched on the first attempt.
    Any other SQLAlchemy error, or a transient one that outlives the last
    attempt, is reported as ``StoreUnavailableError``.
    """
    attempts = max_attempts or config.STORE_RETRY_ATTEMPTS
    delay = config.STORE_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay

    for attempt in range(attempts):
        try:
            return operation()
        except TRANSIENT_ERRORS as exc:
            if attempt == attempts - 1:
                logger.error('All %d attempts failed for %s: %s', attempts, description, exc)
                raise StoreUnavailableError() from exc
            logger.warning('Retry %d/%d for %s: %s', attempt + 1, attempts, description, exc)
        except SQLAlchemyError as exc:
            logger.exception('Database error during %s', description)
            raise StoreUnavailableError() from exc

        time.sleep(delay * (2 ** attempt))

    raise StoreUnavailableError()
