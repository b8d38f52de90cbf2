"""Transaction service wiring and error translation for API routes."""

import logging
from fastapi import HTTPException

from ..config import settings
from ...storage.database import TransactionDatabase
from ...transactions.errors import (
    ConflictError,
    CreationError,
    InvalidTransitionError,
    InvalidValueError,
    MissingRequiredFieldError,
    NotFoundError,
    PersistenceError,
    TransactionError,
)
from ...transactions.tracker import TransactionTracker

logger = logging.getLogger(__name__)

STATUS_CODES = [
    (NotFoundError, 404),
    (InvalidTransitionError, 400),
    (MissingRequiredFieldError, 400),
    (InvalidValueError, 400),
    (ConflictError, 409),
    (PersistenceError, 500),
    (CreationError, 500),
]


def get_tracker() -> TransactionTracker:
    """FastAPI dependency returning a tracker bound to the configured database."""
    return TransactionTracker(TransactionDatabase(settings.db_path))


def to_http_error(error: TransactionError) -> HTTPException:
    """Translate a domain error into an HTTPException with the standard error body."""
    status_code = 500
    for error_type, code in STATUS_CODES:
        if isinstance(error, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"Transaction operation failed: {error.message}")
        detail = "Internal processing error"
    else:
        detail = error.message

    return HTTPException(
        status_code=status_code,
        detail={"success": False, "error": error.error_code, "detail": detail},
    )
