"""Transaction error taxonomy."""

from typing import Optional


class TransactionError(Exception):
    """Base class for all transaction errors."""

    error_code = "transaction_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TransactionError):
    """Referenced transaction does not exist."""

    error_code = "not_found"

    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction with id {transaction_id} not found")
        self.transaction_id = transaction_id


class InvalidTransitionError(TransactionError):
    """Requested stage is not reachable from the current stage."""

    error_code = "invalid_transition"

    def __init__(self, current: str, requested: str):
        super().__init__(
            f'Invalid stage transition: You cannot jump from "{current}" to "{requested}". '
            "Each stage must be completed step-by-step."
        )
        self.current = current
        self.requested = requested


class MissingRequiredFieldError(TransactionError):
    """A stage-specific field was not supplied."""

    error_code = "missing_field"

    def __init__(self, field_name: str, message: Optional[str] = None):
        super().__init__(message or f"{field_name} is required")
        self.field_name = field_name


class InvalidValueError(TransactionError):
    """A supplied value is outside its allowed range."""

    error_code = "invalid_value"

    def __init__(self, field_name: str, message: Optional[str] = None):
        super().__init__(message or f"{field_name} has an invalid value")
        self.field_name = field_name


class PersistenceError(TransactionError):
    """The storage layer failed to read or write a transaction."""

    error_code = "persistence_error"


class ConflictError(PersistenceError):
    """The stored transaction changed since it was loaded.

    Retry the whole operation against freshly loaded state.
    """

    error_code = "conflict"

    def __init__(self, transaction_id: str, expected_version: int):
        super().__init__(
            f"Transaction {transaction_id} was modified concurrently "
            f"(expected version {expected_version})"
        )
        self.transaction_id = transaction_id
        self.expected_version = expected_version


class CreationError(TransactionError):
    """A new transaction could not be constructed or stored."""

    error_code = "creation_error"
