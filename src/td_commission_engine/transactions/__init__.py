"""Transaction stage tracking and commission splits."""

from .errors import (
    TransactionError,
    NotFoundError,
    InvalidTransitionError,
    MissingRequiredFieldError,
    InvalidValueError,
    PersistenceError,
    ConflictError,
    CreationError,
)
from .stages import TransactionStage, VALID_TRANSITIONS, validate_stage_transition, next_stage
from .commission import CommissionCalculator, CommissionResult, FinancialBreakdown, calculate_commission
from .models import Transaction, StageHistoryEntry
from .tracker import TransactionTracker

__all__ = [
    "TransactionError",
    "NotFoundError",
    "InvalidTransitionError",
    "MissingRequiredFieldError",
    "InvalidValueError",
    "PersistenceError",
    "ConflictError",
    "CreationError",
    "TransactionStage",
    "VALID_TRANSITIONS",
    "validate_stage_transition",
    "next_stage",
    "CommissionCalculator",
    "CommissionResult",
    "FinancialBreakdown",
    "calculate_commission",
    "Transaction",
    "StageHistoryEntry",
    "TransactionTracker",
]
