"""Transaction stages and the rules for moving between them."""

from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .commission import Amount, parse_amount
from .errors import InvalidTransitionError, InvalidValueError, MissingRequiredFieldError


class TransactionStage(Enum):
    """Transaction workflow stages, in order."""
    AGREEMENT = "agreement"
    EARNEST_MONEY = "earnest_money"
    TITLE_DEED = "title_deed"
    COMPLETED = "completed"  # Terminal


VALID_TRANSITIONS: Dict[TransactionStage, Tuple[TransactionStage, ...]] = {
    TransactionStage.AGREEMENT: (TransactionStage.EARNEST_MONEY,),
    TransactionStage.EARNEST_MONEY: (TransactionStage.TITLE_DEED,),
    TransactionStage.TITLE_DEED: (TransactionStage.COMPLETED,),
    TransactionStage.COMPLETED: (),
}

# Every stage must have an entry, even if it has no way out
_missing = set(TransactionStage) - set(VALID_TRANSITIONS)
if _missing:
    raise RuntimeError(f"Stages without transition rules: {sorted(s.value for s in _missing)}")


def next_stage(stage: TransactionStage) -> Optional[TransactionStage]:
    """Return the single successor of a stage, or None for the terminal stage."""
    allowed = VALID_TRANSITIONS[stage]
    return allowed[0] if allowed else None


def parse_stage(value: Union[str, TransactionStage]) -> Optional[TransactionStage]:
    """Coerce a stage value, returning None for unknown strings."""
    if isinstance(value, TransactionStage):
        return value
    try:
        return TransactionStage(value)
    except ValueError:
        return None


def validate_stage_transition(
    current: TransactionStage,
    target: Union[str, TransactionStage],
    earnest_money: Optional[Amount] = None,
) -> TransactionStage:
    """Check that a transition is admissible.

    Args:
        current: Stage the transaction is in now
        target: Requested stage (enum member or its string value)
        earnest_money: Amount accompanying the request, if any

    Returns:
        The target as a TransactionStage

    Raises:
        InvalidTransitionError: target is not the successor of current
        MissingRequiredFieldError: EARNEST_MONEY requested without an amount
        InvalidValueError: EARNEST_MONEY requested with a negative or non-finite amount
    """
    requested = parse_stage(target)
    target_label = requested.value if requested else str(target)

    if requested is None or requested not in VALID_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target_label)

    if requested == TransactionStage.EARNEST_MONEY:
        if earnest_money is None:
            raise MissingRequiredFieldError(
                "earnest_money", "Earnest money must be provided for this stage."
            )
        if parse_amount(earnest_money, "earnest_money") < 0:
            raise InvalidValueError("earnest_money", "Earnest money must be a non-negative number.")

    return requested
