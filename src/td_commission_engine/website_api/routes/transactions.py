"""Transaction routes."""

from typing import List
from fastapi import APIRouter, Depends

from ..schemas.transaction import (
    ErrorResponse,
    StageUpdateRequest,
    TransactionCreateRequest,
    TransactionResponse,
)
from ..services.transactions import get_tracker, to_http_error
from ...transactions.errors import TransactionError
from ...transactions.tracker import TransactionTracker

router = APIRouter(prefix="/v1/transactions", tags=["transactions"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("", response_model=TransactionResponse, status_code=201, responses=ERROR_RESPONSES)
async def create_transaction(
    payload: TransactionCreateRequest,
    tracker: TransactionTracker = Depends(get_tracker),
):
    """Create a transaction in the agreement stage."""
    try:
        txn = tracker.create_transaction(
            total_service_fee=payload.total_service_fee,
            listing_agent=payload.listing_agent,
            selling_agent=payload.selling_agent,
        )
    except TransactionError as e:
        raise to_http_error(e)
    return TransactionResponse.from_transaction(txn)


@router.get("", response_model=List[TransactionResponse], responses=ERROR_RESPONSES)
async def list_transactions(tracker: TransactionTracker = Depends(get_tracker)):
    """List all transactions."""
    try:
        transactions = tracker.list_transactions()
    except TransactionError as e:
        raise to_http_error(e)
    return [TransactionResponse.from_transaction(t) for t in transactions]


@router.get("/{txn_id}", response_model=TransactionResponse, responses=ERROR_RESPONSES)
async def get_transaction(txn_id: str, tracker: TransactionTracker = Depends(get_tracker)):
    """Get a single transaction with its stage history."""
    try:
        txn = tracker.get_transaction(txn_id)
    except TransactionError as e:
        raise to_http_error(e)
    return TransactionResponse.from_transaction(txn)


@router.patch("/{txn_id}/stage", response_model=TransactionResponse, responses=ERROR_RESPONSES)
async def update_stage(
    txn_id: str,
    payload: StageUpdateRequest,
    tracker: TransactionTracker = Depends(get_tracker),
):
    """Move a transaction to its next stage.

    Stages must be completed one at a time: agreement, earnest_money,
    title_deed, completed. Moving to earnest_money requires ``earnest_money``.
    """
    try:
        txn = tracker.update_stage(txn_id, payload.stage, payload.earnest_money)
    except TransactionError as e:
        raise to_http_error(e)
    return TransactionResponse.from_transaction(txn)
