"""Transaction tracking from agreement to completion."""

import logging
import uuid
from decimal import Decimal
from typing import Optional, List, Union

from .commission import Amount, CommissionCalculator, FinancialBreakdown, format_amount, parse_amount
from .errors import (
    CreationError,
    InvalidValueError,
    MissingRequiredFieldError,
    PersistenceError,
    TransactionError,
)
from .models import StageHistoryEntry, Transaction
from .stages import TransactionStage, validate_stage_transition

logger = logging.getLogger(__name__)


class TransactionTracker:
    """Create transactions and move them through their stages."""

    def __init__(
        self,
        database=None,
        calculator: Optional[CommissionCalculator] = None,
    ):
        """Initialize transaction tracker."""
        if database is None:
            from ..storage.database import TransactionDatabase
            database = TransactionDatabase()
        self.database = database
        self.calculator = calculator or CommissionCalculator()

    def create_transaction(
        self,
        total_service_fee: Optional[Amount],
        listing_agent: str,
        selling_agent: str,
    ) -> Transaction:
        """Create a new transaction in the agreement stage."""
        if total_service_fee is None:
            raise MissingRequiredFieldError("total_service_fee", "Total service fee is required.")
        fee = parse_amount(total_service_fee, "total_service_fee")
        if fee < 0:
            raise InvalidValueError("total_service_fee", "Total service fee must be a non-negative number.")

        for name, value in (("listing_agent", listing_agent), ("selling_agent", selling_agent)):
            if not value or not value.strip():
                raise MissingRequiredFieldError(name)

        txn = Transaction(
            id=str(uuid.uuid4()),
            total_service_fee=fee,
            listing_agent=listing_agent.strip(),
            selling_agent=selling_agent.strip(),
            stage=TransactionStage.AGREEMENT,
            financial_breakdown=FinancialBreakdown.zero(),
        )
        txn.append_history(StageHistoryEntry(
            stage=TransactionStage.AGREEMENT,
            changes={
                "total_service_fee": format_amount(txn.total_service_fee),
                "listing_agent": txn.listing_agent,
                "selling_agent": txn.selling_agent,
                "stage": {"from": None, "to": TransactionStage.AGREEMENT.value},
            },
        ))

        try:
            stored = self.database.insert(txn)
        except PersistenceError as e:
            logger.error(f"Transaction creation failed: {e}")
            raise CreationError("Transaction creation failed") from e

        logger.info(f"Created transaction {stored.id}: {stored.listing_agent} / {stored.selling_agent}")
        return stored

    def get_transaction(self, txn_id: str) -> Transaction:
        """Fetch a transaction, raising NotFoundError if it does not exist."""
        return self.database.load(txn_id)

    def list_transactions(self) -> List[Transaction]:
        return self.database.list_all()

    def apply_transition(
        self,
        txn: Transaction,
        target: Union[str, TransactionStage],
        earnest_money: Optional[Amount] = None,
    ) -> Transaction:
        """Apply a stage transition to a copy of ``txn``.

        The passed transaction is never modified; on any error nothing has
        been written anywhere.

        Returns:
            The updated copy, with exactly one new stage history entry
        """
        target_stage = validate_stage_transition(txn.stage, target, earnest_money)

        updated = txn.copy()
        changes = {}

        if target_stage == TransactionStage.EARNEST_MONEY:
            amount = parse_amount(earnest_money, "earnest_money")
            if updated.earnest_money != amount:
                changes["earnest_money"] = format_amount(amount)
                updated.earnest_money = amount

        if updated.stage != target_stage:
            changes["stage"] = {"from": updated.stage.value, "to": target_stage.value}
            updated.stage = target_stage

        if target_stage == TransactionStage.COMPLETED:
            result = self.calculator.calculate(
                updated.total_service_fee, updated.listing_agent, updated.selling_agent
            )
            if updated.financial_breakdown != result.breakdown:
                changes["financial_breakdown"] = result.breakdown.to_dict()
                updated.financial_breakdown = result.breakdown
            if updated.commission_detail != result.detail:
                changes["commission_detail"] = result.detail
                updated.commission_detail = result.detail

        updated.append_history(StageHistoryEntry(stage=target_stage, changes=changes))
        return updated

    def update_stage(
        self,
        txn_id: str,
        target: Union[str, TransactionStage],
        earnest_money: Optional[Amount] = None,
    ) -> Transaction:
        """Load a transaction, move it to ``target`` and store it.

        Raises:
            NotFoundError: no transaction with this id
            InvalidTransitionError: target is not the next stage
            MissingRequiredFieldError: earnest money missing for EARNEST_MONEY
            InvalidValueError: earnest money negative or not a finite number
            ConflictError: the transaction changed while this request ran
            PersistenceError: the database failed
        """
        txn = self.database.load(txn_id)

        try:
            updated = self.apply_transition(txn, target, earnest_money)
        except TransactionError as e:
            logger.warning(f"Rejected transition for {txn_id}: {e.message}")
            raise

        stored = self.database.save(updated)
        logger.info(f"Transaction {txn_id}: {txn.stage.value} -> {stored.stage.value}")
        return stored

    def get_pipeline_summary(self) -> dict:
        """Count transactions and fees per stage."""
        by_stage = {stage.value: {"count": 0, "total_service_fee": Decimal("0")} for stage in TransactionStage}
        for txn in self.list_transactions():
            by_stage[txn.stage.value]["count"] += 1
            by_stage[txn.stage.value]["total_service_fee"] += txn.total_service_fee

        completed = by_stage[TransactionStage.COMPLETED.value]
        return {
            "total_transactions": sum(s["count"] for s in by_stage.values()),
            "completed_transactions": completed["count"],
            "completed_service_fees": completed["total_service_fee"],
            "by_stage": by_stage,
        }
