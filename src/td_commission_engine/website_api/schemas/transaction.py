"""Pydantic models for transaction requests and responses."""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field

from ...transactions.models import Transaction
from ...transactions.stages import TransactionStage


class TransactionCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_service_fee: Decimal = Field(..., description="Total service fee, non-negative")
    listing_agent: str = Field(..., min_length=1)
    selling_agent: str = Field(..., min_length=1)


class StageUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    stage: TransactionStage
    earnest_money: Optional[Decimal] = Field(
        default=None,
        description="Required when moving to the earnest_money stage",
    )


class FinancialBreakdownSchema(BaseModel):
    agency: Decimal
    listing_agent: Decimal
    selling_agent: Decimal


class StageHistoryEntrySchema(BaseModel):
    stage: TransactionStage
    changes: Dict[str, Any]
    updated_at: datetime


class TransactionResponse(BaseModel):
    id: str
    total_service_fee: Decimal
    listing_agent: str
    selling_agent: str
    stage: TransactionStage
    earnest_money: Optional[Decimal] = None
    financial_breakdown: FinancialBreakdownSchema
    commission_detail: Optional[str] = None
    stage_history: List[StageHistoryEntrySchema]
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_transaction(cls, txn: Transaction) -> "TransactionResponse":
        return cls.model_validate(txn.to_dict())


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: str
