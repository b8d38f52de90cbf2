"""Transaction record and its audit trail."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Optional, Dict, Any, Mapping, Tuple

from .commission import FinancialBreakdown, format_amount, to_decimal
from .stages import TransactionStage


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class StageHistoryEntry:
    """One audit entry: what changed when a transaction entered a stage.

    ``changes`` maps a field name to its new value, or to a
    ``{"from": ..., "to": ...}`` pair for the stage itself. Values are kept
    JSON-ready (amounts as decimal strings).
    """

    stage: TransactionStage
    changes: Mapping[str, Any]
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        object.__setattr__(self, "changes", _freeze(self.changes))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage.value,
            "changes": _thaw(self.changes),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StageHistoryEntry":
        return cls(
            stage=TransactionStage(data["stage"]),
            changes=dict(data.get("changes", {})),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


@dataclass
class Transaction:
    """Commission transaction moving from agreement to completion."""

    id: str
    total_service_fee: Decimal
    listing_agent: str
    selling_agent: str

    stage: TransactionStage = TransactionStage.AGREEMENT
    earnest_money: Optional[Decimal] = None

    # Set on completion
    financial_breakdown: FinancialBreakdown = field(default_factory=FinancialBreakdown.zero)
    commission_detail: Optional[str] = None

    # Append-only, see append_history()
    stage_history: Tuple[StageHistoryEntry, ...] = ()

    # Optimistic concurrency token, bumped by storage on every save
    version: int = 0

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def append_history(self, entry: StageHistoryEntry) -> None:
        """Append an audit entry without touching the existing ones."""
        self.stage_history = self.stage_history + (entry,)

    def copy(self) -> "Transaction":
        """Shallow copy; every field is immutable or replaced wholesale."""
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "total_service_fee": format_amount(self.total_service_fee),
            "listing_agent": self.listing_agent,
            "selling_agent": self.selling_agent,
            "stage": self.stage.value,
            "earnest_money": format_amount(self.earnest_money) if self.earnest_money is not None else None,
            "financial_breakdown": self.financial_breakdown.to_dict(),
            "commission_detail": self.commission_detail,
            "stage_history": [entry.to_dict() for entry in self.stage_history],
            "version": self.version,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        earnest_money = data.get("earnest_money")
        return cls(
            id=data["id"],
            total_service_fee=to_decimal(data["total_service_fee"]),
            listing_agent=data.get("listing_agent") or "",
            selling_agent=data.get("selling_agent") or "",
            stage=TransactionStage(data.get("stage", "agreement")),
            earnest_money=to_decimal(earnest_money) if earnest_money is not None else None,
            financial_breakdown=FinancialBreakdown.from_dict(data.get("financial_breakdown") or {}),
            commission_detail=data.get("commission_detail"),
            stage_history=tuple(StageHistoryEntry.from_dict(e) for e in data.get("stage_history", [])),
            version=data.get("version", 0),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
