"""Commission split between the agency and the two transacting agents."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Dict, Any, Union

from .errors import InvalidValueError

logger = logging.getLogger(__name__)

AGENCY_RATE = Decimal("0.5")
SOLE_AGENT_RATE = Decimal("0.5")  # One party acted as both listing and selling agent
SPLIT_AGENT_RATE = Decimal("0.25")

Amount = Union[Decimal, int, float, str]


def to_decimal(value: Amount) -> Decimal:
    """Convert an amount to Decimal without going through binary float."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def parse_amount(value: Amount, field_name: str) -> Decimal:
    """Convert a caller-supplied amount, rejecting non-numbers, NaN and Infinity."""
    try:
        amount = to_decimal(value)
    except (ArithmeticError, ValueError, TypeError):
        raise InvalidValueError(field_name, f"{field_name} must be a number.")
    if not amount.is_finite():
        raise InvalidValueError(field_name, f"{field_name} must be a finite number.")
    return amount


def format_amount(amount: Decimal) -> str:
    """Plain decimal string without trailing zeros, e.g. 500.0 -> "500"."""
    return format(amount.normalize(), "f")


@dataclass(frozen=True)
class FinancialBreakdown:
    """Three-way split of the total service fee."""

    agency: Decimal = Decimal("0")
    listing_agent: Decimal = Decimal("0")
    selling_agent: Decimal = Decimal("0")

    @classmethod
    def zero(cls) -> "FinancialBreakdown":
        return cls()

    @property
    def total(self) -> Decimal:
        return self.agency + self.listing_agent + self.selling_agent

    def to_dict(self) -> Dict[str, str]:
        return {
            "agency": format_amount(self.agency),
            "listing_agent": format_amount(self.listing_agent),
            "selling_agent": format_amount(self.selling_agent),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FinancialBreakdown":
        return cls(
            agency=to_decimal(data.get("agency", "0")),
            listing_agent=to_decimal(data.get("listing_agent", "0")),
            selling_agent=to_decimal(data.get("selling_agent", "0")),
        )


@dataclass(frozen=True)
class CommissionResult:
    """Breakdown plus the narrative explaining it."""
    breakdown: FinancialBreakdown
    detail: str


class CommissionCalculator:
    """Calculate the fixed agency/agent commission split.

    The agency always keeps half of the total service fee. The other half
    goes to the agents: all of it to the listing agent when the same party
    acted on both sides, otherwise split equally between the two.
    """

    def calculate(
        self,
        total_service_fee: Amount,
        listing_agent: Optional[str],
        selling_agent: Optional[str],
    ) -> CommissionResult:
        """Calculate the commission breakdown.

        Args:
            total_service_fee: Total fee for the transaction
            listing_agent: Listing agent name or code
            selling_agent: Selling agent name or code

        Returns:
            CommissionResult with the breakdown and its explanation
        """
        total = to_decimal(total_service_fee)
        agency_share = total * AGENCY_RATE

        if not listing_agent or not selling_agent:
            logger.warning("Agent missing, only the agency share was calculated")
            return CommissionResult(
                breakdown=FinancialBreakdown(agency=agency_share),
                detail=(
                    "The listing or selling agent is missing, so only the agency share "
                    f"of {_fmt(agency_share)} was calculated."
                ),
            )

        if listing_agent == selling_agent:
            listing_share = total * SOLE_AGENT_RATE
            selling_share = Decimal("0")
            detail = (
                f"Since {listing_agent} acted as both the listing and selling agent, "
                f"the full agent portion of {_fmt(listing_share)} was transferred to {listing_agent}."
            )
        else:
            listing_share = total * SPLIT_AGENT_RATE
            selling_share = total * SPLIT_AGENT_RATE
            detail = (
                "Since the listing and selling agents were different, the agent portion "
                f"was split equally: {listing_agent} received {_fmt(listing_share)} and "
                f"{selling_agent} received {_fmt(selling_share)}."
            )

        return CommissionResult(
            breakdown=FinancialBreakdown(
                agency=agency_share,
                listing_agent=listing_share,
                selling_agent=selling_share,
            ),
            detail=detail,
        )


def calculate_commission(
    total_service_fee: Amount,
    listing_agent: Optional[str],
    selling_agent: Optional[str],
) -> FinancialBreakdown:
    """Shortcut returning only the breakdown."""
    return CommissionCalculator().calculate(total_service_fee, listing_agent, selling_agent).breakdown


def _fmt(amount: Decimal) -> str:
    return f"{amount:,.2f}"
