"""Data models for the royalty engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from .config import settings
from .errors import InvalidEngineInput, NegativeCumulativeQuantity
from .money import ZERO, Quantity, check_scale, to_decimal, to_quantity


class SalesFormat(Enum):
    """Sales format a tier schedule applies to."""

    PHYSICAL = "physical"
    EBOOK = "ebook"
    AUDIOBOOK = "audiobook"

    @classmethod
    def parse(cls, value: Union["SalesFormat", str]) -> "SalesFormat":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        alias = FORMAT_ALIASES.get(key)
        if alias is None:
            raise InvalidEngineInput(f"Unknown sales format: {value!r}")
        return alias


class RateKind(Enum):
    """How a tier's rate is applied."""

    PERCENTAGE = "percentage"  # fraction of revenue
    PER_UNIT = "per_unit"  # fixed amount per unit sold

    @classmethod
    def parse(cls, value: Union["RateKind", str, None]) -> "RateKind":
        if value is None:
            return cls.PERCENTAGE
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        if key in ("percentage", "percent", "pct"):
            return cls.PERCENTAGE
        if key in ("per_unit", "fixed", "fixed_per_unit"):
            return cls.PER_UNIT
        raise InvalidEngineInput(f"Unknown rate kind: {value!r}")


class TierCalculationMode(Enum):
    """Whether tiers are positioned by lifetime sales or restart each period."""

    LIFETIME = "lifetime"
    PERIOD = "period"


FORMAT_ALIASES = {
    "physical": SalesFormat.PHYSICAL,
    "print": SalesFormat.PHYSICAL,
    "hardcover": SalesFormat.PHYSICAL,
    "paperback": SalesFormat.PHYSICAL,
    "ebook": SalesFormat.EBOOK,
    "digital": SalesFormat.EBOOK,
    "audiobook": SalesFormat.AUDIOBOOK,
    "audio": SalesFormat.AUDIOBOOK,
}

UNBOUNDED_MARKERS = ("", "unbounded", "none", "null", "infinity", "inf")


def _first(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in row:
            return row[key]
    return None


def _bound(value: Any, label: str) -> int:
    quantity = to_quantity(value, label)
    if not isinstance(quantity, int):
        raise InvalidEngineInput(f"{label} must be a whole number of units, got {value!r}")
    return quantity


@dataclass(frozen=True)
class RoyaltyTier:
    """One band of a contract's rate schedule: [min_quantity, max_quantity)."""

    format: SalesFormat
    min_quantity: int
    max_quantity: Optional[int]  # None = unbounded
    rate: Decimal
    rate_kind: RateKind = RateKind.PERCENTAGE

    def __post_init__(self) -> None:
        object.__setattr__(self, "format", SalesFormat.parse(self.format))
        object.__setattr__(self, "rate_kind", RateKind.parse(self.rate_kind))
        object.__setattr__(self, "min_quantity", _bound(self.min_quantity, "min_quantity"))
        if self.max_quantity is not None:
            object.__setattr__(self, "max_quantity", _bound(self.max_quantity, "max_quantity"))
        object.__setattr__(self, "rate", to_decimal(self.rate, "rate"))

    @property
    def is_unbounded(self) -> bool:
        return self.max_quantity is None

    def contains(self, quantity: Quantity) -> bool:
        """Half-open membership test."""
        if quantity < self.min_quantity:
            return False
        return self.max_quantity is None or quantity < self.max_quantity

    def royalty_for(self, units: Quantity, unit_price: Decimal) -> Decimal:
        """Royalty for ``units`` sold in this tier at ``unit_price``."""
        if self.rate_kind is RateKind.PER_UNIT:
            return units * self.rate
        return units * unit_price * self.rate

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> "RoyaltyTier":
        """
        Build a tier from an inbound row.

        Accepts snake_case (min_quantity, max_quantity, rate, rate_kind) or
        camelCase (minQuantity, maxQuantity, rateValue, rateKind) keys. A
        missing or "unbounded" max means the tier is open-ended.
        """
        max_quantity = _first(row, "max_quantity", "maxQuantity")
        if isinstance(max_quantity, str) and max_quantity.strip().lower() in UNBOUNDED_MARKERS:
            max_quantity = None
        rate = _first(row, "rate", "rateValue", "rate_value")
        if rate is None:
            raise InvalidEngineInput(f"Tier row has no rate: {dict(row)}")
        return cls(
            format=_first(row, "format"),
            min_quantity=_first(row, "min_quantity", "minQuantity"),
            max_quantity=max_quantity,
            rate=rate,
            rate_kind=_first(row, "rate_kind", "rateKind"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format.value,
            "min_quantity": self.min_quantity,
            "max_quantity": self.max_quantity,
            "rate": str(self.rate),
            "rate_kind": self.rate_kind.value,
        }


@dataclass(frozen=True)
class AdvanceBalance:
    """Outstanding unearned advance for a contract."""

    original_amount: Decimal
    remaining_balance: Decimal

    def __post_init__(self) -> None:
        places = settings.precision.money_places
        original = check_scale(to_decimal(self.original_amount, "original_amount"), places, "original_amount")
        remaining = check_scale(to_decimal(self.remaining_balance, "remaining_balance"), places, "remaining_balance")
        if original < 0:
            raise InvalidEngineInput(f"Advance amount cannot be negative, got {original}")
        if remaining < 0:
            raise InvalidEngineInput(f"Remaining advance balance cannot be negative, got {remaining}")
        if remaining > original:
            raise InvalidEngineInput(
                f"Remaining advance balance {remaining} exceeds original amount {original}"
            )
        object.__setattr__(self, "original_amount", original)
        object.__setattr__(self, "remaining_balance", remaining)

    @classmethod
    def new(cls, amount: Union[Decimal, int, str]) -> "AdvanceBalance":
        """A freshly paid advance with nothing recouped yet."""
        return cls(original_amount=amount, remaining_balance=amount)

    @classmethod
    def from_contract(
        cls,
        advance_amount: Union[Decimal, int, str],
        advance_recouped: Union[Decimal, int, str] = 0,
    ) -> "AdvanceBalance":
        """Build from stored contract columns (amount and amount recouped so far)."""
        amount = to_decimal(advance_amount, "advance_amount")
        recouped = to_decimal(advance_recouped, "advance_recouped")
        return cls(original_amount=amount, remaining_balance=max(amount - recouped, ZERO))

    @property
    def recouped_amount(self) -> Decimal:
        return self.original_amount - self.remaining_balance

    @property
    def is_recouped(self) -> bool:
        return self.remaining_balance == 0


@dataclass(frozen=True)
class TierAllocation:
    """Slice of a batch that fell inside one tier."""

    tier: RoyaltyTier
    units: Quantity
    revenue: Decimal
    royalty: Decimal


@dataclass(frozen=True)
class AllocationResult:
    """Output of one allocator invocation."""

    starting_quantity: Quantity
    requested_delta: Quantity
    delta: Quantity  # applied delta, after clamping at zero
    ending_quantity: Quantity
    unit_price: Decimal
    breakdown: Tuple[TierAllocation, ...]
    total_royalty: Decimal
    clamp: Optional[NegativeCumulativeQuantity] = field(default=None, compare=False)

    @property
    def total_revenue(self) -> Decimal:
        return sum((item.revenue for item in self.breakdown), ZERO)

    @property
    def tier_count(self) -> int:
        return len(self.breakdown)

    @property
    def crossed_tier(self) -> bool:
        return len(self.breakdown) > 1

    @property
    def was_clamped(self) -> bool:
        return self.clamp is not None


@dataclass(frozen=True)
class RecoupmentResult:
    """Outcome of applying one royalty amount against an advance."""

    royalty_amount: Decimal
    recouped_amount: Decimal
    payable_amount: Decimal
    previous_balance: AdvanceBalance
    balance: AdvanceBalance
    unapplied_deficit: Decimal = ZERO

    def __iter__(self) -> Iterator[Any]:
        # Unpacks as (payable_amount, updated_balance)
        return iter((self.payable_amount, self.balance))


@dataclass(frozen=True)
class ProjectionResult:
    """Forward projection for one title/format position."""

    current_tier: RoyaltyTier
    next_tier_threshold: Optional[int]
    units_to_next_tier: Optional[Quantity]
    months_to_next_tier: Optional[int]
    projected_annual_units: Quantity
    projected_annual_revenue: Decimal
    royalty_at_current_rate: Decimal
    royalty_with_escalation: Decimal
    escalation_benefit: Decimal
    would_crossover_in_year: bool
    horizon_months: int
    allocation: AllocationResult

    def as_dict(self) -> Dict[str, Any]:
        """Serializable view for reporting; decimals become strings at full precision."""
        return {
            "current_tier": self.current_tier.to_dict(),
            "next_tier_threshold": self.next_tier_threshold,
            "units_to_next_tier": _plain(self.units_to_next_tier),
            "months_to_next_tier": self.months_to_next_tier,
            "projected_annual_units": _plain(self.projected_annual_units),
            "projected_annual_revenue": str(self.projected_annual_revenue),
            "royalty_at_current_rate": str(self.royalty_at_current_rate),
            "royalty_with_escalation": str(self.royalty_with_escalation),
            "escalation_benefit": str(self.escalation_benefit),
            "would_crossover_in_year": self.would_crossover_in_year,
            "horizon_months": self.horizon_months,
        }


def _plain(value: Optional[Quantity]) -> Optional[Union[int, str]]:
    if value is None or isinstance(value, int):
        return value
    return str(value)
