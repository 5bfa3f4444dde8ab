"""Error taxonomy for the royalty engine."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Union


class RoyaltyEngineError(Exception):
    """Base class for every error the engine reports."""


class InvalidEngineInput(RoyaltyEngineError, ValueError):
    """An argument has the wrong type or an out-of-range value."""


class InvalidTierSchedule(RoyaltyEngineError):
    """A tier schedule is malformed and cannot be used for calculation."""

    def __init__(self, message: str, format: Optional[str] = None) -> None:
        self.format = format
        if format:
            message = f"{format}: {message}"
        super().__init__(message)


class TierScheduleExhausted(RoyaltyEngineError):
    """A quantity falls outside every configured tier."""

    def __init__(self, quantity: Union[int, Decimal]) -> None:
        self.quantity = quantity
        super().__init__(f"No tier covers cumulative quantity {quantity}")


class PrecisionLossDetected(RoyaltyEngineError):
    """A decimal value needs more precision than the configured scale allows."""


class NegativeCumulativeQuantity(RoyaltyEngineError):
    """
    Returns exceeded the recorded cumulative quantity.

    Not raised by the allocator: it clamps the cumulative quantity at zero
    and attaches an instance of this class to the result so the caller can
    log it for investigation.
    """

    def __init__(
        self,
        start_quantity: Union[int, Decimal],
        requested_delta: Union[int, Decimal],
        applied_delta: Union[int, Decimal],
    ) -> None:
        self.start_quantity = start_quantity
        self.requested_delta = requested_delta
        self.applied_delta = applied_delta
        self.excess_units = applied_delta - requested_delta
        super().__init__(
            f"Return of {-requested_delta} units exceeds cumulative quantity "
            f"{start_quantity}; clamped to {-applied_delta}"
        )
