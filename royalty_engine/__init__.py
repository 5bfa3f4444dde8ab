"""
Royalty tier calculation and projection engine.

Pure functions over explicit inputs: tier schedules, cumulative positions,
batch deltas, unit prices and advance balances. Nothing here performs I/O
apart from loading settings and tier table files.
"""

from .errors import (
    RoyaltyEngineError,
    InvalidEngineInput,
    InvalidTierSchedule,
    TierScheduleExhausted,
    PrecisionLossDetected,
    NegativeCumulativeQuantity,
)
from .models import (
    SalesFormat,
    RateKind,
    TierCalculationMode,
    RoyaltyTier,
    AdvanceBalance,
    TierAllocation,
    AllocationResult,
    RecoupmentResult,
    ProjectionResult,
)
from .schedule import (
    TierSchedule,
    build_schedules,
    load_tier_table,
    find_tier,
    next_tier,
)
from .calculator import (
    allocate,
    apply_recoupment,
    calculate_period_royalty,
    FormatSales,
)
from .projector import (
    project,
    build_monthly_projection,
)

__version__ = "1.0.0"

__all__ = [
    # errors.py
    "RoyaltyEngineError",
    "InvalidEngineInput",
    "InvalidTierSchedule",
    "TierScheduleExhausted",
    "PrecisionLossDetected",
    "NegativeCumulativeQuantity",
    # models.py
    "SalesFormat",
    "RateKind",
    "TierCalculationMode",
    "RoyaltyTier",
    "AdvanceBalance",
    "TierAllocation",
    "AllocationResult",
    "RecoupmentResult",
    "ProjectionResult",
    # schedule
    "TierSchedule",
    "build_schedules",
    "load_tier_table",
    "find_tier",
    "next_tier",
    # calculator
    "allocate",
    "apply_recoupment",
    "calculate_period_royalty",
    "FormatSales",
    # projector
    "project",
    "build_monthly_projection",
]
