"""
Schedule module for royalty tier tables.

Provides tier table validation, YAML loading and tier lookup.
"""

from .table import (
    TierSchedule,
    validate_tiers,
    build_schedules,
    load_tier_table,
)
from .lookup import (
    find_tier,
    find_tier_index,
    next_tier,
)

__all__ = [
    # table.py
    "TierSchedule",
    "validate_tiers",
    "build_schedules",
    "load_tier_table",
    # lookup.py
    "find_tier",
    "find_tier_index",
    "next_tier",
]
