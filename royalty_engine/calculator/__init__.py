"""
Calculator module for royalty statements.

Provides the tier allocator, advance recoupment, net sales, ownership
splits and per-period royalty calculation.
"""

from .allocator import allocate
from .recoupment import (
    apply_recoupment,
    recoupment_waterfall,
    summarize_waterfall,
)
from .net_sales import (
    NetSales,
    calculate_net_sales,
)
from .splits import (
    AuthorShare,
    AuthorSplit,
    split_royalty_by_ownership,
    build_author_splits,
)
from .statement import (
    FormatSales,
    PeriodRoyalty,
    calculate_period_royalty,
)

__all__ = [
    # allocator.py
    "allocate",
    # recoupment.py
    "apply_recoupment",
    "recoupment_waterfall",
    "summarize_waterfall",
    # net_sales.py
    "NetSales",
    "calculate_net_sales",
    # splits.py
    "AuthorShare",
    "AuthorSplit",
    "split_royalty_by_ownership",
    "build_author_splits",
    # statement.py
    "FormatSales",
    "PeriodRoyalty",
    "calculate_period_royalty",
]
