"""
Projector module for royalty forecasts.

Provides tier crossover estimates, flat vs escalating annual royalty
projections and month-by-month projection schedules.
"""

from .projection import project
from .monthly import (
    build_monthly_projection,
    summarize_monthly_projection,
)

__all__ = [
    # projection.py
    "project",
    # monthly.py
    "build_monthly_projection",
    "summarize_monthly_projection",
]
