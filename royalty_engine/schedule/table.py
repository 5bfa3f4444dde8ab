"""
Tier tables: ordered, per-format rate schedules.

A valid schedule for one format:
- starts at 0 and is contiguous: tiers[i].max_quantity == tiers[i+1].min_quantity
- is sorted ascending by min_quantity (unsorted input shows up as a gap/overlap)
- ends with exactly one unbounded tier
- uses a single rate kind, with positive rates (percentage rates <= 1)

Schedules are validated once, at configuration time, and never normalized:
a malformed table raises InvalidTierSchedule instead of being re-sorted.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

import yaml

from ..config import settings
from ..errors import InvalidEngineInput, InvalidTierSchedule
from ..models import RateKind, RoyaltyTier, SalesFormat
from ..money import check_scale

TierRow = Union[RoyaltyTier, Mapping[str, Any]]


def validate_tiers(tiers: Sequence) -> None:
    """
    Check a single format's tier list.

    Raises:
        InvalidTierSchedule: on any structural or rate problem
        PrecisionLossDetected: if a rate has more decimals than rate_places
    """
    if not tiers:
        raise InvalidTierSchedule("schedule has no tiers")

    fmt = tiers[0].format
    label = fmt.value
    if any(t.format is not fmt for t in tiers):
        formats = sorted({t.format.value for t in tiers})
        raise InvalidTierSchedule(f"schedule mixes formats {formats}", label)

    kinds = {t.rate_kind for t in tiers}
    if len(kinds) > 1:
        raise InvalidTierSchedule("schedule mixes percentage and per-unit rates", label)

    if tiers[0].min_quantity != 0:
        raise InvalidTierSchedule(
            f"first tier must start at 0, starts at {tiers[0].min_quantity}", label
        )

    for index, tier in enumerate(tiers):
        is_last = index == len(tiers) - 1

        if tier.rate <= 0:
            raise InvalidTierSchedule(f"tier {index} rate must be positive, got {tier.rate}", label)
        if tier.rate_kind is RateKind.PERCENTAGE and tier.rate > 1:
            raise InvalidTierSchedule(
                f"tier {index} percentage rate must be at most 1, got {tier.rate}", label
            )
        check_scale(tier.rate, settings.precision.rate_places, f"{label} tier {index} rate")

        if tier.is_unbounded:
            if not is_last:
                raise InvalidTierSchedule(f"tier {index} is unbounded but is not the last tier", label)
            continue

        if is_last:
            raise InvalidTierSchedule("last tier must be unbounded", label)
        if tier.max_quantity <= tier.min_quantity:
            raise InvalidTierSchedule(
                f"tier {index} max {tier.max_quantity} must exceed min {tier.min_quantity}", label
            )

        following = tiers[index + 1]
        if following.min_quantity > tier.max_quantity:
            raise InvalidTierSchedule(
                f"gap between tier {index} (ends {tier.max_quantity}) and tier {index + 1} "
                f"(starts {following.min_quantity})",
                label,
            )
        if following.min_quantity < tier.max_quantity:
            raise InvalidTierSchedule(
                f"tier {index + 1} (starts {following.min_quantity}) overlaps or precedes "
                f"tier {index} (ends {tier.max_quantity})",
                label,
            )


class TierSchedule(Sequence):
    """Validated, immutable tier list for one sales format."""

    def __init__(self, tiers: Iterable[TierRow]) -> None:
        self._tiers: Tuple[RoyaltyTier, ...] = tuple(_as_tier(t) for t in tiers)
        validate_tiers(self._tiers)

    def __getitem__(self, index):
        return self._tiers[index]

    def __len__(self) -> int:
        return len(self._tiers)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TierSchedule):
            return self._tiers == other._tiers
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._tiers)

    def __repr__(self) -> str:
        bands = ", ".join(
            f"[{t.min_quantity}, {'inf' if t.is_unbounded else t.max_quantity}) @ {t.rate}"
            for t in self._tiers
        )
        return f"TierSchedule({self.format.value}: {bands})"

    @property
    def format(self) -> SalesFormat:
        return self._tiers[0].format

    @property
    def rate_kind(self) -> RateKind:
        return self._tiers[0].rate_kind

    @property
    def thresholds(self) -> List[int]:
        """Lower bounds of every tier above the first."""
        return [t.min_quantity for t in self._tiers[1:]]

    @property
    def tiers(self) -> Tuple[RoyaltyTier, ...]:
        return self._tiers


def _as_tier(row: TierRow) -> RoyaltyTier:
    if isinstance(row, RoyaltyTier):
        return row
    return RoyaltyTier.from_dict(row)


def build_schedules(rows: Iterable[TierRow]) -> Dict[SalesFormat, TierSchedule]:
    """
    Group tier rows by format and validate each group.

    Row order within a format is preserved; it is not re-sorted.

    Args:
        rows: RoyaltyTier instances or inbound row mappings

    Returns:
        Dictionary mapping format to its validated TierSchedule
    """
    grouped: Dict[SalesFormat, List[RoyaltyTier]] = {}
    for row in rows:
        tier = _as_tier(row)
        grouped.setdefault(tier.format, []).append(tier)

    return {fmt: TierSchedule(tiers) for fmt, tiers in grouped.items()}


def _reject_floats(row: Mapping[str, Any], index: int) -> None:
    for key, value in row.items():
        if isinstance(value, float):
            raise InvalidTierSchedule(
                f"tier row {index} field {key!r} was parsed as a binary float ({value!r}); "
                "quote decimal values in the tier table file"
            )


def load_tier_table(path: Union[str, Path]) -> Dict[SalesFormat, TierSchedule]:
    """
    Load tier schedules from a YAML file.

    Expected layout::

        tiers:
          - {format: physical, min_quantity: 0, max_quantity: 50000, rate: "0.10"}
          - {format: physical, min_quantity: 50000, max_quantity: null, rate: "0.12"}

    Returns:
        Dictionary mapping format to its validated TierSchedule
    """
    path = Path(path)
    with path.open() as f:
        data = yaml.safe_load(f) or {}

    rows = data.get("tiers") if isinstance(data, dict) else data
    if not isinstance(rows, list):
        raise InvalidTierSchedule(f"{path} has no 'tiers' list")

    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise InvalidTierSchedule(f"tier row {index} in {path} is not a mapping")
        _reject_floats(row, index)

    try:
        return build_schedules(rows)
    except InvalidEngineInput as e:
        raise InvalidTierSchedule(f"{path}: {e}") from e
