"""
Ownership splits for titles with more than one author.

A title's royalty is divided by ownership percentage, then each author's
share is recouped against that author's own advance.
"""

from dataclasses import dataclass, field
from decimal import ROUND_DOWN, Decimal
from typing import Dict, List, Mapping, Sequence

from ..config import settings
from ..errors import InvalidEngineInput
from ..models import AdvanceBalance, RecoupmentResult
from ..money import ZERO, DecimalInput, exact_arithmetic, quantize_money, to_decimal
from .recoupment import apply_recoupment

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class AuthorShare:
    """An author's ownership of a title and their advance position."""

    contributor_id: str
    ownership_percentage: Decimal
    advance: AdvanceBalance = field(default_factory=lambda: AdvanceBalance.new(0))


@dataclass(frozen=True)
class AuthorSplit:
    """One author's share of a title royalty after recoupment."""

    contributor_id: str
    ownership_percentage: Decimal
    split_amount: Decimal
    recoupment: RecoupmentResult

    @property
    def recouped_amount(self) -> Decimal:
        return self.recoupment.recouped_amount

    @property
    def payable_amount(self) -> Decimal:
        return self.recoupment.payable_amount


def _validated_percentages(shares: Mapping[str, DecimalInput]) -> Dict[str, Decimal]:
    if not shares:
        raise InvalidEngineInput("At least one ownership share is required")

    percentages = {}
    for contributor_id, value in shares.items():
        pct = to_decimal(value, f"ownership percentage for {contributor_id}")
        if pct <= 0 or pct > HUNDRED:
            raise InvalidEngineInput(
                f"Ownership percentage for {contributor_id} must be in (0, 100], got {pct}"
            )
        percentages[contributor_id] = pct

    total = sum(percentages.values(), ZERO)
    if total != HUNDRED:
        raise InvalidEngineInput(f"Ownership percentages must sum to 100, got {total}")
    return percentages


def split_royalty_by_ownership(
    total_royalty: DecimalInput, shares: Mapping[str, DecimalInput]
) -> Dict[str, Decimal]:
    """
    Divide a royalty amount by ownership percentage.

    Each split is rounded down to the cent and the leftover cents go to the
    largest fractional remainders (first listed wins ties), so the splits
    always sum to the currency-quantized total.

    Args:
        total_royalty: Title royalty to divide
        shares: Contributor id -> ownership percentage (summing to 100)

    Returns:
        Contributor id -> split amount, in input order
    """
    percentages = _validated_percentages(shares)
    total = quantize_money(to_decimal(total_royalty, "total_royalty"))

    if total <= 0:
        return {contributor_id: quantize_money(ZERO) for contributor_id in percentages}

    places = settings.precision.money_places
    cent = Decimal(1).scaleb(-places)

    with exact_arithmetic():
        exact = {cid: (total * pct).scaleb(-2) for cid, pct in percentages.items()}
    floors = {cid: amount.quantize(cent, rounding=ROUND_DOWN) for cid, amount in exact.items()}

    leftover_cents = int((total - sum(floors.values(), ZERO)).scaleb(places))
    by_remainder = sorted(percentages, key=lambda cid: exact[cid] - floors[cid], reverse=True)
    for cid in by_remainder[:leftover_cents]:
        floors[cid] += cent

    return {cid: floors[cid] for cid in percentages}


def build_author_splits(
    total_royalty: DecimalInput, authors: Sequence[AuthorShare]
) -> List[AuthorSplit]:
    """
    Split a title royalty and recoup each author's share against their advance.

    Args:
        total_royalty: Title royalty for the period
        authors: Ownership and advance position per author

    Returns:
        One AuthorSplit per author, in input order
    """
    ids = [a.contributor_id for a in authors]
    if len(set(ids)) != len(ids):
        raise InvalidEngineInput(f"Duplicate contributor ids in split: {ids}")

    splits = split_royalty_by_ownership(
        total_royalty, {a.contributor_id: a.ownership_percentage for a in authors}
    )

    return [
        AuthorSplit(
            contributor_id=author.contributor_id,
            ownership_percentage=to_decimal(author.ownership_percentage),
            split_amount=splits[author.contributor_id],
            recoupment=apply_recoupment(author.advance, splits[author.contributor_id]),
        )
        for author in authors
    ]
