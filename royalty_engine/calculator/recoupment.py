"""
Advance recoupment ledger.

Royalty earned is first applied against the outstanding advance; only the
excess becomes payable:

- recouped = min(royalty, remaining_balance)
- payable  = royalty - recouped
- remaining_balance decreases by recouped and never goes below zero

A zero or negative royalty (a returns-heavy period) recoups nothing, pays
nothing and never reverses an already-recouped advance.
"""

import logging
from typing import Any, Dict, Iterable

import pandas as pd

from ..models import AdvanceBalance, RecoupmentResult
from ..money import ZERO, DecimalInput, quantize_money, to_decimal

logger = logging.getLogger(__name__)


def apply_recoupment(balance: AdvanceBalance, royalty_amount: DecimalInput) -> RecoupmentResult:
    """
    Apply one royalty amount against an advance balance.

    The royalty is quantized to currency before it meets the stored balance.

    Args:
        balance: Advance balance before this amount
        royalty_amount: Royalty earned (typically AllocationResult.total_royalty)

    Returns:
        RecoupmentResult; unpacks as (payable_amount, updated_balance)
    """
    royalty = quantize_money(to_decimal(royalty_amount, "royalty_amount"))

    if royalty <= 0:
        return RecoupmentResult(
            royalty_amount=royalty,
            recouped_amount=ZERO,
            payable_amount=ZERO,
            previous_balance=balance,
            balance=balance,
            unapplied_deficit=royalty if royalty < 0 else ZERO,
        )

    recouped = min(royalty, balance.remaining_balance)
    payable = royalty - recouped
    updated = AdvanceBalance(
        original_amount=balance.original_amount,
        remaining_balance=balance.remaining_balance - recouped,
    )

    if recouped > 0 and updated.is_recouped:
        logger.info("Advance of %s fully recouped", balance.original_amount)

    return RecoupmentResult(
        royalty_amount=royalty,
        recouped_amount=recouped,
        payable_amount=payable,
        previous_balance=balance,
        balance=updated,
    )


def recoupment_waterfall(
    balance: AdvanceBalance, royalty_amounts: Iterable[DecimalInput]
) -> pd.DataFrame:
    """
    Apply a sequence of royalty amounts in order.

    Args:
        balance: Advance balance before the first period
        royalty_amounts: Royalty earned per period, oldest first

    Returns:
        DataFrame with period, royalty, recouped, payable, remaining_balance
        and unapplied_deficit columns (one row per period)
    """
    periods = []
    royalties = []
    recouped = []
    payables = []
    balances = []
    deficits = []

    for period, amount in enumerate(royalty_amounts, start=1):
        result = apply_recoupment(balance, amount)
        balance = result.balance

        periods.append(period)
        royalties.append(result.royalty_amount)
        recouped.append(result.recouped_amount)
        payables.append(result.payable_amount)
        balances.append(result.balance.remaining_balance)
        deficits.append(result.unapplied_deficit)

    return pd.DataFrame(
        {
            "period": periods,
            "royalty": royalties,
            "recouped": recouped,
            "payable": payables,
            "remaining_balance": balances,
            "unapplied_deficit": deficits,
        }
    )


def summarize_waterfall(waterfall_df: pd.DataFrame) -> Dict[str, Any]:
    """
    Generate summary statistics for a recoupment waterfall.

    Args:
        waterfall_df: DataFrame from recoupment_waterfall

    Returns:
        Dictionary with totals and the period in which the advance earned out
    """
    if waterfall_df.empty:
        return {
            "periods": 0,
            "total_royalty": ZERO,
            "total_recouped": ZERO,
            "total_payable": ZERO,
            "recoupment_period": None,
            "fully_recouped": False,
            "final_balance": None,
        }

    earned_out = waterfall_df[(waterfall_df["recouped"] > 0) & (waterfall_df["remaining_balance"] == 0)]
    recoupment_period = int(earned_out["period"].min()) if not earned_out.empty else None
    final_balance = waterfall_df["remaining_balance"].iloc[-1]

    return {
        "periods": len(waterfall_df),
        "total_royalty": sum(waterfall_df["royalty"], ZERO),
        "total_recouped": sum(waterfall_df["recouped"], ZERO),
        "total_payable": sum(waterfall_df["payable"], ZERO),
        "recoupment_period": recoupment_period,
        "fully_recouped": final_balance == 0,
        "final_balance": final_balance,
    }
