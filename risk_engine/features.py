"""
features.py — Behavioral feature derivation for a single account.

Turns one AccountSummary into a fixed-shape FeatureVector:

Feature                   | Formula
--------------------------|-------------------------------------------------
transaction_count         | events in the log
unique_asset_count        | distinct assets touched
activity_duration_days    | (last - first) / 1 day
liquidation_ratio         | liquidations / transactions
repayment_ratio           | repaid / max(borrowed, 1)
collateral_ratio          | deposited / max(borrowed, 1)
withdrawal_ratio          | withdrawn / max(deposited, 1)
average_transaction_size  | sum(amount) / transactions
transaction_frequency     | transactions / max(duration_days, 1)
behavior_volatility       | CV of inter-event gaps (hours)
flash_loan_like_behavior  | borrow/repay round trips / transactions
consistent_repayment      | see ``repayment.py``
leverage_ratio            | borrowed / max(deposited, 1)

Accounts with fewer than ``MIN_TRANSACTIONS`` events carry too little
signal and get no vector.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from risk_engine.aggregation import AccountSummary
from risk_engine.events import Event
from risk_engine.flash_loans import (
    FLASH_AMOUNT_TOLERANCE,
    FLASH_WINDOW_HOURS,
    flash_loan_ratio,
)
from risk_engine.repayment import consistent_repayment


# ── Configurable thresholds ──────────────────────────────────────────────────
MIN_TRANSACTIONS: int = 5
MIN_VOLATILITY_EVENTS: int = 3


@dataclass(frozen=True)
class FeatureVector:
    account: str
    transaction_count: int
    unique_asset_count: int
    activity_duration_days: float
    liquidation_ratio: float
    repayment_ratio: float
    collateral_ratio: float
    withdrawal_ratio: float
    average_transaction_size: float
    transaction_frequency: float
    behavior_volatility: float
    flash_loan_like_behavior: float
    consistent_repayment: float
    leverage_ratio: float

    def as_dict(self) -> Dict[str, float]:
        values = asdict(self)
        values.pop("account")
        return values


# ── Public API ───────────────────────────────────────────────────────────────

def extract_features(
    summary: AccountSummary,
    min_transactions: int = MIN_TRANSACTIONS,
    flash_window_hours: float = FLASH_WINDOW_HOURS,
    flash_amount_tolerance: float = FLASH_AMOUNT_TOLERANCE,
) -> Optional[FeatureVector]:
    """Derive the feature vector for one account.

    Parameters
    ----------
    summary : AccountSummary
        Frozen output of the aggregator.
    min_transactions : int
        Accounts with fewer events return ``None``.
    flash_window_hours, flash_amount_tolerance : float
        Passed through to the round-trip detector.

    Returns
    -------
    FeatureVector or None
    """
    count = summary.transaction_count
    if count < min_transactions:
        return None

    log = summary.events
    duration = summary.activity_duration_days
    borrowed = summary.total_borrowed
    deposited = summary.total_deposited

    return FeatureVector(
        account=summary.account,
        transaction_count=count,
        unique_asset_count=len(summary.assets),
        activity_duration_days=duration,
        liquidation_ratio=summary.liquidation_count / count,
        repayment_ratio=summary.total_repaid / max(borrowed, 1.0),
        collateral_ratio=deposited / max(borrowed, 1.0),
        withdrawal_ratio=summary.total_withdrawn / max(deposited, 1.0),
        average_transaction_size=math.fsum(e.amount for e in log) / count,
        transaction_frequency=count / max(duration, 1.0),
        behavior_volatility=behavior_volatility(log),
        flash_loan_like_behavior=flash_loan_ratio(
            log, flash_window_hours, flash_amount_tolerance
        ),
        consistent_repayment=consistent_repayment(log, borrowed),
        leverage_ratio=borrowed / max(deposited, 1.0),
    )


def behavior_volatility(log: Sequence[Event]) -> float:
    """Coefficient of variation of inter-event gaps, in hours.

    Returns 0.0 with fewer than three events, and 0.0 when the mean gap is
    zero (every event at the same instant), since there is no spread in
    timing to measure.
    """
    if len(log) < MIN_VOLATILITY_EVENTS:
        return 0.0

    gaps = np.array([
        (later.timestamp - earlier.timestamp).total_seconds() / 3600.0
        for earlier, later in zip(log, log[1:])
    ])
    mean_gap = np.mean(gaps)
    if mean_gap == 0:
        return 0.0

    return float(np.std(gaps) / mean_gap)
