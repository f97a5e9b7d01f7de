"""
flash_loans.py — Flash-loan-like borrow/repay round-trip detection.

Pattern: an account borrows an asset and repays almost the same amount of
that asset shortly afterwards.

Why Suspicious?
Atomic borrow → use → repay loops are how flash-loan exploits and
wash-style leverage cycling look on a ledger when block numbers are not
available.

Detection:
For every borrow in the chronological log, scan forward while events stay
inside the time window.  The first repay of the same asset whose amount is
within the tolerance of the borrowed amount counts as one match; each
borrow matches at most once.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, List, Sequence

from risk_engine.events import BORROW, REPAY, Event


# ── Configurable thresholds ──────────────────────────────────────────────────
FLASH_WINDOW_HOURS: float = 1.0       # max hours between borrow and repay
FLASH_AMOUNT_TOLERANCE: float = 0.10  # max relative difference in amount


def find_round_trips(
    log: Sequence[Event],
    window_hours: float = FLASH_WINDOW_HOURS,
    amount_tolerance: float = FLASH_AMOUNT_TOLERANCE,
) -> List[Dict[str, Any]]:
    """Return one record per borrow that was repaid inside the window.

    Parameters
    ----------
    log : sequence of Event
        One account's events, sorted chronologically.
    window_hours : float
        Inclusive time window after the borrow.
    amount_tolerance : float
        Inclusive maximum of ``|repay - borrow| / borrow``.

    Returns
    -------
    list[dict]
        Keys: asset, borrow_amount, repay_amount, gap_minutes.
    """
    window = timedelta(hours=window_hours)
    round_trips: List[Dict[str, Any]] = []

    for i, borrow in enumerate(log):
        if borrow.action != BORROW:
            continue

        for candidate in log[i + 1:]:
            gap = candidate.timestamp - borrow.timestamp
            if gap > window:
                break
            if candidate.action != REPAY or candidate.asset != borrow.asset:
                continue
            if abs(candidate.amount - borrow.amount) <= amount_tolerance * borrow.amount:
                round_trips.append({
                    "asset": borrow.asset,
                    "borrow_amount": borrow.amount,
                    "repay_amount": candidate.amount,
                    "gap_minutes": gap.total_seconds() / 60.0,
                })
                break

    return round_trips


def flash_loan_ratio(
    log: Sequence[Event],
    window_hours: float = FLASH_WINDOW_HOURS,
    amount_tolerance: float = FLASH_AMOUNT_TOLERANCE,
) -> float:
    """Matched round trips divided by the number of transactions."""
    if not log:
        return 0.0
    matches = find_round_trips(log, window_hours, amount_tolerance)
    return len(matches) / len(log)
