"""
repayment.py — Repayment discipline by replaying open borrow balances.

The chronological log is replayed with one open balance per asset.  Borrows
add to the asset's balance, repays reduce it (never below zero).  Each time
a positive balance is brought back to exactly zero by a repay, the account
has closed out a borrow.

    consistent_repayment = (closed / borrow_events)
                           * (1 - still_open / total_borrowed)

Accounts that never borrowed score 1.0.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Dict, Sequence, Tuple

from risk_engine.events import BORROW, REPAY, Event


def open_balances(log: Sequence[Event]) -> Dict[str, float]:
    """Replay *log* and return the per-asset balance still owed at the end."""
    balances, _ = _replay(log)
    return balances


def consistent_repayment(log: Sequence[Event], total_borrowed: float) -> float:
    if total_borrowed == 0:
        return 1.0

    balances, closed = _replay(log)
    borrow_events = sum(1 for e in log if e.action == BORROW)
    remaining = math.fsum(balances.values())

    closed_share = closed / max(borrow_events, 1)
    outstanding_share = remaining / max(total_borrowed, 1.0)
    return closed_share * (1.0 - outstanding_share)


def _replay(log: Sequence[Event]) -> Tuple[Dict[str, float], int]:
    balances: Dict[str, float] = defaultdict(float)
    closed = 0

    for event in log:
        if event.action == BORROW:
            balances[event.asset] += event.amount
        elif event.action == REPAY:
            before = balances[event.asset]
            if before <= 0:
                continue
            after = max(0.0, before - event.amount)
            balances[event.asset] = after
            if after == 0:
                closed += 1

    return dict(balances), closed
