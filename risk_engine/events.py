"""
events.py — Ledger event record.

One Event is one ledger action (deposit, borrow, repay, withdraw,
liquidation) taken by an account on a single asset.  Events are immutable;
every later stage only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


# ── Action kinds ─────────────────────────────────────────────────────────────
DEPOSIT: str = "deposit"
BORROW: str = "borrow"
REPAY: str = "repay"
WITHDRAW: str = "withdraw"
LIQUIDATION: str = "liquidation"

ACTIONS = (DEPOSIT, BORROW, REPAY, WITHDRAW, LIQUIDATION)


@dataclass(frozen=True)
class Event:
    """A single ledger action."""

    account: str
    timestamp: datetime
    action: str
    asset: str
    amount: float
