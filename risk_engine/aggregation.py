"""
aggregation.py — Per-account aggregation of raw ledger events.

Folds an unordered stream of Events into one frozen AccountSummary per
account: running totals per action kind, liquidation count, the set of
assets touched, first/last activity and the chronologically ordered
transaction log.

Totals, asset sets and first/last timestamps never depend on input order.
Only the transaction log is order-sensitive, and it is produced by an
explicit stable sort on timestamp after folding, so same-instant events
keep their input order.

Summaries can also be built per shard and merged afterwards
(``merge_summaries`` / ``aggregate_shards``): the merged summary is rebuilt
from the combined logs, so it equals a single pass over the same events.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Tuple

from risk_engine.events import (
    BORROW,
    DEPOSIT,
    LIQUIDATION,
    REPAY,
    WITHDRAW,
    Event,
)

SECONDS_PER_DAY: float = 86400.0


@dataclass(frozen=True)
class AccountSummary:
    """Frozen aggregate view of one account's ledger activity."""

    account: str
    events: Tuple[Event, ...]
    assets: FrozenSet[str]
    total_deposited: float
    total_borrowed: float
    total_repaid: float
    total_withdrawn: float
    liquidation_count: int
    first_activity: datetime
    last_activity: datetime

    @property
    def transaction_count(self) -> int:
        return len(self.events)

    @property
    def activity_duration_days(self) -> float:
        seconds = (self.last_activity - self.first_activity).total_seconds()
        return max(seconds, 0.0) / SECONDS_PER_DAY


# ── Public API ───────────────────────────────────────────────────────────────

def aggregate_events(events: Iterable[Event]) -> Dict[str, AccountSummary]:
    """Group *events* by account and build one summary per account.

    Parameters
    ----------
    events : iterable of Event
        Events in any order.  Unknown action kinds are kept in the log and
        counted as transactions but never added to a total.

    Returns
    -------
    dict[str, AccountSummary]
        Account id → summary.  Empty when *events* is empty.
    """
    grouped: Dict[str, List[Event]] = defaultdict(list)
    for event in events:
        grouped[event.account].append(event)

    return {
        account: summarize_account(account, account_events)
        for account, account_events in grouped.items()
    }


def summarize_account(account: str, events: Iterable[Event]) -> AccountSummary:
    """Build a frozen summary from one account's events.

    *events* must be non-empty and belong to *account*.
    """
    log = _chronological(events)
    if not log:
        raise ValueError(f"account {account!r} has no events to summarize")

    # fsum is correctly rounded, so totals do not depend on log order
    totals = {
        action: math.fsum(e.amount for e in log if e.action == action)
        for action in (DEPOSIT, BORROW, REPAY, WITHDRAW)
    }
    liquidations = sum(1 for e in log if e.action == LIQUIDATION)

    return AccountSummary(
        account=account,
        events=log,
        assets=frozenset(e.asset for e in log),
        total_deposited=totals[DEPOSIT],
        total_borrowed=totals[BORROW],
        total_repaid=totals[REPAY],
        total_withdrawn=totals[WITHDRAW],
        liquidation_count=liquidations,
        first_activity=min(e.timestamp for e in log),
        last_activity=max(e.timestamp for e in log),
    )


def merge_summaries(a: AccountSummary, b: AccountSummary) -> AccountSummary:
    """Combine two partial summaries of the same account."""
    if a.account != b.account:
        raise ValueError(
            f"cannot merge summaries of different accounts: "
            f"{a.account!r} and {b.account!r}"
        )

    return summarize_account(a.account, a.events + b.events)


def merge_summary_maps(
    *maps: Dict[str, AccountSummary],
) -> Dict[str, AccountSummary]:
    """Merge per-shard summary mappings into a single mapping."""
    merged: Dict[str, AccountSummary] = {}
    for shard in maps:
        for account, summary in shard.items():
            if account in merged:
                merged[account] = merge_summaries(merged[account], summary)
            else:
                merged[account] = summary
    return merged


def aggregate_shards(
    batches: Iterable[Iterable[Event]],
) -> Dict[str, AccountSummary]:
    """Aggregate each batch independently, then merge the partial results."""
    return merge_summary_maps(*(aggregate_events(batch) for batch in batches))


# ── Internal helpers ─────────────────────────────────────────────────────────

def _chronological(events: Iterable[Event]) -> Tuple[Event, ...]:
    # sorted() is stable: equal timestamps keep their input order
    return tuple(sorted(events, key=lambda e: e.timestamp))
