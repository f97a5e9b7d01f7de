import itertools
import math
import random

import pytest

from risk_engine.aggregation import (
    aggregate_events,
    aggregate_shards,
    merge_summaries,
    summarize_account,
)
from risk_engine.features import extract_features


def _ledger(make_event):
    return [
        make_event("A", 0, "deposit", "WETH", 1000),
        make_event("A", 60, "borrow", "USDC", 400),
        make_event("A", 120, "repay", "USDC", 150),
        make_event("A", 180, "withdraw", "WETH", 100),
        make_event("A", 240, "liquidation", "WETH", 50),
        make_event("A", 300, "swap", "DAI", 7),
        make_event("B", 30, "deposit", "DAI", 20),
        make_event("B", 2 * 24 * 60 + 30, "deposit", "DAI", 30),
    ]


def test_totals_follow_action_kinds(make_event):
    summaries = aggregate_events(_ledger(make_event))

    a = summaries["A"]
    assert a.transaction_count == 6
    assert a.total_deposited == 1000
    assert a.total_borrowed == 400
    assert a.total_repaid == 150
    assert a.total_withdrawn == 100
    assert a.liquidation_count == 1
    assert a.assets == frozenset({"WETH", "USDC", "DAI"})


def test_unknown_action_is_logged_but_not_totalled(make_event):
    a = aggregate_events(_ledger(make_event))["A"]

    assert [e.action for e in a.events][-1] == "swap"
    assert a.total_deposited + a.total_borrowed + a.total_repaid + a.total_withdrawn == 1650


def test_activity_duration_in_days(make_event):
    summaries = aggregate_events(_ledger(make_event))

    assert summaries["B"].activity_duration_days == pytest.approx(2.0)
    single = summarize_account("C", [make_event("C", 10)])
    assert single.activity_duration_days == 0.0


def test_same_instant_events_have_zero_duration(make_event):
    summary = summarize_account("C", [make_event("C", 5) for _ in range(3)])
    assert summary.activity_duration_days == 0.0


def test_aggregation_is_order_invariant(make_event):
    events = _ledger(make_event)
    baseline = aggregate_events(events)

    rng = random.Random(7)
    for _ in range(5):
        shuffled = list(events)
        rng.shuffle(shuffled)
        assert aggregate_events(shuffled) == baseline


def test_log_is_sorted_chronologically(make_event):
    events = list(reversed(_ledger(make_event)))
    log = aggregate_events(events)["A"].events

    assert [e.timestamp for e in log] == sorted(e.timestamp for e in log)
    assert log[0].action == "deposit"


def test_same_instant_events_keep_input_order(make_event):
    events = [
        make_event("A", 0, "borrow", "USDC", 1),
        make_event("A", 0, "repay", "USDC", 2),
        make_event("A", 0, "deposit", "USDC", 3),
    ]
    log = aggregate_events(events)["A"].events
    assert [e.amount for e in log] == [1, 2, 3]


def test_empty_input_gives_empty_mapping():
    assert aggregate_events([]) == {}


def test_sharded_aggregation_matches_single_pass(make_event):
    events = _ledger(make_event)
    whole = aggregate_events(events)

    assert aggregate_shards([events[::2], events[1::2]]) == whole
    assert aggregate_shards([events[1::2], events[::2]]) == whole


def test_merge_rejects_different_accounts(make_event):
    a = summarize_account("A", [make_event("A")])
    b = summarize_account("B", [make_event("B")])
    with pytest.raises(ValueError):
        merge_summaries(a, b)


def test_merge_combines_first_and_last_activity(make_event):
    early = summarize_account("A", [make_event("A", 0), make_event("A", 10)])
    late = summarize_account("A", [make_event("A", 5), make_event("A", 90)])

    merged = merge_summaries(late, early)
    assert merged.first_activity == early.first_activity
    assert merged.last_activity == late.last_activity
    assert merged.transaction_count == 4


def _fractional_ledger(make_event):
    # every event at the same instant, so the log keeps input order
    return [
        make_event("A", 0, "deposit", "USDC", 0.1),
        make_event("A", 0, "deposit", "USDC", 0.2),
        make_event("A", 0, "deposit", "USDC", 0.3),
        make_event("A", 0, "withdraw", "USDC", 0.1),
        make_event("A", 0, "withdraw", "USDC", 0.7),
        make_event("A", 0, "borrow", "DAI", 0.3),
    ]


def _totals(summary):
    return (
        summary.total_deposited,
        summary.total_borrowed,
        summary.total_repaid,
        summary.total_withdrawn,
        summary.liquidation_count,
        extract_features(summary).average_transaction_size,
    )


def test_fractional_totals_ignore_same_instant_order(make_event):
    events = _fractional_ledger(make_event)
    expected = _totals(aggregate_events(events)["A"])

    assert expected[0] == math.fsum([0.1, 0.2, 0.3])
    assert expected[3] == math.fsum([0.1, 0.7])
    for ordering in itertools.permutations(events):
        assert _totals(aggregate_events(ordering)["A"]) == expected


def test_fractional_shards_match_single_pass(make_event):
    events = _fractional_ledger(make_event)
    expected = _totals(aggregate_events(events)["A"])

    for cut in range(1, len(events)):
        head, tail = events[:cut], events[cut:]
        assert _totals(aggregate_shards([head, tail])["A"]) == expected
        assert _totals(aggregate_shards([tail, head])["A"]) == expected
    singles = [[e] for e in reversed(events)]
    assert _totals(aggregate_shards(singles)["A"]) == expected
