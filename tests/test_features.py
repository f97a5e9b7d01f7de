import pytest

from risk_engine.aggregation import summarize_account
from risk_engine.features import behavior_volatility, extract_features
from risk_engine.flash_loans import find_round_trips, flash_loan_ratio
from risk_engine.repayment import consistent_repayment, open_balances

DAY = 24 * 60


def _summary(events):
    return summarize_account(events[0].account, events)


def test_accounts_below_five_events_get_no_vector(make_event):
    summary = _summary([make_event(minutes=i) for i in range(4)])
    assert extract_features(summary) is None
    assert extract_features(summary, min_transactions=4) is not None


def test_ratio_features(make_event):
    summary = _summary([
        make_event(minutes=0, action="deposit", asset="USDC", amount=1000),
        make_event(minutes=DAY, action="borrow", asset="USDC", amount=400),
        make_event(minutes=2 * DAY, action="repay", asset="USDC", amount=200),
        make_event(minutes=3 * DAY, action="withdraw", asset="USDC", amount=100),
        make_event(minutes=4 * DAY, action="liquidation", asset="WETH", amount=50),
    ])
    v = extract_features(summary)

    assert v.transaction_count == 5
    assert v.unique_asset_count == 2
    assert v.activity_duration_days == pytest.approx(4.0)
    assert v.liquidation_ratio == pytest.approx(0.2)
    assert v.repayment_ratio == pytest.approx(0.5)
    assert v.collateral_ratio == pytest.approx(2.5)
    assert v.withdrawal_ratio == pytest.approx(0.1)
    assert v.average_transaction_size == pytest.approx(350.0)
    assert v.transaction_frequency == pytest.approx(1.25)
    assert v.leverage_ratio == pytest.approx(0.4)
    assert v.behavior_volatility == pytest.approx(0.0)
    assert v.consistent_repayment == pytest.approx(0.0)
    assert v.flash_loan_like_behavior == 0.0


def test_frequency_uses_at_least_one_day(make_event):
    v = extract_features(_summary([make_event(minutes=10 * i) for i in range(5)]))
    assert v.transaction_frequency == pytest.approx(5.0)


def test_never_borrowed_account(make_event):
    v = extract_features(_summary([make_event(minutes=60 * i, amount=100) for i in range(5)]))

    assert v.consistent_repayment == 1.0
    assert v.leverage_ratio == 0.0
    assert v.collateral_ratio == pytest.approx(500.0)
    assert v.repayment_ratio == 0.0


def test_volatility_of_uneven_gaps(make_event):
    # gaps of 1h and 3h: mean 2, population std 1
    log = [make_event(minutes=0), make_event(minutes=60), make_event(minutes=240)]
    assert behavior_volatility(log) == pytest.approx(0.5)


def test_volatility_needs_three_events(make_event):
    assert behavior_volatility([make_event(minutes=0), make_event(minutes=500)]) == 0.0


def test_volatility_of_same_instant_events_is_zero(make_event):
    summary = _summary([make_event(minutes=0) for _ in range(5)])
    v = extract_features(summary)
    assert v.behavior_volatility == 0.0


def _loops(make_event, repay_amount=98.0, repay_after=30, asset="USDC", n=5):
    events = []
    for i in range(n):
        start = i * 120
        events.append(make_event(minutes=start, action="borrow", asset="USDC", amount=100))
        events.append(make_event(minutes=start + repay_after, action="repay",
                                 asset=asset, amount=repay_amount))
    return events


def test_flash_loan_round_trips_are_counted(make_event):
    log = _loops(make_event)

    assert len(find_round_trips(log)) == 5
    assert flash_loan_ratio(log) == pytest.approx(0.5)


def test_repay_at_window_edge_counts(make_event):
    assert len(find_round_trips(_loops(make_event, repay_after=60))) == 5
    assert find_round_trips(_loops(make_event, repay_after=61)) == []


def test_repay_must_match_asset_and_amount(make_event):
    assert find_round_trips(_loops(make_event, asset="DAI")) == []
    assert find_round_trips(_loops(make_event, repay_amount=89.0)) == []
    assert len(find_round_trips(_loops(make_event, repay_amount=109.0))) == 5


def test_each_borrow_matches_once(make_event):
    log = [
        make_event(minutes=0, action="borrow", amount=100),
        make_event(minutes=10, action="repay", amount=100),
        make_event(minutes=20, action="repay", amount=100),
    ]
    trips = find_round_trips(log)
    assert len(trips) == 1
    assert trips[0]["gap_minutes"] == pytest.approx(10.0)


def test_full_repayment_in_installments(make_event):
    log = [
        make_event(minutes=0, action="borrow", amount=100),
        make_event(minutes=DAY, action="repay", amount=60),
        make_event(minutes=2 * DAY, action="repay", amount=40),
    ]
    assert consistent_repayment(log, 100) == pytest.approx(1.0)
    assert open_balances(log) == {"USDC": 0.0}


def test_partial_repayment_across_assets(make_event):
    log = [
        make_event(minutes=0, action="borrow", asset="USDC", amount=100),
        make_event(minutes=1, action="borrow", asset="DAI", amount=100),
        make_event(minutes=2, action="repay", asset="USDC", amount=100),
    ]
    # one of two borrows closed, half of the borrowed amount still open
    assert consistent_repayment(log, 200) == pytest.approx(0.25)


def test_overpayment_floors_balance_at_zero(make_event):
    log = [
        make_event(minutes=0, action="borrow", amount=100),
        make_event(minutes=5, action="repay", amount=150),
    ]
    assert open_balances(log) == {"USDC": 0.0}
    assert consistent_repayment(log, 100) == pytest.approx(1.0)


def test_repay_without_open_borrow_does_not_count(make_event):
    log = [
        make_event(minutes=0, action="repay", asset="DAI", amount=50),
        make_event(minutes=5, action="borrow", asset="USDC", amount=100),
        make_event(minutes=9, action="repay", asset="USDC", amount=100),
    ]
    assert consistent_repayment(log, 100) == pytest.approx(1.0)
