import pathlib
import sys
from datetime import datetime, timedelta

import pytest


REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

BASE_TIME = datetime(2025, 3, 1, 12, 0, 0)


@pytest.fixture()
def make_event():
    from risk_engine.events import Event

    def _make(
        account: str = "ACC_1",
        minutes: float = 0,
        action: str = "deposit",
        asset: str = "USDC",
        amount: float = 100.0,
    ):
        return Event(
            account=account,
            timestamp=BASE_TIME + timedelta(minutes=minutes),
            action=action,
            asset=asset,
            amount=amount,
        )

    return _make


@pytest.fixture()
def make_vector():
    from risk_engine.features import FeatureVector

    def _make(account: str = "ACC_1", **overrides):
        values = dict(
            account=account,
            transaction_count=5,
            unique_asset_count=1,
            activity_duration_days=1.0,
            liquidation_ratio=0.0,
            repayment_ratio=1.0,
            collateral_ratio=2.5,
            withdrawal_ratio=0.0,
            average_transaction_size=100.0,
            transaction_frequency=1.0,
            behavior_volatility=0.0,
            flash_loan_like_behavior=0.0,
            consistent_repayment=1.0,
            leverage_ratio=0.4,
        )
        values.update(overrides)
        return FeatureVector(**values)

    return _make
