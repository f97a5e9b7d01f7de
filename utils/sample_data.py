"""
sample_data.py — Generate realistic synthetic ledger events that contain
the behaviors the health score reacts to, for demonstration and testing.

Archetypes embedded:
- Steady borrowers (collateral 2–3×, borrows repaid in full)
- Depositors who never borrow
- Flash-loan-like loopers (borrow → repay within minutes)
- Over-leveraged accounts that get liquidated
- Whales (huge, rapid-fire transactions)
- Dust accounts with fewer than 5 events (never scored)
"""

from __future__ import annotations

import random
import pandas as pd
from datetime import datetime, timedelta

from utils.validation import TIMESTAMP_FORMAT

STABLE_ASSETS = ["USDC", "DAI", "USDT"]
VOLATILE_ASSETS = ["WETH", "WBTC", "LINK"]


def generate_sample_events(
    n_steady: int = 12,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate a sample ledger DataFrame with embedded behaviors.

    Parameters
    ----------
    n_steady : int
        Number of well-behaved background borrowers.
    seed : int
        Random seed for reproducibility.

    Returns
    -------
    pd.DataFrame
        Ready-to-use DataFrame with columns:
        account, timestamp, action, asset, amount
    """
    rng = random.Random(seed)

    rows: list[dict] = []
    base_time = datetime(2025, 1, 6, 9, 0, 0)

    def _add(account: str, action: str, asset: str, amount: float, ts: datetime) -> None:
        rows.append({
            "account": account,
            "timestamp": ts.strftime(TIMESTAMP_FORMAT),
            "action": action,
            "asset": asset,
            "amount": round(amount, 2),
        })

    # ── 1. Steady borrowers ──────────────────────────────────────────────
    for i in range(1, n_steady + 1):
        acct = f"STEADY_{i:03d}"
        t = base_time + timedelta(days=rng.randint(0, 20))
        collateral_asset = rng.choice(VOLATILE_ASSETS)
        for _ in range(rng.randint(2, 4)):
            borrow_asset = rng.choice(STABLE_ASSETS)
            loan = rng.uniform(1_000, 20_000)
            _add(acct, "deposit", collateral_asset, loan * rng.uniform(2.0, 3.0), t)
            t += timedelta(days=rng.randint(1, 5))
            _add(acct, "borrow", borrow_asset, loan, t)
            t += timedelta(days=rng.randint(10, 30))
            _add(acct, "repay", borrow_asset, loan, t)
            t += timedelta(days=rng.randint(3, 10))
        _add(acct, "withdraw", collateral_asset, rng.uniform(500, 2_000), t)

    # ── 2. Depositors who never borrow ───────────────────────────────────
    for i in range(1, 6):
        acct = f"SAVER_{i:03d}"
        t = base_time + timedelta(days=rng.randint(0, 10))
        asset = rng.choice(STABLE_ASSETS)
        for _ in range(rng.randint(5, 9)):
            _add(acct, "deposit", asset, rng.uniform(100, 5_000), t)
            t += timedelta(days=7, hours=rng.randint(-6, 6))

    # ── 3. Flash-loan-like loopers ───────────────────────────────────────
    for i in range(1, 4):
        acct = f"LOOPER_{i:03d}"
        t = base_time + timedelta(days=rng.randint(30, 60), hours=rng.randint(0, 23))
        _add(acct, "deposit", "WETH", rng.uniform(5_000, 10_000), t)
        for _ in range(rng.randint(5, 8)):
            t += timedelta(hours=rng.randint(2, 30))
            amount = rng.uniform(50_000, 250_000)
            _add(acct, "borrow", "USDC", amount, t)
            _add(acct, "repay", "USDC", amount * rng.uniform(0.95, 1.0),
                 t + timedelta(minutes=rng.randint(1, 40)))

    # ── 4. Over-leveraged, liquidated ────────────────────────────────────
    for i in range(1, 4):
        acct = f"LEVERED_{i:03d}"
        t = base_time + timedelta(days=rng.randint(5, 40))
        collateral = rng.uniform(10_000, 40_000)
        _add(acct, "deposit", "WETH", collateral, t)
        for _ in range(3):
            t += timedelta(hours=rng.randint(1, 72))
            _add(acct, "borrow", "DAI", collateral * rng.uniform(0.3, 0.4), t)
        for _ in range(rng.randint(1, 2)):
            t += timedelta(days=rng.randint(1, 6))
            _add(acct, "liquidation", "WETH", collateral * rng.uniform(0.2, 0.5), t)
        t += timedelta(minutes=rng.randint(5, 300))
        _add(acct, "repay", "DAI", collateral * rng.uniform(0.05, 0.2), t)

    # ── 5. Whales ─────────────────────────────────────────────────────────
    for i in range(1, 3):
        acct = f"WHALE_{i:03d}"
        t = base_time + timedelta(days=rng.randint(50, 70), hours=9)
        for _ in range(rng.randint(12, 18)):
            action = rng.choice(["deposit", "deposit", "borrow", "withdraw"])
            _add(acct, action, rng.choice(VOLATILE_ASSETS + STABLE_ASSETS),
                 rng.uniform(150_000, 2_000_000), t)
            t += timedelta(minutes=rng.randint(5, 50))

    # ── 6. Dust accounts (below the scoring threshold) ───────────────────
    for i in range(1, 5):
        acct = f"DUST_{i:03d}"
        t = base_time + timedelta(days=rng.randint(0, 80))
        for _ in range(rng.randint(1, 4)):
            _add(acct, "deposit", rng.choice(STABLE_ASSETS), rng.uniform(1, 50), t)
            t += timedelta(hours=rng.randint(1, 48))

    # ── Build DataFrame ──────────────────────────────────────────────────
    df = pd.DataFrame(rows)
    # Shuffle rows: aggregation must not depend on input order
    df = df.sample(frac=1, random_state=seed).reset_index(drop=True)
    return df


def sample_csv_bytes() -> bytes:
    """Return sample CSV as UTF-8 bytes (for the dashboard download button)."""
    df = generate_sample_events()
    return df.to_csv(index=False).encode("utf-8")
