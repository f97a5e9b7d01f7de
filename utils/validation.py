"""
validation.py — Ledger event input validation for the Health Scoring Engine.

Validates an uploaded event table against the required schema before any
aggregation or scoring runs, and converts the cleaned rows into Events.
"""

from __future__ import annotations

import pandas as pd
from typing import List, Tuple

from risk_engine.events import ACTIONS, Event

# ── Required schema ──────────────────────────────────────────────────────────
REQUIRED_COLUMNS = {
    "account": "string",
    "timestamp": "datetime",
    "action": "string",
    "asset": "string",
    "amount": "float",
}

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


# ── Public API ───────────────────────────────────────────────────────────────

def validate_events(df: pd.DataFrame) -> Tuple[bool, List[str], pd.DataFrame]:
    """Validate and clean a raw ledger event DataFrame.

    Parameters
    ----------
    df : pd.DataFrame
        Raw DataFrame read from a CSV export.

    Returns
    -------
    is_valid : bool
        ``True`` if the data passes all checks.
    errors : list[str]
        Human-readable messages.  Entries starting with ``Warning:`` are
        informational and do not make the data invalid.
    cleaned_df : pd.DataFrame
        Cleaned / type-cast copy of the input (empty DataFrame on failure).
    """
    errors: List[str] = []

    # 1. Check required columns ------------------------------------------------
    missing = set(REQUIRED_COLUMNS.keys()) - set(df.columns)
    if missing:
        errors.append(f"Missing required columns: {', '.join(sorted(missing))}")
        return False, errors, pd.DataFrame()

    cleaned = df.copy()

    # 2. Normalise string columns ----------------------------------------------
    for col in ("account", "action", "asset"):
        cleaned[col] = cleaned[col].fillna("").astype(str).str.strip()
    cleaned["action"] = cleaned["action"].str.lower()
    cleaned["asset"] = cleaned["asset"].str.upper()

    # 3. Empty account ids -----------------------------------------------------
    n_empty = (cleaned["account"] == "").sum()
    if n_empty:
        errors.append(f"Column 'account' has {n_empty} empty/null value(s).")

    # 4. Unknown action kinds (kept, counted, never totalled) ------------------
    unknown = sorted(set(cleaned["action"]) - set(ACTIONS))
    if unknown:
        n_unknown = (~cleaned["action"].isin(ACTIONS)).sum()
        errors.append(
            f"Warning: {n_unknown} row(s) with unknown action kind(s) "
            f"{', '.join(repr(a) for a in unknown)}. They count as "
            "transactions but are not added to any total."
        )

    # 5. Cast amount to float --------------------------------------------------
    cleaned["amount"] = pd.to_numeric(cleaned["amount"], errors="coerce")
    n_bad_amount = cleaned["amount"].isna().sum()
    if n_bad_amount:
        errors.append(f"Column 'amount' has {n_bad_amount} non-numeric value(s).")

    # 6. Amounts are magnitudes ------------------------------------------------
    n_neg = (cleaned["amount"] < 0).sum()
    if n_neg:
        errors.append(
            f"Column 'amount' has {n_neg} negative value(s). "
            "Amounts must be >= 0."
        )

    # 7. Parse timestamp -------------------------------------------------------
    cleaned["timestamp"] = parse_timestamps(cleaned["timestamp"])
    n_bad_ts = cleaned["timestamp"].isna().sum()
    if n_bad_ts:
        errors.append(
            f"Column 'timestamp' has {n_bad_ts} value(s) that are neither "
            f"Unix seconds nor format '{TIMESTAMP_FORMAT}'."
        )

    # 8. Row count check -------------------------------------------------------
    if len(cleaned) == 0:
        errors.append("Warning: No events in input.")

    is_valid = not any(e for e in errors if not e.startswith("Warning:"))
    if not is_valid:
        return False, errors, pd.DataFrame()

    return True, errors, cleaned.reset_index(drop=True)


def parse_timestamps(column: pd.Series) -> pd.Series:
    """Parse Unix seconds or ``TIMESTAMP_FORMAT`` strings into datetimes."""
    if pd.api.types.is_datetime64_any_dtype(column):
        return column
    if pd.api.types.is_numeric_dtype(column):
        return pd.to_datetime(column, unit="s", errors="coerce")
    return pd.to_datetime(column, format=TIMESTAMP_FORMAT, errors="coerce")


def frame_to_events(df: pd.DataFrame) -> List[Event]:
    """Convert a *cleaned* DataFrame into Events, keeping row order."""
    return [
        Event(
            account=row.account,
            timestamp=row.timestamp.to_pydatetime(),
            action=row.action,
            asset=row.asset,
            amount=float(row.amount),
        )
        for row in df.itertuples(index=False)
    ]


def quick_stats(df: pd.DataFrame) -> dict:
    """Return a small summary dict for display in the CLI and dashboard.

    Parameters
    ----------
    df : pd.DataFrame
        The *cleaned* DataFrame (post-validation).

    Returns
    -------
    dict
        Keys: total_events, unique_accounts, unique_assets, action_counts,
              min_amount, max_amount, date_range.
    """
    if df.empty:
        return {
            "total_events": 0,
            "unique_accounts": 0,
            "unique_assets": 0,
            "action_counts": {},
            "min_amount": 0.0,
            "max_amount": 0.0,
            "date_range": ("", ""),
        }
    return {
        "total_events": len(df),
        "unique_accounts": df["account"].nunique(),
        "unique_assets": df["asset"].nunique(),
        "action_counts": df["action"].value_counts().to_dict(),
        "min_amount": float(df["amount"].min()),
        "max_amount": float(df["amount"].max()),
        "date_range": (
            str(df["timestamp"].min()),
            str(df["timestamp"].max()),
        ),
    }
