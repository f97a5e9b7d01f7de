"""
run_local.py — Command-line interface for the Ledger Health Scoring Engine.

Run with:  python run_local.py [csv_file]
           python run_local.py --sample    (use built-in sample data)

Options:   --json           write health_report.json
           --min-score N    only report accounts scoring at least N
           --verbose        debug logging
"""

import sys
import time
import logging
import pandas as pd
from pathlib import Path

# Local imports
from utils.validation import validate_events, frame_to_events, quick_stats
from utils.sample_data import generate_sample_events
from utils.json_export import (
    generate_report,
    report_to_json_string,
    build_score_table,
)
from risk_engine.pipeline import run_pipeline
from risk_engine.scoring import stress_flags


def print_separator(title: str = "") -> None:
    """Print a visual separator."""
    if title:
        print(f"\n{'='*60}\n  {title}\n{'='*60}")
    else:
        print("-" * 60)


def run_scoring(df: pd.DataFrame) -> dict:
    """Validate the event table and run the scoring pipeline."""

    is_valid, errors, cleaned_df = validate_events(df)
    for err in errors:
        if err.startswith("Warning:"):
            print(f"[WARN] {err[len('Warning: '):]}")
    if not is_valid:
        print("\n[ERROR] Invalid event data:")
        for err in errors:
            if not err.startswith("Warning:"):
                print(f"  - {err}")
        sys.exit(1)

    stats = quick_stats(cleaned_df)
    print(f"[OK] Loaded {stats['total_events']} events for {stats['unique_accounts']} accounts")

    print("[...] Aggregating, deriving features and scoring...")
    events = frame_to_events(cleaned_df)
    results = run_pipeline(events)
    print(
        f"[OK] Scored {len(results['results'])} accounts "
        f"({len(results['summaries']) - len(results['results'])} skipped, < 5 events)"
    )
    results["input_stats"] = stats
    return results


def print_results(results: dict, report: dict) -> None:
    """Print scoring results to console."""

    features = results["features"]

    # ── Ranked accounts ──────────────────────────────────────────────────
    print_separator("ACCOUNT HEALTH RANKING")
    rows = build_score_table(report)
    if rows:
        print(f"{'#':>4} {'Account':<16} {'Score':>6} {'Band':<8} Top factors")
        print("-" * 78)
        for row in rows[:25]:
            print(
                f"{row['Rank']:>4} {row['Account']:<16} {row['Score']:>6} "
                f"{row['Band']:<8} {row['Top Factors']}"
            )
    else:
        print("No accounts met the reporting threshold.")

    # ── Stress signatures ────────────────────────────────────────────────
    print_separator("PROTOCOL STRESS SIGNATURES")
    stressed = {}
    for account, vector in features.items():
        flags = stress_flags(vector)
        if flags:
            stressed[account] = flags
    if stressed:
        for account, flags in sorted(stressed.items()):
            print(f"  - {account}: {', '.join(flags)}")
    else:
        print("No stress signatures detected.")

    # ── Flash-loan-like accounts ─────────────────────────────────────────
    print_separator("FLASH-LOAN-LIKE ROUND TRIPS")
    loopers = sorted(
        (v for v in features.values() if v.flash_loan_like_behavior > 0),
        key=lambda v: -v.flash_loan_like_behavior,
    )
    if loopers:
        for v in loopers[:10]:
            print(f"  - {v.account}: {v.flash_loan_like_behavior:.0%} of transactions")
    else:
        print("No borrow/repay round trips detected.")

    # ── Summary statistics ───────────────────────────────────────────────
    print_separator("SUMMARY")
    summary = report["summary"]
    bands = summary["risk_bands"]
    print(f"  Accounts Seen:           {summary['total_accounts_seen']}")
    print(f"  Accounts Scored:         {summary['accounts_scored']}")
    print(f"  Mean Score:              {summary['mean_score']}")
    print(f"  Healthy (>=70):          {bands['healthy']}")
    print(f"  Watch (40-69):           {bands['watch']}")
    print(f"  At Risk (<40):           {bands['at_risk']}")


def _option_value(flag: str, default: str) -> str:
    if flag in sys.argv:
        idx = sys.argv.index(flag)
        if idx + 1 < len(sys.argv):
            return sys.argv[idx + 1]
    return default


def main():
    verbose = "--verbose" in sys.argv
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
    )

    print_separator("Ledger Health Scoring Engine")

    try:
        min_score = int(_option_value("--min-score", "0"))
    except ValueError:
        print("[ERROR] --min-score expects an integer")
        sys.exit(1)

    positional = [
        a for i, a in enumerate(sys.argv[1:], 1)
        if not a.startswith("--") and sys.argv[i - 1] != "--min-score"
    ]

    if not positional or "--sample" in sys.argv:
        print("[INFO] Using built-in sample data with embedded behaviors...")
        df = generate_sample_events()
    else:
        csv_path = Path(positional[0])
        if not csv_path.exists():
            print(f"[ERROR] File not found: {csv_path}")
            sys.exit(1)
        print(f"[INFO] Loading CSV: {csv_path}")
        df = pd.read_csv(csv_path, encoding="utf-8-sig")

    start_time = time.time()
    results = run_scoring(df)
    elapsed = time.time() - start_time

    report = generate_report(
        results["results"],
        results["summaries"],
        elapsed,
        features=results["features"],
        stats=results["stats"],
        min_score=min_score,
    )

    print_results(results, report)

    if "--json" in sys.argv:
        output_path = Path("health_report.json")
        output_path.write_text(report_to_json_string(report))
        print(f"\n[OK] JSON report saved to: {output_path}")

    print("\n" + "=" * 60)
    print("  Scoring complete!")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
