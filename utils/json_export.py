"""
json_export.py — Rank scored accounts and build the downloadable JSON report.

Output Schema
-------------
{
  "accounts": [ ... ],      ranked by score, best first
  "population": { ... },    per-feature min/max of the batch
  "summary": { ... }
}
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from risk_engine.aggregation import AccountSummary
from risk_engine.features import FeatureVector
from risk_engine.population import PopulationStats
from risk_engine.scoring import ScoreResult

# ── Risk bands ───────────────────────────────────────────────────────────────
HEALTHY_MIN_SCORE: int = 70
WATCH_MIN_SCORE: int = 40


def risk_band(score: int) -> str:
    if score >= HEALTHY_MIN_SCORE:
        return "healthy"
    if score >= WATCH_MIN_SCORE:
        return "watch"
    return "at_risk"


def rank_results(results: Dict[str, ScoreResult]) -> List[ScoreResult]:
    """Highest score first; ties broken by account id."""
    return sorted(results.values(), key=lambda r: (-r.score, r.account))


def generate_report(
    results: Dict[str, ScoreResult],
    summaries: Dict[str, AccountSummary],
    processing_time: float,
    features: Optional[Dict[str, FeatureVector]] = None,
    stats: Optional[PopulationStats] = None,
    min_score: int = 0,
) -> Dict[str, Any]:
    """Build the final JSON-serialisable report dictionary.

    Parameters
    ----------
    results : dict[str, ScoreResult]
        Per-account scores from ``pipeline.score``.
    summaries : dict[str, AccountSummary]
        All aggregated accounts, scored or not.
    processing_time : float
        Wall-clock seconds for the full pipeline.
    features : dict[str, FeatureVector] or None
        When given, each account entry carries its raw features.
    stats : PopulationStats or None
        When given, included under ``population``.
    min_score : int
        Minimum score to include in ``accounts``.

    Returns
    -------
    dict
        The complete report.
    """
    # ── 1. Ranked accounts ────────────────────────────────────────────────
    accounts: List[Dict[str, Any]] = []
    for rank, result in enumerate(rank_results(results), 1):
        if result.score < min_score:
            continue
        entry = result.as_dict()
        entry["rank"] = rank
        entry["risk_band"] = risk_band(result.score)
        entry["behavior_scores"] = {
            name: round(value, 4) for name, value in result.behavior_scores.items()
        }
        summary = summaries.get(result.account)
        if summary is not None:
            entry["transaction_count"] = summary.transaction_count
            entry["assets"] = sorted(summary.assets)
        if features and result.account in features:
            entry["features"] = {
                name: round(float(value), 6)
                for name, value in features[result.account].as_dict().items()
            }
        accounts.append(entry)

    # ── 2. Summary ────────────────────────────────────────────────────────
    bands = {"healthy": 0, "watch": 0, "at_risk": 0}
    for result in results.values():
        bands[risk_band(result.score)] += 1

    scores = [r.score for r in results.values()]
    summary_block = {
        "total_accounts_seen": len(summaries),
        "accounts_scored": len(results),
        "accounts_skipped": len(summaries) - len(results),
        "accounts_reported": len(accounts),
        "mean_score": round(sum(scores) / len(scores), 1) if scores else None,
        "risk_bands": bands,
        "processing_time_seconds": round(processing_time, 3),
    }

    report: Dict[str, Any] = {"accounts": accounts, "summary": summary_block}
    if stats is not None:
        report["population"] = stats.as_dict()
    return report


def report_to_json_string(report: Dict[str, Any], indent: int = 2) -> str:
    """Serialise the report dict to a pretty-printed JSON string."""
    return json.dumps(report, indent=indent, default=str)


def build_score_table(report: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Build rows for the ranked score table (CLI and dashboard display).

    Columns: Rank, Account, Score, Band, Transactions, Top Factors
    """
    rows: List[Dict[str, Any]] = []
    for entry in report.get("accounts", []):
        rows.append(
            {
                "Rank": entry["rank"],
                "Account": entry["account"],
                "Score": entry["score"],
                "Band": entry["risk_band"],
                "Transactions": entry.get("transaction_count"),
                "Top Factors": ", ".join(
                    f"{f['behavior']} ({f['contribution']:+.1f})"
                    for f in entry["top_factors"]
                ),
            }
        )
    return rows
