"""
pipeline.py — Library entry points for the health scoring pipeline.

    events ─▶ aggregate ─▶ featureize ─▶ compute_stats ─▶ score_vectors

Scoring is two-phase: every FeatureVector of the batch exists before the
PopulationStats are computed, and the stats are handed to the scorer
explicitly.  Each stage returns a fresh mapping; nothing is shared or
mutated between stages.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from risk_engine.aggregation import AccountSummary, aggregate_events
from risk_engine.config import ScoringConfig
from risk_engine.events import Event
from risk_engine.features import MIN_TRANSACTIONS, FeatureVector, extract_features
from risk_engine.population import PopulationStats, compute_population_stats
from risk_engine.scoring import ScoreResult, score_account

logger = logging.getLogger(__name__)


def aggregate(events: Iterable[Event]) -> Dict[str, AccountSummary]:
    """Fold events into one summary per account."""
    summaries = aggregate_events(events)
    logger.info("Aggregated %d account(s)", len(summaries))
    return summaries


def featureize(
    summaries: Dict[str, AccountSummary],
    min_transactions: int = MIN_TRANSACTIONS,
) -> Dict[str, FeatureVector]:
    """Derive feature vectors; accounts below *min_transactions* are left out."""
    vectors: Dict[str, FeatureVector] = {}
    for account, summary in summaries.items():
        vector = extract_features(summary, min_transactions=min_transactions)
        if vector is None:
            logger.debug(
                "Skipping %s: %d transaction(s) < %d",
                account, summary.transaction_count, min_transactions,
            )
            continue
        vectors[account] = vector

    logger.info(
        "Derived features for %d of %d account(s)", len(vectors), len(summaries)
    )
    return vectors


def compute_stats(vectors: Dict[str, FeatureVector]) -> PopulationStats:
    return compute_population_stats(vectors.values())


def score_vectors(
    vectors: Dict[str, FeatureVector],
    stats: PopulationStats,
    config: Optional[ScoringConfig] = None,
) -> Dict[str, ScoreResult]:
    """Score every vector against stats computed from the same batch."""
    config = config or ScoringConfig()
    return {
        account: score_account(vector, stats, config)
        for account, vector in vectors.items()
    }


def score(
    summaries: Dict[str, AccountSummary],
    config: Optional[ScoringConfig] = None,
    min_transactions: int = MIN_TRANSACTIONS,
) -> Dict[str, ScoreResult]:
    """Score every qualifying account in *summaries*.

    Parameters
    ----------
    summaries : dict[str, AccountSummary]
        Output of ``aggregate``.
    config : ScoringConfig or None
        Weights and thresholds for the scorer.
    min_transactions : int
        Minimum events an account needs to be scored.

    Returns
    -------
    dict[str, ScoreResult]
        Account id → result.  Accounts with too few events are absent.
    """
    return _score_stages(summaries, config, min_transactions)["results"]


def run_pipeline(
    events: Iterable[Event],
    config: Optional[ScoringConfig] = None,
    min_transactions: int = MIN_TRANSACTIONS,
) -> Dict[str, Any]:
    """Run every stage and keep the intermediate outputs for reporting."""
    summaries = aggregate(events)
    return {"summaries": summaries, **_score_stages(summaries, config, min_transactions)}


def _score_stages(
    summaries: Dict[str, AccountSummary],
    config: Optional[ScoringConfig],
    min_transactions: int,
) -> Dict[str, Any]:
    vectors = featureize(summaries, min_transactions=min_transactions)
    stats = compute_stats(vectors)
    results = score_vectors(vectors, stats, config)
    logger.info("Scored %d account(s)", len(results))
    return {"features": vectors, "stats": stats, "results": results}
