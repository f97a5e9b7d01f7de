"""
scoring.py — Health scoring engine.

Maps each FeatureVector, together with the batch PopulationStats, onto ten
named behavior sub-scores in [-1, 1] and folds them into a single 0–100
health score with a fixed weighted average.

Most behaviors are population-relative: the raw feature is min–max scaled
against the batch and then oriented so that +1 is always the favorable end.
Two behaviors use absolute rules instead:

* ``healthy_collateral_ratio``: piecewise curve, ideal between 2× and 3×.
* ``protocol_stress``: additive fixed-threshold flags, capped at 1.

``regular_activity`` and ``extreme_leverage`` transform the raw feature
before normalizing it against the range of the untransformed feature.
That asymmetry is kept on purpose because it changes scores.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from risk_engine.config import ScoringConfig
from risk_engine.features import FeatureVector
from risk_engine.population import FeatureRange, PopulationStats

logger = logging.getLogger(__name__)

# Float noise allowed before a score counts as out of range
SCORE_TOLERANCE: float = 1e-9


class ScoreInvariantError(ValueError):
    """Weighted score left [0, 100] before clamping."""


@dataclass(frozen=True)
class ScoreResult:
    account: str
    score: int
    behavior_scores: Mapping[str, float]
    top_factors: Tuple[Tuple[str, float], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "behavior_scores", MappingProxyType(dict(self.behavior_scores))
        )

    def as_dict(self) -> Dict[str, object]:
        return {
            "account": self.account,
            "score": self.score,
            "behavior_scores": dict(self.behavior_scores),
            "top_factors": [
                {"behavior": name, "contribution": round(c, 4)}
                for name, c in self.top_factors
            ],
        }


# ── Public API ───────────────────────────────────────────────────────────────

def score_account(
    vector: FeatureVector,
    stats: PopulationStats,
    config: Optional[ScoringConfig] = None,
) -> ScoreResult:
    """Score one account against the batch statistics.

    Parameters
    ----------
    vector : FeatureVector
        Features of the account being scored.
    stats : PopulationStats
        Min/max of the whole batch; must come from the same batch as
        *vector*.
    config : ScoringConfig or None
        Weights and thresholds.  Defaults to ``ScoringConfig()``.

    Returns
    -------
    ScoreResult
    """
    config = config or ScoringConfig()
    behaviors = behavior_scores(vector, stats, config)

    contributions = {
        name: value * config.weights.get(name, 0.0)
        for name, value in behaviors.items()
    }
    total_weight = config.total_weight
    if total_weight > 0:
        weighted = sum(contributions.values()) / total_weight
    else:
        weighted = 0.0
    raw_score = (weighted + 1.0) / 2.0 * 100.0

    if not -SCORE_TOLERANCE <= raw_score <= 100.0 + SCORE_TOLERANCE:
        if config.strict:
            raise ScoreInvariantError(
                f"account {vector.account!r} scored {raw_score:.4f} before clamping"
            )
        logger.warning(
            "Clamping out-of-range score %.4f for account %s",
            raw_score, vector.account,
        )

    top_factors = sorted(
        contributions.items(), key=lambda item: (-abs(item[1]), item[0])
    )

    return ScoreResult(
        account=vector.account,
        score=_round_half_up(_clamp(raw_score, 0.0, 100.0)),
        behavior_scores=behaviors,
        top_factors=tuple(top_factors[:3]),
    )


def behavior_scores(
    vector: FeatureVector,
    stats: PopulationStats,
    config: Optional[ScoringConfig] = None,
) -> Dict[str, float]:
    """Compute the ten behavior sub-scores, each clamped to [-1, 1]."""
    config = config or ScoringConfig()

    def norm(value: float, feature: str, higher_is_better: bool) -> float:
        return normalize_and_score(value, stats.range_for(feature), higher_is_better)

    scores = {
        "consistent_repayment": norm(
            vector.consistent_repayment, "consistent_repayment", True),
        "long_term_deposits": norm(
            vector.activity_duration_days, "activity_duration_days", True),
        "healthy_collateral_ratio": healthy_collateral_ratio(vector.collateral_ratio),
        "regular_activity": norm(
            1.0 - vector.behavior_volatility, "behavior_volatility", True),
        "diverse_assets": norm(
            vector.unique_asset_count, "unique_asset_count", True),
        "liquidation_frequency": norm(
            vector.liquidation_ratio, "liquidation_ratio", False),
        "erratic_behavior": norm(
            vector.behavior_volatility, "behavior_volatility", False),
        "flash_loan_like": norm(
            vector.flash_loan_like_behavior, "flash_loan_like_behavior", False),
        "extreme_leverage": norm(
            max(0.0, vector.leverage_ratio - config.leverage_offset),
            "leverage_ratio", False),
        "protocol_stress": protocol_stress(vector, config),
    }
    return {name: _clamp(value, -1.0, 1.0) for name, value in scores.items()}


def normalize_and_score(
    value: float,
    feature_range: FeatureRange,
    higher_is_better: bool,
) -> float:
    """Min–max scale *value* into [0, 1], then map onto [-1, 1].

    A zero-width range (every account identical on this feature) is
    treated as the neutral midpoint.
    """
    low, high = feature_range
    span = high - low
    if span == 0:
        normalized = 0.5
    else:
        normalized = _clamp((value - low) / span, 0.0, 1.0)

    if higher_is_better:
        return normalized * 2.0 - 1.0
    return 1.0 - normalized * 2.0


def healthy_collateral_ratio(ratio: float) -> float:
    """Absolute collateral curve.

    Under-collateralized (< 1×) is maximally bad, 2–3× is ideal and beyond
    5× is neutral: idle capital is inefficient, not risky.
    """
    if ratio < 1.0:
        return -1.0
    if ratio > 5.0:
        return 0.0
    if 2.0 <= ratio <= 3.0:
        return 1.0
    if ratio < 2.0:
        return -1.0 + (ratio - 1.0) * 2.0
    return 1.0 - (ratio - 3.0) / 2.0


def protocol_stress(vector: FeatureVector, config: Optional[ScoringConfig] = None) -> float:
    """Fixed-threshold stress flags, summed and capped at 1."""
    config = config or ScoringConfig()
    stress = 0.0
    flags = stress_flags(vector, config)
    if "flash_loan" in flags:
        stress += config.stress_flash_loan_increment
    if "volatility" in flags:
        stress += config.stress_volatility_increment
    if "leverage" in flags:
        stress += config.stress_leverage_increment
    if "whale_activity" in flags:
        stress += config.stress_whale_increment
    return min(stress, 1.0)


def stress_flags(vector: FeatureVector, config: Optional[ScoringConfig] = None) -> List[str]:
    """Names of the stress signatures an account trips."""
    config = config or ScoringConfig()
    flags: List[str] = []
    if vector.flash_loan_like_behavior > config.stress_flash_loan_threshold:
        flags.append("flash_loan")
    if vector.behavior_volatility > config.stress_volatility_threshold:
        flags.append("volatility")
    if vector.leverage_ratio > config.stress_leverage_threshold:
        flags.append("leverage")
    if (vector.transaction_frequency > config.stress_frequency_threshold
            and vector.average_transaction_size > config.stress_average_size_threshold):
        flags.append("whale_activity")
    return flags


# ── Internal helpers ─────────────────────────────────────────────────────────

def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))
