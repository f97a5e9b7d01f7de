"""
population.py — Batch-wide min/max per scored feature.

Scoring is population-relative, so the Scorer needs the range of each
normalized feature across every FeatureVector of the current batch.  The
stats are a snapshot of one batch; recompute them whenever the set of
accounts changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, NamedTuple

from risk_engine.features import FeatureVector


STAT_FEATURES = (
    "consistent_repayment",
    "activity_duration_days",
    "behavior_volatility",
    "unique_asset_count",
    "liquidation_ratio",
    "flash_loan_like_behavior",
    "leverage_ratio",
)


class FeatureRange(NamedTuple):
    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min


@dataclass(frozen=True)
class PopulationStats:
    ranges: Dict[str, FeatureRange] = field(default_factory=dict)

    def range_for(self, feature: str) -> FeatureRange:
        return self.ranges.get(feature, FeatureRange(0.0, 0.0))

    def as_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            name: {"min": r.min, "max": r.max}
            for name, r in self.ranges.items()
        }


def compute_population_stats(vectors: Iterable[FeatureVector]) -> PopulationStats:
    """Scan *vectors* once and track the running min/max of each feature.

    An empty batch yields ``min = max = 0`` for every feature.
    """
    lows: Dict[str, float] = {}
    highs: Dict[str, float] = {}

    for vector in vectors:
        for name in STAT_FEATURES:
            value = float(getattr(vector, name))
            if name not in lows:
                lows[name] = highs[name] = value
            else:
                lows[name] = min(lows[name], value)
                highs[name] = max(highs[name], value)

    return PopulationStats(ranges={
        name: FeatureRange(lows.get(name, 0.0), highs.get(name, 0.0))
        for name in STAT_FEATURES
    })
