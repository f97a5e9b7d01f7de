"""
config.py — Injectable scoring configuration.

Weight configuration (10 behaviors)
-----------------------------------
Behavior                  | Weight | Reading
consistent_repayment      |  +15   | Borrows are closed out in full
long_term_deposits        |  +15   | Long activity history
healthy_collateral_ratio  |  +20   | Deposits cover borrows 2–3×
regular_activity          |  +10   | Even spacing between actions
diverse_assets            |  +10   | Activity spread over several assets
liquidation_frequency     |  -25   | Positions get liquidated
erratic_behavior          |  -15   | Bursty, irregular timing
flash_loan_like           |  -20   | Borrow/repay round trips within an hour
extreme_leverage          |  -15   | Borrowed more than 80 % of deposits
protocol_stress           |  -10   | Fixed-threshold stress signatures

Pass a ``ScoringConfig`` to the scorer to try alternate weight sets or
thresholds; nothing here is read as global state.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, Mapping


DEFAULT_WEIGHTS: Dict[str, float] = {
    "consistent_repayment": 15.0,
    "long_term_deposits": 15.0,
    "healthy_collateral_ratio": 20.0,
    "regular_activity": 10.0,
    "diverse_assets": 10.0,
    "liquidation_frequency": -25.0,
    "erratic_behavior": -15.0,
    "flash_loan_like": -20.0,
    "extreme_leverage": -15.0,
    "protocol_stress": -10.0,
}

BEHAVIORS = tuple(DEFAULT_WEIGHTS)


@dataclass(frozen=True)
class ScoringConfig:
    weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    # Only leverage above this level counts as adverse
    leverage_offset: float = 0.8

    # Protocol stress composite: (threshold, increment) pairs
    stress_flash_loan_threshold: float = 0.2
    stress_flash_loan_increment: float = 0.5
    stress_volatility_threshold: float = 2.0
    stress_volatility_increment: float = 0.3
    stress_leverage_threshold: float = 0.9
    stress_leverage_increment: float = 0.4
    stress_frequency_threshold: float = 10.0
    stress_average_size_threshold: float = 100_000.0
    stress_whale_increment: float = 0.6

    # Raise instead of clamping when the weighted score leaves [0, 100]
    strict: bool = False

    def __post_init__(self) -> None:
        # read-only copy of the caller's mapping
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))
        unknown = set(self.weights) - set(BEHAVIORS)
        if unknown:
            raise ValueError(f"Unknown behavior weight(s): {', '.join(sorted(unknown))}")

    @property
    def total_weight(self) -> float:
        return sum(abs(w) for w in self.weights.values())

    def with_weights(self, **overrides: float) -> "ScoringConfig":
        """Return a copy with some weights replaced."""
        weights = dict(self.weights)
        weights.update(overrides)
        return replace(self, weights=weights)
