"""
Scoring framework for strategy candidates.

Each shape's candidates are scored against one another: four metrics are
min-max normalized across the pool and combined with slider-derived
weights. Only the top candidate of each pool is kept.
"""

import logging
import math
from typing import Optional

from strategy_recommender.config import ScoringWeights
from strategy_recommender.liquidity import liquidity_score
from strategy_recommender.models import Amount, ScoredStrategy, StrategyResult

logger = logging.getLogger(__name__)


def return_on_risk(profit: Amount, risk: Amount) -> Amount:
    """
    Max profit over max loss, in percent.

    0 when the loss is zero or unbounded; unbounded when the profit is
    unbounded against a finite, positive loss.
    """
    if risk.unbounded or risk.value <= 0:
        return Amount(0.0)
    if profit.unbounded:
        return Amount.unlimited()
    return Amount(profit.value / risk.value * 100.0)


def normalize_array(values: list[float]) -> list[float]:
    """
    Min-max scale values to [0, 1].

    A single value, or values with no spread, carry no signal and map to 0.5.
    """
    if not values:
        return []
    low = min(values)
    high = max(values)
    if len(values) == 1 or high - low == 0:
        return [0.5] * len(values)
    return [(v - low) / (high - low) for v in values]


def ror_metric(strategy: StrategyResult, weights: ScoringWeights) -> float:
    """log10(max(1, return-on-risk %)), with unbounded values at the cap."""
    ror = strategy.return_on_risk
    if ror.unbounded:
        return weights.log_ror_cap
    if not math.isfinite(ror.value):
        return 0.0
    return min(math.log10(max(1.0, ror.value)), weights.log_ror_cap)


def capital_efficiency_metric(strategy: StrategyResult, weights: ScoringWeights) -> float:
    """Max profit per dollar of required capital, clamped to [0, cap]."""
    capital = strategy.required_capital
    if capital <= 0:
        return 0.0
    if strategy.profit.unbounded:
        return weights.capital_efficiency_cap
    return max(0.0, min(strategy.profit.value / capital, weights.capital_efficiency_cap))


def extract_metrics(strategy: StrategyResult, weights: ScoringWeights) -> ScoredStrategy:
    """Compute the raw metrics for one candidate."""
    chance = strategy.chance if math.isfinite(strategy.chance) else 0.0
    return ScoredStrategy(
        strategy=strategy,
        ror_metric=ror_metric(strategy, weights),
        pop_metric=chance,
        cap_eff_metric=capital_efficiency_metric(strategy, weights),
        liquidity_metric=liquidity_score(strategy.contracts, weights),
    )


def score_strategies(
    strategies: list[StrategyResult],
    slider: float,
    weights: Optional[ScoringWeights] = None,
) -> list[ScoredStrategy]:
    """
    Score a pool of candidates and sort best first.

    score = w_reward * ror_norm + w_risk * pop_norm
            + capital_efficiency_weight * cap_eff_norm
            + liquidity_weight * liq_norm

    Ties are broken by higher PoP, then by lower required capital.

    Args:
        strategies: Candidates of one shape
        slider: Risk/reward slider, 0-100
        weights: Scoring weights

    Returns:
        Scored candidates, best first
    """
    if not strategies:
        return []
    if weights is None:
        weights = ScoringWeights()

    w_reward, w_risk = weights.slider_weights(slider)
    scored = [extract_metrics(s, weights) for s in strategies]

    ror_norms = normalize_array([s.ror_metric for s in scored])
    pop_norms = normalize_array([s.pop_metric for s in scored])
    cap_norms = normalize_array([s.cap_eff_metric for s in scored])
    liq_norms = normalize_array([s.liquidity_metric for s in scored])

    for s, ror_n, pop_n, cap_n, liq_n in zip(scored, ror_norms, pop_norms, cap_norms, liq_norms):
        s.ror_norm = ror_n
        s.pop_norm = pop_n
        s.cap_eff_norm = cap_n
        s.liq_norm = liq_n
        s.score = (
            w_reward * ror_n
            + w_risk * pop_n
            + weights.capital_efficiency_weight * cap_n
            + weights.liquidity_weight * liq_n
        )

    scored.sort(key=lambda s: (-s.score, -s.pop_metric, s.strategy.required_capital))
    return scored


def pick_best_strategy(
    strategies: list[StrategyResult],
    slider: float,
    weights: Optional[ScoringWeights] = None,
) -> list[StrategyResult]:
    """Return the top-scored candidate as a one-element list, or [] for an empty pool."""
    scored = score_strategies(strategies, slider, weights)
    if not scored:
        return []
    best = scored[0]
    logger.debug(
        f"Picked {best.strategy.name} from {len(scored)} candidates "
        f"(score={best.score:.3f}, ror_norm={best.ror_norm:.2f}, pop_norm={best.pop_norm:.2f})"
    )
    return [best.strategy]
