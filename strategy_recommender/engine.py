"""
Strategy engine: runs every builder against one set of inputs and merges
the per-shape winners.

The engine does no I/O and keeps no state between calls; identical
inputs (including ``as_of``) give identical outputs.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional

from strategy_recommender.builders import (
    MarketContext,
    build_bear_call_spread,
    build_bear_put_spread,
    build_bull_call_spread,
    build_bull_put_spread,
    build_cash_secured_put,
    build_covered_call,
    build_inverse_iron_butterfly,
    build_inverse_iron_condor,
    build_iron_butterfly,
    build_iron_condor,
    build_long_call,
    build_long_put,
    build_short_call,
    build_short_put,
    build_short_straddle,
    build_short_strangle,
    build_straddle,
    build_strangle,
)
from strategy_recommender.config import EngineConfig
from strategy_recommender.models import Contract, StrategyResult, UserInputs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyBuilder:
    """
    Registry entry for one strategy shape.

    Attributes:
        key: Shape key, matches StrategyResult.shape
        build: Builder function
        needs_sigma: Skipped when no implied move is available
        extended: Skipped when extended shapes are disabled
    """
    key: str
    build: Callable[[MarketContext], list[StrategyResult]]
    needs_sigma: bool = False
    extended: bool = False


BUILDERS: tuple[StrategyBuilder, ...] = (
    StrategyBuilder("long_call", build_long_call),
    StrategyBuilder("long_put", build_long_put),
    StrategyBuilder("short_call", build_short_call),
    StrategyBuilder("short_put", build_short_put),
    StrategyBuilder("bull_call_spread", build_bull_call_spread),
    StrategyBuilder("bear_put_spread", build_bear_put_spread),
    StrategyBuilder("bull_put_spread", build_bull_put_spread),
    StrategyBuilder("bear_call_spread", build_bear_call_spread, extended=True),
    StrategyBuilder("iron_condor", build_iron_condor, needs_sigma=True),
    StrategyBuilder("iron_butterfly", build_iron_butterfly, needs_sigma=True),
    StrategyBuilder("inverse_iron_condor", build_inverse_iron_condor, needs_sigma=True, extended=True),
    StrategyBuilder("inverse_iron_butterfly", build_inverse_iron_butterfly, needs_sigma=True, extended=True),
    StrategyBuilder("covered_call", build_covered_call),
    StrategyBuilder("cash_secured_put", build_cash_secured_put),
    StrategyBuilder("straddle", build_straddle, needs_sigma=True),
    StrategyBuilder("strangle", build_strangle, needs_sigma=True),
    StrategyBuilder("short_straddle", build_short_straddle, needs_sigma=True, extended=True),
    StrategyBuilder("short_strangle", build_short_strangle, needs_sigma=True, extended=True),
)

SHAPES: tuple[str, ...] = tuple(b.key for b in BUILDERS)


def active_builders(ctx: MarketContext) -> list[StrategyBuilder]:
    """Builders that can run for this context."""
    selected = []
    for builder in BUILDERS:
        if builder.extended and not ctx.config.include_extended_shapes:
            continue
        if builder.needs_sigma and not ctx.has_sigma:
            logger.debug(f"Skipping {builder.key}: no implied move")
            continue
        selected.append(builder)
    return selected


def compute_strategies(
    user: UserInputs,
    chain: Iterable[Contract],
    slider: float,
    sigma: Optional[float] = None,
    config: Optional[EngineConfig] = None,
    as_of: Optional[date] = None,
) -> list[StrategyResult]:
    """
    Build the best candidate of every shape that fits the inputs.

    This is the main entry point of the engine.

    Args:
        user: User inputs (quote, sentiment, budget, target, expiration)
        chain: Chain snapshot for the expiration
        slider: Risk/reward slider, 0 (probability) to 100 (return)
        sigma: One-standard-deviation move in dollars; iron, straddle and
            strangle shapes are skipped without it
        config: Engine configuration
        as_of: Valuation date (default today)

    Returns:
        One StrategyResult per shape that produced a candidate, in registry order
    """
    ctx = MarketContext.create(user, chain, slider, sigma, config, as_of)
    if ctx is None:
        return []

    results: list[StrategyResult] = []
    for builder in active_builders(ctx):
        picked = builder.build(ctx)
        if picked:
            logger.debug(f"{builder.key}: {picked[0].name}")
        results.extend(picked)

    logger.info(
        f"Built {len(results)} strategies for {user.ticker or 'underlying'} "
        f"({ctx.sentiment}, slider={ctx.slider:.0f}, {len(ctx.index)} liquid contracts)"
    )
    return results
