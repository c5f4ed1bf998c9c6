"""
Covered position builders: covered call and cash-secured put.

These walk out-of-the-money contracts in order of distance from a
slider-driven target delta and stop at the first one that fits the
budget, instead of scoring a pool.
"""

import logging

from strategy_recommender.builders.common import (
    MarketContext,
    finalize,
    format_strike,
    make_result,
    to_chance,
)
from strategy_recommender.models import Amount, Leg, Sentiment, StockLeg, StrategyResult
from strategy_recommender.probability import pop_covered_call, pop_short_put

logger = logging.getLogger(__name__)


def covered_call_delta(slider: float) -> float:
    """Short call delta target: 0.4 at slider 0 down to 0.1 at slider 100."""
    return max(0.1, min(0.7, 0.4 - 0.3 * slider / 100.0))


def cash_secured_put_delta(slider: float) -> float:
    """Short put delta target: -0.4 at slider 0 up to -0.1 at slider 100."""
    return max(-0.7, min(-0.1, -0.4 + 0.3 * slider / 100.0))


def build_covered_call(ctx: MarketContext) -> list[StrategyResult]:
    """
    100 shares at spot plus one short out-of-the-money call.

    Max profit is the call strike less spot plus the premium; max loss is
    spot less the premium.
    """
    if not ctx.serves(Sentiment.BULLISH_FIT):
        return []

    m = ctx.multiplier
    otm_calls = [c for c in ctx.index.contracts("call") if c.strike > ctx.spot]
    ranked = ctx.index.ranked_by_delta(
        "call", covered_call_delta(ctx.slider), ctx.delta_of, candidates=otm_calls
    )
    for call in ranked:
        premium = call.bid
        if premium <= 0:
            continue
        capital = ctx.spot * m
        if not ctx.within_budget(capital):
            logger.debug(f"Covered call: share cost {capital:.2f} over budget")
            return []

        iv = ctx.contract_iv(call)
        chance = to_chance(pop_covered_call(ctx.spot, premium, ctx.years, iv, ctx.config.risk_free_rate))
        candidate = make_result(
            ctx,
            name=f"Covered Call ({format_strike(call.strike)})",
            shape="covered_call",
            legs=[Leg(call, "short")],
            profit=Amount((call.strike - ctx.spot + premium) * m),
            risk=Amount((ctx.spot - premium) * m),
            required_capital=capital,
            sentiment_fit=Sentiment.BULLISH_FIT,
            break_evens=[ctx.spot - premium],
            chance=chance,
            stock=StockLeg(entry_price=ctx.spot, shares=m),
        )
        return finalize(ctx, [candidate])
    return []


def build_cash_secured_put(ctx: MarketContext) -> list[StrategyResult]:
    """One short out-of-the-money put with the full strike value held in cash."""
    if not ctx.serves(Sentiment.BULLISH_FIT):
        return []

    m = ctx.multiplier
    otm_puts = [c for c in ctx.index.contracts("put") if c.strike < ctx.spot]
    ranked = ctx.index.ranked_by_delta(
        "put", cash_secured_put_delta(ctx.slider), ctx.delta_of, candidates=otm_puts
    )
    for put in ranked:
        premium = put.bid
        if premium <= 0 or premium >= put.strike:
            continue
        capital = put.strike * m
        if not ctx.within_budget(capital):
            continue

        iv = ctx.contract_iv(put)
        chance = to_chance(pop_short_put(ctx.spot, put.strike, premium, ctx.years, iv, ctx.config.risk_free_rate))
        candidate = make_result(
            ctx,
            name=f"Cash Secured Put ({format_strike(put.strike)})",
            shape="cash_secured_put",
            legs=[Leg(put, "short")],
            profit=Amount(premium * m),
            risk=Amount((put.strike - premium) * m),
            required_capital=capital,
            sentiment_fit=Sentiment.BULLISH_FIT,
            break_evens=[put.strike - premium],
            chance=chance,
        )
        return finalize(ctx, [candidate])
    return []
