"""
Single-option builders: long call, long put, naked short call, naked short put.
"""

import logging
import math

from strategy_recommender.builders.common import (
    MarketContext,
    finalize,
    format_strike,
    make_result,
    to_chance,
)
from strategy_recommender.models import Amount, Contract, Leg, Sentiment, StrategyResult
from strategy_recommender.probability import pop_long_call, pop_long_put, pop_short_call, pop_short_put

logger = logging.getLogger(__name__)


def naked_margin(ctx: MarketContext, contract: Contract, credit: float) -> float:
    """
    CBOE-style naked option margin:
    max(base% * S - OTM amount, floor% * S) * multiplier + credit * multiplier.
    """
    m = ctx.multiplier
    if contract.is_call:
        otm = max(0.0, contract.strike - ctx.spot)
    else:
        otm = max(0.0, ctx.spot - contract.strike)
    base = ctx.config.naked_margin_pct * ctx.spot * m - otm * m
    floor = ctx.config.naked_margin_floor_pct * ctx.spot * m
    return max(base, floor) + credit * m


def projected_move(ctx: MarketContext, iv: float) -> float:
    """Dollar move used to cap long option profit."""
    return ctx.config.long_option_target_sigmas * iv * math.sqrt(ctx.years) * ctx.spot


def build_long_call(ctx: MarketContext) -> list[StrategyResult]:
    """
    Long call candidates, one per liquid call.

    Max profit is the payoff at a projected up-move target rather than
    unbounded, so candidates stay comparable.
    """
    if not ctx.serves(Sentiment.BULLISH_FIT):
        return []

    m = ctx.multiplier
    candidates = []
    for contract in ctx.index.contracts("call"):
        premium = contract.ask
        if premium <= 0:
            continue
        capital = premium * m
        if not ctx.within_budget(capital):
            continue

        iv = ctx.contract_iv(contract)
        target = ctx.spot + projected_move(ctx, iv)
        break_even = contract.strike + premium
        profit = max(0.0, target - break_even) * m
        chance = to_chance(pop_long_call(
            ctx.spot, contract.strike, premium, ctx.years, iv, ctx.config.risk_free_rate
        ))

        candidates.append(make_result(
            ctx,
            name=f"Long Call ({format_strike(contract.strike)})",
            shape="long_call",
            legs=[Leg(contract, "long")],
            profit=Amount(profit),
            risk=Amount(capital),
            required_capital=capital,
            sentiment_fit=Sentiment.BULLISH_FIT,
            break_evens=[break_even],
            chance=chance,
        ))

    logger.debug(f"Long call: {len(candidates)} candidates")
    return finalize(ctx, candidates)


def build_long_put(ctx: MarketContext) -> list[StrategyResult]:
    """Long put candidates, profit capped at a projected down-move target."""
    if not ctx.serves(Sentiment.BEARISH_FIT):
        return []

    m = ctx.multiplier
    candidates = []
    for contract in ctx.index.contracts("put"):
        premium = contract.ask
        if premium <= 0:
            continue
        capital = premium * m
        if not ctx.within_budget(capital):
            continue

        iv = ctx.contract_iv(contract)
        target = max(0.0, ctx.spot - projected_move(ctx, iv))
        break_even = contract.strike - premium
        profit = max(0.0, break_even - target) * m
        chance = to_chance(pop_long_put(
            ctx.spot, contract.strike, premium, ctx.years, iv, ctx.config.risk_free_rate
        ))

        candidates.append(make_result(
            ctx,
            name=f"Long Put ({format_strike(contract.strike)})",
            shape="long_put",
            legs=[Leg(contract, "long")],
            profit=Amount(profit),
            risk=Amount(capital),
            required_capital=capital,
            sentiment_fit=Sentiment.BEARISH_FIT,
            break_evens=[break_even],
            chance=chance,
        ))

    logger.debug(f"Long put: {len(candidates)} candidates")
    return finalize(ctx, candidates)


def build_short_call(ctx: MarketContext) -> list[StrategyResult]:
    """Naked short call candidates on out-of-the-money calls; risk is unbounded."""
    if not ctx.serves(Sentiment.BEARISH_FIT):
        return []

    m = ctx.multiplier
    candidates = []
    for contract in ctx.index.contracts("call"):
        credit = contract.bid
        if credit <= 0 or contract.strike <= ctx.spot:
            continue
        margin = naked_margin(ctx, contract, credit)
        if not ctx.within_budget(margin):
            continue

        iv = ctx.contract_iv(contract)
        chance = to_chance(pop_short_call(
            ctx.spot, contract.strike, credit, ctx.years, iv, ctx.config.risk_free_rate
        ))

        candidates.append(make_result(
            ctx,
            name=f"Short Call ({format_strike(contract.strike)})",
            shape="short_call",
            legs=[Leg(contract, "short")],
            profit=Amount(credit * m),
            risk=Amount.unlimited(),
            required_capital=margin,
            sentiment_fit=Sentiment.BEARISH_FIT,
            break_evens=[contract.strike + credit],
            chance=chance,
        ))

    logger.debug(f"Short call: {len(candidates)} candidates")
    return finalize(ctx, candidates)


def build_short_put(ctx: MarketContext) -> list[StrategyResult]:
    """
    Naked short put candidates.

    Max loss is assignment at the strike less the credit. Candidates whose
    PoP falls below the configured minimum are dropped.
    """
    if not ctx.serves(Sentiment.BULLISH_FIT):
        return []

    m = ctx.multiplier
    candidates = []
    for contract in ctx.index.contracts("put"):
        credit = contract.bid
        if credit <= 0 or credit >= contract.strike:
            continue
        margin = naked_margin(ctx, contract, credit)
        if not ctx.within_budget(margin):
            continue

        iv = ctx.contract_iv(contract)
        chance = to_chance(pop_short_put(
            ctx.spot, contract.strike, credit, ctx.years, iv, ctx.config.risk_free_rate
        ))
        if chance < ctx.config.min_short_put_pop:
            continue

        candidates.append(make_result(
            ctx,
            name=f"Short Put ({format_strike(contract.strike)})",
            shape="short_put",
            legs=[Leg(contract, "short")],
            profit=Amount(credit * m),
            risk=Amount((contract.strike - credit) * m),
            required_capital=margin,
            sentiment_fit=Sentiment.BULLISH_FIT,
            break_evens=[contract.strike - credit],
            chance=chance,
        ))

    logger.debug(f"Short put: {len(candidates)} candidates")
    return finalize(ctx, candidates)
