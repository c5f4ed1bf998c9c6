"""
Vertical spread builders.

Pairs are searched over same-type liquid contracts sorted by strike; the
inner loop stops once the width passes the configured maximum, so each
contract pairs only with the strikes inside the window.
"""

import logging
from typing import Iterator

from strategy_recommender.builders.common import (
    MarketContext,
    finalize,
    format_strike,
    make_result,
    to_chance,
)
from strategy_recommender.models import Amount, Contract, Leg, Sentiment, StrategyResult
from strategy_recommender.probability import pop_bear_call, pop_bear_put, pop_bull_call, pop_bull_put

logger = logging.getLogger(__name__)


def strike_pairs(ctx: MarketContext, option_type: str) -> Iterator[tuple[Contract, Contract, float]]:
    """
    Yield (lower, higher, width) pairs whose width is inside the search window.
    """
    contracts = ctx.index.contracts(option_type)
    max_width = ctx.config.max_spread_width(ctx.spot)
    for i, lower in enumerate(contracts):
        for higher in contracts[i + 1:]:
            width = higher.strike - lower.strike
            if width > max_width:
                break
            if ctx.width_allowed(width):
                yield lower, higher, width


def pair_iv(ctx: MarketContext, a: Contract, b: Contract) -> float:
    """Average of the two legs' volatilities."""
    return (ctx.contract_iv(a) + ctx.contract_iv(b)) / 2.0


def build_bull_call_spread(ctx: MarketContext) -> list[StrategyResult]:
    """Buy the lower call, sell the higher call, for a net debit below the width."""
    if not ctx.serves(Sentiment.BULLISH_FIT):
        return []

    m = ctx.multiplier
    candidates = []
    for long_call, short_call, width in strike_pairs(ctx, "call"):
        debit = long_call.ask - short_call.bid
        if debit <= 0 or debit >= width:
            continue
        capital = debit * m
        if not ctx.within_budget(capital):
            continue

        chance = to_chance(pop_bull_call(
            ctx.spot, long_call.strike, short_call.strike, debit,
            ctx.years, pair_iv(ctx, long_call, short_call), ctx.config.risk_free_rate,
        ))
        candidates.append(make_result(
            ctx,
            name=f"Bull Call Spread ({format_strike(long_call.strike)}/{format_strike(short_call.strike)})",
            shape="bull_call_spread",
            legs=[Leg(long_call, "long"), Leg(short_call, "short")],
            profit=Amount((width - debit) * m),
            risk=Amount(capital),
            required_capital=capital,
            sentiment_fit=Sentiment.BULLISH_FIT,
            break_evens=[long_call.strike + debit],
            chance=chance,
        ))

    logger.debug(f"Bull call spread: {len(candidates)} candidates")
    return finalize(ctx, candidates)


def build_bear_put_spread(ctx: MarketContext) -> list[StrategyResult]:
    """Buy the higher put, sell the lower put, for a net debit below the width."""
    if not ctx.serves(Sentiment.BEARISH_FIT):
        return []

    m = ctx.multiplier
    candidates = []
    for short_put, long_put, width in strike_pairs(ctx, "put"):
        debit = long_put.ask - short_put.bid
        if debit <= 0 or debit >= width:
            continue
        capital = debit * m
        if not ctx.within_budget(capital):
            continue

        chance = to_chance(pop_bear_put(
            ctx.spot, long_put.strike, short_put.strike, debit,
            ctx.years, pair_iv(ctx, long_put, short_put), ctx.config.risk_free_rate,
        ))
        candidates.append(make_result(
            ctx,
            name=f"Bear Put Spread ({format_strike(long_put.strike)}/{format_strike(short_put.strike)})",
            shape="bear_put_spread",
            legs=[Leg(long_put, "long"), Leg(short_put, "short")],
            profit=Amount((width - debit) * m),
            risk=Amount(capital),
            required_capital=capital,
            sentiment_fit=Sentiment.BEARISH_FIT,
            break_evens=[long_put.strike - debit],
            chance=chance,
        ))

    logger.debug(f"Bear put spread: {len(candidates)} candidates")
    return finalize(ctx, candidates)


def build_bull_put_spread(ctx: MarketContext) -> list[StrategyResult]:
    """Sell the higher put, buy the lower put, for a net credit; capital is the width."""
    if not ctx.serves(Sentiment.BULLISH_FIT):
        return []

    m = ctx.multiplier
    candidates = []
    for long_put, short_put, width in strike_pairs(ctx, "put"):
        credit = short_put.bid - long_put.ask
        if credit <= 0 or credit >= width:
            continue
        capital = width * m
        if not ctx.within_budget(capital):
            continue

        chance = to_chance(pop_bull_put(
            ctx.spot, short_put.strike, credit,
            ctx.years, pair_iv(ctx, short_put, long_put), ctx.config.risk_free_rate,
        ))
        candidates.append(make_result(
            ctx,
            name=f"Bull Put Spread ({format_strike(short_put.strike)}/{format_strike(long_put.strike)})",
            shape="bull_put_spread",
            legs=[Leg(short_put, "short"), Leg(long_put, "long")],
            profit=Amount(credit * m),
            risk=Amount((width - credit) * m),
            required_capital=capital,
            sentiment_fit=Sentiment.BULLISH_FIT,
            break_evens=[short_put.strike - credit],
            chance=chance,
        ))

    logger.debug(f"Bull put spread: {len(candidates)} candidates")
    return finalize(ctx, candidates)


def build_bear_call_spread(ctx: MarketContext) -> list[StrategyResult]:
    """Sell the lower call, buy the higher call, for a net credit; capital is the width."""
    if not ctx.serves(Sentiment.BEARISH_FIT):
        return []

    m = ctx.multiplier
    candidates = []
    for short_call, long_call, width in strike_pairs(ctx, "call"):
        credit = short_call.bid - long_call.ask
        if credit <= 0 or credit >= width:
            continue
        capital = width * m
        if not ctx.within_budget(capital):
            continue

        chance = to_chance(pop_bear_call(
            ctx.spot, short_call.strike, credit,
            ctx.years, pair_iv(ctx, short_call, long_call), ctx.config.risk_free_rate,
        ))
        candidates.append(make_result(
            ctx,
            name=f"Bear Call Spread ({format_strike(short_call.strike)}/{format_strike(long_call.strike)})",
            shape="bear_call_spread",
            legs=[Leg(short_call, "short"), Leg(long_call, "long")],
            profit=Amount(credit * m),
            risk=Amount((width - credit) * m),
            required_capital=capital,
            sentiment_fit=Sentiment.BEARISH_FIT,
            break_evens=[short_call.strike + credit],
            chance=chance,
        ))

    logger.debug(f"Bear call spread: {len(candidates)} candidates")
    return finalize(ctx, candidates)
