"""
Straddle and strangle builders, long (directional) and short (neutral).
"""

import logging

from strategy_recommender.builders.common import (
    MarketContext,
    finalize,
    format_strike,
    make_result,
    to_chance,
)
from strategy_recommender.builders.iron import butterfly_wing
from strategy_recommender.builders.single_leg import naked_margin
from strategy_recommender.models import Amount, Contract, Leg, Sentiment, StrategyResult
from strategy_recommender.probability import (
    pop_long_straddle,
    pop_long_strangle,
    pop_short_straddle,
    pop_short_strangle,
)

logger = logging.getLogger(__name__)

LEGACY_STRADDLE_POP = 30.0
LEGACY_STRANGLE_POP = 25.0
LEGACY_SHORT_STRANGLE_POP = 75.0


def legacy_short_straddle_pop(slider: float) -> float:
    return 70.0 - 20.0 * slider / 100.0


def short_straddle_delta(slider: float) -> float:
    """|delta| target for short straddle legs: 0.5 at slider 0 down to 0.1 at slider 100."""
    return max(0.1, min(0.5, 0.5 - 0.4 * slider / 100.0))


def strangle_gap(ctx: MarketContext) -> float:
    return butterfly_wing(ctx)


def _long_volatility(
    ctx: MarketContext, label: str, shape: str, put: Contract, call: Contract, legacy_pop: float
):
    m = ctx.multiplier
    debit = put.ask + call.ask
    if debit <= 0:
        return None
    capital = debit * m
    if not ctx.within_budget(capital):
        return None

    if ctx.config.analytic_structure_pop:
        if put.strike == call.strike:
            p = pop_long_straddle(ctx.spot, call.strike, debit, ctx.years, ctx.atm_iv, ctx.config.risk_free_rate)
        else:
            p = pop_long_strangle(
                ctx.spot, put.strike, call.strike, debit, ctx.years, ctx.atm_iv, ctx.config.risk_free_rate
            )
        chance = to_chance(p)
    else:
        chance = legacy_pop

    return make_result(
        ctx,
        name=f"{label} ({format_strike(put.strike)}/{format_strike(call.strike)})",
        shape=shape,
        legs=[Leg(call, "long"), Leg(put, "long")],
        profit=Amount.unlimited(),
        risk=Amount(capital),
        required_capital=capital,
        sentiment_fit=Sentiment.DIRECTIONAL_FIT,
        break_evens=[put.strike - debit, call.strike + debit],
        chance=chance,
    )


def _short_volatility(
    ctx: MarketContext, label: str, shape: str, put: Contract, call: Contract, legacy_pop: float
):
    if put.strike > call.strike:
        return None

    m = ctx.multiplier
    credit = put.bid + call.bid
    if put.bid <= 0 or call.bid <= 0:
        return None
    # Greater of the two naked requirements plus the other side's premium
    capital = max(
        naked_margin(ctx, call, call.bid) + put.bid * m,
        naked_margin(ctx, put, put.bid) + call.bid * m,
    )
    if not ctx.within_budget(capital):
        return None

    if ctx.config.analytic_structure_pop:
        if put.strike == call.strike:
            p = pop_short_straddle(ctx.spot, call.strike, credit, ctx.years, ctx.atm_iv, ctx.config.risk_free_rate)
        else:
            p = pop_short_strangle(
                ctx.spot, put.strike, call.strike, credit, ctx.years, ctx.atm_iv, ctx.config.risk_free_rate
            )
        chance = to_chance(p)
    else:
        chance = legacy_pop

    return make_result(
        ctx,
        name=f"{label} ({format_strike(put.strike)}/{format_strike(call.strike)})",
        shape=shape,
        legs=[Leg(call, "short"), Leg(put, "short")],
        profit=Amount(credit * m),
        risk=Amount.unlimited(),
        required_capital=capital,
        sentiment_fit=Sentiment.NEUTRAL_FIT,
        break_evens=[put.strike - credit, call.strike + credit],
        chance=chance,
    )


def build_straddle(ctx: MarketContext) -> list[StrategyResult]:
    """
    Long straddle candidates at the strikes nearest the money that list
    both a call and a put; the best one is kept.
    """
    if not ctx.serves(Sentiment.DIRECTIONAL_FIT) or not ctx.has_sigma:
        return []

    candidates = []
    for strike in ctx.index.nearest_strikes(ctx.spot, ctx.config.straddle_strike_window):
        call = ctx.index.exact("call", strike)
        put = ctx.index.exact("put", strike)
        candidate = _long_volatility(ctx, "Straddle", "straddle", put, call, LEGACY_STRADDLE_POP)
        if candidate is not None:
            candidates.append(candidate)

    logger.debug(f"Straddle: {len(candidates)} candidates")
    return finalize(ctx, candidates)


def build_strangle(ctx: MarketContext) -> list[StrategyResult]:
    """Long strangle: put below and call above spot, sigma * (0.5 + 2a) away."""
    if not ctx.serves(Sentiment.DIRECTIONAL_FIT) or not ctx.has_sigma:
        return []

    gap = strangle_gap(ctx)
    put = ctx.index.nearest("put", ctx.spot - gap, below=ctx.spot)
    call = ctx.index.nearest("call", ctx.spot + gap, above=ctx.spot)
    if put is None or call is None:
        return []

    candidate = _long_volatility(ctx, "Strangle", "strangle", put, call, LEGACY_STRANGLE_POP)
    return finalize(ctx, [candidate] if candidate else [])


def build_short_straddle(ctx: MarketContext) -> list[StrategyResult]:
    """
    Short straddle: sell the call and put nearest |delta| = 0.5 - 0.4a.

    At slider 0 both legs sit at the money; higher sliders move them out.
    """
    if not ctx.serves(Sentiment.NEUTRAL_FIT) or not ctx.has_sigma:
        return []

    target = short_straddle_delta(ctx.slider)
    call = ctx.index.by_delta("call", target, ctx.delta_of, low=0.1, high=0.5)
    put = ctx.index.by_delta("put", -target, ctx.delta_of, low=-0.5, high=-0.1)
    if call is None or put is None:
        return []

    candidate = _short_volatility(
        ctx, "Short Straddle", "short_straddle", put, call, legacy_short_straddle_pop(ctx.slider)
    )
    return finalize(ctx, [candidate] if candidate else [])


def build_short_strangle(ctx: MarketContext) -> list[StrategyResult]:
    """Short strangle: sell a put below and a call above spot, sigma * (0.5 + 2a) away."""
    if not ctx.serves(Sentiment.NEUTRAL_FIT) or not ctx.has_sigma:
        return []

    gap = strangle_gap(ctx)
    put = ctx.index.nearest("put", ctx.spot - gap, below=ctx.spot)
    call = ctx.index.nearest("call", ctx.spot + gap, above=ctx.spot)
    if put is None or call is None:
        return []

    candidate = _short_volatility(
        ctx, "Short Strangle", "short_strangle", put, call, LEGACY_SHORT_STRANGLE_POP
    )
    return finalize(ctx, [candidate] if candidate else [])
