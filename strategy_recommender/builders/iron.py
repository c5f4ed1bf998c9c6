"""
Four-leg builders: iron condor, iron butterfly, and their inverse (long
body, short wings) versions.

Each builds a single candidate: the body legs are chosen near the money
(by target delta or nearest strike) and the wings sit a sigma-derived
distance further out, at the nearest listed strike.
"""

import logging
from typing import Optional

from strategy_recommender.builders.common import (
    MarketContext,
    finalize,
    format_strike,
    make_result,
    to_chance,
)
from strategy_recommender.models import Amount, Contract, Leg, Sentiment, StrategyResult
from strategy_recommender.probability import (
    pop_inverse_iron_condor,
    pop_iron_butterfly,
    pop_iron_condor,
)

logger = logging.getLogger(__name__)

# Fixed estimates reported when analytic structure PoP is disabled
LEGACY_IRON_BUTTERFLY_POP = 40.0
LEGACY_INVERSE_IRON_CONDOR_POP = 15.0
LEGACY_INVERSE_IRON_BUTTERFLY_POP = 20.0


def condor_short_delta(slider: float) -> float:
    """Short strike |delta| target: 0.10 at slider 0 up to 0.35 at slider 100."""
    return 0.1 + 0.25 * slider / 100.0


def condor_wing(ctx: MarketContext) -> float:
    """Iron condor wing width: sigma * (1 + 2a)."""
    return ctx.sigma_move * (1.0 + 2.0 * ctx.aggressiveness)


def butterfly_wing(ctx: MarketContext) -> float:
    """Butterfly and inverse structure wing width: sigma * (0.5 + 2a)."""
    return ctx.sigma_move * (0.5 + 2.0 * ctx.aggressiveness)


def atm_body(ctx: MarketContext) -> tuple[Optional[Contract], Optional[Contract]]:
    """Call nearest the money and the put at the same strike (else the put nearest the money)."""
    call = ctx.index.nearest("call", ctx.spot)
    if call is None:
        return None, None
    put = ctx.index.exact("put", call.strike) or ctx.index.nearest("put", ctx.spot)
    return call, put


def outer_wings(
    ctx: MarketContext, inner_put: Contract, inner_call: Contract, wing: float
) -> tuple[Optional[Contract], Optional[Contract]]:
    """Nearest listed put below and call above the inner strikes at ``wing`` distance."""
    outer_put = ctx.index.nearest("put", inner_put.strike - wing, below=inner_put.strike)
    outer_call = ctx.index.nearest("call", inner_call.strike + wing, above=inner_call.strike)
    return outer_put, outer_call


def _credit_structure(
    ctx: MarketContext,
    label: str,
    shape: str,
    long_put: Contract,
    short_put: Contract,
    short_call: Contract,
    long_call: Contract,
    legacy_pop: Optional[float] = None,
) -> Optional[StrategyResult]:
    """Economics for short body / long wings; None when it is not a valid net credit."""
    if not long_put.strike < short_put.strike <= short_call.strike < long_call.strike:
        return None

    m = ctx.multiplier
    credit = short_put.bid + short_call.bid - long_put.ask - long_call.ask
    if credit <= 0:
        logger.debug(f"{label}: no net credit ({credit:.2f})")
        return None

    put_width = short_put.strike - long_put.strike
    call_width = long_call.strike - short_call.strike
    capital = max(put_width, call_width) * m
    profit = credit * m
    risk = capital - profit
    if risk <= 0:
        return None
    if not ctx.within_budget(capital):
        logger.debug(f"{label}: capital {capital:.2f} over budget")
        return None

    if ctx.config.analytic_structure_pop or legacy_pop is None:
        if short_put.strike == short_call.strike:
            p = pop_iron_butterfly(ctx.spot, short_put.strike, credit, ctx.years, ctx.atm_iv, ctx.config.risk_free_rate)
        else:
            p = pop_iron_condor(
                ctx.spot, short_put.strike, short_call.strike, credit,
                ctx.years, ctx.atm_iv, ctx.config.risk_free_rate,
            )
        chance = to_chance(p)
    else:
        chance = legacy_pop

    strikes = "/".join(format_strike(c.strike) for c in (long_put, short_put, short_call, long_call))
    return make_result(
        ctx,
        name=f"{label} ({strikes})",
        shape=shape,
        legs=[
            Leg(long_put, "long"),
            Leg(short_put, "short"),
            Leg(short_call, "short"),
            Leg(long_call, "long"),
        ],
        profit=Amount(profit),
        risk=Amount(risk),
        required_capital=capital,
        sentiment_fit=Sentiment.NEUTRAL_FIT,
        break_evens=[short_put.strike - credit, short_call.strike + credit],
        chance=chance,
    )


def _debit_structure(
    ctx: MarketContext,
    label: str,
    shape: str,
    short_put: Contract,
    long_put: Contract,
    long_call: Contract,
    short_call: Contract,
    legacy_pop: float,
) -> Optional[StrategyResult]:
    """Economics for long body / short wings; None unless both sides can profit."""
    if not short_put.strike < long_put.strike <= long_call.strike < short_call.strike:
        return None

    m = ctx.multiplier
    debit = long_put.ask + long_call.ask - short_put.bid - short_call.bid
    if debit <= 0:
        logger.debug(f"{label}: no net debit ({debit:.2f})")
        return None

    put_width = long_put.strike - short_put.strike
    call_width = short_call.strike - long_call.strike
    if debit >= min(put_width, call_width):
        return None
    capital = debit * m
    if not ctx.within_budget(capital):
        logger.debug(f"{label}: capital {capital:.2f} over budget")
        return None

    if ctx.config.analytic_structure_pop:
        chance = to_chance(pop_inverse_iron_condor(
            ctx.spot, long_put.strike, long_call.strike, debit,
            ctx.years, ctx.atm_iv, ctx.config.risk_free_rate,
        ))
    else:
        chance = legacy_pop

    strikes = "/".join(format_strike(c.strike) for c in (short_put, long_put, long_call, short_call))
    return make_result(
        ctx,
        name=f"{label} ({strikes})",
        shape=shape,
        legs=[
            Leg(short_put, "short"),
            Leg(long_put, "long"),
            Leg(long_call, "long"),
            Leg(short_call, "short"),
        ],
        profit=Amount((max(put_width, call_width) - debit) * m),
        risk=Amount(capital),
        required_capital=capital,
        sentiment_fit=Sentiment.DIRECTIONAL_FIT,
        break_evens=[long_put.strike - debit, long_call.strike + debit],
        chance=chance,
    )


def build_iron_condor(ctx: MarketContext) -> list[StrategyResult]:
    """
    Iron condor.

    Short strikes sit nearest |delta| = 0.10 + 0.25a on each side; long
    wings sit sigma * (1 + 2a) beyond them. Absent when no net credit.
    """
    if not ctx.serves(Sentiment.NEUTRAL_FIT) or not ctx.has_sigma:
        return []

    target = condor_short_delta(ctx.slider)
    short_put = ctx.index.by_delta("put", -target, ctx.delta_of, low=-0.5, high=-0.01)
    short_call = ctx.index.by_delta("call", target, ctx.delta_of, low=0.01, high=0.5)
    if short_put is None or short_call is None or short_put.strike >= short_call.strike:
        logger.debug("Iron condor: no short strikes near target delta")
        return []

    long_put, long_call = outer_wings(ctx, short_put, short_call, condor_wing(ctx))
    if long_put is None or long_call is None:
        return []

    candidate = _credit_structure(ctx, "Iron Condor", "iron_condor", long_put, short_put, short_call, long_call)
    return finalize(ctx, [candidate] if candidate else [])


def build_iron_butterfly(ctx: MarketContext) -> list[StrategyResult]:
    """Iron butterfly: short call and put at the money, wings sigma * (0.5 + 2a) out."""
    if not ctx.serves(Sentiment.NEUTRAL_FIT) or not ctx.has_sigma:
        return []

    short_call, short_put = atm_body(ctx)
    if short_call is None or short_put is None:
        return []

    long_put, long_call = outer_wings(ctx, short_put, short_call, butterfly_wing(ctx))
    if long_put is None or long_call is None:
        return []

    candidate = _credit_structure(
        ctx, "Iron Butterfly", "iron_butterfly",
        long_put, short_put, short_call, long_call,
        legacy_pop=LEGACY_IRON_BUTTERFLY_POP,
    )
    return finalize(ctx, [candidate] if candidate else [])


def build_inverse_iron_condor(ctx: MarketContext) -> list[StrategyResult]:
    """
    Inverse iron condor: long put and call half a sigma either side of spot,
    short wings sigma * (0.5 + 2a) further out. Profits on a large move.
    """
    if not ctx.serves(Sentiment.DIRECTIONAL_FIT) or not ctx.has_sigma:
        return []

    half = 0.5 * ctx.sigma_move
    long_put = ctx.index.nearest("put", ctx.spot - half, below=ctx.spot)
    long_call = ctx.index.nearest("call", ctx.spot + half, above=ctx.spot)
    if long_put is None or long_call is None:
        return []

    short_put, short_call = outer_wings(ctx, long_put, long_call, butterfly_wing(ctx))
    if short_put is None or short_call is None:
        return []

    candidate = _debit_structure(
        ctx, "Inverse Iron Condor", "inverse_iron_condor",
        short_put, long_put, long_call, short_call,
        legacy_pop=LEGACY_INVERSE_IRON_CONDOR_POP,
    )
    return finalize(ctx, [candidate] if candidate else [])


def build_inverse_iron_butterfly(ctx: MarketContext) -> list[StrategyResult]:
    """Inverse iron butterfly: long call and put at the money, short wings sigma * (0.5 + 2a) out."""
    if not ctx.serves(Sentiment.DIRECTIONAL_FIT) or not ctx.has_sigma:
        return []

    long_call, long_put = atm_body(ctx)
    if long_call is None or long_put is None:
        return []

    short_put, short_call = outer_wings(ctx, long_put, long_call, butterfly_wing(ctx))
    if short_put is None or short_call is None:
        return []

    candidate = _debit_structure(
        ctx, "Inverse Iron Butterfly", "inverse_iron_butterfly",
        short_put, long_put, long_call, short_call,
        legacy_pop=LEGACY_INVERSE_IRON_BUTTERFLY_POP,
    )
    return finalize(ctx, [candidate] if candidate else [])
