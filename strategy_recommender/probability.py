"""
Closed-form probability of profit for each strategy shape.

The underlying is lognormal with drift (r - sigma^2 / 2) and volatility
sigma * sqrt(T). A breakeven price maps to a z-score and the PoP is read
off the tail(s) of the standard normal CDF.

Every pop_* function returns a probability in [0, 1], or NaN when time or
volatility is not positive. Pass results through ``safe_probability``
before reporting them.
"""

import math

from strategy_recommender.numeric import normal_std_cdf


def z_score(price: float, spot: float, sigma: float, years: float, rate: float = 0.0) -> float:
    """Standardized log distance from spot to ``price`` at expiration."""
    if spot <= 0 or sigma <= 0 or years <= 0:
        return math.nan
    if price <= 0:
        return -math.inf
    return (math.log(price / spot) - (rate - 0.5 * sigma * sigma) * years) / (sigma * math.sqrt(years))


def prob_above(price: float, spot: float, sigma: float, years: float, rate: float = 0.0) -> float:
    """P(S_T > price)."""
    return 1.0 - normal_std_cdf(z_score(price, spot, sigma, years, rate))


def prob_below(price: float, spot: float, sigma: float, years: float, rate: float = 0.0) -> float:
    """P(S_T < price)."""
    return normal_std_cdf(z_score(price, spot, sigma, years, rate))


def prob_between(low: float, high: float, spot: float, sigma: float, years: float, rate: float = 0.0) -> float:
    """P(low < S_T < high)."""
    return (
        normal_std_cdf(z_score(high, spot, sigma, years, rate))
        - normal_std_cdf(z_score(low, spot, sigma, years, rate))
    )


def prob_outside(low: float, high: float, spot: float, sigma: float, years: float, rate: float = 0.0) -> float:
    """P(S_T < low or S_T > high)."""
    return 1.0 - prob_between(low, high, spot, sigma, years, rate)


def safe_probability(p: float) -> float:
    """Map NaN to 0 and clamp to [0, 1]."""
    if p is None or math.isnan(p):
        return 0.0
    return max(0.0, min(1.0, p))


# Single leg

def pop_long_call(spot: float, strike: float, premium: float, years: float, sigma: float, rate: float = 0.0) -> float:
    return prob_above(strike + premium, spot, sigma, years, rate)


def pop_long_put(spot: float, strike: float, premium: float, years: float, sigma: float, rate: float = 0.0) -> float:
    return prob_below(strike - premium, spot, sigma, years, rate)


def pop_short_call(spot: float, strike: float, credit: float, years: float, sigma: float, rate: float = 0.0) -> float:
    return prob_below(strike + credit, spot, sigma, years, rate)


def pop_short_put(spot: float, strike: float, credit: float, years: float, sigma: float, rate: float = 0.0) -> float:
    return prob_above(strike - credit, spot, sigma, years, rate)


def pop_covered_call(spot: float, premium: float, years: float, sigma: float, rate: float = 0.0) -> float:
    """Shares bought at spot plus a short call: profitable above spot - premium."""
    return prob_above(spot - premium, spot, sigma, years, rate)


# Vertical spreads

def pop_bull_call(
    spot: float,
    long_strike: float,
    short_strike: float,
    debit: float,
    years: float,
    sigma: float,
    rate: float = 0.0,
) -> float:
    """Bull call debit spread; 0 when the debit is not below the width."""
    if debit >= short_strike - long_strike:
        return 0.0
    return prob_above(long_strike + debit, spot, sigma, years, rate)


def pop_bear_put(
    spot: float,
    long_strike: float,
    short_strike: float,
    debit: float,
    years: float,
    sigma: float,
    rate: float = 0.0,
) -> float:
    """Bear put debit spread (long the higher strike); 0 when the debit is not below the width."""
    if debit >= long_strike - short_strike:
        return 0.0
    return prob_below(long_strike - debit, spot, sigma, years, rate)


def pop_bull_put(spot: float, short_strike: float, credit: float, years: float, sigma: float, rate: float = 0.0) -> float:
    return prob_above(short_strike - credit, spot, sigma, years, rate)


def pop_bear_call(spot: float, short_strike: float, credit: float, years: float, sigma: float, rate: float = 0.0) -> float:
    return prob_below(short_strike + credit, spot, sigma, years, rate)


# Iron structures

def pop_iron_condor(
    spot: float,
    short_put_strike: float,
    short_call_strike: float,
    credit: float,
    years: float,
    sigma: float,
    rate: float = 0.0,
) -> float:
    return prob_between(short_put_strike - credit, short_call_strike + credit, spot, sigma, years, rate)


def pop_iron_butterfly(spot: float, body_strike: float, credit: float, years: float, sigma: float, rate: float = 0.0) -> float:
    return prob_between(body_strike - credit, body_strike + credit, spot, sigma, years, rate)


def pop_inverse_iron_condor(
    spot: float,
    long_put_strike: float,
    long_call_strike: float,
    debit: float,
    years: float,
    sigma: float,
    rate: float = 0.0,
) -> float:
    return prob_outside(long_put_strike - debit, long_call_strike + debit, spot, sigma, years, rate)


# Straddles and strangles

def pop_long_straddle(spot: float, strike: float, debit: float, years: float, sigma: float, rate: float = 0.0) -> float:
    return prob_outside(strike - debit, strike + debit, spot, sigma, years, rate)


def pop_short_straddle(spot: float, strike: float, credit: float, years: float, sigma: float, rate: float = 0.0) -> float:
    return prob_between(strike - credit, strike + credit, spot, sigma, years, rate)


def pop_long_strangle(
    spot: float,
    put_strike: float,
    call_strike: float,
    debit: float,
    years: float,
    sigma: float,
    rate: float = 0.0,
) -> float:
    return prob_outside(put_strike - debit, call_strike + debit, spot, sigma, years, rate)


def pop_short_strangle(
    spot: float,
    put_strike: float,
    call_strike: float,
    credit: float,
    years: float,
    sigma: float,
    rate: float = 0.0,
) -> float:
    return prob_between(put_strike - credit, call_strike + credit, spot, sigma, years, rate)


# Butterfly and collar

def pop_butterfly(
    spot: float,
    low_strike: float,
    high_strike: float,
    debit: float,
    years: float,
    sigma: float,
    rate: float = 0.0,
) -> float:
    """1-2-1 debit butterfly."""
    return prob_between(low_strike + debit, high_strike - debit, spot, sigma, years, rate)


def pop_collar(
    spot: float,
    put_strike: float,
    put_premium: float,
    call_strike: float,
    call_premium: float,
    years: float,
    sigma: float,
    rate: float = 0.0,
) -> float:
    """
    Long shares at spot, long put, short call.

    The option debit shifts the band between spot and the call strike down
    by its size; PoP is the probability of finishing inside that band.
    """
    net_debit = put_premium - call_premium
    low = spot - net_debit
    high = call_strike - net_debit
    if low >= high:
        return 0.0
    return prob_between(low, high, spot, sigma, years, rate)
