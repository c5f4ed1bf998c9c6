"""
Numeric helpers: normal distribution, Black-Scholes pricing and Greeks,
implied move, and money rounding/coercion.

All functions are pure. Degenerate inputs (non-positive time or volatility)
produce NaN rather than raising; callers decide how to treat them.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Optional, Union

from scipy.optimize import brentq

logger = logging.getLogger(__name__)

SQRT_2PI = math.sqrt(2.0 * math.pi)
DAYS_PER_YEAR = 365.0

# Abramowitz & Stegun 26.2.17
_AS_P = 0.2316419
_AS_B = (0.319381530, -0.356563782, 1.781477937, -1.821255978, 1.330274429)

# Implied-move multiples applied to derive a price target from sentiment
SENTIMENT_MOVE_MULTIPLIERS = {
    "very_bullish": 2.0,
    "bullish": 1.0,
    "neutral": 0.0,
    "bearish": -1.0,
    "very_bearish": -2.0,
    "directional": 0.5,
}

DateLike = Union[date, datetime, str, int, float]


def normal_pdf(x: float) -> float:
    """Standard normal probability density."""
    return math.exp(-0.5 * x * x) / SQRT_2PI


def normal_std_cdf(x: float) -> float:
    """
    Standard normal cumulative distribution.

    Rational approximation (Abramowitz & Stegun 26.2.17), absolute
    error below 7.5e-8 everywhere.

    Args:
        x: Point to evaluate

    Returns:
        P(Z <= x) in [0, 1], NaN for NaN input
    """
    if math.isnan(x):
        return math.nan
    if math.isinf(x):
        return 1.0 if x > 0 else 0.0

    t = 1.0 / (1.0 + _AS_P * abs(x))
    b1, b2, b3, b4, b5 = _AS_B
    poly = t * (b1 + t * (b2 + t * (b3 + t * (b4 + t * b5))))
    upper = 1.0 - normal_pdf(x) * poly
    return upper if x >= 0 else 1.0 - upper


def _d1_d2(spot: float, strike: float, years: float, rate: float, sigma: float) -> tuple[float, float]:
    vol_sqrt_t = sigma * math.sqrt(years)
    d1 = (math.log(spot / strike) + (rate + 0.5 * sigma * sigma) * years) / vol_sqrt_t
    return d1, d1 - vol_sqrt_t


def _valid_inputs(spot: float, strike: float, years: float, sigma: float) -> bool:
    return spot > 0 and strike > 0 and years > 0 and sigma > 0


def black_scholes_price(
    spot: float,
    strike: float,
    years: float,
    sigma: float,
    option_type: str,
    rate: float = 0.0,
) -> float:
    """
    European option price under Black-Scholes.

    Args:
        spot: Underlying price
        strike: Strike price
        years: Time to expiration in years
        sigma: Annualized volatility (decimal)
        option_type: 'call' or 'put'
        rate: Continuously compounded risk-free rate

    Returns:
        Option price, or NaN when time or volatility is not positive
    """
    if not _valid_inputs(spot, strike, years, sigma):
        return math.nan

    d1, d2 = _d1_d2(spot, strike, years, rate, sigma)
    discount = math.exp(-rate * years)
    if option_type == "call":
        return spot * normal_std_cdf(d1) - strike * discount * normal_std_cdf(d2)
    return strike * discount * normal_std_cdf(-d2) - spot * normal_std_cdf(-d1)


@dataclass(frozen=True)
class Greeks:
    """
    Option sensitivities.

    Theta is per calendar day; vega and rho are per 1% move.
    """
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float

    def to_dict(self) -> dict:
        return {
            "delta": self.delta,
            "gamma": self.gamma,
            "theta": self.theta,
            "vega": self.vega,
            "rho": self.rho,
        }


def greeks(
    spot: float,
    strike: float,
    years: float,
    sigma: float,
    option_type: str,
    rate: float = 0.0,
) -> Greeks:
    """Closed-form Black-Scholes Greeks; all fields NaN for degenerate inputs."""
    if not _valid_inputs(spot, strike, years, sigma):
        nan = math.nan
        return Greeks(nan, nan, nan, nan, nan)

    d1, d2 = _d1_d2(spot, strike, years, rate, sigma)
    sqrt_t = math.sqrt(years)
    pdf_d1 = normal_pdf(d1)
    discount = math.exp(-rate * years)

    gamma = pdf_d1 / (spot * sigma * sqrt_t)
    vega = spot * pdf_d1 * sqrt_t / 100.0
    decay = -spot * pdf_d1 * sigma / (2.0 * sqrt_t)

    if option_type == "call":
        delta = normal_std_cdf(d1)
        theta = (decay - rate * strike * discount * normal_std_cdf(d2)) / DAYS_PER_YEAR
        rho = strike * years * discount * normal_std_cdf(d2) / 100.0
    else:
        delta = normal_std_cdf(d1) - 1.0
        theta = (decay + rate * strike * discount * normal_std_cdf(-d2)) / DAYS_PER_YEAR
        rho = -strike * years * discount * normal_std_cdf(-d2) / 100.0

    return Greeks(delta=delta, gamma=gamma, theta=theta, vega=vega, rho=rho)


def implied_volatility(
    price: float,
    spot: float,
    strike: float,
    years: float,
    option_type: str,
    rate: float = 0.0,
    low: float = 1e-4,
    high: float = 5.0,
) -> Optional[float]:
    """
    Solve Black-Scholes for volatility given an option price.

    Args:
        price: Observed option price
        spot: Underlying price
        strike: Strike price
        years: Time to expiration in years
        option_type: 'call' or 'put'
        rate: Risk-free rate
        low: Lower volatility bracket
        high: Upper volatility bracket

    Returns:
        Implied volatility, or None if the price is outside the bracketed range
    """
    if price <= 0 or not _valid_inputs(spot, strike, years, low):
        return None

    def objective(vol: float) -> float:
        return black_scholes_price(spot, strike, years, vol, option_type, rate) - price

    f_low, f_high = objective(low), objective(high)
    if f_low * f_high > 0:
        logger.debug(f"No IV bracket for {option_type} K={strike} price={price:.2f}")
        return None
    return float(brentq(objective, low, high, xtol=1e-8))


def implied_move(spot: float, iv: float, dte: float) -> float:
    """
    One-standard-deviation expected dollar move by expiration.

    Args:
        spot: Underlying price
        iv: At-the-money implied volatility (decimal)
        dte: Calendar days to expiration

    Returns:
        spot * iv * sqrt(dte / 365)
    """
    return spot * iv * math.sqrt(max(dte, 0.0) / DAYS_PER_YEAR)


def target_price_from_sentiment(current_price: float, move: float, sentiment: str) -> float:
    """Shift the current price by a sentiment-dependent multiple of the implied move."""
    multiplier = SENTIMENT_MOVE_MULTIPLIERS.get(sentiment, 0.0)
    return round_penny(current_price + multiplier * move)


def round_penny(value: float) -> float:
    """Round to cents, halves rounded up."""
    if not math.isfinite(value):
        return value
    return math.floor(value * 100.0 + 0.5) / 100.0


def coerce_number(value: Any, default: float = 0.0) -> float:
    """Convert to float, treating None, non-numeric, NaN and infinite input as ``default``."""
    if value is None:
        return default
    try:
        result = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, TypeError):
        return default
    if not math.isfinite(result):
        return default
    return result


def to_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Interpret an expiration value as a calendar date.

    Accepts dates, datetimes, ISO strings ("2024-03-15" or with a time part)
    and epoch seconds. Returns None when the value cannot be read.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            return None
        return datetime.fromtimestamp(value, tz=timezone.utc).date()
    try:
        return datetime.strptime(str(value).strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        logger.warning(f"Unreadable expiration value: {value!r}")
        return None


def days_between(expiration: Optional[DateLike], as_of: Optional[date] = None) -> Optional[int]:
    """Calendar days from ``as_of`` (default today) to expiration, or None if unreadable."""
    exp = to_date(expiration)
    if exp is None:
        return None
    today = as_of if as_of is not None else date.today()
    if isinstance(today, datetime):
        today = today.date()
    return (exp - today).days


def year_fraction(
    expiration: Optional[DateLike],
    as_of: Optional[date] = None,
    min_years: float = 1.0 / DAYS_PER_YEAR,
) -> Optional[float]:
    """Time to expiration in years, floored at ``min_years``; None when unreadable."""
    days = days_between(expiration, as_of)
    if days is None:
        return None
    return max(days / DAYS_PER_YEAR, min_years)
