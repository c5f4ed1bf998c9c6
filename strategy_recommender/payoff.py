"""
Expiration payoff curves.

A strategy's P/L at expiration is piecewise linear with kinks only at
strikes, so vertices at the strikes, the breakevens, and two padded end
points describe it exactly.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from strategy_recommender.models import Leg, PayoffPoint, StockLeg, StrategyResult
from strategy_recommender.numeric import round_penny

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayoffLeg:
    """
    Position used for P/L at expiration.

    Attributes:
        kind: 'call', 'put' or 'stock'
        strike: Strike price (entry price for stock)
        premium: Per-share price paid or received (0 for stock)
        direction: +1 long, -1 short
        units: Number of contracts (or 1 for a 100-share stock lot)
    """
    kind: str
    strike: float
    premium: float
    direction: int
    units: int = 1

    def value_at(self, price: float) -> float:
        """Per-share P/L of one unit at an expiration price."""
        if self.kind == "stock":
            return self.direction * (price - self.strike)
        if self.kind == "call":
            intrinsic = max(0.0, price - self.strike)
        else:
            intrinsic = max(0.0, self.strike - price)
        return self.direction * (intrinsic - self.premium)


def legs_to_payoff(legs: Iterable[Leg], stock: Optional[StockLeg] = None) -> list[PayoffLeg]:
    """Translate strategy legs into payoff positions filled at bid/ask."""
    positions = [
        PayoffLeg(
            kind=leg.contract.option_type,
            strike=leg.contract.strike,
            premium=leg.fill_price,
            direction=1 if leg.is_long else -1,
            units=leg.quantity,
        )
        for leg in legs
    ]
    if stock is not None:
        positions.append(PayoffLeg(kind="stock", strike=stock.entry_price, premium=0.0, direction=1))
    return positions


def profit_at(positions: Iterable[PayoffLeg], price: float, multiplier: int = 100) -> float:
    """Total P/L in dollars at an expiration price."""
    return sum(p.value_at(price) * p.units for p in positions) * multiplier


def build_payoff_points(
    positions: list[PayoffLeg],
    break_evens: Iterable[float] = (),
    multiplier: int = 100,
    padding_pct: float = 0.10,
) -> list[PayoffPoint]:
    """
    Payoff vertices ascending by price.

    The curve spans from below the lowest strike or breakeven to above the
    highest, padded by ``padding_pct`` of the highest key price (at least
    one point), and never goes below a price of 0.

    Args:
        positions: Payoff legs
        break_evens: Breakeven prices to include as vertices
        multiplier: Contract multiplier
        padding_pct: Padding beyond the outer key prices

    Returns:
        List of PayoffPoint with unique, ascending prices
    """
    key_prices = [p.strike for p in positions] + [b for b in break_evens if b > 0]
    if not key_prices:
        return []

    low_key = min(key_prices)
    high_key = max(key_prices)
    pad = max(padding_pct * high_key, 1.0)
    low = max(0.0, low_key - pad)
    high = high_key + pad

    prices: list[float] = []
    for price in sorted(set(key_prices) | {low, high}):
        if not prices or price - prices[-1] > 1e-9:
            prices.append(price)
    return [
        PayoffPoint(price=price, profit=round_penny(profit_at(positions, price, multiplier)))
        for price in prices
    ]


def nearest_point(points: list[PayoffPoint], price: float) -> Optional[PayoffPoint]:
    """Vertex closest to ``price`` (the lower one on ties)."""
    if not points:
        return None
    return min(points, key=lambda p: abs(p.price - price))


def is_profitable_at_target(strategy: StrategyResult, target: Optional[float]) -> bool:
    """
    Check whether the payoff vertex nearest the target shows a profit.

    With no target every strategy passes. Without a payoff curve the
    target is compared to the breakeven instead.
    """
    if target is None:
        return True
    point = nearest_point(strategy.payoff_points, target)
    if point is not None:
        return point.profit > 0
    return target >= strategy.break_even
