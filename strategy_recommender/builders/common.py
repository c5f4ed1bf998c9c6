"""
Shared state and helpers for the strategy builders.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from strategy_recommender.config import EngineConfig
from strategy_recommender.liquidity import StrikeIndex, filter_liquid
from strategy_recommender.models import (
    Amount,
    Contract,
    Leg,
    StockLeg,
    StrategyResult,
    UserInputs,
    normalize_sentiment,
)
from strategy_recommender.numeric import greeks, round_penny, year_fraction
from strategy_recommender.payoff import build_payoff_points, is_profitable_at_target, legs_to_payoff
from strategy_recommender.probability import safe_probability
from strategy_recommender.scoring import pick_best_strategy, return_on_risk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketContext:
    """
    Everything a builder needs for one recommendation pass.

    Built once per pass from the user inputs and the chain; the index
    only holds contracts that passed the liquidity gate.

    Attributes:
        spot: Underlying price
        sentiment: Normalized sentiment
        slider: Risk/reward slider, clamped to 0-100
        years: Time to expiration in years
        index: Liquid contracts by type and strike
        config: Engine configuration
        sigma_move: One-standard-deviation dollar move, None when unknown
        budget: Positive budget in dollars, None when not set
        target: Target price, None when not set
        quote_iv: Underlying-level IV used when a contract has none
    """
    spot: float
    sentiment: str
    slider: float
    years: float
    index: StrikeIndex
    config: EngineConfig
    sigma_move: Optional[float] = None
    budget: Optional[float] = None
    target: Optional[float] = None
    quote_iv: Optional[float] = None

    @classmethod
    def create(
        cls,
        user: UserInputs,
        chain: Iterable[Contract],
        slider: float,
        sigma: Optional[float] = None,
        config: Optional[EngineConfig] = None,
        as_of: Optional[date] = None,
    ) -> Optional["MarketContext"]:
        """
        Prepare a context, or None when quote, sentiment or expiration is missing.

        Args:
            user: User inputs
            chain: Chain snapshot
            slider: Risk/reward slider
            sigma: One-standard-deviation move in dollars
            config: Engine configuration
            as_of: Valuation date (default today)
        """
        if config is None:
            config = EngineConfig()

        quote = user.quote
        if quote is None or not quote.price or quote.price <= 0 or not math.isfinite(quote.price):
            logger.debug("No usable quote; no strategies built")
            return None

        sentiment = normalize_sentiment(user.sentiment)
        if not sentiment:
            logger.debug("No sentiment; no strategies built")
            return None

        years = year_fraction(user.expiration, as_of, config.min_time_years)
        if years is None:
            logger.debug("No expiration; no strategies built")
            return None

        sigma_move = sigma if sigma is not None and math.isfinite(sigma) and sigma > 0 else None
        budget = user.budget_amount() if user.has_budget else None

        return cls(
            spot=float(quote.price),
            sentiment=sentiment,
            slider=max(0.0, min(100.0, float(slider))),
            years=years,
            index=StrikeIndex(filter_liquid(chain, config)),
            config=config,
            sigma_move=sigma_move,
            budget=budget,
            target=user.target_amount(),
            quote_iv=quote.iv if quote.iv and quote.iv > 0 else None,
        )

    @property
    def aggressiveness(self) -> float:
        """Slider as a fraction, 0-1."""
        return self.slider / 100.0

    @property
    def multiplier(self) -> int:
        return self.config.contract_multiplier

    @property
    def has_sigma(self) -> bool:
        return self.sigma_move is not None

    @property
    def atm_iv(self) -> Optional[float]:
        """Annualized volatility implied by the dollar move: sigma / (S * sqrt(T))."""
        if self.sigma_move is None:
            return None
        return self.sigma_move / (self.spot * math.sqrt(self.years))

    def serves(self, fit: Iterable[str]) -> bool:
        """Sentiment gate."""
        return self.sentiment in fit

    def contract_iv(self, contract: Contract) -> float:
        """Contract IV, else the quote IV, else the configured fallback."""
        if contract.iv is not None and contract.iv > 0:
            return contract.iv
        if self.quote_iv is not None:
            return self.quote_iv
        return self.config.fallback_iv

    def delta_of(self, contract: Contract) -> Optional[float]:
        """Quoted delta, else a Black-Scholes estimate from the contract's IV."""
        if contract.delta is not None:
            return contract.delta
        estimate = greeks(
            self.spot,
            contract.strike,
            self.years,
            self.contract_iv(contract),
            contract.option_type,
            self.config.risk_free_rate,
        ).delta
        return None if math.isnan(estimate) else estimate

    def within_budget(self, capital: float) -> bool:
        """True when no budget is set or ``capital`` fits in it."""
        return self.budget is None or round_penny(capital) <= self.budget

    def width_allowed(self, width: float) -> bool:
        """Vertical spread width inside the configured search window."""
        return self.config.min_spread_width <= width <= self.config.max_spread_width(self.spot)


def to_chance(probability: float) -> float:
    """Probability in [0, 1] (possibly NaN) to a percentage in [0, 100]."""
    return safe_probability(probability) * 100.0


def make_result(
    ctx: MarketContext,
    name: str,
    shape: str,
    legs: list[Leg],
    profit: Amount,
    risk: Amount,
    required_capital: float,
    sentiment_fit: tuple[str, ...],
    break_evens: list[float],
    chance: float,
    stock: Optional[StockLeg] = None,
) -> StrategyResult:
    """
    Assemble a StrategyResult, rounding money to cents and attaching the payoff curve.

    Return-on-risk is derived from the rounded profit and risk.
    """
    profit = profit if profit.unbounded else Amount(round_penny(profit.value))
    risk = risk if risk.unbounded else Amount(round_penny(risk.value))
    break_evens = sorted(round_penny(b) for b in break_evens)

    positions = legs_to_payoff(legs, stock)
    points = build_payoff_points(
        positions,
        break_evens,
        multiplier=ctx.multiplier,
        padding_pct=ctx.config.payoff_padding_pct,
    )

    return StrategyResult(
        name=name,
        shape=shape,
        legs=legs,
        return_on_risk=return_on_risk(profit, risk),
        chance=max(0.0, min(100.0, chance if math.isfinite(chance) else 0.0)),
        profit=profit,
        risk=risk,
        required_capital=max(0.0, round_penny(required_capital)),
        sentiment_fit=sentiment_fit,
        break_even=break_evens[0] if break_evens else 0.0,
        break_evens=break_evens,
        payoff_points=points,
        stock=stock,
    )


def finalize(ctx: MarketContext, candidates: list[StrategyResult]) -> list[StrategyResult]:
    """
    Apply the optional target filter, then keep the top-scored candidate.
    """
    if ctx.config.require_profit_at_target and ctx.target is not None:
        kept = [c for c in candidates if is_profitable_at_target(c, ctx.target)]
        if len(kept) < len(candidates):
            logger.debug(f"Target filter dropped {len(candidates) - len(kept)} candidates")
        candidates = kept
    return pick_best_strategy(candidates, ctx.slider, ctx.config.scoring_weights)


def format_strike(strike: float) -> str:
    """Strike for display: 150 rather than 150.0, 152.5 kept."""
    return f"{strike:g}"
