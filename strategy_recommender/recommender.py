"""
Recommendation run: fetches a quote and chain, derives the implied move,
and hands everything to the strategy engine.
"""

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Union

from strategy_recommender.config import EngineConfig
from strategy_recommender.data_fetcher import OptionsDataFetcher, get_fetcher
from strategy_recommender.engine import compute_strategies
from strategy_recommender.exceptions import ChainUnavailableError
from strategy_recommender.models import Contract, Quote, StrategyResult, UserInputs, normalize_sentiment
from strategy_recommender.numeric import (
    days_between,
    implied_move,
    implied_volatility,
    target_price_from_sentiment,
    to_date,
    year_fraction,
)
from strategy_recommender.reporting import format_csv_output, format_strategy_report

logger = logging.getLogger(__name__)

DEFAULT_MIN_DTE = 7


def _nearest(contracts: list[Contract], spot: float) -> Optional[Contract]:
    if not contracts:
        return None
    return min(contracts, key=lambda c: (abs(c.strike - spot), c.strike))


def _contract_iv(contract: Contract, spot: float, years: Optional[float], rate: float) -> Optional[float]:
    if contract.iv is not None and contract.iv > 0:
        return contract.iv
    if years is None or contract.mid <= 0:
        return None
    return implied_volatility(contract.mid, spot, contract.strike, years, contract.option_type, rate)


def estimate_atm_iv(
    chain: Iterable[Contract],
    spot: float,
    years: Optional[float] = None,
    rate: float = 0.0,
) -> Optional[float]:
    """
    At-the-money implied volatility for a chain.

    Averages the IV of the nearest-the-money call and put. A contract with
    no quoted IV gets one solved from its mid price when ``years`` is known.

    Args:
        chain: Chain snapshot
        spot: Underlying price
        years: Time to expiration in years
        rate: Risk-free rate

    Returns:
        ATM IV (decimal), or None when neither side has one
    """
    chain = list(chain)
    if spot <= 0:
        return None

    ivs = []
    for option_type in ("call", "put"):
        contract = _nearest([c for c in chain if c.option_type == option_type and c.strike > 0], spot)
        if contract is None:
            continue
        iv = _contract_iv(contract, spot, years, rate)
        if iv is not None and math.isfinite(iv) and iv > 0:
            ivs.append(iv)

    if not ivs:
        return None
    return sum(ivs) / len(ivs)


def days_to_expiration(
    expiration: Optional[Union[date, str]], as_of: Optional[date] = None
) -> Optional[int]:
    """Calendar days to expiration, None when the expiration is unreadable."""
    return days_between(expiration, as_of)


def compute_sigma(spot: float, atm_iv: Optional[float], dte: Optional[int]) -> Optional[float]:
    """
    One-standard-deviation dollar move, S * IV * sqrt(DTE / 365).

    Returns None when IV or DTE is missing or the move is not positive.
    """
    if atm_iv is None or dte is None or spot <= 0:
        return None
    move = implied_move(spot, atm_iv, dte)
    if not math.isfinite(move) or move <= 0:
        return None
    return move


@dataclass
class RecommendationResult:
    """Result from one recommendation run."""

    symbol: str
    quote: Quote
    sentiment: str
    risk_reward: float
    expiration: date
    dte: int
    chain_size: int
    atm_iv: Optional[float]
    sigma: Optional[float]
    target_price: Optional[float]
    target_estimated: bool
    strategies: list[StrategyResult] = field(default_factory=list)

    @property
    def underlying_price(self) -> float:
        return self.quote.price

    def to_report(self) -> str:
        """Generate human-readable report."""
        return format_strategy_report(
            self.strategies,
            self.symbol,
            self.underlying_price,
            expiration=self.expiration,
            dte=self.dte,
            sentiment=self.sentiment,
            atm_iv=self.atm_iv,
            sigma=self.sigma,
            target_price=self.target_price,
        )

    def to_csv(self) -> str:
        """Generate CSV output."""
        return format_csv_output(
            self.strategies,
            self.symbol,
            self.underlying_price,
            expiration=self.expiration,
            dte=self.dte,
        )

    def to_json_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "quote": self.quote.to_dict(),
            "sentiment": self.sentiment,
            "risk_reward": self.risk_reward,
            "expiration": self.expiration.isoformat(),
            "dte": self.dte,
            "chain_size": self.chain_size,
            "atm_iv": self.atm_iv,
            "sigma": self.sigma,
            "target_price": self.target_price,
            "target_estimated": self.target_estimated,
            "strategies": [s.to_dict() for s in self.strategies],
        }

    def to_json(self) -> str:
        """Generate JSON output."""
        return json.dumps(self.to_json_dict(), indent=2)


@dataclass
class StrategyRecommender:
    """
    Runs the strategy engine against live (or mock) market data.

    Example usage:
        recommender = StrategyRecommender(fetcher=get_fetcher("mock"))
        result = recommender.recommend("SPY", "bullish", risk_reward=60)
        print(result.to_report())
    """

    fetcher: Optional[OptionsDataFetcher] = None
    config: EngineConfig = field(default_factory=EngineConfig)
    min_dte: int = DEFAULT_MIN_DTE

    def __post_init__(self) -> None:
        """Initialize fetcher if not provided."""
        if self.fetcher is None:
            self.fetcher = get_fetcher("auto")

    def choose_expiration(self, symbol: str) -> date:
        """First listed expiration at least ``min_dte`` days out, else the first listed one."""
        expirations = self.fetcher.get_expirations(symbol, min_dte=self.min_dte)
        if not expirations:
            expirations = self.fetcher.get_expirations(symbol)
        if not expirations:
            raise ChainUnavailableError(symbol, details="no expirations listed")
        return expirations[0]

    def recommend(
        self,
        symbol: str,
        sentiment: str,
        risk_reward: float = 50.0,
        expiration: Optional[Union[date, str]] = None,
        target_price: str = "",
        budget: str = "",
        as_of: Optional[date] = None,
    ) -> RecommendationResult:
        """
        Run one recommendation pass.

        Args:
            symbol: Underlying symbol
            sentiment: Market sentiment
            risk_reward: Slider, 0 (probability) to 100 (return)
            expiration: Expiration date; chosen automatically when omitted
            target_price: Optional target price; estimated from sentiment when empty
            budget: Optional capital budget
            as_of: Valuation date (default today)

        Returns:
            RecommendationResult

        Raises:
            QuoteUnavailableError: If the quote cannot be fetched
            ChainUnavailableError: If the chain cannot be fetched
        """
        symbol = symbol.upper()
        logger.info(f"Starting recommendation for {symbol}")

        quote = self.fetcher.get_quote(symbol)
        logger.info(f"{symbol} price: ${quote.price:.2f}")

        exp = to_date(expiration) if expiration else self.choose_expiration(symbol)
        if exp is None:
            raise ChainUnavailableError(symbol, str(expiration), "unreadable expiration")

        chain = self.fetcher.get_option_chain(symbol, exp)
        if not chain:
            raise ChainUnavailableError(symbol, exp.isoformat(), "empty chain")

        dte = days_to_expiration(exp, as_of)
        years = year_fraction(exp, as_of, self.config.min_time_years)
        atm_iv = estimate_atm_iv(chain, quote.price, years, self.config.risk_free_rate)
        sigma = compute_sigma(quote.price, atm_iv, dte)
        if sigma is None:
            logger.warning(f"No implied move for {symbol} {exp}; iron, straddle and strangle shapes skipped")
        else:
            logger.info(f"ATM IV {atm_iv:.1%}, 1-SD move ${sigma:.2f} over {dte} days")

        quote.iv = atm_iv
        target_estimated = False
        if str(target_price or "").strip() == "" and sigma is not None:
            target_price = str(
                target_price_from_sentiment(quote.price, sigma, normalize_sentiment(sentiment))
            )
            target_estimated = True

        user = UserInputs(
            ticker=symbol,
            quote=quote,
            sentiment=sentiment,
            risk_reward=risk_reward,
            target_price=target_price,
            budget=budget,
            expiration=exp,
        )
        strategies = compute_strategies(user, chain, risk_reward, sigma, self.config, as_of)

        return RecommendationResult(
            symbol=symbol,
            quote=quote,
            sentiment=normalize_sentiment(sentiment),
            risk_reward=risk_reward,
            expiration=exp,
            dte=dte,
            chain_size=len(chain),
            atm_iv=atm_iv,
            sigma=sigma,
            target_price=user.target_amount(),
            target_estimated=target_estimated,
            strategies=strategies,
        )


def recommend_strategies(
    symbol: str,
    sentiment: str,
    risk_reward: float = 50.0,
    expiration: Optional[Union[date, str]] = None,
    target_price: str = "",
    budget: str = "",
    source: str = "auto",
    config: Optional[EngineConfig] = None,
) -> RecommendationResult:
    """
    Simple function interface to recommend strategies.

    This is the main entry point for using the recommender as a library.

    Args:
        symbol: Underlying symbol (e.g., "AAPL")
        sentiment: 'bullish', 'bearish', 'neutral', 'directional' or a 'very_' variant
        risk_reward: Slider, 0 (probability) to 100 (return) (default: 50)
        expiration: Expiration date (default: first one at least 7 days out)
        target_price: Optional target price
        budget: Optional capital budget
        source: Data source for get_fetcher (default: auto)
        config: Engine configuration

    Returns:
        RecommendationResult with one strategy per shape

    Example:
        from strategy_recommender import recommend_strategies

        result = recommend_strategies("AAPL", "bullish", risk_reward=70, budget="1000")
        print(result.to_report())
    """
    recommender = StrategyRecommender(
        fetcher=get_fetcher(source),
        config=config or EngineConfig(),
    )
    return recommender.recommend(
        symbol,
        sentiment,
        risk_reward=risk_reward,
        expiration=expiration,
        target_price=target_price,
        budget=budget,
    )
