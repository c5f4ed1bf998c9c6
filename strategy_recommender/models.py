"""
Data models for the strategy recommender.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal, Optional, Union

from strategy_recommender.exceptions import InvalidContractError
from strategy_recommender.numeric import coerce_number, to_date

logger = logging.getLogger(__name__)

OptionType = Literal["call", "put"]
Side = Literal["long", "short"]


class Sentiment:
    """Sentiment categories accepted from the user."""

    VERY_BEARISH = "very_bearish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"
    BULLISH = "bullish"
    VERY_BULLISH = "very_bullish"
    DIRECTIONAL = "directional"

    ALL = (VERY_BEARISH, BEARISH, NEUTRAL, BULLISH, VERY_BULLISH, DIRECTIONAL)
    BULLISH_FIT = (BULLISH, VERY_BULLISH)
    BEARISH_FIT = (BEARISH, VERY_BEARISH)
    NEUTRAL_FIT = (NEUTRAL,)
    DIRECTIONAL_FIT = (DIRECTIONAL,)


def normalize_sentiment(sentiment: Optional[str]) -> str:
    """Fold the 'very' categories into their base category; unknown values pass through."""
    if not sentiment:
        return ""
    value = str(sentiment).strip().lower()
    if value == Sentiment.VERY_BULLISH:
        return Sentiment.BULLISH
    if value == Sentiment.VERY_BEARISH:
        return Sentiment.BEARISH
    return value


def _optional_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    result = coerce_number(value, default=math.nan)
    return None if math.isnan(result) else result


def _first(row: dict, *keys: str) -> Any:
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return None


@dataclass(frozen=True)
class Contract:
    """
    One option contract from a chain snapshot.

    Attributes:
        symbol: Option contract symbol
        option_type: 'call' or 'put'
        strike: Strike price
        expiry: Expiration date (None when the row did not carry one)
        bid: Bid price
        ask: Ask price
        last: Last trade price
        open_interest: Open interest
        volume: Session volume
        in_the_money: In-the-money flag from the data source
        underlying_price: Underlying price at snapshot time
        iv: Implied volatility (decimal), if quoted
        delta, gamma, theta, vega: Greeks, if quoted
    """
    symbol: str
    option_type: str
    strike: float
    expiry: Optional[date] = None
    bid: float = 0.0
    ask: float = 0.0
    last: float = 0.0
    open_interest: int = 0
    volume: int = 0
    in_the_money: bool = False
    underlying_price: float = 0.0
    iv: Optional[float] = None
    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None

    @property
    def mid(self) -> float:
        """Mid price ((bid + ask) / 2)."""
        return (self.bid + self.ask) / 2.0

    @property
    def spread(self) -> float:
        """Bid-ask spread width."""
        return self.ask - self.bid

    @property
    def activity(self) -> int:
        """Open interest plus volume."""
        return self.open_interest + self.volume

    @property
    def is_call(self) -> bool:
        return self.option_type == "call"

    @property
    def is_put(self) -> bool:
        return self.option_type == "put"

    @classmethod
    def from_dict(cls, row: dict, strict: bool = False) -> "Contract":
        """
        Parse one chain row.

        Accepts the snake_case row layout (``type``, ``strike_price``,
        ``open_interest``...) as well as the camelCase column names used by
        MarketData.app and yfinance.

        Args:
            row: Mapping of field name to raw value
            strict: Raise on missing/non-numeric strike, bid or ask instead of coercing

        Returns:
            Contract

        Raises:
            InvalidContractError: In strict mode, or when the option type is unknown
        """
        symbol = str(_first(row, "symbol", "optionSymbol", "contractSymbol", "contract_symbol") or "")
        option_type = str(_first(row, "type", "side", "option_type", "contract_type") or "").lower()
        if option_type not in ("call", "put"):
            raise InvalidContractError("type", option_type, symbol)

        if strict:
            for name, keys in (
                ("strike_price", ("strike_price", "strike")),
                ("bid", ("bid",)),
                ("ask", ("ask",)),
            ):
                raw = _first(row, *keys)
                if _optional_number(raw) is None:
                    raise InvalidContractError(name, raw, symbol)

        iv = _optional_number(_first(row, "iv", "impliedVolatility", "implied_volatility"))
        if iv is not None and iv <= 0:
            iv = None

        return cls(
            symbol=symbol,
            option_type=option_type,
            strike=coerce_number(_first(row, "strike_price", "strike")),
            expiry=to_date(_first(row, "expiry", "expiration", "expiration_date")),
            bid=coerce_number(row.get("bid")),
            ask=coerce_number(row.get("ask")),
            last=coerce_number(_first(row, "last", "lastPrice", "last_price")),
            open_interest=int(coerce_number(_first(row, "open_interest", "openInterest"))),
            volume=int(coerce_number(row.get("volume"))),
            in_the_money=bool(_first(row, "in_the_money", "inTheMoney") or False),
            underlying_price=coerce_number(_first(row, "underlying_price", "underlyingPrice")),
            iv=iv,
            delta=_optional_number(row.get("delta")),
            gamma=_optional_number(row.get("gamma")),
            theta=_optional_number(row.get("theta")),
            vega=_optional_number(row.get("vega")),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "symbol": self.symbol,
            "type": self.option_type,
            "strike_price": self.strike,
            "expiry": self.expiry.isoformat() if self.expiry else None,
            "bid": self.bid,
            "ask": self.ask,
            "last": self.last,
            "open_interest": self.open_interest,
            "volume": self.volume,
            "in_the_money": self.in_the_money,
            "underlying_price": self.underlying_price,
            "iv": self.iv,
            "delta": self.delta,
            "gamma": self.gamma,
            "theta": self.theta,
            "vega": self.vega,
        }


def parse_chain(rows: list[dict], strict: bool = False) -> list[Contract]:
    """
    Parse chain rows, skipping malformed rows unless ``strict`` is set.

    Args:
        rows: Raw chain rows
        strict: Fail fast on the first malformed row

    Returns:
        Parsed contracts
    """
    contracts = []
    for row in rows:
        try:
            contracts.append(Contract.from_dict(row, strict=strict))
        except InvalidContractError as e:
            if strict:
                raise
            logger.warning(f"Skipping malformed chain row: {e}")
    return contracts


@dataclass
class Quote:
    """Underlying quote."""

    price: float
    currency: Optional[str] = None
    name: Optional[str] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    iv: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "price": self.price,
            "currency": self.currency,
            "name": self.name,
            "change": self.change,
            "change_percent": self.change_percent,
        }


_BUDGET_CHARS = re.compile(r"[^\d.]")


@dataclass
class UserInputs:
    """
    User preferences for one recommendation pass.

    Attributes:
        ticker: Underlying symbol
        quote: Current quote, None when unavailable
        sentiment: One of the Sentiment categories
        risk_reward: Slider value, 0 (probability) to 100 (return)
        target_price: Optional target price as typed (may be "")
        budget: Optional capital budget as typed (may be "", "$1,500" is accepted)
        expiration: Expiration as a date or ISO string
    """
    ticker: str
    quote: Optional[Quote]
    sentiment: str
    risk_reward: float = 50.0
    target_price: str = ""
    budget: str = ""
    expiration: Optional[Union[date, str]] = None

    def budget_amount(self) -> float:
        """Budget in dollars, 0 when absent or unreadable."""
        if self.budget is None or self.budget == "":
            return 0.0
        if isinstance(self.budget, (int, float)):
            return coerce_number(self.budget)
        cleaned = _BUDGET_CHARS.sub("", str(self.budget))
        return coerce_number(cleaned)

    @property
    def has_budget(self) -> bool:
        """True when a positive budget was supplied."""
        return self.budget_amount() > 0

    def target_amount(self) -> Optional[float]:
        """Target price, or None when empty or non-numeric."""
        if self.target_price is None or str(self.target_price).strip() == "":
            return None
        value = coerce_number(self.target_price, default=math.nan)
        return None if math.isnan(value) else value


@dataclass(frozen=True)
class Amount:
    """
    A dollar or percentage amount that may be unbounded.

    Unbounded amounts carry no value; ``as_float`` maps them to infinity
    for comparisons only.
    """
    value: float = 0.0
    unbounded: bool = False

    @classmethod
    def unlimited(cls) -> "Amount":
        return cls(value=0.0, unbounded=True)

    def as_float(self) -> float:
        return math.inf if self.unbounded else self.value

    def __str__(self) -> str:
        return "unlimited" if self.unbounded else f"{self.value:.2f}"

    def to_dict(self) -> Union[float, str]:
        return "unlimited" if self.unbounded else round(self.value, 2)


@dataclass(frozen=True)
class PayoffPoint:
    """One vertex of the expiration payoff curve."""

    price: float
    profit: float

    def to_dict(self) -> dict:
        return {"price": self.price, "profit": self.profit}


@dataclass(frozen=True)
class Leg:
    """One option position within a strategy."""

    contract: Contract
    side: Side
    quantity: int = 1

    @property
    def is_long(self) -> bool:
        return self.side == "long"

    @property
    def fill_price(self) -> float:
        """Price paid for long legs (ask) or received for short legs (bid)."""
        return self.contract.ask if self.is_long else self.contract.bid

    def to_dict(self) -> dict:
        return {
            "side": self.side,
            "quantity": self.quantity,
            "type": self.contract.option_type,
            "strike": self.contract.strike,
            "symbol": self.contract.symbol,
            "fill_price": self.fill_price,
        }


@dataclass(frozen=True)
class StockLeg:
    """Shares held alongside option legs (covered positions)."""

    entry_price: float
    shares: int = 100

    def to_dict(self) -> dict:
        return {"side": "long", "type": "stock", "shares": self.shares, "entry_price": self.entry_price}


@dataclass
class StrategyResult:
    """
    One candidate strategy with its economics.

    Attributes:
        name: Human label including key strikes
        shape: Builder key (e.g. 'bull_call_spread')
        legs: Option legs in construction order
        return_on_risk: Max profit / max loss * 100
        chance: Probability of profit, percent in [0, 100]
        profit: Max profit
        risk: Max loss
        required_capital: Cash or margin to open the position
        sentiment_fit: Sentiment categories the shape serves
        break_even: Representative breakeven (the lower one for two-sided shapes)
        break_evens: All breakevens, ascending
        payoff_points: Expiration payoff vertices, ascending by price
        stock: Share leg for covered positions
    """
    name: str
    shape: str
    legs: list[Leg]
    return_on_risk: Amount
    chance: float
    profit: Amount
    risk: Amount
    required_capital: float
    sentiment_fit: tuple[str, ...]
    break_even: float
    break_evens: list[float] = field(default_factory=list)
    payoff_points: list[PayoffPoint] = field(default_factory=list)
    stock: Optional[StockLeg] = None

    @property
    def contracts(self) -> list[Contract]:
        """Leg contracts in order."""
        return [leg.contract for leg in self.legs]

    @property
    def strikes(self) -> list[float]:
        return [leg.contract.strike for leg in self.legs]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "shape": self.shape,
            "legs": [leg.to_dict() for leg in self.legs]
            + ([self.stock.to_dict()] if self.stock else []),
            "return_on_risk": self.return_on_risk.to_dict(),
            "chance": round(self.chance, 2),
            "profit": self.profit.to_dict(),
            "risk": self.risk.to_dict(),
            "required_capital": round(self.required_capital, 2),
            "sentiment_fit": list(self.sentiment_fit),
            "break_even": round(self.break_even, 2),
            "break_evens": [round(b, 2) for b in self.break_evens],
            "payoff_points": [p.to_dict() for p in self.payoff_points],
        }


@dataclass
class ScoredStrategy:
    """
    A strategy with its scoring metrics.

    Raw metrics are the transformed inputs (log return-on-risk, PoP,
    capital efficiency, liquidity); the *_norm fields are those metrics
    min-max scaled across the shape's candidate pool.
    """
    strategy: StrategyResult
    ror_metric: float
    pop_metric: float
    cap_eff_metric: float
    liquidity_metric: float
    ror_norm: float = 0.5
    pop_norm: float = 0.5
    cap_eff_norm: float = 0.5
    liq_norm: float = 0.5
    score: float = 0.0

    @property
    def roi_scaled(self) -> float:
        return self.ror_norm

    @property
    def cop_scaled(self) -> float:
        return self.pop_norm

    def to_dict(self) -> dict:
        data = self.strategy.to_dict()
        data.update({
            "ror_norm": round(self.ror_norm, 4),
            "pop_norm": round(self.pop_norm, 4),
            "cap_eff_norm": round(self.cap_eff_norm, 4),
            "liq_norm": round(self.liq_norm, 4),
            "score": round(self.score, 4),
        })
        return data
