"""
Data fetching module for quotes and option chains.

Supports MarketData.app when an API token is configured, yfinance
otherwise, and a synthetic Black-Scholes chain for offline use.
"""

import logging
import math
import os
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import Optional

import numpy as np
import pandas as pd
import requests

from strategy_recommender.exceptions import ChainUnavailableError, QuoteUnavailableError
from strategy_recommender.models import Contract, Quote, parse_chain
from strategy_recommender.numeric import black_scholes_price, coerce_number, greeks, to_date

logger = logging.getLogger(__name__)

MARKETDATA_BASE_URL = "https://api.marketdata.app/v1"
MARKETDATA_TOKEN_ENV = "MARKETDATA_API_KEY"

# MarketData.app chain columns -> Contract.from_dict keys
MARKETDATA_COLUMNS = {
    "optionSymbol": "symbol",
    "side": "type",
    "strike": "strike_price",
    "expiration": "expiry",
    "bid": "bid",
    "ask": "ask",
    "last": "last",
    "openInterest": "open_interest",
    "volume": "volume",
    "inTheMoney": "in_the_money",
    "underlyingPrice": "underlying_price",
    "iv": "iv",
    "delta": "delta",
    "gamma": "gamma",
    "theta": "theta",
    "vega": "vega",
}


def _frame_to_rows(df: pd.DataFrame) -> list[dict]:
    """DataFrame rows as dicts with NaN replaced by None."""
    if df is None or df.empty:
        return []
    return df.astype(object).where(pd.notna(df), None).to_dict(orient="records")


def _filter_expirations(
    expirations: list[date], min_dte: int, max_dte: Optional[int], as_of: Optional[date] = None
) -> list[date]:
    today = as_of or date.today()
    min_date = today + timedelta(days=min_dte)
    max_date = today + timedelta(days=max_dte) if max_dte is not None else date.max
    return sorted(e for e in expirations if min_date <= e <= max_date)


class OptionsDataFetcher(ABC):
    """Abstract base class for quote and option chain fetching."""

    @abstractmethod
    def get_quote(self, symbol: str) -> Quote:
        """
        Get the current underlying quote.

        Raises:
            QuoteUnavailableError: If no quote can be retrieved
        """
        pass

    @abstractmethod
    def get_expirations(
        self, symbol: str, min_dte: int = 0, max_dte: Optional[int] = None
    ) -> list[date]:
        """Get available expiration dates within DTE range."""
        pass

    @abstractmethod
    def get_option_chain(self, symbol: str, expiration: date) -> list[Contract]:
        """
        Get the full chain (calls and puts) for one expiration.

        Raises:
            ChainUnavailableError: If no chain can be retrieved
        """
        pass


class YFinanceFetcher(OptionsDataFetcher):
    """
    Quote and chain fetcher using yfinance.
    """

    def __init__(self) -> None:
        try:
            import yfinance as yf
            self._yf = yf
        except ImportError:
            raise ImportError(
                "yfinance not installed. Install with: pip install yfinance"
            )

    def get_quote(self, symbol: str) -> Quote:
        """Get current underlying quote."""
        try:
            ticker = self._yf.Ticker(symbol)
            info = ticker.info or {}
        except Exception as e:
            raise QuoteUnavailableError(symbol, str(e)) from e

        price = info.get("regularMarketPrice") or info.get("currentPrice")
        if price is None:
            fast = ticker.fast_info
            price = getattr(fast, "last_price", None)
        if price is None or coerce_number(price) <= 0:
            raise QuoteUnavailableError(symbol, "no price in response")

        return Quote(
            price=float(price),
            currency=info.get("currency"),
            name=info.get("shortName") or info.get("longName"),
            change=info.get("regularMarketChange"),
            change_percent=info.get("regularMarketChangePercent"),
        )

    def get_expirations(
        self, symbol: str, min_dte: int = 0, max_dte: Optional[int] = None
    ) -> list[date]:
        """Get available expiration dates within DTE range."""
        ticker = self._yf.Ticker(symbol)
        expirations = [datetime.strptime(e, "%Y-%m-%d").date() for e in ticker.options]
        return _filter_expirations(expirations, min_dte, max_dte)

    def get_option_chain(self, symbol: str, expiration: date) -> list[Contract]:
        """Get options chain for a specific expiration."""
        exp_str = expiration.strftime("%Y-%m-%d")
        try:
            ticker = self._yf.Ticker(symbol)
            chain = ticker.option_chain(exp_str)
        except Exception as e:
            raise ChainUnavailableError(symbol, exp_str, str(e)) from e

        underlying = getattr(chain, "underlying", None) or {}
        spot = coerce_number(underlying.get("regularMarketPrice")) if isinstance(underlying, dict) else 0.0

        contracts = (
            self._parse_yfinance_chain(chain.calls, "call", expiration, spot)
            + self._parse_yfinance_chain(chain.puts, "put", expiration, spot)
        )
        if not contracts:
            raise ChainUnavailableError(symbol, exp_str, "empty chain")
        logger.info(f"Got {len(contracts)} contracts for {symbol} {exp_str} via yfinance")
        return contracts

    def _parse_yfinance_chain(
        self, df: pd.DataFrame, opt_type: str, expiration: date, spot: float
    ) -> list[Contract]:
        """Parse yfinance dataframe into Contract objects."""
        rows = _frame_to_rows(df)
        for row in rows:
            row["type"] = opt_type
            row["expiry"] = expiration
            row["underlying_price"] = spot
        return parse_chain(rows)


class MarketDataFetcher(OptionsDataFetcher):
    """
    Quote and chain fetcher for the MarketData.app REST API.

    Responses are column arrays ({"optionSymbol": [...], "strike": [...]})
    which are pivoted into one row per contract.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = MARKETDATA_BASE_URL,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.token = token or os.environ.get(MARKETDATA_TOKEN_ENV)
        if not self.token:
            raise ValueError(f"MarketData.app token not configured (set {MARKETDATA_TOKEN_ENV})")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, **params) -> dict:
        params["token"] = self.token
        response = self.session.get(f"{self.base_url}/{path}", params=params, timeout=self.timeout)
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response body from {path}: {type(data).__name__}")
        if not response.ok or data.get("s") not in (None, "ok"):
            message = data.get("errmsg") or data.get("message") or f"HTTP {response.status_code}"
            raise requests.HTTPError(message, response=response)
        return data

    def get_quote(self, symbol: str) -> Quote:
        try:
            data = self._get(f"stocks/quotes/{symbol.upper()}/")
        except (requests.RequestException, ValueError) as e:
            raise QuoteUnavailableError(symbol, str(e)) from e

        last = (data.get("last") or [None])[0]
        if last is None or coerce_number(last) <= 0:
            raise QuoteUnavailableError(symbol, "no price in response")
        return Quote(
            price=float(last),
            change=(data.get("change") or [None])[0],
            change_percent=(data.get("changepct") or [None])[0],
        )

    def get_expirations(
        self, symbol: str, min_dte: int = 0, max_dte: Optional[int] = None
    ) -> list[date]:
        try:
            data = self._get(f"options/expirations/{symbol.upper()}/")
        except (requests.RequestException, ValueError) as e:
            logger.error(f"MarketData expirations failed for {symbol}: {e}")
            return []
        expirations = [d for d in (to_date(e) for e in data.get("expirations", [])) if d]
        return _filter_expirations(expirations, min_dte, max_dte)

    def get_option_chain(self, symbol: str, expiration: date) -> list[Contract]:
        exp_str = expiration.isoformat()
        try:
            data = self._get(f"options/chain/{symbol.upper()}/", expiration=exp_str)
        except (requests.RequestException, ValueError) as e:
            raise ChainUnavailableError(symbol, exp_str, str(e)) from e

        contracts = self.parse_chain_response(data)
        if not contracts:
            raise ChainUnavailableError(symbol, exp_str, "empty chain")
        logger.info(f"Got {len(contracts)} contracts for {symbol} {exp_str} via MarketData.app")
        return contracts

    @staticmethod
    def parse_chain_response(data: dict) -> list[Contract]:
        """Pivot a column-array chain response into contracts."""
        symbols = data.get("optionSymbol")
        if not isinstance(symbols, list) or not symbols:
            return []

        columns = {
            target: data[source]
            for source, target in MARKETDATA_COLUMNS.items()
            if isinstance(data.get(source), list) and len(data[source]) == len(symbols)
        }
        df = pd.DataFrame(columns)
        return parse_chain(_frame_to_rows(df))


class MockChainFetcher(OptionsDataFetcher):
    """
    Synthetic data source: a Black-Scholes priced chain around a fixed spot.

    Quotes carry random noise from a seedable generator; runs with the same
    seed produce the same chain.
    """

    def __init__(
        self,
        spot: float = 150.0,
        base_iv: float = 0.30,
        strike_step: float = 5.0,
        strikes_each_side: int = 10,
        seed: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> None:
        self.spot = spot
        self.base_iv = base_iv
        self.strike_step = strike_step
        self.strikes_each_side = strikes_each_side
        self.as_of = as_of
        self._rng = np.random.default_rng(seed)

    def get_quote(self, symbol: str) -> Quote:
        return Quote(price=self.spot, currency="USD", name=f"{symbol.upper()} (mock)", change=0.0, change_percent=0.0)

    def get_expirations(
        self, symbol: str, min_dte: int = 0, max_dte: Optional[int] = None
    ) -> list[date]:
        """Weekly Friday expirations for the next twelve weeks."""
        today = self.as_of or date.today()
        first_friday = today + timedelta(days=(4 - today.weekday()) % 7 or 7)
        fridays = [first_friday + timedelta(weeks=i) for i in range(12)]
        return _filter_expirations(fridays, min_dte, max_dte, today)

    def get_option_chain(self, symbol: str, expiration: date) -> list[Contract]:
        today = self.as_of or date.today()
        years = max((expiration - today).days, 1) / 365.0
        center = round(self.spot / self.strike_step) * self.strike_step
        offsets = np.arange(-self.strikes_each_side, self.strikes_each_side + 1)
        strikes = center + offsets * self.strike_step
        strikes = strikes[strikes > 0]

        contracts = []
        for opt_type in ("call", "put"):
            for strike in strikes:
                # Mild put-side skew plus noise
                moneyness = math.log(strike / self.spot)
                iv = max(0.05, self.base_iv - 0.1 * moneyness + self._rng.normal(0.0, 0.01))
                fair = black_scholes_price(self.spot, float(strike), years, iv, opt_type)
                half_spread = max(0.01, 0.02 * fair + self._rng.uniform(0.0, 0.05))
                bid = max(0.0, round(fair - half_spread, 2))
                ask = round(fair + half_spread, 2)
                g = greeks(self.spot, float(strike), years, iv, opt_type)
                itm = strike < self.spot if opt_type == "call" else strike > self.spot

                contracts.append(Contract(
                    symbol=f"{symbol.upper()}{expiration:%y%m%d}{opt_type[0].upper()}{int(strike * 1000):08d}",
                    option_type=opt_type,
                    strike=float(strike),
                    expiry=expiration,
                    bid=bid,
                    ask=ask,
                    last=round(fair, 2),
                    open_interest=int(self._rng.integers(0, 5000)),
                    volume=int(self._rng.integers(0, 1500)),
                    in_the_money=bool(itm),
                    underlying_price=self.spot,
                    iv=round(iv, 4),
                    delta=round(g.delta, 4),
                    gamma=round(g.gamma, 4),
                    theta=round(g.theta, 4),
                    vega=round(g.vega, 4),
                ))

        logger.info(f"Generated {len(contracts)} mock contracts for {symbol} {expiration}")
        return contracts


def get_fetcher(source: str = "auto", **kwargs) -> OptionsDataFetcher:
    """
    Factory function to get a data fetcher.

    Args:
        source: 'marketdata', 'yfinance', 'mock', or 'auto' (MarketData.app
            when a token is configured, else yfinance)
        **kwargs: Passed to the fetcher constructor

    Returns:
        An OptionsDataFetcher instance
    """
    source = source.lower()
    if source == "marketdata":
        return MarketDataFetcher(**kwargs)
    if source == "yfinance":
        return YFinanceFetcher()
    if source == "mock":
        return MockChainFetcher(**kwargs)
    if source != "auto":
        raise ValueError(f"Unknown data source: {source}")

    if kwargs.get("token") or os.environ.get(MARKETDATA_TOKEN_ENV):
        return MarketDataFetcher(**kwargs)
    logger.info("No MarketData.app token configured, using yfinance")
    return YFinanceFetcher()
