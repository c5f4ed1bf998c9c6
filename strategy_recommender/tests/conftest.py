"""
Pytest fixtures for strategy recommender tests.
"""

from datetime import date, timedelta

import pytest

from strategy_recommender.data_fetcher import MockChainFetcher
from strategy_recommender.models import Contract, Quote, UserInputs

AS_OF = date(2024, 1, 2)
EXPIRATION = AS_OF + timedelta(days=30)


def make_contract(
    option_type: str,
    strike: float,
    bid: float,
    ask: float,
    delta=None,
    iv=0.30,
    open_interest: int = 500,
    volume: int = 100,
    symbol: str = "",
) -> Contract:
    """Build a liquid-by-default contract expiring on EXPIRATION."""
    return Contract(
        symbol=symbol or f"XYZ{option_type[0].upper()}{strike:g}",
        option_type=option_type,
        strike=strike,
        expiry=EXPIRATION,
        bid=bid,
        ask=ask,
        open_interest=open_interest,
        volume=volume,
        iv=iv,
        delta=delta,
    )


def make_user(price: float, sentiment: str, budget: str = "", target_price: str = "") -> UserInputs:
    return UserInputs(
        ticker="XYZ",
        quote=Quote(price=price),
        sentiment=sentiment,
        target_price=target_price,
        budget=budget,
        expiration=EXPIRATION,
    )


@pytest.fixture
def as_of():
    """Fixed valuation date."""
    return AS_OF


@pytest.fixture
def expiration():
    """Expiration 30 days after the valuation date."""
    return EXPIRATION


@pytest.fixture
def mock_chain():
    """Seeded synthetic chain around spot 150."""
    fetcher = MockChainFetcher(spot=150.0, seed=7, as_of=AS_OF)
    return fetcher.get_option_chain("XYZ", EXPIRATION)


@pytest.fixture
def condor_chain():
    """
    Chain around spot 100 with quoted deltas.

    At slider 50 the iron condor shorts are the 90 put and 110 call and the
    wings land on 70 and 130.
    """
    calls = [
        (100, 0.50, 3.90, 4.10), (105, 0.35, 2.20, 2.40), (110, 0.23, 1.40, 1.50),
        (115, 0.12, 0.70, 0.80), (120, 0.06, 0.40, 0.50), (125, 0.03, 0.20, 0.30),
        (130, 0.015, 0.10, 0.15), (135, 0.008, 0.06, 0.10),
    ]
    puts = [
        (100, -0.50, 3.90, 4.10), (95, -0.35, 2.20, 2.40), (90, -0.22, 1.50, 1.60),
        (85, -0.12, 0.80, 0.90), (80, -0.06, 0.40, 0.50), (75, -0.03, 0.25, 0.35),
        (70, -0.015, 0.10, 0.20), (65, -0.008, 0.06, 0.10),
    ]
    chain = [make_contract("call", k, bid, ask, delta=d) for k, d, bid, ask in calls]
    chain += [make_contract("put", k, bid, ask, delta=d) for k, d, bid, ask in puts]
    return chain
