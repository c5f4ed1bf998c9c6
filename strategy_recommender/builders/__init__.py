"""
Per-shape strategy builders.

Every builder takes a MarketContext and returns at most one
StrategyResult: the top-scored candidate for its shape.
"""

from strategy_recommender.builders.common import MarketContext, finalize, make_result
from strategy_recommender.builders.covered import build_cash_secured_put, build_covered_call
from strategy_recommender.builders.iron import (
    build_inverse_iron_butterfly,
    build_inverse_iron_condor,
    build_iron_butterfly,
    build_iron_condor,
)
from strategy_recommender.builders.single_leg import (
    build_long_call,
    build_long_put,
    build_short_call,
    build_short_put,
)
from strategy_recommender.builders.verticals import (
    build_bear_call_spread,
    build_bear_put_spread,
    build_bull_call_spread,
    build_bull_put_spread,
)
from strategy_recommender.builders.volatility import (
    build_short_straddle,
    build_short_strangle,
    build_straddle,
    build_strangle,
)

__all__ = [
    "MarketContext",
    "finalize",
    "make_result",
    "build_long_call",
    "build_long_put",
    "build_short_call",
    "build_short_put",
    "build_bull_call_spread",
    "build_bear_put_spread",
    "build_bull_put_spread",
    "build_bear_call_spread",
    "build_iron_condor",
    "build_iron_butterfly",
    "build_inverse_iron_condor",
    "build_inverse_iron_butterfly",
    "build_covered_call",
    "build_cash_secured_put",
    "build_straddle",
    "build_strangle",
    "build_short_straddle",
    "build_short_strangle",
]
