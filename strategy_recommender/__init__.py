"""
Options Strategy Recommender

Builds single-leg, vertical, iron, straddle/strangle and covered strategies
from one option chain snapshot, and picks the best candidate of each shape
for a sentiment, a risk/reward slider, an optional target price and an
optional budget.

Usage as library:
    from strategy_recommender import recommend_strategies

    result = recommend_strategies("AAPL", "bullish", risk_reward=60, budget="1500")
    print(result.to_report())

    # Or run the engine on a chain you already have
    from strategy_recommender import UserInputs, Quote, compute_strategies

    user = UserInputs("AAPL", Quote(price=150.0), "bullish", expiration="2025-01-17")
    strategies = compute_strategies(user, chain, slider=60, sigma=8.5)

Usage as CLI:
    python -m strategy_recommender AAPL --sentiment bullish
    python -m strategy_recommender AAPL --sentiment neutral --slider 30 --budget 2000
    python -m strategy_recommender SPY --sentiment bearish --source mock --json
"""

from strategy_recommender.config import EngineConfig, ScoringWeights, load_config
from strategy_recommender.engine import BUILDERS, SHAPES, compute_strategies
from strategy_recommender.exceptions import (
    ChainUnavailableError,
    DataFetchError,
    InvalidContractError,
    InvalidParameterError,
    QuoteUnavailableError,
    RecommenderError,
)
from strategy_recommender.models import (
    Amount,
    Contract,
    Leg,
    PayoffPoint,
    Quote,
    ScoredStrategy,
    Sentiment,
    StockLeg,
    StrategyResult,
    UserInputs,
    parse_chain,
)
from strategy_recommender.recommender import (
    RecommendationResult,
    StrategyRecommender,
    recommend_strategies,
)

__version__ = "1.0.0"

__all__ = [
    "EngineConfig",
    "ScoringWeights",
    "load_config",
    "BUILDERS",
    "SHAPES",
    "compute_strategies",
    "RecommenderError",
    "InvalidContractError",
    "InvalidParameterError",
    "DataFetchError",
    "QuoteUnavailableError",
    "ChainUnavailableError",
    "Amount",
    "Contract",
    "Leg",
    "PayoffPoint",
    "Quote",
    "ScoredStrategy",
    "Sentiment",
    "StockLeg",
    "StrategyResult",
    "UserInputs",
    "parse_chain",
    "RecommendationResult",
    "StrategyRecommender",
    "recommend_strategies",
]
