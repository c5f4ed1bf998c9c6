"""
CLI interface for the options strategy recommender.

Usage:
    python -m strategy_recommender AAPL --sentiment bullish
    python -m strategy_recommender AAPL --sentiment neutral --slider 30 --budget 2000
    python -m strategy_recommender SPY --sentiment bearish --csv output.csv
"""

import argparse
import logging
import sys
from pathlib import Path

from strategy_recommender.config import load_config
from strategy_recommender.data_fetcher import get_fetcher
from strategy_recommender.models import Sentiment
from strategy_recommender.recommender import StrategyRecommender


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="strategy_recommender",
        description="Recommend options strategies for a sentiment, risk/reward preference and budget.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m strategy_recommender AAPL --sentiment bullish
  python -m strategy_recommender AAPL --sentiment bullish --slider 80 --target 175
  python -m strategy_recommender SPY --sentiment neutral --budget 2000
  python -m strategy_recommender TSLA --sentiment directional --expiration 2025-01-17
  python -m strategy_recommender SPY --sentiment bearish --source mock --json

Slider:
  0 favours probability of profit, 100 favours return on risk.
  One strategy is recommended per shape that fits the sentiment
  (long/short options, verticals, iron structures, straddles and
  strangles, covered calls and cash-secured puts).
        """,
    )

    parser.add_argument(
        "symbol",
        type=str,
        help="Underlying symbol (e.g., AAPL, SPY)",
    )
    parser.add_argument(
        "--sentiment", "-s",
        type=str,
        choices=list(Sentiment.ALL),
        default=Sentiment.NEUTRAL,
        help="Market sentiment (default: neutral)",
    )
    parser.add_argument(
        "--slider",
        type=float,
        default=50.0,
        help="Risk/reward slider, 0 = probability, 100 = return (default: 50)",
    )
    parser.add_argument(
        "--expiration", "-e",
        type=str,
        help="Expiration date YYYY-MM-DD (default: first expiration at least 7 days out)",
    )
    parser.add_argument(
        "--target",
        type=str,
        default="",
        help="Target price (default: estimated from sentiment and implied move)",
    )
    parser.add_argument(
        "--budget",
        type=str,
        default="",
        help="Maximum capital per strategy in dollars",
    )

    # Data and configuration
    parser.add_argument(
        "--source",
        type=str,
        choices=["auto", "yfinance", "marketdata", "mock"],
        default="auto",
        help="Market data source (default: auto = MarketData.app if MARKETDATA_API_KEY is set, else yfinance)",
    )
    parser.add_argument(
        "--config",
        type=str,
        metavar="FILE",
        help="YAML file of engine configuration overrides",
    )

    # Output format
    parser.add_argument(
        "--csv",
        type=str,
        metavar="FILE",
        help="Output results to CSV file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON to stdout",
    )

    # Verbosity
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)

    setup_logging(args.verbose, args.debug)

    try:
        config = load_config(args.config)
        recommender = StrategyRecommender(fetcher=get_fetcher(args.source), config=config)

        if not args.json:
            print(f"Recommending strategies for {args.symbol.upper()}...")
            print(f"Sentiment: {args.sentiment} | Slider: {args.slider:.0f}")
            print()

        result = recommender.recommend(
            args.symbol,
            args.sentiment,
            risk_reward=args.slider,
            expiration=args.expiration,
            target_price=args.target,
            budget=args.budget,
        )

        if args.csv:
            output_path = Path(args.csv)
            output_path.write_text(result.to_csv())

        if args.json:
            # stdout carries only the JSON document
            print(result.to_json())

        else:
            if args.csv:
                print(f"Results saved to {args.csv}")
                print()
            print(result.to_report())

        return 0

    except Exception as e:
        logging.exception("Error during recommendation")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
