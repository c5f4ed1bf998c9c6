"""
Report, CSV and JSON formatting for recommendation results.
"""

from datetime import date
from typing import Optional

import pandas as pd

from strategy_recommender.models import StrategyResult

CSV_COLUMNS = [
    "symbol", "underlying_price", "expiration", "dte",
    "shape", "name", "legs",
    "profit", "risk", "return_on_risk", "chance",
    "required_capital", "break_evens",
]


def describe_legs(strategy: StrategyResult) -> str:
    """Compact leg description, e.g. '+1 C150 @3.00 / -1 C155 @1.00'."""
    parts = []
    for leg in strategy.legs:
        sign = "+" if leg.is_long else "-"
        kind = "C" if leg.contract.is_call else "P"
        parts.append(f"{sign}{leg.quantity} {kind}{leg.contract.strike:g} @{leg.fill_price:.2f}")
    if strategy.stock is not None:
        parts.append(f"+{strategy.stock.shares} shares @{strategy.stock.entry_price:.2f}")
    return " / ".join(parts)


def _money(amount) -> str:
    return "unlimited" if amount.unbounded else f"${amount.value:,.2f}"


def strategy_summary(strategy: StrategyResult) -> str:
    """Multi-line summary for one strategy."""
    ror = "unlimited" if strategy.return_on_risk.unbounded else f"{strategy.return_on_risk.value:.1f}%"
    break_evens = ", ".join(f"${b:.2f}" for b in strategy.break_evens) or "n/a"
    return "\n".join([
        f"{strategy.name}",
        f"  Legs: {describe_legs(strategy)}",
        f"  Max Profit: {_money(strategy.profit)} | Max Loss: {_money(strategy.risk)}",
        f"  Return on Risk: {ror} | Chance of Profit: {strategy.chance:.1f}%",
        f"  Required Capital: ${strategy.required_capital:,.2f} | Breakeven: {break_evens}",
    ])


def format_strategy_report(
    strategies: list[StrategyResult],
    symbol: str,
    underlying_price: float,
    expiration: Optional[date] = None,
    dte: Optional[int] = None,
    sentiment: str = "",
    atm_iv: Optional[float] = None,
    sigma: Optional[float] = None,
    target_price: Optional[float] = None,
) -> str:
    """
    Format a human-readable recommendation report.

    Args:
        strategies: Recommended strategies, one per shape
        symbol: Underlying symbol
        underlying_price: Current price
        expiration: Expiration used
        dte: Days to expiration
        sentiment: Sentiment the strategies were built for
        atm_iv: At-the-money implied volatility
        sigma: One-standard-deviation move in dollars
        target_price: Target price used

    Returns:
        Formatted report string
    """
    if not strategies:
        return f"No strategy candidates found for {symbol}"

    header = f"Symbol: {symbol} | Price: ${underlying_price:.2f}"
    if expiration is not None:
        header += f" | Expiration: {expiration.isoformat()}"
        if dte is not None:
            header += f" ({dte} DTE)"

    context = []
    if sentiment:
        context.append(f"Sentiment: {sentiment}")
    if atm_iv is not None:
        context.append(f"ATM IV: {atm_iv:.1%}")
    if sigma is not None:
        context.append(f"1-SD Move: ${sigma:.2f}")
    if target_price is not None:
        context.append(f"Target: ${target_price:.2f}")

    lines = [
        "=" * 70,
        "OPTIONS STRATEGY RECOMMENDATIONS",
        header,
    ]
    if context:
        lines.append(" | ".join(context))
    lines.extend(["=" * 70, ""])

    for strategy in strategies:
        lines.append("-" * 70)
        lines.append(strategy_summary(strategy))
        lines.append("")

    lines.append("=" * 70)
    lines.append(f"Strategies recommended: {len(strategies)}")
    lines.append("=" * 70)

    return "\n".join(lines)


def strategies_frame(
    strategies: list[StrategyResult],
    symbol: str,
    underlying_price: float,
    expiration: Optional[date] = None,
    dte: Optional[int] = None,
) -> pd.DataFrame:
    """One row per strategy; unbounded amounts are written as 'unlimited'."""
    rows = []
    for strategy in strategies:
        rows.append({
            "symbol": symbol,
            "underlying_price": round(underlying_price, 2),
            "expiration": expiration.isoformat() if expiration else "",
            "dte": dte if dte is not None else "",
            "shape": strategy.shape,
            "name": strategy.name,
            "legs": describe_legs(strategy),
            "profit": strategy.profit.to_dict(),
            "risk": strategy.risk.to_dict(),
            "return_on_risk": strategy.return_on_risk.to_dict(),
            "chance": round(strategy.chance, 2),
            "required_capital": round(strategy.required_capital, 2),
            "break_evens": ";".join(f"{b:.2f}" for b in strategy.break_evens),
        })
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def format_csv_output(
    strategies: list[StrategyResult],
    symbol: str,
    underlying_price: float,
    expiration: Optional[date] = None,
    dte: Optional[int] = None,
) -> str:
    """
    Format recommendation results as CSV.

    Returns:
        CSV formatted string with a header row
    """
    df = strategies_frame(strategies, symbol, underlying_price, expiration, dte)
    return df.to_csv(index=False)
