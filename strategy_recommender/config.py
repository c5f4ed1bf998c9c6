"""
Configuration classes for the strategy recommender.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from strategy_recommender.exceptions import InvalidParameterError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringWeights:
    """
    Fixed weights and transform caps for the per-shape scoring model.

    The reward/probability split comes from the slider; the capital
    efficiency and liquidity weights apply at every slider position.
    The three blend weights make up the liquidity score and must sum to 1.0.
    """
    capital_efficiency_weight: float = 0.15
    liquidity_weight: float = 0.10
    tightness_blend: float = 0.60
    open_interest_blend: float = 0.20
    volume_blend: float = 0.20
    log_ror_cap: float = 6.0  # log10 of return-on-risk %, unbounded maps here
    capital_efficiency_cap: float = 10.0

    def __post_init__(self) -> None:
        total = self.tightness_blend + self.open_interest_blend + self.volume_blend
        if abs(total - 1.0) > 0.001:
            raise ValueError(f"Liquidity blend weights must sum to 1.0, got {total:.4f}")
        if not self.validate():
            raise ValueError("Scoring weights must be non-negative")
        if self.log_ror_cap <= 0:
            raise ValueError("log_ror_cap must be positive")
        if self.capital_efficiency_cap <= 0:
            raise ValueError("capital_efficiency_cap must be positive")

    def validate(self) -> bool:
        """Validate all weights are non-negative."""
        return all(
            w >= 0
            for w in [
                self.capital_efficiency_weight,
                self.liquidity_weight,
                self.tightness_blend,
                self.open_interest_blend,
                self.volume_blend,
            ]
        )

    @staticmethod
    def slider_weights(slider: float) -> tuple[float, float]:
        """
        Split the slider into (reward weight, probability weight).

        Args:
            slider: Risk/reward slider value, clamped to 0-100

        Returns:
            Tuple of (w_reward, w_risk) summing to 1.0
        """
        w_reward = max(0.0, min(100.0, float(slider))) / 100.0
        return w_reward, 1.0 - w_reward


@dataclass
class EngineConfig:
    """
    Configuration for strategy construction.

    Attributes:
        min_mid_price: Liquidity gate, mid price must exceed this (default: 0.05)
        min_activity: Liquidity gate, open interest + volume must exceed this (default: 0)
        contract_multiplier: Shares per contract (default: 100)
        risk_free_rate: Rate used in probability and pricing models (default: 0.0)
        min_time_years: Floor on time to expiration in years (default: 1/365)
        fallback_iv: Volatility used for contracts without IV (default: 0.25)
        min_spread_width: Narrowest vertical spread in points (default: 1.0)
        max_spread_width_pct: Widest vertical spread as a fraction of spot (default: 0.10)
        max_spread_width_floor: Widest vertical spread is never below this (default: 10.0)
        naked_margin_pct: Naked short margin base as a fraction of spot (default: 0.20)
        naked_margin_floor_pct: Naked short margin floor as a fraction of spot (default: 0.10)
        min_short_put_pop: Short puts below this PoP (percent) are dropped (default: 10.0)
        long_option_target_sigmas: Projected move, in sigmas, capping long option profit (default: 1.5)
        straddle_strike_window: ATM-nearest strikes searched for straddles (default: 3)
        payoff_padding_pct: Payoff curve padding beyond the outer strikes (default: 0.10)
        analytic_structure_pop: Use analytic PoP for iron/straddle/strangle shapes (default: True)
        require_profit_at_target: Drop candidates not profitable at the target price (default: False)
        include_extended_shapes: Build inverse iron, short straddle/strangle and bear call shapes (default: True)
        scoring_weights: Scoring weights (default: standard weights)
    """
    min_mid_price: float = 0.05
    min_activity: int = 0
    contract_multiplier: int = 100
    risk_free_rate: float = 0.0
    min_time_years: float = 1.0 / 365.0
    fallback_iv: float = 0.25
    min_spread_width: float = 1.0
    max_spread_width_pct: float = 0.10
    max_spread_width_floor: float = 10.0
    naked_margin_pct: float = 0.20
    naked_margin_floor_pct: float = 0.10
    min_short_put_pop: float = 10.0
    long_option_target_sigmas: float = 1.5
    straddle_strike_window: int = 3
    payoff_padding_pct: float = 0.10
    analytic_structure_pop: bool = True
    require_profit_at_target: bool = False
    include_extended_shapes: bool = True
    scoring_weights: ScoringWeights = field(default_factory=ScoringWeights)

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Validate configuration parameters."""
        if self.min_mid_price < 0:
            raise ValueError("min_mid_price must be non-negative")
        if self.min_activity < 0:
            raise ValueError("min_activity must be non-negative")
        if self.contract_multiplier < 1:
            raise ValueError("contract_multiplier must be at least 1")
        if self.min_time_years <= 0:
            raise ValueError("min_time_years must be positive")
        if self.fallback_iv <= 0:
            raise ValueError("fallback_iv must be positive")
        if self.min_spread_width <= 0:
            raise ValueError("min_spread_width must be positive")
        if not 0 < self.max_spread_width_pct <= 1:
            raise ValueError("max_spread_width_pct must be between 0 and 1")
        if self.max_spread_width_floor < self.min_spread_width:
            raise ValueError("max_spread_width_floor must be >= min_spread_width")
        if not 0 < self.naked_margin_floor_pct <= self.naked_margin_pct <= 1:
            raise ValueError("naked margin percentages must satisfy 0 < floor <= base <= 1")
        if not 0 <= self.min_short_put_pop <= 100:
            raise ValueError("min_short_put_pop must be between 0 and 100")
        if self.long_option_target_sigmas <= 0:
            raise ValueError("long_option_target_sigmas must be positive")
        if self.straddle_strike_window < 1:
            raise ValueError("straddle_strike_window must be at least 1")
        if not 0 < self.payoff_padding_pct <= 1:
            raise ValueError("payoff_padding_pct must be between 0 and 1")

    def max_spread_width(self, spot: float) -> float:
        """Widest allowed vertical spread for an underlying at ``spot``."""
        return max(self.max_spread_width_floor, self.max_spread_width_pct * spot)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "EngineConfig":
        """
        Build a config from a plain mapping.

        A nested ``scoring_weights`` mapping is turned into ScoringWeights.

        Raises:
            InvalidParameterError: If a key is unknown or a value is rejected
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise InvalidParameterError("config", "expected a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidParameterError(unknown[0], "unknown configuration key")

        values = dict(data)
        weights = values.pop("scoring_weights", None)
        try:
            if weights is not None:
                if not isinstance(weights, dict):
                    raise InvalidParameterError("scoring_weights", "expected a mapping")
                weight_keys = {f.name for f in fields(ScoringWeights)}
                bad = sorted(set(weights) - weight_keys)
                if bad:
                    raise InvalidParameterError(f"scoring_weights.{bad[0]}", "unknown weight")
                values["scoring_weights"] = ScoringWeights(**weights)
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise InvalidParameterError("config", str(e)) from e

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "EngineConfig":
        """
        Load a config from a YAML file of overrides.

        Args:
            path: Path to the YAML file

        Returns:
            EngineConfig with the file's overrides applied
        """
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        logger.debug(f"Loaded engine config overrides from {path}: {data}")
        return cls.from_dict(data)


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load an EngineConfig from YAML, or the defaults when no path is given."""
    if path is None:
        return EngineConfig()
    return EngineConfig.from_yaml(path)
