"""Tests for configuration classes."""

import pytest

from strategy_recommender.config import EngineConfig, ScoringWeights, load_config
from strategy_recommender.exceptions import InvalidParameterError


class TestScoringWeights:
    """Tests for ScoringWeights dataclass."""

    def test_default_weights(self):
        """Test default weight values."""
        weights = ScoringWeights()

        assert weights.capital_efficiency_weight == 0.15
        assert weights.liquidity_weight == 0.10
        assert weights.tightness_blend + weights.open_interest_blend + weights.volume_blend == pytest.approx(1.0)
        assert weights.validate()

    def test_blend_must_sum_to_one(self):
        """Test that liquidity blend weights not summing to 1 raise error."""
        with pytest.raises(ValueError, match="must sum to 1.0"):
            ScoringWeights(tightness_blend=0.5, open_interest_blend=0.2, volume_blend=0.2)

    def test_negative_weight(self):
        """Test that a negative weight raises error."""
        with pytest.raises(ValueError, match="non-negative"):
            ScoringWeights(liquidity_weight=-0.1)

    def test_slider_weights(self):
        """Test slider split and clamping."""
        assert ScoringWeights.slider_weights(25) == pytest.approx((0.25, 0.75))
        assert ScoringWeights.slider_weights(150) == (1.0, 0.0)
        assert ScoringWeights.slider_weights(-10) == (0.0, 1.0)


class TestEngineConfig:
    """Tests for EngineConfig dataclass."""

    def test_default_config(self):
        """Test default configuration values."""
        config = EngineConfig()

        assert config.min_mid_price == 0.05
        assert config.min_activity == 0
        assert config.contract_multiplier == 100
        assert config.fallback_iv == 0.25
        assert config.analytic_structure_pop
        assert config.include_extended_shapes
        assert not config.require_profit_at_target

    def test_max_spread_width(self):
        """Test the width window is 10% of spot with a 10 point floor."""
        config = EngineConfig()
        assert config.max_spread_width(50) == 10.0
        assert config.max_spread_width(400) == pytest.approx(40.0)

    def test_invalid_multiplier(self):
        """Test that a zero multiplier raises error."""
        with pytest.raises(ValueError, match="contract_multiplier must be at least 1"):
            EngineConfig(contract_multiplier=0)

    def test_invalid_margin_percentages(self):
        """Test that a margin floor above the base raises error."""
        with pytest.raises(ValueError, match="naked margin"):
            EngineConfig(naked_margin_pct=0.10, naked_margin_floor_pct=0.20)

    def test_invalid_short_put_pop(self):
        """Test that a PoP floor outside 0-100 raises error."""
        with pytest.raises(ValueError, match="min_short_put_pop"):
            EngineConfig(min_short_put_pop=120)


class TestConfigLoading:
    """Tests for dict and YAML loading."""

    def test_from_dict(self):
        """Test overrides including nested scoring weights."""
        config = EngineConfig.from_dict({
            "min_activity": 10,
            "scoring_weights": {"liquidity_weight": 0.2},
        })
        assert config.min_activity == 10
        assert config.scoring_weights.liquidity_weight == 0.2

    def test_from_dict_empty(self):
        """Test empty input gives defaults."""
        assert EngineConfig.from_dict(None) == EngineConfig()

    def test_unknown_key(self):
        """Test that unknown keys are rejected."""
        with pytest.raises(InvalidParameterError, match="max_legs"):
            EngineConfig.from_dict({"max_legs": 4})

    def test_unknown_weight(self):
        """Test that unknown scoring weight keys are rejected."""
        with pytest.raises(InvalidParameterError, match="scoring_weights.gamma_weight"):
            EngineConfig.from_dict({"scoring_weights": {"gamma_weight": 1.0}})

    def test_invalid_value_wrapped(self):
        """Test that validation errors surface as InvalidParameterError."""
        with pytest.raises(InvalidParameterError, match="min_mid_price"):
            EngineConfig.from_dict({"min_mid_price": -1})

    def test_from_yaml(self, tmp_path):
        """Test loading overrides from a YAML file."""
        path = tmp_path / "engine.yaml"
        path.write_text(
            "min_mid_price: 0.10\n"
            "include_extended_shapes: false\n"
            "scoring_weights:\n"
            "  capital_efficiency_weight: 0.25\n"
        )
        config = load_config(path)

        assert config.min_mid_price == 0.10
        assert not config.include_extended_shapes
        assert config.scoring_weights.capital_efficiency_weight == 0.25

    def test_empty_yaml(self, tmp_path):
        """Test an empty YAML file gives defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert EngineConfig.from_yaml(path) == EngineConfig()

    def test_load_config_default(self):
        """Test no path gives defaults."""
        assert load_config() == EngineConfig()
