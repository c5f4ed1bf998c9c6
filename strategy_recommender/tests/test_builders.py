"""Tests for the per-shape strategy builders."""

import pytest

from conftest import AS_OF, make_contract, make_user
from strategy_recommender.builders import (
    MarketContext,
    build_bear_call_spread,
    build_bear_put_spread,
    build_bull_call_spread,
    build_bull_put_spread,
    build_cash_secured_put,
    build_covered_call,
    build_inverse_iron_butterfly,
    build_inverse_iron_condor,
    build_iron_butterfly,
    build_iron_condor,
    build_long_call,
    build_long_put,
    build_short_call,
    build_short_put,
    build_short_straddle,
    build_short_strangle,
    build_straddle,
    build_strangle,
)
from strategy_recommender.builders.covered import cash_secured_put_delta, covered_call_delta
from strategy_recommender.builders.iron import butterfly_wing, condor_short_delta, condor_wing
from strategy_recommender.builders.volatility import legacy_short_straddle_pop, short_straddle_delta
from strategy_recommender.config import EngineConfig


def make_ctx(chain, price, sentiment, slider=50.0, sigma=None, budget="", config=None):
    return MarketContext.create(
        make_user(price, sentiment, budget=budget), chain, slider, sigma, config, as_of=AS_OF
    )


class TestMarketContext:
    """Tests for MarketContext preparation."""

    def test_missing_quote(self):
        """Test that no quote gives no context."""
        user = make_user(100.0, "bullish")
        user.quote = None
        assert MarketContext.create(user, [], 50, as_of=AS_OF) is None

    def test_missing_sentiment(self):
        """Test that an empty sentiment gives no context."""
        assert make_ctx([], 100.0, "") is None

    def test_missing_expiration(self):
        """Test that no expiration gives no context."""
        user = make_user(100.0, "bullish")
        user.expiration = None
        assert MarketContext.create(user, [], 50, as_of=AS_OF) is None

    def test_slider_clamped(self):
        """Test slider is clamped to 0-100."""
        assert make_ctx([], 100.0, "bullish", slider=250).slider == 100.0
        assert make_ctx([], 100.0, "bullish", slider=-5).slider == 0.0

    def test_liquidity_gate_applied(self):
        """Test only liquid contracts reach the index."""
        chain = [
            make_contract("call", 100, 1.00, 1.10),
            make_contract("call", 105, 0.01, 0.05),
            make_contract("call", 110, 0.50, 0.60, open_interest=0, volume=0),
        ]
        ctx = make_ctx(chain, 100.0, "bullish")
        assert ctx.index.strikes("call") == [100]

    def test_non_positive_sigma_ignored(self):
        """Test a zero sigma is treated as unknown."""
        ctx = make_ctx([], 100.0, "neutral", sigma=0.0)
        assert not ctx.has_sigma
        assert ctx.atm_iv is None

    def test_budget_parsed(self):
        """Test budget strings are parsed and compared at the penny."""
        ctx = make_ctx([], 100.0, "bullish", budget="$1,000")
        assert ctx.budget == 1000.0
        assert ctx.within_budget(1000.004)
        assert not ctx.within_budget(1000.01)

    def test_delta_estimated_when_missing(self):
        """Test missing deltas are estimated from IV."""
        ctx = make_ctx([], 100.0, "bullish")
        atm = make_contract("call", 100, 3.0, 3.2, delta=None, iv=0.30)
        assert ctx.delta_of(atm) == pytest.approx(0.52, abs=0.03)


class TestSingleLeg:
    """Tests for single-option builders."""

    def test_long_call_scenario(self):
        """Test long call economics for S=150, K=155, ask 2.00."""
        chain = [make_contract("call", 155, 1.90, 2.00, iv=0.30)]
        [result] = build_long_call(make_ctx(chain, 150.0, "bullish"))

        assert result.shape == "long_call"
        assert result.required_capital == pytest.approx(200.0)
        assert result.risk.value == pytest.approx(200.0)
        assert result.break_even == pytest.approx(157.0)
        assert 0.0 < result.chance < 50.0
        assert result.legs[0].side == "long"

    def test_long_call_requires_bullish(self):
        """Test long call is not built for other sentiments."""
        chain = [make_contract("call", 155, 1.90, 2.00)]
        assert build_long_call(make_ctx(chain, 150.0, "bearish")) == []
        assert build_long_call(make_ctx(chain, 150.0, "very_bullish")) != []

    def test_long_put(self):
        """Test long put breakeven is strike minus premium."""
        chain = [make_contract("put", 145, 1.80, 2.00)]
        [result] = build_long_put(make_ctx(chain, 150.0, "bearish"))

        assert result.break_even == pytest.approx(143.0)
        assert result.required_capital == pytest.approx(200.0)
        assert 0.0 < result.chance < 50.0

    def test_short_call_unbounded_risk(self):
        """Test short call risk is unlimited and return on risk is 0."""
        chain = [
            make_contract("call", 145, 6.00, 6.20),
            make_contract("call", 160, 1.00, 1.10),
        ]
        [result] = build_short_call(make_ctx(chain, 150.0, "bearish"))

        assert result.strikes == [160]
        assert result.risk.unbounded
        assert result.return_on_risk.value == 0.0
        assert result.profit.value == pytest.approx(100.0)

    def test_short_call_margin(self):
        """Test naked call margin: max(20% S - OTM, 10% S) plus premium."""
        chain = [make_contract("call", 160, 1.00, 1.10)]
        [result] = build_short_call(make_ctx(chain, 150.0, "bearish"))
        # 0.20 * 150 * 100 - 10 * 100 = 2000; floor 1500; + 100 credit
        assert result.required_capital == pytest.approx(2100.0)

    def test_short_put_finite_risk(self):
        """Test short put risk is strike less credit."""
        chain = [make_contract("put", 140, 1.50, 1.60)]
        [result] = build_short_put(make_ctx(chain, 150.0, "bullish"))

        assert result.risk.value == pytest.approx(13850.0)
        assert result.break_even == pytest.approx(138.5)
        assert result.chance > 50.0

    def test_short_put_low_pop_dropped(self):
        """Test short puts whose breakeven is far above spot are dropped."""
        chain = [make_contract("put", 200, 10.00, 10.20, iv=0.10)]
        assert build_short_put(make_ctx(chain, 150.0, "bullish")) == []

    def test_budget_excludes_candidates(self):
        """Test candidates above the budget are skipped."""
        chain = [
            make_contract("call", 150, 4.90, 5.00),
            make_contract("call", 160, 0.90, 1.00),
        ]
        [result] = build_long_call(make_ctx(chain, 150.0, "bullish", budget="150"))
        assert result.strikes == [160]


class TestVerticals:
    """Tests for vertical spread builders."""

    def test_bull_call_spread_scenario(self):
        """Test bull call spread 150/155 for a 2.00 debit."""
        chain = [
            make_contract("call", 150, 2.80, 3.00),
            make_contract("call", 155, 1.00, 1.20),
        ]
        [result] = build_bull_call_spread(make_ctx(chain, 150.0, "bullish"))

        assert result.required_capital == pytest.approx(200.0)
        assert result.profit.value == pytest.approx(300.0)
        assert result.risk.value == pytest.approx(200.0)
        assert result.break_even == pytest.approx(152.0)
        assert result.return_on_risk.value == pytest.approx(150.0)
        assert [leg.side for leg in result.legs] == ["long", "short"]
        assert 150 < result.break_even < 155

    def test_bull_call_spread_rejects_debit_at_width(self):
        """Test a debit equal to the width is rejected."""
        chain = [
            make_contract("call", 150, 5.80, 6.00),
            make_contract("call", 155, 1.00, 1.20),
        ]
        assert build_bull_call_spread(make_ctx(chain, 150.0, "bullish")) == []

    def test_width_window(self):
        """Test strikes wider than the window are never paired."""
        chain = [
            make_contract("call", 100, 20.0, 20.5),
            make_contract("call", 150, 2.80, 3.00),
        ]
        # Window at spot 150 is max(10, 15) = 15 points
        assert build_bull_call_spread(make_ctx(chain, 150.0, "bullish")) == []

    def test_bear_put_spread(self):
        """Test bear put spread breakeven is long strike minus debit."""
        chain = [
            make_contract("put", 145, 1.00, 1.10),
            make_contract("put", 150, 2.90, 3.00),
        ]
        [result] = build_bear_put_spread(make_ctx(chain, 150.0, "bearish"))

        assert result.break_even == pytest.approx(148.0)
        assert result.required_capital == pytest.approx(200.0)
        assert result.profit.value == pytest.approx(300.0)
        assert 145 < result.break_even < 150

    def test_bull_put_spread(self):
        """Test bull put credit spread capital is the width."""
        chain = [
            make_contract("put", 140, 0.90, 1.00),
            make_contract("put", 145, 2.50, 2.60),
        ]
        [result] = build_bull_put_spread(make_ctx(chain, 150.0, "bullish"))

        assert result.profit.value == pytest.approx(150.0)
        assert result.risk.value == pytest.approx(350.0)
        assert result.required_capital == pytest.approx(500.0)
        assert result.break_even == pytest.approx(143.5)

    def test_bear_call_spread(self):
        """Test bear call credit spread breakeven is short strike plus credit."""
        chain = [
            make_contract("call", 155, 2.50, 2.60),
            make_contract("call", 160, 0.90, 1.00),
        ]
        [result] = build_bear_call_spread(make_ctx(chain, 150.0, "bearish"))

        assert result.profit.value == pytest.approx(150.0)
        assert result.break_even == pytest.approx(156.5)
        assert [leg.side for leg in result.legs] == ["short", "long"]


class TestIronStructures:
    """Tests for iron condor and butterfly builders."""

    def test_condor_parameters(self):
        """Test delta target and wing width at slider 50, sigma 10."""
        ctx = make_ctx([], 100.0, "neutral", sigma=10.0)
        assert condor_short_delta(50) == pytest.approx(0.225)
        assert condor_wing(ctx) == pytest.approx(20.0)
        assert butterfly_wing(ctx) == pytest.approx(15.0)

    def test_iron_condor_scenario(self, condor_chain):
        """Test iron condor strikes, credit and capital."""
        [result] = build_iron_condor(make_ctx(condor_chain, 100.0, "neutral", sigma=10.0))

        assert result.strikes == [70, 90, 110, 130]
        assert [leg.side for leg in result.legs] == ["long", "short", "short", "long"]
        assert result.profit.value == pytest.approx(255.0)
        assert result.required_capital == pytest.approx(2000.0)
        assert result.risk.value == pytest.approx(1745.0)
        assert result.break_evens == pytest.approx([87.45, 112.55])
        assert 0.0 < result.chance < 100.0

    def test_iron_condor_absent_without_credit(self, condor_chain):
        """Test no condor is returned when the net credit is not positive."""
        chain = [
            make_contract(c.option_type, c.strike, 0.06, 0.10, delta=c.delta)
            if c.strike in (90, 110) else c
            for c in condor_chain
        ]
        assert build_iron_condor(make_ctx(chain, 100.0, "neutral", sigma=10.0)) == []

    def test_iron_condor_needs_sigma(self, condor_chain):
        """Test no condor is built without an implied move."""
        assert build_iron_condor(make_ctx(condor_chain, 100.0, "neutral")) == []

    def test_iron_butterfly(self, condor_chain):
        """Test iron butterfly body at the money with wings 15 points out."""
        [result] = build_iron_butterfly(make_ctx(condor_chain, 100.0, "neutral", sigma=10.0))

        assert result.strikes == [85, 100, 100, 115]
        assert result.profit.value == pytest.approx(610.0)
        assert result.required_capital == pytest.approx(1500.0)
        assert result.risk.value == pytest.approx(890.0)

    def test_legacy_pop(self, condor_chain):
        """Test fixed PoP is reported when analytic structure PoP is off."""
        config = EngineConfig(analytic_structure_pop=False)
        [result] = build_iron_butterfly(
            make_ctx(condor_chain, 100.0, "neutral", sigma=10.0, config=config)
        )
        assert result.chance == 40.0

    def test_inverse_iron_butterfly(self, condor_chain):
        """Test inverse iron butterfly is a debit with a directional fit."""
        [result] = build_inverse_iron_butterfly(
            make_ctx(condor_chain, 100.0, "directional", sigma=10.0)
        )

        assert [leg.side for leg in result.legs] == ["short", "long", "long", "short"]
        # debit 4.10 + 4.10 - 0.80 - 0.70
        assert result.required_capital == pytest.approx(670.0)
        assert result.profit.value == pytest.approx(830.0)
        assert result.sentiment_fit == ("directional",)

    def test_inverse_iron_condor(self, condor_chain):
        """Test long strikes half a sigma out and short wings 15 points beyond."""
        [result] = build_inverse_iron_condor(
            make_ctx(condor_chain, 100.0, "directional", sigma=10.0)
        )

        assert result.strikes == [80, 95, 105, 120]
        assert [leg.side for leg in result.legs] == ["short", "long", "long", "short"]
        # debit 2.40 + 2.40 - 0.40 - 0.40
        assert result.required_capital == pytest.approx(400.0)
        assert result.risk.value == pytest.approx(400.0)
        assert not result.profit.unbounded
        assert result.profit.value == pytest.approx(1100.0)
        assert result.break_evens == pytest.approx([91.0, 109.0])
        assert result.sentiment_fit == ("directional",)

    def test_inverse_iron_condor_wrong_sentiment(self, condor_chain):
        """Test inverse iron condor is only built for directional sentiment."""
        assert build_inverse_iron_condor(make_ctx(condor_chain, 100.0, "neutral", sigma=10.0)) == []

    def test_inverse_legacy_pop(self, condor_chain):
        """Test fixed PoPs for the inverse structures."""
        config = EngineConfig(analytic_structure_pop=False)
        ctx = make_ctx(condor_chain, 100.0, "directional", sigma=10.0, config=config)

        [condor] = build_inverse_iron_condor(ctx)
        [butterfly] = build_inverse_iron_butterfly(ctx)
        assert condor.chance == 15.0
        assert butterfly.chance == 20.0


class TestVolatility:
    """Tests for straddle and strangle builders."""

    @pytest.fixture
    def atm_chain(self):
        chain = []
        for strike in (90, 95, 100, 105, 110):
            chain.append(make_contract("call", strike, max(0.3, 100 - strike + 2.5), max(0.4, 100 - strike + 2.7)))
            chain.append(make_contract("put", strike, max(0.3, strike - 100 + 2.5), max(0.4, strike - 100 + 2.7)))
        return chain

    def test_straddle(self, atm_chain):
        """Test long straddle uses one strike with unlimited profit."""
        [result] = build_straddle(make_ctx(atm_chain, 100.0, "directional", sigma=5.0))

        call_strike, put_strike = result.strikes
        assert call_strike == put_strike
        assert result.profit.unbounded
        assert result.return_on_risk.unbounded
        assert len(result.break_evens) == 2

    def test_straddle_wrong_sentiment(self, atm_chain):
        """Test straddle is only built for directional sentiment."""
        assert build_straddle(make_ctx(atm_chain, 100.0, "neutral", sigma=5.0)) == []

    def test_strangle(self, atm_chain):
        """Test strangle legs straddle the spot."""
        [result] = build_strangle(make_ctx(atm_chain, 100.0, "directional", sigma=5.0))

        call_strike, put_strike = result.strikes
        assert put_strike < 100 < call_strike

    def test_short_strangle(self, atm_chain):
        """Test short strangle has unlimited risk and margin-based capital."""
        [result] = build_short_strangle(make_ctx(atm_chain, 100.0, "neutral", sigma=5.0))

        assert result.risk.unbounded
        assert result.return_on_risk.value == 0.0
        assert result.required_capital > 0

    def test_short_straddle_parameters(self):
        """Test the delta target and fixed PoP move with the slider."""
        assert short_straddle_delta(0) == pytest.approx(0.5)
        assert short_straddle_delta(50) == pytest.approx(0.3)
        assert short_straddle_delta(100) == pytest.approx(0.1)
        assert legacy_short_straddle_pop(0) == pytest.approx(70.0)
        assert legacy_short_straddle_pop(50) == pytest.approx(60.0)
        assert legacy_short_straddle_pop(100) == pytest.approx(50.0)

    def test_short_straddle_at_the_money(self, condor_chain):
        """Test slider 0 sells the call and put at the same strike."""
        [result] = build_short_straddle(make_ctx(condor_chain, 100.0, "neutral", slider=0, sigma=10.0))

        assert result.strikes == [100, 100]
        assert [leg.side for leg in result.legs] == ["short", "short"]
        assert result.profit.value == pytest.approx(780.0)
        assert result.risk.unbounded
        # 20% of spot plus both premiums
        assert result.required_capital == pytest.approx(2780.0)
        assert result.break_evens == pytest.approx([92.2, 107.8])

    def test_short_straddle_slider_widens(self, condor_chain):
        """Test slider 50 moves both legs to the 0.35 delta strikes."""
        [result] = build_short_straddle(make_ctx(condor_chain, 100.0, "neutral", sigma=10.0))

        assert result.strikes == [105, 95]
        assert result.profit.value == pytest.approx(440.0)
        assert result.required_capital == pytest.approx(1940.0)
        assert result.sentiment_fit == ("neutral",)

    def test_short_straddle_wrong_sentiment(self, condor_chain):
        """Test short straddle is only built for neutral sentiment."""
        assert build_short_straddle(make_ctx(condor_chain, 100.0, "directional", sigma=10.0)) == []

    def test_legacy_pop(self, atm_chain, condor_chain):
        """Test fixed PoPs when analytic structure PoP is off."""
        config = EngineConfig(analytic_structure_pop=False)
        directional = make_ctx(atm_chain, 100.0, "directional", sigma=5.0, config=config)
        neutral = make_ctx(atm_chain, 100.0, "neutral", sigma=5.0, config=config)

        assert [s.chance for s in build_straddle(directional)] == [30.0]
        assert [s.chance for s in build_strangle(directional)] == [25.0]
        assert [s.chance for s in build_short_strangle(neutral)] == [75.0]
        for slider, expected in ((0, 70.0), (50, 60.0), (100, 50.0)):
            ctx = make_ctx(condor_chain, 100.0, "neutral", slider=slider, sigma=10.0, config=config)
            [result] = build_short_straddle(ctx)
            assert result.chance == pytest.approx(expected)


class TestCovered:
    """Tests for covered call and cash-secured put builders."""

    def test_delta_targets(self):
        """Test slider-driven delta targets."""
        assert covered_call_delta(0) == pytest.approx(0.4)
        assert covered_call_delta(100) == pytest.approx(0.1)
        assert cash_secured_put_delta(0) == pytest.approx(-0.4)
        assert cash_secured_put_delta(100) == pytest.approx(-0.1)

    def test_covered_call(self):
        """Test covered call economics include the share leg."""
        chain = [
            make_contract("call", 155, 2.00, 2.10, delta=0.30),
            make_contract("call", 165, 0.50, 0.60, delta=0.10),
        ]
        [result] = build_covered_call(make_ctx(chain, 150.0, "bullish", slider=30))

        assert result.strikes == [155]
        assert result.stock is not None and result.stock.shares == 100
        assert result.profit.value == pytest.approx(700.0)
        assert result.risk.value == pytest.approx(14800.0)
        assert result.required_capital == pytest.approx(15000.0)
        assert result.break_even == pytest.approx(148.0)

    def test_covered_call_over_budget(self):
        """Test covered call is skipped when the shares exceed the budget."""
        chain = [make_contract("call", 155, 2.00, 2.10, delta=0.30)]
        assert build_covered_call(make_ctx(chain, 150.0, "bullish", budget="5000")) == []

    def test_cash_secured_put(self):
        """Test cash-secured put holds the strike in cash."""
        chain = [make_contract("put", 145, 2.00, 2.10, delta=-0.30)]
        [result] = build_cash_secured_put(make_ctx(chain, 150.0, "bullish", slider=30))

        assert result.required_capital == pytest.approx(14500.0)
        assert result.profit.value == pytest.approx(200.0)
        assert result.break_even == pytest.approx(143.0)
