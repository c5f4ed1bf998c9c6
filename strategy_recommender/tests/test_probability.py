"""Tests for probability of profit models."""

import math

import pytest
from scipy.stats import norm

from strategy_recommender.probability import (
    pop_bear_call,
    pop_bear_put,
    pop_bull_call,
    pop_bull_put,
    pop_butterfly,
    pop_collar,
    pop_covered_call,
    pop_inverse_iron_condor,
    pop_iron_butterfly,
    pop_iron_condor,
    pop_long_call,
    pop_long_put,
    pop_long_straddle,
    pop_long_strangle,
    pop_short_call,
    pop_short_put,
    pop_short_straddle,
    pop_short_strangle,
    prob_above,
    prob_below,
    prob_between,
    prob_outside,
    safe_probability,
    z_score,
)

SPOT = 150.0
YEARS = 30 / 365
SIGMA = 0.30


class TestDistribution:
    """Tests for lognormal tail probabilities."""

    def test_prob_above_matches_scipy(self):
        """Test P(S_T > K) against a scipy reference."""
        k = 160.0
        z = (math.log(k / SPOT) + 0.5 * SIGMA ** 2 * YEARS) / (SIGMA * math.sqrt(YEARS))
        assert prob_above(k, SPOT, SIGMA, YEARS) == pytest.approx(1 - norm.cdf(z), abs=1e-6)

    def test_complements(self):
        """Test above/below and between/outside are complements."""
        assert prob_above(155, SPOT, SIGMA, YEARS) + prob_below(155, SPOT, SIGMA, YEARS) == pytest.approx(1.0)
        between = prob_between(140, 160, SPOT, SIGMA, YEARS)
        outside = prob_outside(140, 160, SPOT, SIGMA, YEARS)
        assert between + outside == pytest.approx(1.0)

    def test_non_positive_price(self):
        """Test a breakeven at or below zero is always exceeded."""
        assert z_score(0.0, SPOT, SIGMA, YEARS) == -math.inf
        assert prob_above(-5.0, SPOT, SIGMA, YEARS) == 1.0

    def test_degenerate_inputs(self):
        """Test zero time or volatility gives NaN, mapped to 0 by safe_probability."""
        p = pop_long_call(SPOT, 155, 2.0, 0.0, SIGMA)
        assert math.isnan(p)
        assert safe_probability(p) == 0.0
        assert safe_probability(1.2) == 1.0
        assert safe_probability(-0.1) == 0.0


class TestSingleLegPop:
    """Tests for single-leg PoP."""

    def test_long_call_otm(self):
        """Test an out-of-the-money long call is below 50%."""
        p = pop_long_call(SPOT, 155, 2.0, YEARS, SIGMA)
        assert 0.0 < p < 0.5

    def test_long_and_short_call_complement(self):
        """Test long and short calls at the same breakeven are complements."""
        assert pop_long_call(SPOT, 155, 2.0, YEARS, SIGMA) + pop_short_call(SPOT, 155, 2.0, YEARS, SIGMA) == pytest.approx(1.0)

    def test_long_put_and_short_put(self):
        """Test put PoP directions."""
        assert pop_long_put(SPOT, 145, 2.0, YEARS, SIGMA) < 0.5
        assert pop_short_put(SPOT, 145, 2.0, YEARS, SIGMA) > 0.5

    def test_covered_call(self):
        """Test covered call breakeven below spot gives PoP above 50%."""
        assert pop_covered_call(SPOT, 3.0, YEARS, SIGMA) > 0.5


class TestSpreadPop:
    """Tests for vertical spread PoP."""

    def test_bull_call(self):
        """Test bull call PoP equals P(above long strike + debit)."""
        assert pop_bull_call(SPOT, 150, 155, 2.0, YEARS, SIGMA) == pytest.approx(prob_above(152, SPOT, SIGMA, YEARS))

    def test_debit_not_below_width(self):
        """Test debit spreads with debit >= width have zero PoP."""
        assert pop_bull_call(SPOT, 150, 155, 5.0, YEARS, SIGMA) == 0.0
        assert pop_bear_put(SPOT, 150, 145, 6.0, YEARS, SIGMA) == 0.0

    def test_bear_put(self):
        """Test bear put PoP equals P(below long strike - debit)."""
        assert pop_bear_put(SPOT, 150, 145, 2.0, YEARS, SIGMA) == pytest.approx(prob_below(148, SPOT, SIGMA, YEARS))

    def test_credit_spreads(self):
        """Test credit spreads use short strike -/+ credit."""
        assert pop_bull_put(SPOT, 145, 1.5, YEARS, SIGMA) == pytest.approx(prob_above(143.5, SPOT, SIGMA, YEARS))
        assert pop_bear_call(SPOT, 155, 1.5, YEARS, SIGMA) == pytest.approx(prob_below(156.5, SPOT, SIGMA, YEARS))


class TestStructurePop:
    """Tests for iron, straddle, strangle, butterfly and collar PoP."""

    def test_iron_condor_between_breakevens(self):
        """Test iron condor PoP is the probability between breakevens."""
        assert pop_iron_condor(SPOT, 140, 160, 2.0, YEARS, SIGMA) == pytest.approx(
            prob_between(138, 162, SPOT, SIGMA, YEARS)
        )

    def test_butterfly_and_condor_agree_at_one_strike(self):
        """Test iron butterfly equals a condor with equal short strikes."""
        assert pop_iron_butterfly(SPOT, 150, 4.0, YEARS, SIGMA) == pytest.approx(
            pop_iron_condor(SPOT, 150, 150, 4.0, YEARS, SIGMA)
        )

    def test_long_and_short_straddle_complement(self):
        """Test long and short straddles at the same strike and premium sum to 1."""
        long_p = pop_long_straddle(SPOT, 150, 8.0, YEARS, SIGMA)
        short_p = pop_short_straddle(SPOT, 150, 8.0, YEARS, SIGMA)
        assert long_p + short_p == pytest.approx(1.0)

    def test_long_and_short_strangle_complement(self):
        """Test long and short strangles sum to 1."""
        long_p = pop_long_strangle(SPOT, 140, 160, 2.0, YEARS, SIGMA)
        short_p = pop_short_strangle(SPOT, 140, 160, 2.0, YEARS, SIGMA)
        assert long_p + short_p == pytest.approx(1.0)

    def test_inverse_iron_condor(self):
        """Test inverse iron condor PoP is outside the breakevens."""
        assert pop_inverse_iron_condor(SPOT, 145, 155, 2.0, YEARS, SIGMA) == pytest.approx(
            prob_outside(143, 157, SPOT, SIGMA, YEARS)
        )

    def test_butterfly(self):
        """Test debit butterfly PoP between inner breakevens."""
        assert pop_butterfly(SPOT, 145, 155, 1.0, YEARS, SIGMA) == pytest.approx(
            prob_between(146, 154, SPOT, SIGMA, YEARS)
        )

    def test_collar(self):
        """Test collar PoP is the band from spot to the call strike, shifted down by the net debit."""
        assert pop_collar(SPOT, 145, 2.0, 160, 1.5, YEARS, SIGMA) == pytest.approx(
            prob_between(149.5, 159.5, SPOT, SIGMA, YEARS)
        )
        assert pop_collar(100.0, 95, 2.0, 105, 1.0, YEARS, SIGMA) == pytest.approx(
            prob_between(99.0, 104.0, 100.0, SIGMA, YEARS)
        )

    def test_collar_net_credit(self):
        """Test a net option credit shifts the band up."""
        assert pop_collar(SPOT, 145, 1.0, 160, 3.0, YEARS, SIGMA) == pytest.approx(
            prob_between(152.0, 162.0, SPOT, SIGMA, YEARS)
        )

    def test_collar_call_at_or_below_spot(self):
        """Test an empty band gives 0."""
        assert pop_collar(SPOT, 140, 2.0, 150, 1.0, YEARS, SIGMA) == 0.0
