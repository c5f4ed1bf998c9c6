"""
Tradability gate, liquidity scoring, and strike lookups over a chain.
"""

import bisect
import logging
import math
from typing import Callable, Iterable, Optional

from strategy_recommender.config import EngineConfig, ScoringWeights
from strategy_recommender.models import Contract

logger = logging.getLogger(__name__)


def is_liquid(contract: Contract, min_mid: float = 0.05, min_activity: int = 0) -> bool:
    """
    Check whether a contract is tradeable.

    Args:
        contract: Contract to check
        min_mid: Mid price must be strictly above this
        min_activity: Open interest + volume must be strictly above this

    Returns:
        True if the contract passes both thresholds
    """
    return contract.mid > min_mid and contract.activity > min_activity


def filter_liquid(chain: Iterable[Contract], config: Optional[EngineConfig] = None) -> list[Contract]:
    """Keep only contracts that pass the liquidity gate."""
    if config is None:
        config = EngineConfig()
    contracts = list(chain)
    liquid = [c for c in contracts if is_liquid(c, config.min_mid_price, config.min_activity)]
    logger.debug(f"Liquidity gate kept {len(liquid)} of {len(contracts)} contracts")
    return liquid


def liquidity_score(contracts: Iterable[Contract], weights: Optional[ScoringWeights] = None) -> float:
    """
    Blend bid/ask tightness with log-scaled open interest and volume.

    Tightness per leg is max(0, 1 - spread / max(0.01, ask)), averaged over
    legs with both a bid and an ask. Open interest and volume are summed and
    scaled by log10(x + 1) / 4, so 10,000 reaches 1.0.

    Args:
        contracts: Strategy legs
        weights: Blend weights (default 60/20/20)

    Returns:
        Score in [0, 1]
    """
    if weights is None:
        weights = ScoringWeights()

    open_interest = 0
    volume = 0
    tightness = 0.0
    quoted = 0
    for c in contracts:
        open_interest += max(c.open_interest, 0)
        volume += max(c.volume, 0)
        if c.ask and c.bid:
            tightness += max(0.0, 1.0 - (c.ask - c.bid) / max(0.01, c.ask))
            quoted += 1

    tightness_score = tightness / quoted if quoted else 0.0
    oi_score = math.log10(open_interest + 1) / 4.0
    vol_score = math.log10(volume + 1) / 4.0

    score = (
        weights.tightness_blend * tightness_score
        + weights.open_interest_blend * oi_score
        + weights.volume_blend * vol_score
    )
    return max(0.0, min(1.0, score))


class StrikeIndex:
    """
    Contracts of one chain sorted by strike, per option type.

    All "exact strike, else nearest" lookups go through here.
    """

    def __init__(self, contracts: Iterable[Contract]) -> None:
        self._contracts: dict[str, list[Contract]] = {"call": [], "put": []}
        for c in contracts:
            if c.option_type in self._contracts:
                self._contracts[c.option_type].append(c)
        for option_type in self._contracts:
            self._contracts[option_type].sort(key=lambda c: c.strike)
        self._strikes = {t: [c.strike for c in cs] for t, cs in self._contracts.items()}

    def __len__(self) -> int:
        return len(self._contracts["call"]) + len(self._contracts["put"])

    def contracts(self, option_type: str) -> list[Contract]:
        """Contracts of one type, ascending by strike."""
        return list(self._contracts.get(option_type, []))

    def strikes(self, option_type: str) -> list[float]:
        return list(self._strikes.get(option_type, []))

    def exact(self, option_type: str, strike: float) -> Optional[Contract]:
        """Contract at exactly ``strike``, or None."""
        strikes = self._strikes.get(option_type, [])
        i = bisect.bisect_left(strikes, strike)
        if i < len(strikes) and math.isclose(strikes[i], strike, abs_tol=1e-9):
            return self._contracts[option_type][i]
        return None

    def nearest(
        self,
        option_type: str,
        price: float,
        above: Optional[float] = None,
        below: Optional[float] = None,
    ) -> Optional[Contract]:
        """
        Contract whose strike is closest to ``price``.

        Args:
            option_type: 'call' or 'put'
            price: Desired strike
            above: Only consider strikes strictly above this
            below: Only consider strikes strictly below this

        Returns:
            Closest contract (lower strike on ties), or None if none qualify
        """
        strikes = self._strikes.get(option_type, [])
        lo = 0 if above is None else bisect.bisect_right(strikes, above)
        hi = len(strikes) if below is None else bisect.bisect_left(strikes, below)
        if lo >= hi:
            return None

        i = bisect.bisect_left(strikes, price, lo, hi)
        best = None
        for j in (i - 1, i):
            if lo <= j < hi:
                if best is None or abs(strikes[j] - price) < abs(strikes[best] - price):
                    best = j
        return self._contracts[option_type][best]

    def nearest_strikes(self, price: float, count: int) -> list[float]:
        """
        Up to ``count`` strikes listed for both calls and puts, closest to ``price`` first.
        """
        common = sorted(set(self._strikes["call"]) & set(self._strikes["put"]))
        common.sort(key=lambda k: (abs(k - price), k))
        return common[:count]

    def by_delta(
        self,
        option_type: str,
        target: float,
        delta_of: Callable[[Contract], Optional[float]],
        low: float = -1.0,
        high: float = 1.0,
        candidates: Optional[Iterable[Contract]] = None,
    ) -> Optional[Contract]:
        """
        Contract whose delta is closest to ``target`` within [low, high].

        Args:
            option_type: 'call' or 'put'
            target: Desired delta
            delta_of: Returns a contract's delta, or None when unknown
            low: Lowest accepted delta
            high: Highest accepted delta
            candidates: Restrict the search to these contracts

        Returns:
            Best contract (lower strike on ties), or None
        """
        pool = self._contracts.get(option_type, []) if candidates is None else candidates
        best = None
        best_diff = math.inf
        for c in pool:
            if c.option_type != option_type:
                continue
            delta = delta_of(c)
            if delta is None or math.isnan(delta) or not low <= delta <= high:
                continue
            diff = abs(delta - target)
            if diff < best_diff:
                best, best_diff = c, diff
        return best

    def ranked_by_delta(
        self,
        option_type: str,
        target: float,
        delta_of: Callable[[Contract], Optional[float]],
        candidates: Optional[Iterable[Contract]] = None,
    ) -> list[Contract]:
        """Contracts with a known delta, closest to ``target`` first."""
        pool = self._contracts.get(option_type, []) if candidates is None else candidates
        keyed = []
        for c in pool:
            delta = delta_of(c)
            if c.option_type == option_type and delta is not None and not math.isnan(delta):
                keyed.append((abs(delta - target), c.strike, c))
        keyed.sort(key=lambda item: (item[0], item[1]))
        return [c for _, _, c in keyed]
