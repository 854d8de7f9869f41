# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Annual return sampler using the Box-Muller transform.

Uniform pairs ``(u1, u2)`` from a numpy ``Generator`` become two independent
standard normals ``sqrt(-2 ln u1) cos(2 pi u2)`` and ``sqrt(-2 ln u1) sin(2 pi u2)``,
which are scaled by each asset class's volatility and shifted by its
expected return. Every asset class is drawn independently.
"""

import math
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..money import MONEY_CONTEXT, as_rate
from .market_assumptions import MarketAssumptions

# Sampled returns are rounded to this many places before entering Decimal arithmetic.
RETURN_PLACES = 10

def box_muller(rng: np.random.Generator, count: int) -> np.ndarray:
    """``count`` standard normal variates from ``ceil(count / 2)`` uniform pairs."""
    pairs = (count + 1) // 2
    u1 = 1.0 - rng.random(pairs)  # (0, 1], keeps log finite
    u2 = rng.random(pairs)
    radius = np.sqrt(-2.0 * np.log(u1))
    angle = 2.0 * math.pi * u2
    normals = np.empty(pairs * 2)
    normals[0::2] = radius * np.cos(angle)
    normals[1::2] = radius * np.sin(angle)
    return normals[:count]

class BoxMullerReturnGenerator:
    """Generates independent annual returns per asset class.

    Example:
        >>> market = MarketAssumptions.create_default()
        >>> gen = BoxMullerReturnGenerator(market, np.random.default_rng([42, 0]))
        >>> path = gen.sample_path(['au_equities', 'cash'], years=3)
        >>> len(path), sorted(path[0])
        (3, ['au_equities', 'cash'])
    """

    def __init__(self, market: MarketAssumptions, rng: np.random.Generator,
                 return_floor: Optional[Decimal] = None):
        """Initialize the return generator.

        Args:
            market: Asset class assumptions
            rng: numpy random Generator (one per iteration)
            return_floor: Lowest return a sample may take, e.g. Decimal('-0.95')
        """
        self.market = market
        self.rng = rng
        self.return_floor = as_rate(return_floor) if return_floor is not None else None

    def _to_decimal(self, value: float) -> Decimal:
        sampled = MONEY_CONTEXT.create_decimal(f"{value:.{RETURN_PLACES}f}")
        if self.return_floor is not None and sampled < self.return_floor:
            return self.return_floor
        return sampled

    def sample_path(self, asset_classes: Sequence[str], years: int) -> List[Dict[str, Decimal]]:
        """Draw ``years`` years of returns for ``asset_classes`` in one vectorised pass."""
        names = list(asset_classes)
        if not names or years <= 0:
            return [{} for _ in range(max(years, 0))]
        mu = self.market.get_returns_vector(names)
        sigma = self.market.get_volatilities_vector(names)
        normals = box_muller(self.rng, years * len(names)).reshape(years, len(names))
        samples = mu + sigma * normals
        return [{name: self._to_decimal(samples[year, i]) for i, name in enumerate(names)}
                for year in range(years)]
