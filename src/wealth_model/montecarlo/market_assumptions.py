# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Market assumptions for asset classes.

Holds the expected annual return and volatility of every asset class a
scenario component may reference. Returns of different asset classes are
sampled independently; no correlation structure is modelled.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping

import numpy as np

from ..errors import InvalidInput
from ..money import ZERO, as_rate


@dataclass(frozen=True)
class AssetClassAssumptions:
    """Return and volatility assumptions for a single asset class.

    Attributes:
        name: Asset class identifier (e.g., "au_equities")
        expected_return: Annual expected return as decimal (e.g., 0.10 for 10%)
        volatility: Annual standard deviation as decimal (e.g., 0.18 for 18%)
    """
    name: str
    expected_return: Decimal
    volatility: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'expected_return', as_rate(self.expected_return))
        object.__setattr__(self, 'volatility', as_rate(self.volatility))
        if self.volatility < ZERO:
            raise InvalidInput(f"{self.name}.volatility",
                               f"cannot be negative: {self.volatility}")


class MarketAssumptions:
    """Return and volatility assumptions keyed by asset class.

    Example:
        >>> assumptions = MarketAssumptions.create_default()
        >>> assumptions['au_equities'].expected_return
        Decimal('0.09')
    """

    def __init__(self, asset_classes: Iterable[AssetClassAssumptions]):
        self.asset_classes: Dict[str, AssetClassAssumptions] = {}
        for assumption in asset_classes:
            if assumption.name in self.asset_classes:
                raise InvalidInput('asset_class', f"duplicate asset class '{assumption.name}'")
            self.asset_classes[assumption.name] = assumption

    @property
    def asset_class_order(self) -> List[str]:
        return sorted(self.asset_classes)

    def __getitem__(self, name: str) -> AssetClassAssumptions:
        try:
            return self.asset_classes[name]
        except KeyError:
            raise InvalidInput('asset_class', f"unknown asset class '{name}' "
                                              f"(known: {self.asset_class_order})") from None

    def __contains__(self, name: str) -> bool:
        return name in self.asset_classes

    def missing(self, names: Iterable[str]) -> List[str]:
        return [name for name in names if name not in self.asset_classes]

    def get_returns_vector(self, names: Iterable[str]) -> np.ndarray:
        """Expected returns in ``names`` order, as floats for sampling."""
        return np.array([float(self[name].expected_return) for name in names])

    def get_volatilities_vector(self, names: Iterable[str]) -> np.ndarray:
        """Volatilities in ``names`` order, as floats for sampling."""
        return np.array([float(self[name].volatility) for name in names])

    def to_canonical(self) -> List[AssetClassAssumptions]:
        return [self.asset_classes[name] for name in self.asset_class_order]

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {
            name: {'expected_return': str(a.expected_return), 'volatility': str(a.volatility)}
            for name, a in sorted(self.asset_classes.items())
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Any]]) -> 'MarketAssumptions':
        """Build from ``{name: {"expected_return": ..., "volatility": ...}}``."""
        classes = []
        for name, values in data.items():
            try:
                classes.append(AssetClassAssumptions(
                    name, values['expected_return'], values['volatility']))
            except KeyError as e:
                raise InvalidInput(f"market.{name}", f"missing {e.args[0]}") from None
        return cls(classes)

    @classmethod
    def create_default(cls) -> 'MarketAssumptions':
        """Default assumptions for common asset classes.

        Returns:
            MarketAssumptions with typical long-run nominal return and
            volatility figures used in financial planning.
        """
        rows = [
            ('au_equities', '0.09', '0.16'),
            ('us_large_cap', '0.10', '0.18'),
            ('us_small_cap', '0.12', '0.22'),
            ('uk_equities', '0.08', '0.16'),
            ('intl_developed', '0.08', '0.20'),
            ('emerging_markets', '0.10', '0.28'),
            ('global_bonds', '0.04', '0.06'),
            ('reits', '0.09', '0.20'),
            ('residential_property', '0.06', '0.10'),
            ('balanced', '0.07', '0.11'),
            ('cash', '0.02', '0.01'),
        ]
        return cls(AssetClassAssumptions(name, Decimal(mu), Decimal(sigma))
                   for name, mu, sigma in rows)

    def __repr__(self) -> str:
        return f"MarketAssumptions({self.asset_class_order})"
