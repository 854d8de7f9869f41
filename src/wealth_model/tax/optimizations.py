# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Advisory records produced alongside projections."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple

from ..money import Money
from .rules import TaxYearRules


@dataclass(frozen=True)
class ContributionLimitExceeded:
    """A requested contribution was clamped to the annual cap.

    Informational: the calculator clamps and carries on.
    """
    component_id: str
    account_type: str
    year: int
    requested: Money
    cap: Money

    @property
    def excess(self) -> Money:
        return self.requested - self.cap

    kind = 'ContributionLimitExceeded'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'component_id': self.component_id,
            'account_type': self.account_type,
            'year': self.year,
            'requested': str(self.requested.rounded().amount),
            'cap': str(self.cap.rounded().amount),
            'excess': str(self.excess.rounded().amount),
        }


@dataclass(frozen=True)
class Optimization:
    """A tax optimization suggestion. Never applied automatically."""
    code: str
    message: str
    year: int
    estimated_saving: Optional[Money] = None
    component_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'message': self.message,
            'year': self.year,
            'estimated_saving': (None if self.estimated_saving is None
                                 else str(self.estimated_saving.rounded().amount)),
            'component_id': self.component_id,
        }


@dataclass(frozen=True)
class RealisedGain:
    component_id: str
    gain: Money
    holding_months: int


@dataclass(frozen=True)
class YearTaxState:
    """Snapshot of one projected year, as seen by ``suggest_optimizations``."""
    year: int
    age: int
    currency: str
    taxable_income: Money
    marginal_rate: Decimal
    rules: TaxYearRules
    contributions: Mapping[str, Money] = field(default_factory=dict)
    contribution_caps: Mapping[str, Optional[Money]] = field(default_factory=dict)
    capital_gains: Tuple[RealisedGain, ...] = ()
    taxable_dividends: Money = None
    warnings: Tuple[ContributionLimitExceeded, ...] = ()

    def __post_init__(self):
        if self.taxable_dividends is None:
            object.__setattr__(self, 'taxable_dividends', Money.zero(self.currency))

    def contributed(self, account_type: str) -> Money:
        return self.contributions.get(account_type, Money.zero(self.currency))
