# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Deterministic projection results.

:class:`ScenarioResult` holds one :class:`YearlyProjection` per projected
year plus a summary, the optimization suggestions and the contribution
warnings collected during the run.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

import pandas as pd

from ..base_classes import ComponentYearResult
from ..money import Money
from ..tax.optimizations import ContributionLimitExceeded, Optimization


def _fmt(value: Money) -> str:
    return str(value.rounded().amount)


@dataclass(frozen=True)
class YearlyProjection:
    """Household position at the end of one projected year."""
    year: int
    age: int
    income: Money
    expenses: Money
    taxable_income: Money
    income_tax: Money
    capital_gains_tax: Money
    investment_tax: Money
    tax_payable: Money
    tax_paid: Money
    negative_gearing_benefit: Money
    contributions: Money
    cash: Money
    debt: Money
    net_worth: Money
    components: Tuple[ComponentYearResult, ...] = ()

    MONEY_FIELDS = ('income', 'expenses', 'taxable_income', 'income_tax', 'capital_gains_tax',
                    'investment_tax', 'tax_payable', 'tax_paid', 'negative_gearing_benefit',
                    'contributions', 'cash', 'debt', 'net_worth')

    def equity_of(self, component_id: str) -> Money:
        for component in self.components:
            if component.component_id == component_id:
                return component.equity
        raise KeyError(component_id)

    def to_dict(self, include_components: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {'year': self.year, 'age': self.age}
        for name in self.MONEY_FIELDS:
            data[name] = _fmt(getattr(self, name))
        if include_components:
            data['components'] = [c.to_dict() for c in self.components]
        return data


@dataclass(frozen=True)
class ScenarioSummary:
    final_net_worth: Money
    peak_net_worth: Money
    total_tax: Money
    total_contributions: Money
    years: int

    @classmethod
    def from_projections(cls, projections: Iterable[YearlyProjection],
                         currency: str) -> 'ScenarioSummary':
        projections = list(projections)
        total_tax = Money.zero(currency)
        total_contributions = Money.zero(currency)
        peak = projections[0].net_worth
        for projection in projections:
            total_tax = total_tax + projection.tax_payable
            total_contributions = total_contributions + projection.contributions
            if projection.net_worth > peak:
                peak = projection.net_worth
        return cls(final_net_worth=projections[-1].net_worth, peak_net_worth=peak,
                   total_tax=total_tax, total_contributions=total_contributions,
                   years=len(projections))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'final_net_worth': _fmt(self.final_net_worth),
            'peak_net_worth': _fmt(self.peak_net_worth),
            'total_tax': _fmt(self.total_tax),
            'total_contributions': _fmt(self.total_contributions),
            'years': self.years,
        }


def deduplicate_optimizations(optimizations: Iterable[Optimization]) -> Tuple[Optimization, ...]:
    """Keep the earliest-year suggestion for each code, ordered by year then code."""
    earliest: Dict[str, Optimization] = {}
    for optimization in optimizations:
        kept = earliest.get(optimization.code)
        if kept is None or optimization.year < kept.year:
            earliest[optimization.code] = optimization
    return tuple(sorted(earliest.values(), key=lambda o: (o.year, o.code)))


@dataclass(frozen=True)
class ScenarioResult:
    """Result of a deterministic projection.

    ``provisional`` is set on quick estimates returned ahead of a full
    computation; provisional results are never cached.
    """
    fingerprint: str
    rules_version: str
    currency: str
    projections: Tuple[YearlyProjection, ...]
    summary: ScenarioSummary
    optimizations: Tuple[Optimization, ...] = ()
    warnings: Tuple[ContributionLimitExceeded, ...] = ()
    provisional: bool = False

    @property
    def final(self) -> YearlyProjection:
        return self.projections[-1]

    def to_dataframe(self) -> pd.DataFrame:
        """One row per year, money columns as floats rounded to cents, indexed by year."""
        rows = []
        for projection in self.projections:
            row = {'Year': projection.year, 'Age': projection.age}
            for name in YearlyProjection.MONEY_FIELDS:
                row[name] = float(getattr(projection, name).rounded().amount)
            for component in projection.components:
                row[f"equity:{component.component_id}"] = float(component.equity.rounded().amount)
            rows.append(row)
        return pd.DataFrame(rows).set_index('Year')

    def to_dict(self, include_components: bool = True) -> Dict[str, Any]:
        return {
            'fingerprint': self.fingerprint,
            'rules_version': self.rules_version,
            'currency': self.currency,
            'provisional': self.provisional,
            'summary': self.summary.to_dict(),
            'projections': [p.to_dict(include_components) for p in self.projections],
            'optimizations': [o.to_dict() for o in self.optimizations],
            'warnings': [w.to_dict() for w in self.warnings],
        }

    def __repr__(self) -> str:
        return (f"ScenarioResult(rules_version={self.rules_version!r}, "
                f"years={len(self.projections)}, final_net_worth={self.summary.final_net_worth}, "
                f"provisional={self.provisional})")
