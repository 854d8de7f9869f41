# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Shared types for the component calculators.

Calculators are stateless: everything a calculator needs for one year arrives
in a :class:`ScenarioContext`, and everything it produces (including the
component's running balances) leaves in a :class:`ComponentYearResult`.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .money import Money
from .tax.base import TaxEngine
from .tax.optimizations import ContributionLimitExceeded, RealisedGain
from .tax.rules import Jurisdiction, TaxYearRules


@dataclass(frozen=True)
class HousingState:
    """Running balances of a property at the end of a year."""
    value: Money
    loan_balance: Money
    cost_base: Money
    sold: bool = False

    @property
    def equity(self) -> Money:
        return self.value - self.loan_balance


@dataclass(frozen=True)
class InvestmentState:
    """Running balance of an investment account at the end of a year."""
    balance: Money
    total_contributions: Money


ComponentState = Union[HousingState, InvestmentState]


@dataclass(frozen=True)
class ScenarioContext:
    """Read-only view of the scenario handed to calculators for one year.

    Attributes:
        jurisdiction: Jurisdiction being projected
        rules: Tax rules snapshot in force
        engine: Tax engine for the jurisdiction
        currency: Currency of every amount in the scenario
        year: Scenario year (0 is the first projected year)
        age: Age of the household member in this year
        previous: Component states at the end of the previous year, by component id
        sampled_returns: Sampled returns by asset class (Monte Carlo mode), or None
        cap_used: Contributions already made this year by account type
    """
    jurisdiction: Jurisdiction
    rules: TaxYearRules
    engine: TaxEngine
    currency: str
    year: int
    age: int
    previous: Mapping[str, ComponentState] = field(default_factory=dict)
    sampled_returns: Optional[Mapping[str, Decimal]] = None
    cap_used: Mapping[str, Money] = field(default_factory=dict)

    def zero(self) -> Money:
        return Money.zero(self.currency)

    def state_of(self, component_id: str) -> Optional[ComponentState]:
        return self.previous.get(component_id)

    def return_for(self, asset_class: str, default: Decimal) -> Decimal:
        """Sampled return for ``asset_class`` in Monte Carlo mode, else ``default``."""
        if self.sampled_returns is None:
            return default
        return self.sampled_returns.get(asset_class, default)

    def used_cap(self, account_type: str) -> Money:
        return self.cap_used.get(account_type, self.zero())


@dataclass(frozen=True)
class ComponentYearResult:
    """What one component contributed to one projected year.

    ``cash_flow`` is the change to household cash (negative is an outflow).
    ``rental_shortfall`` is a deduction candidate only; the projector asks the
    tax engine how much of it is allowable.
    """
    component_id: str
    component_type: str
    year: int
    cash_flow: Money
    assessable_income: Money
    deductions: Money
    equity: Money
    state: Optional[ComponentState] = None
    rental_shortfall: Optional[Money] = None
    capital_gains: Tuple[RealisedGain, ...] = ()
    dividends: Optional[Money] = None
    franked_or_qualified: bool = False
    contributions: Mapping[str, Money] = field(default_factory=dict)
    warnings: Tuple[ContributionLimitExceeded, ...] = ()
    details: Mapping[str, Money] = field(default_factory=dict)

    def __post_init__(self):
        zero = Money.zero(self.cash_flow.currency)
        if self.rental_shortfall is None:
            object.__setattr__(self, 'rental_shortfall', zero)
        if self.dividends is None:
            object.__setattr__(self, 'dividends', zero)

    @classmethod
    def inactive(cls, component_id: str, component_type: str, year: int, currency: str,
                 state: Optional[ComponentState] = None) -> 'ComponentYearResult':
        """Result for a year in which the component does nothing."""
        zero = Money.zero(currency)
        equity = zero
        if isinstance(state, HousingState) and not state.sold:
            equity = state.equity
        elif isinstance(state, InvestmentState):
            equity = state.balance
        return cls(component_id, component_type, year, zero, zero, zero, equity, state)

    def to_dict(self) -> Dict[str, Any]:
        def fmt(value: Money) -> str:
            return str(value.rounded().amount)

        return {
            'component_id': self.component_id,
            'component_type': self.component_type,
            'year': self.year,
            'cash_flow': fmt(self.cash_flow),
            'assessable_income': fmt(self.assessable_income),
            'deductions': fmt(self.deductions),
            'rental_shortfall': fmt(self.rental_shortfall),
            'dividends': fmt(self.dividends),
            'equity': fmt(self.equity),
            'contributions': {k: fmt(v) for k, v in self.contributions.items()},
            'capital_gains': [
                {'gain': fmt(g.gain), 'holding_months': g.holding_months}
                for g in self.capital_gains
            ],
            'details': {k: fmt(v) for k, v in self.details.items()},
            'warnings': [w.to_dict() for w in self.warnings],
        }
