# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Scenario input definition and validation."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, Optional, Tuple, Union

from ..account.investment import InvestmentComponent
from ..errors import InvalidInput
from ..housing.property import HousingComponent
from ..money import Money, ZERO
from ..tax.rules import Jurisdiction

MAX_HORIZON_YEARS = 60

Component = Union[HousingComponent, InvestmentComponent]


@dataclass(frozen=True)
class ScenarioInput:
    """A household scenario to project.

    Attributes:
        jurisdiction: Tax jurisdiction
        currency: Currency of every amount
        tax_year: Tax year whose rules apply throughout the projection
        horizon_years: Number of years projected after year 0 (1-60)
        start_age: Age in year 0
        annual_income: Gross employment income in year 0
        income_growth: Annual income growth
        retirement_age: Age from which employment income stops, or None
        annual_expenses: Living expenses in year 0
        expense_growth: Annual growth of living expenses
        starting_savings: Cash at the start of year 0
        savings_rate: Interest earned on positive cash balances
        starting_debt: Non-mortgage debt at the start of year 0
        debt_interest_rate: Interest charged on the debt
        housing: Housing components, in calculation order
        investments: Investment components, in calculation order
        goal_amount: Net worth target used for Monte Carlo success probability
    """
    jurisdiction: Jurisdiction
    currency: str
    tax_year: int
    horizon_years: int
    start_age: int
    annual_income: Money
    starting_savings: Money
    annual_expenses: Optional[Money] = None
    starting_debt: Optional[Money] = None
    income_growth: Decimal = ZERO
    retirement_age: Optional[int] = None
    expense_growth: Decimal = ZERO
    savings_rate: Decimal = ZERO
    debt_interest_rate: Decimal = ZERO
    housing: Tuple[HousingComponent, ...] = ()
    investments: Tuple[InvestmentComponent, ...] = ()
    goal_amount: Optional[Money] = None

    def __post_init__(self):
        object.__setattr__(self, 'jurisdiction', Jurisdiction.parse(self.jurisdiction))
        object.__setattr__(self, 'currency', str(self.currency).strip().upper())
        object.__setattr__(self, 'housing', tuple(self.housing))
        object.__setattr__(self, 'investments', tuple(self.investments))
        if self.annual_expenses is None:
            object.__setattr__(self, 'annual_expenses', Money.zero(self.currency))
        if self.starting_debt is None:
            object.__setattr__(self, 'starting_debt', Money.zero(self.currency))

    @property
    def years(self) -> range:
        """Scenario years projected, 0..horizon inclusive."""
        return range(self.horizon_years + 1)

    def components(self) -> Iterator[Component]:
        yield from self.housing
        yield from self.investments

    def asset_classes(self) -> Tuple[str, ...]:
        """Asset classes referenced by the components, in first-use order."""
        seen = []
        for component in self.components():
            if component.asset_class not in seen:
                seen.append(component.asset_class)
        return tuple(seen)

    def _check_amount(self, field: str, value: Money):
        if not isinstance(value, Money):
            raise InvalidInput(field, f"must be Money, got {type(value).__name__}")
        if value.currency != self.currency:
            raise InvalidInput(field, f"currency {value.currency} does not match scenario "
                                      f"currency {self.currency}")
        if value.is_negative():
            raise InvalidInput(field, "must not be negative")

    def validate(self) -> 'ScenarioInput':
        """Check the scenario before any computation starts.

        Returns:
            self, so calls can be chained

        Raises:
            InvalidInput: Naming the first offending field
        """
        if isinstance(self.horizon_years, bool) or not isinstance(self.horizon_years, int) \
                or not 1 <= self.horizon_years <= MAX_HORIZON_YEARS:
            raise InvalidInput('horizon_years',
                               f"must be between 1 and {MAX_HORIZON_YEARS}, "
                               f"got {self.horizon_years!r}")
        if self.currency != self.jurisdiction.currency:
            raise InvalidInput('currency', f"{self.jurisdiction.value} scenarios use "
                                           f"{self.jurisdiction.currency}, got {self.currency}")
        if not 0 <= self.start_age <= 120:
            raise InvalidInput('start_age', f"must be between 0 and 120, got {self.start_age}")
        if self.retirement_age is not None and self.retirement_age < 0:
            raise InvalidInput('retirement_age', "must not be negative")

        for field_name in ('annual_income', 'starting_savings', 'annual_expenses',
                           'starting_debt'):
            self._check_amount(field_name, getattr(self, field_name))
        if self.goal_amount is not None:
            self._check_amount('goal_amount', self.goal_amount)
        for field_name in ('savings_rate', 'debt_interest_rate'):
            if getattr(self, field_name) < ZERO:
                raise InvalidInput(field_name, "must not be negative")

        seen = set()
        for component in self.components():
            prefix = f"component '{component.id}'"
            if not component.id:
                raise InvalidInput('component.id', "must not be empty")
            if component.id in seen:
                raise InvalidInput(f"{prefix}.id", "duplicate component id")
            seen.add(component.id)
            if component.currency != self.currency:
                raise InvalidInput(f"{prefix}.currency",
                                   f"{component.currency} does not match scenario "
                                   f"currency {self.currency}")
            if not 0 <= component.start_year <= self.horizon_years:
                raise InvalidInput(f"{prefix}.start_year",
                                   f"must lie within [0, {self.horizon_years}], "
                                   f"got {component.start_year}")
            if component.end_year is not None:
                if not 0 <= component.end_year <= self.horizon_years:
                    raise InvalidInput(f"{prefix}.end_year",
                                       f"must lie within [0, {self.horizon_years}], "
                                       f"got {component.end_year}")
                if component.end_year < component.start_year:
                    raise InvalidInput(f"{prefix}.end_year", "is before start_year")
        return self
