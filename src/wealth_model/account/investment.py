# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Investment account calculator (brokerage, retirement and tax-sheltered accounts)."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..base_classes import ComponentYearResult, InvestmentState, ScenarioContext
from ..errors import InvalidComponentConfig
from ..money import Money, ONE, ZERO, compound_factor, max_money
from ..tax.optimizations import ContributionLimitExceeded

logger = logging.getLogger(__name__)

COMPONENT_TYPE = 'investment'
DEFAULT_ASSET_CLASS = 'balanced'


@dataclass(frozen=True)
class InvestmentComponent:
    """An investment account held in the scenario.

    Attributes:
        id: Stable component identifier
        account_type: Jurisdiction account type (e.g. 'super_concessional', '401k', 'isa')
        initial_balance: Balance when the account enters the scenario
        monthly_contribution: Base monthly contribution in scenario year 0
        contribution_growth: Annual growth of the contribution
        expected_return: Expected annual return (deterministic mode)
        asset_class: Market asset class used for sampled returns in Monte Carlo runs
        fee_rate: Annual fee as a fraction of the balance
        dividend_yield: Part of the return paid out as dividends
        franked_or_qualified: Dividends are franked (AU) or qualified (US)
        start_year: First scenario year the account exists
        end_year: Last scenario year contributions are made, or None
    """
    id: str
    account_type: str
    initial_balance: Money
    monthly_contribution: Optional[Money] = None
    contribution_growth: Decimal = ZERO
    expected_return: Decimal = ZERO
    asset_class: str = DEFAULT_ASSET_CLASS
    fee_rate: Decimal = ZERO
    dividend_yield: Decimal = ZERO
    franked_or_qualified: bool = False
    start_year: int = 0
    end_year: Optional[int] = None
    name: str = ''

    @property
    def currency(self) -> str:
        return self.initial_balance.currency

    @property
    def monthly(self) -> Money:
        if self.monthly_contribution is None:
            return Money.zero(self.currency)
        return self.monthly_contribution

    def requested_contribution(self, year: int) -> Money:
        """Contribution before any cap: monthly x 12 x (1 + growth) ** year."""
        return self.monthly * 12 * compound_factor(self.contribution_growth, year)

    def contributes_in(self, year: int) -> bool:
        return self.start_year <= year and (self.end_year is None or year <= self.end_year)


class InvestmentCalculator:
    """Stateless year-by-year calculator for :class:`InvestmentComponent`."""

    def validate(self, component: InvestmentComponent, context: ScenarioContext):
        def bad(field, reason):
            return InvalidComponentConfig(component.id, field, reason)

        # Unknown account types surface as InvalidInput from the engine.
        try:
            context.engine.account_treatment(component.account_type)
        except ValueError as e:
            raise bad('account_type', str(e)) from e
        for field_name, amount in (('initial_balance', component.initial_balance),
                                   ('monthly_contribution', component.monthly)):
            if amount.currency != context.currency:
                raise bad(field_name, f"currency {amount.currency} does not match scenario "
                                      f"currency {context.currency}")
            if amount.is_negative():
                raise bad(field_name, "must not be negative")
        for field_name in ('fee_rate', 'dividend_yield'):
            rate = getattr(component, field_name)
            if not ZERO <= rate <= ONE:
                raise bad(field_name, "must be between 0 and 1")
        if component.end_year is not None and component.end_year < component.start_year:
            raise bad('end_year', "is before start_year")

    def contribution_for(self, component: InvestmentComponent, context: ScenarioContext,
                         year: int):
        """Contribution for ``year`` after clamping to the remaining annual cap.

        Returns:
            Tuple of (contribution, warning or None)
        """
        requested = component.requested_contribution(year)
        limit = context.engine.contribution_limit(component.account_type, context.age,
                                                  context.rules)
        if limit is None:
            return requested, None
        remaining = max_money(limit - context.used_cap(component.account_type), context.zero())
        if requested <= remaining:
            return requested, None
        warning = ContributionLimitExceeded(
            component_id=component.id,
            account_type=component.account_type,
            year=year,
            requested=requested,
            cap=remaining,
        )
        logger.debug("Clamped contribution to '%s' in year %d from %s to %s",
                     component.id, year, requested, remaining)
        return remaining, warning

    def calculate_year(self, component: InvestmentComponent, context: ScenarioContext,
                       year: int) -> ComponentYearResult:
        """Advance ``component`` through ``year``.

        Growth is earned on the opening balance, the year's contribution is
        added, and fees come off the grown balance. Dividends are part of the
        return; they are reported for personal tax unless the account is
        sheltered, in which case the account's own earnings tax applies.

        Raises:
            InvalidComponentConfig: If the component cannot be evaluated
        """
        previous = context.state_of(component.id)
        if year < component.start_year:
            return ComponentYearResult.inactive(component.id, COMPONENT_TYPE, year,
                                                context.currency)
        if previous is None:
            self.validate(component, context)
            opening = component.initial_balance
            total_contributions = context.zero()
        else:
            opening = previous.balance
            total_contributions = previous.total_contributions

        zero = context.zero()
        engine = context.engine
        treatment = engine.account_treatment(component.account_type, context.rules)

        contribution, warning = zero, None
        if component.contributes_in(year):
            contribution, warning = self.contribution_for(component, context, year)

        rate = context.return_for(component.asset_class, component.expected_return)
        growth = opening * rate
        dividends = opening * component.dividend_yield
        contributions_tax = contribution * treatment.contributions_tax_rate
        grown = max_money(opening + growth + contribution - contributions_tax, zero)
        fees = grown * component.fee_rate
        earnings_tax = zero
        if treatment.sheltered:
            earnings_tax = max_money(growth, zero) * treatment.earnings_tax_rate
        closing = max_money(grown - fees - earnings_tax, zero)

        state = InvestmentState(balance=closing,
                                total_contributions=total_contributions + contribution)
        return ComponentYearResult(
            component_id=component.id,
            component_type=COMPONENT_TYPE,
            year=year,
            cash_flow=-contribution,
            assessable_income=zero,
            deductions=contribution if treatment.deductible else zero,
            equity=closing,
            state=state,
            dividends=zero if treatment.sheltered else dividends,
            franked_or_qualified=component.franked_or_qualified,
            contributions={component.account_type: contribution} if contribution.is_positive()
            else {},
            warnings=(warning,) if warning is not None else (),
            details={
                'growth': growth,
                'fees': fees,
                'contributions_tax': contributions_tax,
                'earnings_tax': earnings_tax,
            },
        )
