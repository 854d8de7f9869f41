# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Property purchase, mortgage and rental calculator.

A property is bought at the start of ``start_year`` (deposit and purchase
costs leave household cash, the rest is borrowed) and, when ``end_year`` is
set, sold at the end of that year.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..base_classes import ComponentYearResult, HousingState, ScenarioContext
from ..errors import InvalidComponentConfig
from ..money import MONEY_CONTEXT, Money, ONE, ZERO, compound_factor, max_money, min_money
from ..tax.optimizations import RealisedGain

logger = logging.getLogger(__name__)

COMPONENT_TYPE = 'housing'
DEFAULT_ASSET_CLASS = 'residential_property'


@dataclass(frozen=True)
class HousingComponent:
    """A property held in the scenario.

    Nothing is validated at construction; :class:`HousingCalculator` checks
    the configuration the first time the component is calculated.

    Attributes:
        id: Stable component identifier
        name: Display name
        start_year: Scenario year of purchase
        end_year: Scenario year of sale, or None to hold to the horizon
        purchase_price: Price paid for the property
        deposit: Cash put down at purchase; the rest of the price is borrowed
        purchase_costs: Stamp duty, legal and other one-off costs at purchase
        mortgage_rate: Annual loan interest rate (required if anything is borrowed)
        loan_term_years: Term of the loan in years
        interest_only: Interest-only loan; principal is due at the end of the term
        growth_rate: Expected annual capital growth
        asset_class: Market asset class used for sampled growth in Monte Carlo runs
        is_investment: Property is rented out
        annual_rent: Gross rent in the purchase year
        rent_growth: Annual rent growth
        vacancy_rate: Fraction of the year the property is untenanted
        annual_expenses: Rates, insurance and maintenance in the purchase year
        expense_growth: Annual expense growth
        management_fee_rate: Agent fee as a fraction of collected rent
        negative_gearing: Claim rental losses against other income where allowed
        selling_cost_rate: Agent and legal costs on sale as a fraction of the price
        main_residence: Gains on sale are exempt
    """
    id: str
    purchase_price: Money
    deposit: Money
    start_year: int = 0
    end_year: Optional[int] = None
    name: str = ''
    purchase_costs: Optional[Money] = None
    mortgage_rate: Optional[Decimal] = None
    loan_term_years: int = 30
    interest_only: bool = False
    growth_rate: Decimal = ZERO
    asset_class: str = DEFAULT_ASSET_CLASS
    is_investment: bool = False
    annual_rent: Optional[Money] = None
    rent_growth: Decimal = ZERO
    vacancy_rate: Decimal = ZERO
    annual_expenses: Optional[Money] = None
    expense_growth: Decimal = ZERO
    management_fee_rate: Decimal = ZERO
    negative_gearing: bool = False
    selling_cost_rate: Decimal = ZERO
    main_residence: bool = False

    @property
    def currency(self) -> str:
        return self.purchase_price.currency

    @property
    def loan_amount(self) -> Money:
        return self.purchase_price - self.deposit

    def _or_zero(self, value: Optional[Money]) -> Money:
        return value if value is not None else Money.zero(self.currency)

    @property
    def costs(self) -> Money:
        return self._or_zero(self.purchase_costs)

    @property
    def rent(self) -> Money:
        return self._or_zero(self.annual_rent)

    @property
    def expenses(self) -> Money:
        return self._or_zero(self.annual_expenses)


def annuity_payment(balance: Money, rate: Decimal, periods: int) -> Money:
    """Level payment that repays ``balance`` over ``periods`` at ``rate``.

    Example:
        >>> annuity_payment(Money(1000, 'AUD'), Decimal(0), 4)
        Money(amount=Decimal('250'), currency='AUD')
    """
    if periods <= 0:
        raise ValueError(f"periods must be positive: {periods}")
    if rate.is_zero():
        return balance / periods
    discount = MONEY_CONTEXT.power(MONEY_CONTEXT.add(ONE, rate), -periods)
    return balance * MONEY_CONTEXT.divide(rate, MONEY_CONTEXT.subtract(ONE, discount))


class HousingCalculator:
    """Stateless year-by-year calculator for :class:`HousingComponent`."""

    def validate(self, component: HousingComponent, context: ScenarioContext):
        """Raise :class:`InvalidComponentConfig` for the first bad setting."""
        def bad(field, reason):
            return InvalidComponentConfig(component.id, field, reason)

        amounts = [('purchase_price', component.purchase_price), ('deposit', component.deposit),
                   ('purchase_costs', component.costs), ('annual_rent', component.rent),
                   ('annual_expenses', component.expenses)]
        for field_name, amount in amounts:
            if amount.currency != context.currency:
                raise bad(field_name, f"currency {amount.currency} does not match scenario "
                                      f"currency {context.currency}")
            if amount.is_negative():
                raise bad(field_name, "must not be negative")
        if component.deposit > component.purchase_price:
            raise bad('deposit', "exceeds the purchase price")
        if component.loan_amount.is_positive():
            if component.mortgage_rate is None:
                raise bad('mortgage_rate', "required for a financed purchase")
            if component.mortgage_rate < ZERO:
                raise bad('mortgage_rate', "must not be negative")
            if component.loan_term_years < 1:
                raise bad('loan_term_years', "must be at least 1 for a financed purchase")
        for field_name in ('vacancy_rate', 'management_fee_rate', 'selling_cost_rate'):
            rate = getattr(component, field_name)
            if not ZERO <= rate <= ONE:
                raise bad(field_name, "must be between 0 and 1")
        if component.main_residence and component.is_investment:
            raise bad('main_residence', "an investment property cannot be the main residence")
        if component.end_year is not None and component.end_year < component.start_year:
            raise bad('end_year', "is before start_year")

    def _loan_year(self, component: HousingComponent, balance: Money, year: int):
        """Interest and principal paid this year on the opening ``balance``."""
        zero = Money.zero(component.currency)
        if not balance.is_positive():
            return zero, zero
        rate = component.mortgage_rate
        interest = balance * rate
        remaining = component.loan_term_years - (year - component.start_year)
        if remaining <= 1:
            return interest, balance
        if component.interest_only:
            return interest, zero
        payment = annuity_payment(balance, rate, remaining)
        return interest, min_money(payment - interest, balance)

    def calculate_year(self, component: HousingComponent, context: ScenarioContext,
                       year: int) -> ComponentYearResult:
        """Advance ``component`` through ``year``.

        Args:
            component: The property
            context: Scenario context for the year (previous state, rules, returns)
            year: Scenario year being calculated

        Returns:
            ComponentYearResult with the year's cash flow, rental position and
            the updated :class:`HousingState`

        Raises:
            InvalidComponentConfig: If the component cannot be evaluated
        """
        previous = context.state_of(component.id)
        if year < component.start_year or (previous is not None and previous.sold):
            return ComponentYearResult.inactive(component.id, COMPONENT_TYPE, year,
                                                context.currency, previous)
        if previous is None:
            self.validate(component, context)

        zero = context.zero()
        cash_flow = zero
        details = {}
        if year == component.start_year:
            value = component.purchase_price
            loan = component.loan_amount
            cost_base = component.purchase_price + component.costs
            outlay = component.deposit + component.costs
            cash_flow = cash_flow - outlay
            details['purchase_outlay'] = outlay
        else:
            value, loan, cost_base = previous.value, previous.loan_balance, previous.cost_base

        interest, principal = self._loan_year(component, loan, year)
        loan = loan - principal
        cash_flow = cash_flow - interest - principal

        elapsed = year - component.start_year
        expenses = component.expenses * compound_factor(component.expense_growth, elapsed)
        cash_flow = cash_flow - expenses

        assessable = zero
        shortfall = zero
        if component.is_investment:
            gross_rent = component.rent * compound_factor(component.rent_growth, elapsed)
            net_rent = gross_rent * (ONE - component.vacancy_rate)
            fees = net_rent * component.management_fee_rate
            cash_flow = cash_flow + net_rent - fees
            net_rental = net_rent - fees - expenses - interest
            assessable = max_money(net_rental, zero)
            shortfall = max_money(-net_rental, zero)
            details.update(rent=net_rent, management_fees=fees)

        growth = context.return_for(component.asset_class, component.growth_rate)
        value = max_money(value * (ONE + growth), zero)

        details.update(interest=interest, principal=principal, expenses=expenses)

        gains = ()
        sold = component.end_year is not None and year == component.end_year
        if sold:
            net_sale = value * (ONE - component.selling_cost_rate)
            cash_flow = cash_flow + net_sale - loan
            details['sale_proceeds'] = net_sale - loan
            gain = net_sale - cost_base
            if gain.is_positive() and not component.main_residence:
                holding_months = (year - component.start_year + 1) * 12
                gains = (RealisedGain(component.id, gain, holding_months),)
            logger.debug("Property '%s' sold in year %d for %s", component.id, year, net_sale)
            value, loan = zero, zero

        state = HousingState(value=value, loan_balance=loan, cost_base=cost_base, sold=sold)
        return ComponentYearResult(
            component_id=component.id,
            component_type=COMPONENT_TYPE,
            year=year,
            cash_flow=cash_flow,
            assessable_income=assessable,
            deductions=zero,
            equity=state.equity,
            state=state,
            rental_shortfall=shortfall,
            capital_gains=gains,
            details=details,
        )
