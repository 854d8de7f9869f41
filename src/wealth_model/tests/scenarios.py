# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Scenario builders shared by the test modules."""

from decimal import Decimal

from ..account.investment import InvestmentComponent
from ..housing.property import HousingComponent
from ..money import Money
from ..scenario.inputs import ScenarioInput


def aud(amount) -> Money:
    return Money(amount, 'AUD')


def usd(amount) -> Money:
    return Money(amount, 'USD')


def gbp(amount) -> Money:
    return Money(amount, 'GBP')


def au_scenario(**overrides) -> ScenarioInput:
    """A salaried AU household with no components."""
    values = dict(
        jurisdiction='AU',
        currency='AUD',
        tax_year=2024,
        horizon_years=5,
        start_age=35,
        annual_income=aud(100000),
        starting_savings=aud(50000),
        annual_expenses=aud(40000),
    )
    values.update(overrides)
    return ScenarioInput(**values)


def brokerage(**overrides) -> InvestmentComponent:
    values = dict(
        id='shares',
        account_type='brokerage',
        initial_balance=aud(20000),
        monthly_contribution=aud(500),
        expected_return=Decimal('0.07'),
        asset_class='au_equities',
    )
    values.update(overrides)
    return InvestmentComponent(**values)


def super_account(**overrides) -> InvestmentComponent:
    values = dict(
        id='super',
        account_type='super_concessional',
        initial_balance=aud(80000),
        monthly_contribution=aud(1000),
        expected_return=Decimal('0.07'),
        asset_class='balanced',
    )
    values.update(overrides)
    return InvestmentComponent(**values)


def rental_property(**overrides) -> HousingComponent:
    values = dict(
        id='rental',
        purchase_price=aud(600000),
        deposit=aud(120000),
        purchase_costs=aud(25000),
        mortgage_rate=Decimal('0.06'),
        loan_term_years=30,
        interest_only=True,
        growth_rate=Decimal('0.05'),
        is_investment=True,
        annual_rent=aud(26000),
        annual_expenses=aud(4000),
        negative_gearing=True,
    )
    values.update(overrides)
    return HousingComponent(**values)
