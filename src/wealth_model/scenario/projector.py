# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Year-by-year scenario projection.

A :class:`ScenarioProjector` runs once, strictly in year order, because each
year's opening balances are the previous year's closing balances. Tax
assessed for a year is paid from cash in the following year.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from ..account.investment import InvestmentCalculator
from ..base_classes import ComponentState, ComponentYearResult, ScenarioContext
from ..errors import InvalidInput, ScenarioCalculationError
from ..housing.property import HousingCalculator
from ..money import Money, compound_factor, max_money, min_money, sum_money
from ..tax.base import TaxEngine
from ..tax.optimizations import Optimization, YearTaxState
from ..tax.registry import engine_for
from ..tax.rules import TaxYearRules
from .inputs import ScenarioInput
from .results import ScenarioResult, ScenarioSummary, YearlyProjection, deduplicate_optimizations

logger = logging.getLogger(__name__)

SampledReturns = Sequence[Mapping[str, Decimal]]


class ProjectorState(Enum):
    INITIALIZED = 'initialized'
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'


class ScenarioProjector:
    """Projects one scenario under one rules snapshot.

    Example:
        >>> repo = RulesRepository.with_defaults()
        >>> projector = ScenarioProjector(scenario, repo.get('AU', 2025))
        >>> result = projector.run()
        >>> result.summary.final_net_worth
    """

    housing_calculator = HousingCalculator()
    investment_calculator = InvestmentCalculator()

    def __init__(self, scenario: ScenarioInput, rules: TaxYearRules,
                 returns: Optional[SampledReturns] = None,
                 fingerprint: Optional[str] = None, advise: bool = True):
        """Prepare a projection.

        Args:
            scenario: Scenario to project
            rules: Tax rules snapshot for the scenario's jurisdiction and tax year
            returns: Sampled returns by asset class, one mapping per year
                    (Monte Carlo mode). None uses each component's expected return.
            fingerprint: Precomputed fingerprint to stamp on the result
            advise: Collect optimization suggestions; off for Monte Carlo batches
        """
        self.scenario = scenario
        self.rules = rules
        self.returns = returns
        self.advise = advise
        self._fingerprint = fingerprint
        self.state = ProjectorState.INITIALIZED
        self.current_year: Optional[int] = None
        self.engine: Optional[TaxEngine] = None

    def _validate(self):
        scenario = self.scenario.validate()
        if self.rules.jurisdiction is not scenario.jurisdiction:
            raise InvalidInput('rules', f"rules {self.rules.version} do not apply to "
                                        f"{scenario.jurisdiction.value}")
        if self.rules.tax_year != scenario.tax_year:
            raise InvalidInput('rules', f"rules {self.rules.version} are not for tax year "
                                        f"{scenario.tax_year}")
        if self.returns is not None and len(self.returns) < len(scenario.years):
            raise InvalidInput('returns', f"need {len(scenario.years)} years of sampled returns, "
                                          f"got {len(self.returns)}")
        self.engine = engine_for(scenario.jurisdiction)

    def run(self) -> ScenarioResult:
        """Run the projection for years 0..horizon.

        Raises:
            InvalidInput: If the scenario or rules are invalid (nothing is computed)
            ScenarioCalculationError: If any year fails; partial results are discarded
        """
        if self.state is not ProjectorState.INITIALIZED:
            raise RuntimeError(f"Projector already used (state {self.state.value})")
        try:
            self._validate()
        except InvalidInput:
            self.state = ProjectorState.FAILED
            raise

        self.state = ProjectorState.RUNNING
        try:
            result = self._project()
        except ScenarioCalculationError:
            self.state = ProjectorState.FAILED
            raise
        except Exception as e:
            self.state = ProjectorState.FAILED
            raise ScenarioCalculationError(self.current_year, e) from e
        self.state = ProjectorState.COMPLETED
        return result

    def _project(self) -> ScenarioResult:
        scenario = self.scenario
        currency = scenario.currency
        zero = Money.zero(currency)

        cash = scenario.starting_savings
        debt = scenario.starting_debt
        tax_carried = zero
        states: Dict[str, ComponentState] = {}
        projections: List[YearlyProjection] = []
        optimizations: List[Optimization] = []
        warnings = []

        for year in scenario.years:
            self.current_year = year
            age = scenario.start_age + year
            context = ScenarioContext(
                jurisdiction=scenario.jurisdiction,
                rules=self.rules,
                engine=self.engine,
                currency=currency,
                year=year,
                age=age,
                previous=dict(states),
                sampled_returns=self.returns[year] if self.returns is not None else None,
            )
            results = self._run_components(context)

            income = zero
            if scenario.retirement_age is None or age < scenario.retirement_age:
                income = scenario.annual_income * compound_factor(scenario.income_growth, year)
            expenses = scenario.annual_expenses * compound_factor(scenario.expense_growth, year)
            interest_earned = max_money(cash, zero) * scenario.savings_rate
            debt_interest = debt * scenario.debt_interest_rate

            taxes = self._assess(context, results, income + interest_earned)

            cash = (cash + income + interest_earned - expenses - debt_interest - tax_carried
                    + sum_money((r.cash_flow for r in results), currency))
            repayment = min_money(debt, max_money(cash, zero))
            cash = cash - repayment
            debt = debt - repayment

            equity = sum_money((r.equity for r in results), currency)
            contributions = sum_money(
                (amount for r in results for amount in r.contributions.values()), currency)
            net_worth = cash + equity - debt - taxes['tax_payable']

            projections.append(YearlyProjection(
                year=year,
                age=age,
                income=income,
                expenses=expenses,
                taxable_income=taxes['taxable_income'],
                income_tax=taxes['income_tax'],
                capital_gains_tax=taxes['capital_gains_tax'],
                investment_tax=taxes['investment_tax'],
                tax_payable=taxes['tax_payable'],
                tax_paid=tax_carried,
                negative_gearing_benefit=taxes['negative_gearing_benefit'],
                contributions=contributions,
                cash=cash,
                debt=debt,
                net_worth=net_worth,
                components=tuple(results),
            ))
            optimizations.extend(taxes['optimizations'])
            for r in results:
                warnings.extend(r.warnings)
                if r.state is not None:
                    states[r.component_id] = r.state
            tax_carried = taxes['tax_payable']

        if self._fingerprint is None:
            from ..orchestrator.fingerprint import scenario_fingerprint
            self._fingerprint = scenario_fingerprint(scenario, self.rules)

        return ScenarioResult(
            fingerprint=self._fingerprint,
            rules_version=self.rules.version,
            currency=currency,
            projections=tuple(projections),
            summary=ScenarioSummary.from_projections(projections, currency),
            optimizations=deduplicate_optimizations(optimizations),
            warnings=tuple(warnings),
        )

    def _run_components(self, context: ScenarioContext) -> List[ComponentYearResult]:
        results = []
        for component in self.scenario.housing:
            try:
                results.append(self.housing_calculator.calculate_year(
                    component, context, context.year))
            except Exception as e:
                raise ScenarioCalculationError(context.year, e, component.id) from e

        # Caps are shared by every account of the same type within a year.
        cap_used: Dict[str, Money] = {}
        for component in self.scenario.investments:
            component_context = replace(context, cap_used=dict(cap_used))
            try:
                result = self.investment_calculator.calculate_year(
                    component, component_context, context.year)
            except Exception as e:
                raise ScenarioCalculationError(context.year, e, component.id) from e
            for account_type, amount in result.contributions.items():
                cap_used[account_type] = cap_used.get(account_type, context.zero()) + amount
            results.append(result)
        return results

    def _assess(self, context: ScenarioContext, results: List[ComponentYearResult],
                other_assessable: Money) -> Dict[str, object]:
        """Tax assessed for the year from the aggregated component results."""
        engine, rules, zero = context.engine, context.rules, context.zero()
        currency = context.currency

        assessable = other_assessable + sum_money((r.assessable_income for r in results), currency)
        deductions = sum_money((r.deductions for r in results), currency)

        ungeared = engine.taxable_income(assessable, deductions, rules)
        ungeared_rate = engine.marginal_rate(ungeared, rules)
        rental_losses = zero
        gearing_benefit = zero
        for result, component in zip(results, self.scenario.housing):
            if not result.rental_shortfall.is_positive():
                continue
            allowable = engine.allowable_rental_loss(
                result.rental_shortfall, component.negative_gearing, rules)
            if allowable.is_positive():
                rent = result.details.get('rent', zero)
                gearing_benefit = gearing_benefit + engine.negative_gearing_benefit(
                    rent, rent + allowable, ungeared_rate)
                rental_losses = rental_losses + allowable

        taxable = engine.taxable_income(assessable, deductions + rental_losses, rules)
        income_tax = engine.income_tax(taxable, rules)

        gains = tuple(g for r in results for g in r.capital_gains)
        franked = sum_money((r.dividends for r in results if r.franked_or_qualified), currency)
        unfranked = sum_money((r.dividends for r in results if not r.franked_or_qualified),
                              currency)
        capital_gains_tax, investment_tax = engine.assess_investment_income(
            gains, franked, unfranked, taxable, rules)

        taxes = {
            'taxable_income': taxable,
            'income_tax': income_tax,
            'capital_gains_tax': capital_gains_tax,
            'investment_tax': investment_tax,
            'tax_payable': income_tax + capital_gains_tax + investment_tax,
            'negative_gearing_benefit': gearing_benefit,
            'optimizations': [],
        }
        if not self.advise:
            return taxes

        contributions: Dict[str, Money] = {}
        for r in results:
            for account_type, amount in r.contributions.items():
                contributions[account_type] = contributions.get(account_type, zero) + amount
        caps = {}
        for account_type, treatment in engine.account_types.items():
            if treatment.capped:
                caps[account_type] = engine.contribution_limit(account_type, context.age, rules)

        state = YearTaxState(
            year=context.year,
            age=context.age,
            currency=currency,
            taxable_income=taxable,
            marginal_rate=engine.marginal_rate(taxable, rules),
            rules=rules,
            contributions=contributions,
            contribution_caps=caps,
            capital_gains=gains,
            taxable_dividends=franked + unfranked,
            warnings=tuple(w for r in results for w in r.warnings),
        )
        taxes['optimizations'] = engine.suggest_optimizations(state)
        return taxes


def compute_scenario(scenario: ScenarioInput,
                     rules: Optional[TaxYearRules] = None) -> ScenarioResult:
    """Project ``scenario`` deterministically.

    Args:
        scenario: Scenario to project
        rules: Rules snapshot; looked up in the bundled rules when None

    Raises:
        RulesNotFound: If no rules were given and none are bundled for the tax year
    """
    if rules is None:
        from ..tax.rules import RulesRepository
        rules = RulesRepository.with_defaults().get(scenario.jurisdiction, scenario.tax_year)
    return ScenarioProjector(scenario, rules).run()
