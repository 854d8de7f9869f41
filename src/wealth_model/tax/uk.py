# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
UK tax engine (England, Wales and Northern Ireland rates).

There is no holding-period discount for gains; instead an annual exempt
amount is deducted and the remainder is taxed at the basic or higher CGT
rate depending on how much of the basic rate band other income has used.
"""

from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from ..money import MONEY_CONTEXT, Money, ZERO, min_money, sum_money
from .base import AccountTreatment, TAXABLE_ACCOUNT, TaxEngine, stacked_tax
from .optimizations import Optimization, RealisedGain, YearTaxState
from .rules import Jurisdiction, UKRules

PENSION = 'pension'
ISA = 'isa'
GIA = 'gia'

class UKTaxEngine(TaxEngine):
    jurisdiction = Jurisdiction.UK
    rules_type = UKRules
    account_types = {
        PENSION: AccountTreatment(deductible=True, sheltered=True, capped=True),
        ISA: AccountTreatment(sheltered=True, capped=True),
        GIA: TAXABLE_ACCOUNT,
    }

    def personal_allowance(self, adjusted_net_income: Money, rules: UKRules) -> Money:
        """Allowance reduced by 1 for every 2 of income above the taper threshold."""
        self._prepare('adjusted_net_income', adjusted_net_income, rules)
        excess = MONEY_CONTEXT.subtract(adjusted_net_income.amount, rules.allowance_taper_threshold)
        reduction = MONEY_CONTEXT.divide(excess, 2) if excess > ZERO else ZERO
        allowance = MONEY_CONTEXT.subtract(rules.personal_allowance, reduction)
        return self._money(max(allowance, ZERO), rules)

    def taxable_income(self, assessable: Money, deductions: Money,
                       rules: UKRules) -> Money:
        self._prepare('assessable', assessable, rules)
        self._non_negative('deductions', deductions)
        adjusted = (assessable - deductions).floor_zero()
        return (adjusted - self.personal_allowance(adjusted, rules)).floor_zero()

    def _banded(self, amount: Money, allowance: Decimal, brackets, rules: UKRules,
                other_income: Optional[Money]) -> Money:
        base = other_income or Money.zero(rules.currency)
        self._prepare('other_income', base, rules)
        taxable = max(MONEY_CONTEXT.subtract(amount.amount, allowance), ZERO)
        return self._money(stacked_tax(base.amount, taxable, brackets), rules)

    def capital_gains_tax(self, gain: Money, holding_months: int, rules: UKRules,
                          other_income: Optional[Money] = None) -> Money:
        """Gain above the annual exempt amount at basic/higher CGT rates.

        ``holding_months`` does not change the result.
        """
        self._prepare('gain', gain, rules)
        if holding_months < 0:
            raise ValueError(f"holding_months must not be negative: {holding_months}")
        return self._banded(gain, rules.cgt_annual_exempt, rules.cgt_brackets, rules,
                            other_income)

    def gains_tax(self, gains: Sequence[RealisedGain], rules: UKRules,
                  other_income: Optional[Money] = None) -> Money:
        """One annual exempt amount and one basic band for all of the year's gains."""
        total = sum_money((g.gain for g in gains), rules.currency)
        return self.capital_gains_tax(total, 0, rules, other_income)

    def investment_tax(self, dividends: Money, franked_or_qualified: bool,
                       rules: UKRules, other_income: Optional[Money] = None) -> Money:
        """Dividends above the dividend allowance at dividend rates by band."""
        self._prepare('dividends', dividends, rules)
        return self._banded(dividends, rules.dividend_allowance, rules.dividend_brackets, rules,
                            other_income)

    def dividends_tax(self, franked_or_qualified: Money, other: Money, rules: UKRules,
                      other_income: Optional[Money] = None) -> Money:
        """All dividends share one dividend allowance; the flag has no UK meaning."""
        total = franked_or_qualified + other
        if not total.is_positive():
            return Money.zero(rules.currency)
        return self.investment_tax(total, False, rules, other_income)

    def assess_investment_income(self, gains: Sequence[RealisedGain],
                                 franked_or_qualified: Money, other_dividends: Money,
                                 taxable_income: Money,
                                 rules: UKRules) -> Tuple[Money, Money]:
        """Dividends sit on taxable income and gains are taxed last, on top of both."""
        dividend_tax = self.dividends_tax(franked_or_qualified, other_dividends, rules,
                                          other_income=taxable_income)
        cgt = Money.zero(rules.currency)
        if gains:
            cgt = self.gains_tax(gains, rules, other_income=(
                taxable_income + franked_or_qualified + other_dividends))
        return cgt, dividend_tax

    def contribution_limit(self, account_type: str, age: int,
                           rules: UKRules) -> Optional[Money]:
        self._check_rules(rules)
        treatment = self.account_treatment(account_type)
        if not treatment.capped:
            return None
        if account_type == ISA:
            return self._money(rules.isa_allowance, rules)
        if age >= rules.pension_age_limit:
            return Money.zero(rules.currency)
        return self._money(rules.pension_annual_allowance, rules)

    def suggest_optimizations(self, state: YearTaxState) -> List[Optimization]:
        suggestions = super().suggest_optimizations(state)

        isa_cap = state.contribution_caps.get(ISA)
        has_gains = any(g.gain.is_positive() for g in state.capital_gains)
        if isa_cap is not None and (state.taxable_dividends.is_positive() or has_gains):
            unused = (isa_cap - state.contributed(ISA)).floor_zero()
            if unused.is_positive():
                suggestions.append(Optimization(
                    code='uk_isa_allowance',
                    message=(f"{unused} of ISA allowance is unused while dividends or gains "
                             f"are taxed outside it."),
                    year=state.year,
                ))

        pension_cap = state.contribution_caps.get(PENSION)
        higher_rate = state.rules.brackets[1].rate
        if pension_cap is not None and state.marginal_rate >= higher_rate:
            unused = min_money((pension_cap - state.contributed(PENSION)).floor_zero(),
                               state.taxable_income)
            if unused.is_positive():
                suggestions.append(Optimization(
                    code='uk_pension_relief',
                    message=(f"{unused} of pension annual allowance is unused; contributions "
                             f"get relief at the {state.marginal_rate:.0%} marginal rate."),
                    year=state.year,
                    estimated_saving=unused * state.marginal_rate,
                ))
        return suggestions
