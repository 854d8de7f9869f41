# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
US federal tax engine (single filer).

Long-term gains and qualified dividends use the preferential rate table
stacked on top of ordinary taxable income; short-term gains and ordinary
dividends are taxed as ordinary income.
"""

from typing import List, Optional, Sequence

from ..money import MONEY_CONTEXT, Money, min_money, sum_money
from .base import AccountTreatment, TAXABLE_ACCOUNT, TaxEngine, stacked_tax
from .optimizations import Optimization, RealisedGain, YearTaxState
from .rules import Jurisdiction, USRules

ACCOUNT_401K = '401k'
ACCOUNT_ROTH_401K = 'roth_401k'
ACCOUNT_IRA = 'ira'
ACCOUNT_ROTH_IRA = 'roth_ira'
BROKERAGE = 'brokerage'

class USTaxEngine(TaxEngine):
    jurisdiction = Jurisdiction.US
    rules_type = USRules
    account_types = {
        ACCOUNT_401K: AccountTreatment(deductible=True, sheltered=True, capped=True),
        ACCOUNT_ROTH_401K: AccountTreatment(sheltered=True, capped=True),
        ACCOUNT_IRA: AccountTreatment(deductible=True, sheltered=True, capped=True),
        ACCOUNT_ROTH_IRA: AccountTreatment(sheltered=True, capped=True),
        BROKERAGE: TAXABLE_ACCOUNT,
    }

    def taxable_income(self, assessable: Money, deductions: Money,
                       rules: USRules) -> Money:
        """Adjusted gross income less the standard deduction."""
        self._prepare('assessable', assessable, rules)
        self._non_negative('deductions', deductions)
        standard = self._money(rules.standard_deduction, rules)
        return (assessable - deductions - standard).floor_zero()

    def _stacked(self, amount: Money, preferential: bool, rules: USRules,
                 other_income: Optional[Money]) -> Money:
        base = other_income or Money.zero(rules.currency)
        self._prepare('other_income', base, rules)
        brackets = rules.ltcg_brackets if preferential else rules.brackets
        return self._money(stacked_tax(base.amount, amount.amount, brackets), rules)

    def is_long_term(self, holding_months: int, rules: USRules) -> bool:
        if holding_months < 0:
            raise ValueError(f"holding_months must not be negative: {holding_months}")
        return holding_months >= rules.long_term_min_months

    def capital_gains_tax(self, gain: Money, holding_months: int, rules: USRules,
                          other_income: Optional[Money] = None) -> Money:
        self._prepare('gain', gain, rules)
        return self._stacked(gain, self.is_long_term(holding_months, rules), rules, other_income)

    def gains_tax(self, gains: Sequence[RealisedGain], rules: USRules,
                  other_income: Optional[Money] = None) -> Money:
        """Short-term gains as ordinary income, then long-term gains stacked above them."""
        base = other_income or Money.zero(rules.currency)
        short_term = sum_money((g.gain for g in gains
                                if not self.is_long_term(g.holding_months, rules)), rules.currency)
        long_term = sum_money((g.gain for g in gains
                               if self.is_long_term(g.holding_months, rules)), rules.currency)
        self._prepare('gain', short_term, rules)
        self._prepare('gain', long_term, rules)
        return (self._stacked(short_term, False, rules, base)
                + self._stacked(long_term, True, rules, base + short_term))

    def investment_tax(self, dividends: Money, franked_or_qualified: bool,
                       rules: USRules, other_income: Optional[Money] = None) -> Money:
        """Qualified dividends at long-term rates, ordinary dividends at income rates."""
        self._prepare('dividends', dividends, rules)
        return self._stacked(dividends, franked_or_qualified, rules, other_income)

    def contribution_limit(self, account_type: str, age: int,
                           rules: USRules) -> Optional[Money]:
        self._check_rules(rules)
        treatment = self.account_treatment(account_type)
        if not treatment.capped:
            return None
        catch_up = age >= rules.catch_up_age
        if account_type in (ACCOUNT_401K, ACCOUNT_ROTH_401K):
            limit = rules.limit_401k + (rules.catch_up_401k if catch_up else 0)
        else:
            limit = rules.limit_ira + (rules.catch_up_ira if catch_up else 0)
        return self._money(limit, rules)

    def allowable_rental_loss(self, shortfall: Money, negative_gearing: bool,
                              rules: USRules) -> Money:
        """Rental losses offset other income up to the passive loss allowance."""
        self._prepare('shortfall', shortfall, rules)
        return min_money(shortfall, self._money(rules.passive_loss_allowance, rules))

    def suggest_optimizations(self, state: YearTaxState) -> List[Optimization]:
        suggestions = super().suggest_optimizations(state)

        cap = state.contribution_caps.get(ACCOUNT_401K)
        if cap is not None and state.taxable_income.is_positive():
            used = state.contributed(ACCOUNT_401K) + state.contributed(ACCOUNT_ROTH_401K)
            unused = min_money((cap - used).floor_zero(), state.taxable_income)
            if unused.is_positive():
                suggestions.append(Optimization(
                    code='us_401k_room',
                    message=(f"{unused} of 401(k) room is unused; pre-tax deferrals would "
                             f"save tax at the {state.marginal_rate:.0%} marginal rate."),
                    year=state.year,
                    estimated_saving=unused * state.marginal_rate,
                ))

        rules = state.rules
        # Lowest non-zero preferential rate sizes the saving estimate
        ltcg_rate = next((b.rate for b in rules.ltcg_brackets if b.rate > 0),
                         rules.ltcg_brackets[-1].rate)
        for realised in state.capital_gains:
            if not self.is_long_term(realised.holding_months, rules) \
                    and realised.gain.is_positive() and state.marginal_rate > ltcg_rate:
                suggestions.append(Optimization(
                    code='us_short_term_gain',
                    message=(f"Gain on '{realised.component_id}' is short-term; holding at "
                             f"least {rules.long_term_min_months} months qualifies for long-term "
                             f"rates."),
                    year=state.year,
                    estimated_saving=realised.gain * MONEY_CONTEXT.subtract(
                        state.marginal_rate, ltcg_rate),
                    component_id=realised.component_id,
                ))
        return suggestions
