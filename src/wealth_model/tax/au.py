# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Australian tax engine.

Covers resident income tax with the Medicare levy, the 50% CGT discount,
dividend imputation (franking credits), superannuation contribution caps
and negative gearing of investment properties.
"""

from dataclasses import replace
from decimal import Decimal
from typing import List, Optional, Sequence

from ..money import MONEY_CONTEXT, Money, ONE, ZERO, min_money, sum_money
from .base import AccountTreatment, TAXABLE_ACCOUNT, TaxEngine, progressive_tax
from .optimizations import Optimization, RealisedGain, YearTaxState
from .rules import AURules, Jurisdiction

SUPER_CONCESSIONAL = 'super_concessional'
SUPER_NON_CONCESSIONAL = 'super_non_concessional'
BROKERAGE = 'brokerage'


class AUTaxEngine(TaxEngine):
    jurisdiction = Jurisdiction.AU
    rules_type = AURules
    account_types = {
        SUPER_CONCESSIONAL: AccountTreatment(
            deductible=True, contributions_tax_rate=Decimal('0.15'),
            sheltered=True, earnings_tax_rate=Decimal('0.15'), capped=True),
        SUPER_NON_CONCESSIONAL: AccountTreatment(
            sheltered=True, earnings_tax_rate=Decimal('0.15'), capped=True),
        BROKERAGE: TAXABLE_ACCOUNT,
    }

    def _levy(self, taxable: Decimal, rules: AURules) -> Decimal:
        if taxable <= rules.medicare_levy_threshold:
            return ZERO
        return MONEY_CONTEXT.multiply(taxable, rules.medicare_levy_rate)

    def _total(self, taxable: Decimal, rules: AURules) -> Decimal:
        return MONEY_CONTEXT.add(progressive_tax(taxable, rules.brackets), self._levy(taxable, rules))

    def income_tax(self, taxable_income: Money, rules: AURules) -> Money:
        """Bracket tax plus the Medicare levy once income exceeds the levy threshold."""
        self._prepare('taxable_income', taxable_income, rules)
        return self._money(self._total(taxable_income.amount, rules), rules)

    def discounted_gain(self, gain: Money, holding_months: int, rules: AURules) -> Money:
        """Taxable base of a gain after the CGT discount."""
        self._prepare('gain', gain, rules)
        if holding_months < 0:
            raise ValueError(f"holding_months must not be negative: {holding_months}")
        if holding_months >= rules.cgt_discount_min_months:
            return gain * (ONE - rules.cgt_discount_rate)
        return gain

    def _stacked(self, extra: Money, rules: AURules, other_income: Optional[Money]) -> Money:
        """Tax (levy included) on ``extra`` sitting on top of ``other_income``."""
        base = (other_income or Money.zero(rules.currency))
        self._prepare('other_income', base, rules)
        total = MONEY_CONTEXT.add(base.amount, extra.amount)
        tax = MONEY_CONTEXT.subtract(self._total(total, rules), self._total(base.amount, rules))
        return self._money(tax, rules)

    def capital_gains_tax(self, gain: Money, holding_months: int, rules: AURules,
                          other_income: Optional[Money] = None) -> Money:
        """Tax on a gain stacked on ``other_income`` at marginal rates."""
        return self._stacked(self.discounted_gain(gain, holding_months, rules), rules,
                             other_income)

    def gains_income_base(self, gains: Sequence[RealisedGain], rules: AURules) -> Money:
        """Sum of the year's gains after the discount is applied to each one."""
        return sum_money((self.discounted_gain(g.gain, g.holding_months, rules) for g in gains),
                         rules.currency)

    def gains_tax(self, gains: Sequence[RealisedGain], rules: AURules,
                  other_income: Optional[Money] = None) -> Money:
        """Discounted gains are added together and taxed at marginal rates once."""
        return self._stacked(self.gains_income_base(gains, rules), rules, other_income)

    def franking_credit(self, dividends: Money, rules: AURules) -> Money:
        """Credit attached to fully franked dividends at the company tax rate."""
        self._prepare('dividends', dividends, rules)
        rate = rules.company_tax_rate
        return dividends * MONEY_CONTEXT.divide(rate, ONE - rate)

    def investment_tax(self, dividends: Money, franked_or_qualified: bool,
                       rules: AURules, other_income: Optional[Money] = None) -> Money:
        """Personal tax on dividends, net of franking credits.

        Fully franked dividends are grossed up by the franking credit, taxed at
        marginal rates, and the credit is subtracted; the result is negative
        when the credit exceeds the tax (a refund).
        """
        self._prepare('dividends', dividends, rules)
        credit = self.franking_credit(dividends, rules) if franked_or_qualified \
            else Money.zero(rules.currency)
        return self._stacked(dividends + credit, rules, other_income) - credit

    def account_treatment(self, account_type: str,
                          rules: Optional[AURules] = None) -> AccountTreatment:
        """Super treatment uses the contributions and earnings tax rates of ``rules`` when given."""
        treatment = super().account_treatment(account_type, rules)
        if rules is None or not treatment.sheltered:
            return treatment
        return replace(
            treatment,
            contributions_tax_rate=(rules.super_contributions_tax_rate
                                    if treatment.deductible else ZERO),
            earnings_tax_rate=rules.super_earnings_tax_rate,
        )

    def contribution_limit(self, account_type: str, age: int,
                           rules: AURules) -> Optional[Money]:
        self._check_rules(rules)
        treatment = self.account_treatment(account_type)
        if not treatment.capped:
            return None
        if age >= rules.contribution_age_limit:
            return Money.zero(rules.currency)
        if account_type == SUPER_CONCESSIONAL:
            return self._money(rules.concessional_cap, rules)
        return self._money(rules.non_concessional_cap, rules)

    def allowable_rental_loss(self, shortfall: Money, negative_gearing: bool,
                              rules: AURules) -> Money:
        """Full shortfall when negative gearing is enabled, otherwise nothing."""
        self._prepare('shortfall', shortfall, rules)
        return shortfall if negative_gearing else Money.zero(rules.currency)

    def suggest_optimizations(self, state: YearTaxState) -> List[Optimization]:
        suggestions = super().suggest_optimizations(state)
        rules = state.rules
        super_rate = rules.super_contributions_tax_rate

        # Salary sacrifice into super while the marginal rate beats contributions tax.
        cap = state.contribution_caps.get(SUPER_CONCESSIONAL)
        if cap is not None and state.taxable_income.is_positive() \
                and state.marginal_rate > super_rate:
            unused = (cap - state.contributed(SUPER_CONCESSIONAL)).floor_zero()
            unused = min_money(unused, state.taxable_income)
            if unused.is_positive():
                suggestions.append(Optimization(
                    code='au_salary_sacrifice',
                    message=(f"{unused} of concessional super cap is unused; salary sacrificing "
                             f"it is taxed at {super_rate:.0%} instead of the "
                             f"{state.marginal_rate:.1%} marginal rate."),
                    year=state.year,
                    estimated_saving=unused * (state.marginal_rate - super_rate),
                ))

        for realised in state.capital_gains:
            if realised.holding_months < rules.cgt_discount_min_months \
                    and realised.gain.is_positive():
                suggestions.append(Optimization(
                    code='au_cgt_discount_missed',
                    message=(f"Gain on '{realised.component_id}' was realised after "
                             f"{realised.holding_months} months; holding for "
                             f"{rules.cgt_discount_min_months} months would cut the taxable "
                             f"gain by {rules.cgt_discount_rate:.0%}."),
                    year=state.year,
                    estimated_saving=(realised.gain * rules.cgt_discount_rate
                                      * state.marginal_rate),
                    component_id=realised.component_id,
                ))
        return suggestions
