# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Tax engine base class.

Each jurisdiction implements :class:`TaxEngine`. Engines are stateless: every
method is a pure function of its arguments and the rules snapshot passed in,
which is what lets projections run in parallel without shared state. Rates
are Decimal fractions and every amount is :class:`Money`.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Dict, List, Optional, Sequence, Tuple, Type

from ..errors import CurrencyMismatch, InvalidInput, NegativeInput
from ..money import MONEY_CONTEXT, Money, ZERO, sum_money
from .optimizations import Optimization, RealisedGain, YearTaxState
from .rules import Jurisdiction, TaxBracket, TaxYearRules


@dataclass(frozen=True)
class AccountTreatment:
    """How a jurisdiction treats an investment account type.

    Attributes:
        deductible: Contributions reduce taxable income
        contributions_tax_rate: Tax withheld from contributions inside the account
        sheltered: Earnings are not taxed in the owner's hands
        earnings_tax_rate: Tax levied on earnings inside the account
        capped: Contributions are subject to an annual limit
    """
    deductible: bool = False
    contributions_tax_rate: Decimal = ZERO
    sheltered: bool = False
    earnings_tax_rate: Decimal = ZERO
    capped: bool = False


TAXABLE_ACCOUNT = AccountTreatment()


def progressive_tax(amount: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """Apply progressive brackets to ``amount``.

    Each rate applies to the slice of income strictly above its threshold and
    up to (and including) the next threshold.
    """
    tax = ZERO
    for index, bracket in enumerate(brackets):
        if amount <= bracket.threshold:
            break
        upper = brackets[index + 1].threshold if index + 1 < len(brackets) else None
        top = amount if upper is None or amount < upper else upper
        slice_ = MONEY_CONTEXT.subtract(top, bracket.threshold)
        tax = MONEY_CONTEXT.add(tax, MONEY_CONTEXT.multiply(slice_, bracket.rate))
    return tax


def bracket_rate(amount: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """Rate of the bracket containing ``amount``; a threshold value belongs to the lower bracket."""
    rate = brackets[0].rate
    for bracket in brackets[1:]:
        if amount > bracket.threshold:
            rate = bracket.rate
        else:
            break
    return rate


def stacked_tax(base: Decimal, extra: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """Tax on ``extra`` when it sits on top of ``base`` in the same bands."""
    total = MONEY_CONTEXT.add(base, extra)
    return MONEY_CONTEXT.subtract(progressive_tax(total, brackets), progressive_tax(base, brackets))


class TaxEngine:
    """Interface and shared helpers for jurisdiction tax engines."""

    jurisdiction: ClassVar[Jurisdiction]
    rules_type: ClassVar[Type[TaxYearRules]] = TaxYearRules
    account_types: ClassVar[Dict[str, AccountTreatment]] = {}

    # -- helpers -------------------------------------------------------------

    def _check_rules(self, rules: TaxYearRules):
        if not isinstance(rules, self.rules_type):
            raise InvalidInput(
                'rules', f"{type(self).__name__} needs {self.rules_type.__name__}, "
                         f"got {type(rules).__name__}")

    @staticmethod
    def _non_negative(field: str, value: Money):
        if value.is_negative():
            raise NegativeInput(field, value.amount)

    @staticmethod
    def _check_currency(value: Money, rules: TaxYearRules):
        if value.currency != rules.currency:
            raise CurrencyMismatch(value.currency, rules.currency)

    @staticmethod
    def _money(amount: Decimal, rules: TaxYearRules) -> Money:
        return Money(amount, rules.currency)

    def _prepare(self, field: str, value: Money, rules: TaxYearRules):
        self._check_rules(rules)
        self._check_currency(value, rules)
        self._non_negative(field, value)

    # -- public contract -----------------------------------------------------

    def income_tax(self, taxable_income: Money, rules: TaxYearRules) -> Money:
        """Tax on taxable income using the progressive brackets."""
        self._prepare('taxable_income', taxable_income, rules)
        return self._money(progressive_tax(taxable_income.amount, rules.brackets), rules)

    def marginal_rate(self, taxable_income: Money, rules: TaxYearRules) -> Decimal:
        self._prepare('taxable_income', taxable_income, rules)
        return bracket_rate(taxable_income.amount, rules.brackets)

    def taxable_income(self, assessable: Money, deductions: Money,
                       rules: TaxYearRules) -> Money:
        """Assessable income less deductions, floored at zero."""
        self._prepare('assessable', assessable, rules)
        self._non_negative('deductions', deductions)
        return (assessable - deductions).floor_zero()

    def capital_gains_tax(self, gain: Money, holding_months: int, rules: TaxYearRules,
                          other_income: Optional[Money] = None) -> Money:
        raise NotImplementedError

    def investment_tax(self, dividends: Money, franked_or_qualified: bool,
                       rules: TaxYearRules, other_income: Optional[Money] = None) -> Money:
        raise NotImplementedError

    def gains_tax(self, gains: Sequence[RealisedGain], rules: TaxYearRules,
                  other_income: Optional[Money] = None) -> Money:
        """Tax on every gain realised in one year, taxed together on ``other_income``."""
        raise NotImplementedError

    def gains_income_base(self, gains: Sequence[RealisedGain], rules: TaxYearRules) -> Money:
        """Amount of the year's gains that uses up income bands ahead of dividends."""
        return sum_money((g.gain for g in gains), rules.currency)

    def dividends_tax(self, franked_or_qualified: Money, other: Money, rules: TaxYearRules,
                      other_income: Optional[Money] = None) -> Money:
        """Tax on the year's dividends.

        Ordinary dividends sit directly on ``other_income`` and flagged
        dividends are stacked on top of them.
        """
        base = other_income or Money.zero(rules.currency)
        tax = Money.zero(rules.currency)
        if other.is_positive():
            tax = tax + self.investment_tax(other, False, rules, other_income=base)
            base = base + other
        if franked_or_qualified.is_positive():
            tax = tax + self.investment_tax(franked_or_qualified, True, rules, other_income=base)
        return tax

    def assess_investment_income(self, gains: Sequence[RealisedGain],
                                 franked_or_qualified: Money, other_dividends: Money,
                                 taxable_income: Money,
                                 rules: TaxYearRules) -> Tuple[Money, Money]:
        """Capital gains tax and dividend tax for one year.

        Gains are aggregated and taxed once on top of taxable income; dividends
        are then stacked on taxable income plus the gains.

        Returns:
            Tuple of (capital gains tax, dividend tax)
        """
        cgt = Money.zero(rules.currency)
        if gains:
            cgt = self.gains_tax(gains, rules, other_income=taxable_income)
        base = taxable_income + self.gains_income_base(gains, rules)
        return cgt, self.dividends_tax(franked_or_qualified, other_dividends, rules,
                                       other_income=base)

    def contribution_limit(self, account_type: str, age: int,
                           rules: TaxYearRules) -> Optional[Money]:
        """Annual contribution cap for ``account_type``, or None if uncapped."""
        raise NotImplementedError

    def account_treatment(self, account_type: str,
                          rules: Optional[TaxYearRules] = None) -> AccountTreatment:
        try:
            return self.account_types[account_type]
        except KeyError:
            raise InvalidInput(
                'account_type',
                f"'{account_type}' is not a {self.jurisdiction.value} account type "
                f"(expected one of {sorted(self.account_types)})") from None

    def allowable_rental_loss(self, shortfall: Money, negative_gearing: bool,
                              rules: TaxYearRules) -> Money:
        """Part of a rental shortfall that may be deducted from other income."""
        self._prepare('shortfall', shortfall, rules)
        return Money.zero(rules.currency)

    @staticmethod
    def negative_gearing_benefit(rental_income: Money, deductible_expenses: Money,
                                 marginal_rate: Decimal) -> Money:
        """Tax saved by offsetting a rental shortfall at ``marginal_rate``.

        Example:
            >>> TaxEngine.negative_gearing_benefit(
            ...     Money(26000, 'AUD'), Money(30000, 'AUD'), Decimal('0.325'))
            Money(amount=Decimal('1300.000'), currency='AUD')
        """
        shortfall = (deductible_expenses - rental_income).floor_zero()
        return shortfall * marginal_rate

    def suggest_optimizations(self, state: YearTaxState) -> List[Optimization]:
        """Advisory suggestions for one year. Never mutates ``state``."""
        suggestions = []
        for warning in state.warnings:
            suggestions.append(Optimization(
                code='contribution_limit_exceeded',
                message=(f"Contribution to '{warning.component_id}' ({warning.account_type}) "
                         f"exceeds the annual cap by {warning.excess}; the excess was not "
                         f"contributed."),
                year=warning.year,
                component_id=warning.component_id,
            ))
        return suggestions

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
