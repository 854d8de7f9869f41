# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Tests for the US and UK tax engines.
"""

import unittest
from decimal import Decimal

from ..tax import UKTaxEngine, USTaxEngine
from ..tax.optimizations import RealisedGain, YearTaxState
from ..tax.tables import UK_2025, US_2024
from .scenarios import gbp, usd


class TestUSTaxEngine(unittest.TestCase):
    """Tests for USTaxEngine (2024, single filer)."""

    def setUp(self):
        self.engine = USTaxEngine()
        self.rules = US_2024

    def test_standard_deduction(self):
        self.assertEqual(self.engine.taxable_income(usd(100000), usd(0), self.rules),
                         usd(85400))
        self.assertEqual(self.engine.taxable_income(usd(10000), usd(0), self.rules), usd(0))

    def test_income_tax(self):
        # 1160 + 4266 + 8415
        self.assertEqual(self.engine.income_tax(usd(85400), self.rules), usd(13841))

    def test_long_term_gain_uses_preferential_rates(self):
        tax = self.engine.capital_gains_tax(usd(10000), 12, self.rules, other_income=usd(85400))
        self.assertEqual(tax, usd(1500))

    def test_long_term_gain_in_zero_band(self):
        tax = self.engine.capital_gains_tax(usd(10000), 24, self.rules, other_income=usd(20000))
        self.assertEqual(tax, usd(0))

    def test_short_term_gain_taxed_as_ordinary_income(self):
        tax = self.engine.capital_gains_tax(usd(10000), 11, self.rules, other_income=usd(85400))
        self.assertEqual(tax, usd(2200))

    def test_qualified_dividends(self):
        qualified = self.engine.investment_tax(usd(1000), True, self.rules, usd(85400))
        ordinary = self.engine.investment_tax(usd(1000), False, self.rules, usd(85400))
        self.assertEqual(qualified, usd(150))
        self.assertEqual(ordinary, usd(220))

    def test_short_and_long_term_gains_in_one_year(self):
        gains = (RealisedGain('trade', usd(5000), 6), RealisedGain('core', usd(20000), 24))
        # Short-term at 12%, then long-term from 35000 straddles the 0% band
        self.assertEqual(self.engine.gains_tax(gains, self.rules, other_income=usd(30000)),
                         usd('1796.25'))

    def test_qualified_dividends_stack_above_gains(self):
        gains = (RealisedGain('trade', usd(5000), 6), RealisedGain('core', usd(20000), 24))
        cgt, dividend_tax = self.engine.assess_investment_income(
            gains, usd(1000), usd(0), usd(30000), self.rules)
        self.assertEqual(cgt, usd('1796.25'))
        self.assertEqual(dividend_tax, usd(150))

    def test_contribution_limits_with_catch_up(self):
        self.assertEqual(self.engine.contribution_limit('401k', 40, self.rules), usd(23000))
        self.assertEqual(self.engine.contribution_limit('roth_401k', 50, self.rules),
                         usd(30500))
        self.assertEqual(self.engine.contribution_limit('ira', 50, self.rules), usd(8000))
        self.assertIsNone(self.engine.contribution_limit('brokerage', 50, self.rules))

    def test_passive_loss_allowance(self):
        self.assertEqual(self.engine.allowable_rental_loss(usd(30000), True, self.rules),
                         usd(25000))
        self.assertEqual(self.engine.allowable_rental_loss(usd(4000), False, self.rules),
                         usd(4000))

    def test_401k_room_suggestion(self):
        state = YearTaxState(
            year=2, age=40, currency='USD', taxable_income=usd(85400),
            marginal_rate=Decimal('0.22'),
            rules=self.rules,
            contributions={'401k': usd(3000)},
            contribution_caps={'401k': usd(23000)},
            capital_gains=(RealisedGain('shares', usd(5000), 4),),
        )
        suggestions = {s.code: s for s in self.engine.suggest_optimizations(state)}
        self.assertEqual(set(suggestions), {'us_401k_room', 'us_short_term_gain'})
        self.assertEqual(suggestions['us_401k_room'].estimated_saving, usd(4400))
        self.assertEqual(suggestions['us_short_term_gain'].estimated_saving, usd(350))


class TestUKTaxEngine(unittest.TestCase):
    """Tests for UKTaxEngine (2024-25)."""

    def setUp(self):
        self.engine = UKTaxEngine()
        self.rules = UK_2025

    def test_personal_allowance(self):
        self.assertEqual(self.engine.taxable_income(gbp(50000), gbp(0), self.rules),
                         gbp(37430))

    def test_personal_allowance_taper(self):
        self.assertEqual(self.engine.personal_allowance(gbp(110000), self.rules), gbp(7570))
        self.assertEqual(self.engine.personal_allowance(gbp(125140), self.rules), gbp(0))
        self.assertEqual(self.engine.taxable_income(gbp(110000), gbp(0), self.rules),
                         gbp(102430))

    def test_income_tax(self):
        self.assertEqual(self.engine.income_tax(gbp(37430), self.rules), gbp(7486))

    def test_capital_gains_annual_exemption(self):
        self.assertEqual(self.engine.capital_gains_tax(gbp(3000), 6, self.rules), gbp(0))
        self.assertEqual(self.engine.capital_gains_tax(gbp(13000), 6, self.rules), gbp(1800))

    def test_capital_gains_higher_rate(self):
        tax = self.engine.capital_gains_tax(gbp(13000), 60, self.rules, other_income=gbp(50000))
        self.assertEqual(tax, gbp(2400))

    def test_holding_period_does_not_matter(self):
        short = self.engine.capital_gains_tax(gbp(13000), 1, self.rules, gbp(20000))
        long = self.engine.capital_gains_tax(gbp(13000), 120, self.rules, gbp(20000))
        self.assertEqual(short, long)

    def test_gains_share_one_exemption_and_band(self):
        gains = (RealisedGain('plot_a', gbp(21000), 24), RealisedGain('plot_b', gbp(21000), 24))
        together = self.engine.gains_tax(gains, self.rules)
        self.assertEqual(together, self.engine.capital_gains_tax(gbp(42000), 24, self.rules))
        self.assertEqual(together, gbp(7098))

    def test_gains_taxed_on_top_of_dividends(self):
        gains = (RealisedGain('plot_a', gbp(21000), 24), RealisedGain('plot_b', gbp(21000), 24))
        cgt, dividend_tax = self.engine.assess_investment_income(
            gains, gbp(1200), gbp(800), gbp(30000), self.rules)
        # One 500 allowance for both dividend streams
        self.assertEqual(dividend_tax, gbp('131.25'))
        # 5700 of basic band left after income and dividends
        self.assertEqual(cgt, gbp(9018))

    def test_dividend_allowance(self):
        self.assertEqual(self.engine.investment_tax(gbp(1500), False, self.rules),
                         gbp('87.5'))

    def test_contribution_limits(self):
        self.assertEqual(self.engine.contribution_limit('isa', 40, self.rules), gbp(20000))
        self.assertEqual(self.engine.contribution_limit('pension', 40, self.rules), gbp(60000))
        self.assertEqual(self.engine.contribution_limit('pension', 75, self.rules), gbp(0))
        self.assertIsNone(self.engine.contribution_limit('gia', 40, self.rules))

    def test_no_rental_loss_offset(self):
        self.assertEqual(self.engine.allowable_rental_loss(gbp(5000), True, self.rules), gbp(0))

    def test_isa_and_pension_suggestions(self):
        state = YearTaxState(
            year=0, age=45, currency='GBP', taxable_income=gbp(60000),
            marginal_rate=Decimal('0.40'),
            rules=self.rules,
            contribution_caps={'isa': gbp(20000), 'pension': gbp(60000)},
            taxable_dividends=gbp(2000),
        )
        codes = [s.code for s in self.engine.suggest_optimizations(state)]
        self.assertEqual(codes, ['uk_isa_allowance', 'uk_pension_relief'])

    def test_no_pension_suggestion_for_basic_rate(self):
        state = YearTaxState(
            year=0, age=45, currency='GBP', taxable_income=gbp(20000),
            marginal_rate=Decimal('0.20'),
            rules=self.rules,
            contribution_caps={'isa': gbp(20000), 'pension': gbp(60000)},
        )
        self.assertEqual(self.engine.suggest_optimizations(state), [])


if __name__ == '__main__':
    unittest.main()
