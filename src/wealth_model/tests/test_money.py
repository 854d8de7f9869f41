# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Tests for Money arithmetic and the configuration manager.
"""

import logging
import unittest
from decimal import Decimal

from ..config import configure_logging
from ..config.config_manager import ConfigManager
from ..errors import AmountOverflow, CurrencyMismatch
from ..money import Money, as_rate, compound_factor, max_money, min_money, sum_money


class TestMoney(unittest.TestCase):
    """Tests for Money."""

    def test_construction_from_str_and_int(self):
        self.assertEqual(Money('10.50', 'AUD').amount, Decimal('10.50'))
        self.assertEqual(Money(3, 'aud').currency, 'AUD')

    def test_float_rejected(self):
        """Binary floats must be converted explicitly."""
        with self.assertRaises(TypeError):
            Money(0.1, 'AUD')
        with self.assertRaises(TypeError):
            as_rate(0.1)

    def test_invalid_currency_code(self):
        with self.assertRaises(ValueError):
            Money(1, 'AU')

    def test_non_numeric_and_non_finite_rejected(self):
        with self.assertRaises(ValueError):
            as_rate('abc')
        with self.assertRaises(ValueError):
            as_rate('NaN')

    def test_addition_and_subtraction(self):
        total = Money('0.10', 'AUD') + Money('0.20', 'AUD')
        self.assertEqual(total, Money('0.30', 'AUD'))
        self.assertEqual(Money(5, 'AUD') - Money(7, 'AUD'), Money(-2, 'AUD'))

    def test_currency_mismatch_leaves_operands_unchanged(self):
        left = Money(100, 'AUD')
        right = Money(50, 'USD')
        with self.assertRaises(CurrencyMismatch) as ctx:
            left + right
        self.assertEqual(ctx.exception.left, 'AUD')
        self.assertEqual(ctx.exception.right, 'USD')
        self.assertEqual(left, Money(100, 'AUD'))
        self.assertEqual(right, Money(50, 'USD'))
        with self.assertRaises(CurrencyMismatch):
            left < right

    def test_scaling(self):
        self.assertEqual(Money(100, 'AUD') * Decimal('0.325'), Money('32.5', 'AUD'))
        self.assertEqual(2 * Money(3, 'AUD'), Money(6, 'AUD'))
        self.assertEqual(Money(10, 'AUD') / 4, Money('2.5', 'AUD'))
        self.assertEqual(Money(10, 'AUD') / Money(4, 'AUD'), Decimal('2.5'))
        with self.assertRaises(TypeError):
            Money(10, 'AUD') * 0.5

    def test_overflow(self):
        with self.assertRaises(AmountOverflow):
            Money('1e16', 'AUD')
        with self.assertRaises(AmountOverflow):
            Money('9e14', 'AUD') + Money('9e14', 'AUD')

    def test_bankers_rounding(self):
        self.assertEqual(Money('2.675', 'AUD').rounded().amount, Decimal('2.68'))
        self.assertEqual(Money('2.665', 'AUD').rounded().amount, Decimal('2.66'))
        self.assertEqual(Money('10.005', 'AUD').rounded().amount, Decimal('10.00'))

    def test_str(self):
        self.assertEqual(str(Money('1234.5', 'AUD')), 'AUD 1,234.50')

    def test_helpers(self):
        self.assertTrue(Money(0, 'GBP').is_zero())
        self.assertEqual(Money(-5, 'GBP').floor_zero(), Money(0, 'GBP'))
        self.assertEqual(sum_money([], 'GBP'), Money(0, 'GBP'))
        self.assertEqual(sum_money([Money(1, 'GBP'), Money(2, 'GBP')], 'GBP'), Money(3, 'GBP'))
        self.assertEqual(max_money(Money(1, 'GBP'), Money(2, 'GBP')), Money(2, 'GBP'))
        self.assertEqual(min_money(Money(1, 'GBP'), Money(2, 'GBP')), Money(1, 'GBP'))

    def test_compound_factor(self):
        self.assertEqual(compound_factor(Decimal('0.1'), 2), Decimal('1.21'))
        self.assertEqual(compound_factor(Decimal('0.05'), 0), Decimal(1))
        with self.assertRaises(ValueError):
            compound_factor(Decimal('0.1'), -1)


class TestConfigManager(unittest.TestCase):
    """Tests for ConfigManager."""

    def test_defaults(self):
        manager = ConfigManager(environ={})
        self.assertEqual(manager.financial.get('montecarlo.default_iterations'), 10000)
        self.assertEqual(manager.runtime.get('montecarlo.executor'), 'process')
        self.assertIsNone(manager.runtime.get('max_workers'))
        self.assertEqual(manager.runtime.get('missing.key', 'fallback'), 'fallback')

    def test_overrides_then_environment(self):
        manager = ConfigManager(
            overrides={'runtime': {'montecarlo': {'executor': 'thread'}}},
            environ={'WEALTH_MODEL_MAX_WORKERS': '3', 'WEALTH_MODEL_LOG_LEVEL': 'debug'},
        )
        self.assertEqual(manager.runtime.get('montecarlo.executor'), 'thread')
        self.assertEqual(manager.runtime.get('max_workers'), 3)
        self.assertEqual(manager.logging.get('level'), 'debug')
        # Sibling keys survive the merge
        self.assertEqual(manager.runtime.get('cache.max_entries'), 256)

    def test_invalid_environment_value(self):
        with self.assertRaises(ValueError):
            ConfigManager(environ={'WEALTH_MODEL_MAX_WORKERS': 'many'})

    def test_missing_config_file(self):
        with self.assertRaises(ValueError):
            ConfigManager(environ={'WEALTH_MODEL_CONFIG': '/nonexistent/wealth.json'})

    def test_unknown_section(self):
        with self.assertRaises(KeyError):
            ConfigManager(environ={}).section('metrics')

    def test_configure_logging_is_idempotent(self):
        manager = ConfigManager(environ={'WEALTH_MODEL_LOG_LEVEL': 'warning'})
        package_logger = configure_logging(manager=manager)
        handlers = len(package_logger.handlers)
        configure_logging(level='debug', manager=manager)
        self.assertEqual(len(package_logger.handlers), handlers)
        self.assertEqual(package_logger.level, logging.DEBUG)
        self.assertEqual(package_logger.name, 'wealth_model')


if __name__ == '__main__':
    unittest.main()
