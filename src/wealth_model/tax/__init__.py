# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Tax engines per jurisdiction.

Each engine is a set of pure functions over :class:`Money` and a versioned,
immutable :class:`TaxYearRules` snapshot. Use :func:`engine_for` to select
the engine for a jurisdiction and :class:`RulesRepository` to obtain rules.
"""

from .base import AccountTreatment, TaxEngine, bracket_rate, progressive_tax, stacked_tax
from .au import AUTaxEngine
from .us import USTaxEngine
from .uk import UKTaxEngine
from .optimizations import ContributionLimitExceeded, Optimization, RealisedGain, YearTaxState
from .registry import engine_for
from .rules import (
    AURules,
    Jurisdiction,
    RulesRepository,
    TaxBracket,
    TaxYearRules,
    UKRules,
    USRules,
    rules_from_dict,
)

__all__ = [
    'AccountTreatment', 'TaxEngine', 'bracket_rate', 'progressive_tax', 'stacked_tax',
    'AUTaxEngine', 'USTaxEngine', 'UKTaxEngine',
    'ContributionLimitExceeded', 'Optimization', 'RealisedGain', 'YearTaxState',
    'engine_for',
    'AURules', 'Jurisdiction', 'RulesRepository', 'TaxBracket', 'TaxYearRules',
    'UKRules', 'USRules', 'rules_from_dict',
]
