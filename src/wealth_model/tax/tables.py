# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Bundled rules snapshots.

Figures are resident individual rates (single filer for the US). Newer
years or corrections should be supplied through a rules file
(``WEALTH_MODEL_RULES_PATH``) rather than by editing these tables.
"""

from decimal import Decimal
from typing import List

from .rules import AURules, TaxYearRules, UKRules, USRules, Jurisdiction, _brackets

D = Decimal

# FY2023-24 (1 July 2023 - 30 June 2024)
AU_2024 = AURules(
    jurisdiction=Jurisdiction.AU,
    tax_year=2024,
    brackets=_brackets([
        ('0', '0'),
        ('18200', '0.19'),
        ('45000', '0.325'),
        ('120000', '0.37'),
        ('180000', '0.45'),
    ]),
    medicare_levy_rate=D('0.02'),
    medicare_levy_threshold=D('24276'),
    concessional_cap=D('27500'),
    non_concessional_cap=D('110000'),
)

# FY2024-25, stage 3 rates
AU_2025 = AURules(
    jurisdiction=Jurisdiction.AU,
    tax_year=2025,
    brackets=_brackets([
        ('0', '0'),
        ('18200', '0.16'),
        ('45000', '0.30'),
        ('135000', '0.37'),
        ('190000', '0.45'),
    ]),
    medicare_levy_rate=D('0.02'),
    medicare_levy_threshold=D('27222'),
    concessional_cap=D('30000'),
    non_concessional_cap=D('120000'),
)

US_2024 = USRules(
    jurisdiction=Jurisdiction.US,
    tax_year=2024,
    brackets=_brackets([
        ('0', '0.10'),
        ('11600', '0.12'),
        ('47150', '0.22'),
        ('100525', '0.24'),
        ('191950', '0.32'),
        ('243725', '0.35'),
        ('609350', '0.37'),
    ]),
    standard_deduction=D('14600'),
    ltcg_brackets=_brackets([
        ('0', '0'),
        ('47025', '0.15'),
        ('518900', '0.20'),
    ]),
    limit_401k=D('23000'),
    catch_up_401k=D('7500'),
    limit_ira=D('7000'),
    catch_up_ira=D('1000'),
)

# 2024-25 (6 April 2024 - 5 April 2025). Brackets apply to income above the
# personal allowance.
UK_2025 = UKRules(
    jurisdiction=Jurisdiction.UK,
    tax_year=2025,
    brackets=_brackets([
        ('0', '0.20'),
        ('37700', '0.40'),
        ('125140', '0.45'),
    ]),
    personal_allowance=D('12570'),
    allowance_taper_threshold=D('100000'),
    cgt_annual_exempt=D('3000'),
    cgt_brackets=_brackets([
        ('0', '0.18'),
        ('37700', '0.24'),
    ]),
    dividend_allowance=D('500'),
    dividend_brackets=_brackets([
        ('0', '0.0875'),
        ('37700', '0.3375'),
        ('125140', '0.3935'),
    ]),
    isa_allowance=D('20000'),
    pension_annual_allowance=D('60000'),
)


def default_snapshots() -> List[TaxYearRules]:
    return [AU_2024, AU_2025, US_2024, UK_2025]
