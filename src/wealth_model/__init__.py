# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Wealth Projection Engine

Multi-year, multi-jurisdiction (AU, US, UK) household wealth projections:
income and expenses, housing with mortgages and rental income, tax-sheltered
and taxable investment accounts, year-versioned tax rules, and Monte Carlo
simulation of market uncertainty with cached, single-flight computation.

Example usage:
    from wealth_model import CalculationOrchestrator, Money, ScenarioInput

    scenario = ScenarioInput(jurisdiction='AU', currency='AUD', tax_year=2024,
                             horizon_years=10, start_age=35,
                             annual_income=Money('120000', 'AUD'))
    with CalculationOrchestrator() as orchestrator:
        result = orchestrator.compute_scenario(scenario)
    df = result.to_dataframe()
"""

# Money and errors
from .money import Money
from .errors import (
    AmountOverflow,
    CurrencyMismatch,
    InvalidComponentConfig,
    InvalidInput,
    NegativeInput,
    RulesNotFound,
    ScenarioCalculationError,
    SimulationCancelled,
    UnsupportedJurisdiction,
    WealthModelError,
)

# Tax
from .tax import (
    ContributionLimitExceeded,
    Jurisdiction,
    Optimization,
    RulesRepository,
    TaxYearRules,
    engine_for,
)

# Components
from .housing import HousingComponent
from .account import InvestmentComponent

# Scenario
from .scenario import ScenarioInput, ScenarioProjector, ScenarioResult, YearlyProjection, compute_scenario

# Monte Carlo Simulation
from .montecarlo import (
    CancellationToken,
    MarketAssumptions,
    MonteCarloConfig,
    MonteCarloResults,
    MonteCarloSimulator,
)

# Orchestration
from .orchestrator import CalculationOrchestrator, ComputationKind, ComputationRequest

# Serialization
from .serialization import market_from_dict, monte_carlo_config_from_dict, scenario_from_dict

# Version
from .__meta__ import __version__

__all__ = [
    # Money and errors
    'Money', 'WealthModelError', 'InvalidInput', 'NegativeInput', 'InvalidComponentConfig',
    'UnsupportedJurisdiction', 'RulesNotFound', 'CurrencyMismatch', 'AmountOverflow',
    'ScenarioCalculationError', 'SimulationCancelled',
    # Tax
    'Jurisdiction', 'TaxYearRules', 'RulesRepository', 'engine_for',
    'ContributionLimitExceeded', 'Optimization',
    # Components
    'HousingComponent', 'InvestmentComponent',
    # Scenario
    'ScenarioInput', 'ScenarioProjector', 'ScenarioResult', 'YearlyProjection',
    'compute_scenario',
    # Monte Carlo
    'MonteCarloSimulator', 'MonteCarloConfig', 'MonteCarloResults',
    'MarketAssumptions', 'CancellationToken',
    # Orchestration
    'CalculationOrchestrator', 'ComputationKind', 'ComputationRequest',
    # Serialization
    'scenario_from_dict', 'monte_carlo_config_from_dict', 'market_from_dict',
    # Version
    '__version__',
]
