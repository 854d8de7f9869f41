# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Monte Carlo simulation module for probabilistic financial modeling.

This module runs a scenario many times with annual asset-class returns
sampled from normal distributions (Box-Muller), and aggregates the net
worth paths into percentile bands, success probability and risk measures.
"""

from .config import MonteCarloConfig
from .market_assumptions import MarketAssumptions, AssetClassAssumptions
from .return_generator import BoxMullerReturnGenerator, box_muller
from .simulator import CancellationToken, MonteCarloSimulator
from .results import IterationFailure, MonteCarloResults, PercentileBand

__all__ = [
    'MonteCarloConfig',
    'MarketAssumptions',
    'AssetClassAssumptions',
    'BoxMullerReturnGenerator',
    'box_muller',
    'CancellationToken',
    'MonteCarloSimulator',
    'IterationFailure',
    'MonteCarloResults',
    'PercentileBand',
]
