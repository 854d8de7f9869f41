# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Deterministic scenario projection."""

from .inputs import MAX_HORIZON_YEARS, ScenarioInput
from .projector import ProjectorState, ScenarioProjector, compute_scenario
from .results import ScenarioResult, ScenarioSummary, YearlyProjection

__all__ = [
    'MAX_HORIZON_YEARS', 'ScenarioInput',
    'ProjectorState', 'ScenarioProjector', 'compute_scenario',
    'ScenarioResult', 'ScenarioSummary', 'YearlyProjection',
]
