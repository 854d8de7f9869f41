# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Fingerprinting, result caching and single-flight computation."""

from .cache import CacheEntry, CalculationCache
from .fingerprint import canonical_json, fingerprint, scenario_fingerprint
from .service import (
    CalculationOrchestrator,
    ComputationKind,
    ComputationRequest,
    ProgressiveResult,
)

__all__ = [
    'CacheEntry', 'CalculationCache',
    'canonical_json', 'fingerprint', 'scenario_fingerprint',
    'CalculationOrchestrator', 'ComputationKind', 'ComputationRequest', 'ProgressiveResult',
]
