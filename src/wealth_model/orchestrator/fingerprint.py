# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Deterministic fingerprints of computation inputs.

A fingerprint is the SHA-256 of a canonical JSON rendering (sorted keys,
Decimals as strings, enums by value) of everything that determines a result:
the computation kind, the scenario, the rules version and, for Monte Carlo
runs, the simulation config and market assumptions. Dataclass fields whose
metadata sets ``fingerprint=False`` (worker counts, executor kind) do not
change results and are left out.
"""

import dataclasses
import hashlib
import json
from decimal import Decimal
from enum import Enum
from typing import Any

from ..money import Money
from ..tax.rules import TaxYearRules


def canonical(value: Any) -> Any:
    """Reduce ``value`` to JSON-compatible primitives in a stable form."""
    if isinstance(value, Enum):
        return canonical(value.value)
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, Money):
        return {'amount': str(value.amount), 'currency': value.currency}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        data = {'__type__': type(value).__name__}
        for f in dataclasses.fields(value):
            if f.metadata.get('fingerprint', True):
                data[f.name] = canonical(getattr(value, f.name))
        return data
    if isinstance(value, dict):
        return {str(k): canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [canonical(v) for v in value]
    if hasattr(value, 'to_canonical'):
        return canonical(value.to_canonical())
    raise TypeError(f"Cannot fingerprint {type(value).__name__}")


def canonical_json(value: Any) -> str:
    return json.dumps(canonical(value), sort_keys=True, separators=(',', ':'))


def fingerprint(kind: Any, scenario: Any, rules: TaxYearRules,
                mc_config: Any = None, market: Any = None) -> str:
    """SHA-256 hex digest identifying one computation.

    Example:
        >>> fingerprint('scenario', scenario, rules) == fingerprint('scenario', scenario, rules)
        True
    """
    payload = {
        'kind': canonical(kind),
        'scenario': canonical(scenario),
        'rules_version': rules.version,
    }
    if mc_config is not None:
        payload['monte_carlo'] = canonical(mc_config)
    if market is not None:
        payload['market'] = canonical(market)
    return hashlib.sha256(canonical_json(payload).encode('utf-8')).hexdigest()


def scenario_fingerprint(scenario: Any, rules: TaxYearRules) -> str:
    return fingerprint('scenario', scenario, rules)
