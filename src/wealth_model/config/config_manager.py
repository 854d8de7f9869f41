# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Configuration manager.

Settings are grouped in sections (``financial``, ``runtime``, ``logging``)
and read with dotted keys, e.g. ``config.runtime.get('cache.max_bytes')``.
Built-in defaults are overlaid by an optional JSON file named in
``WEALTH_MODEL_CONFIG`` and then by individual environment variables.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Dict[str, Any]] = {
    'financial': {
        'money': {
            'precision': 28,
            'display_places': 2,
            'amount_ceiling': '1e15',
        },
        'montecarlo': {
            'default_iterations': 10000,
            'return_floor': '-0.95',
        },
    },
    'runtime': {
        'max_workers': None,
        'montecarlo': {
            'executor': 'process',
            'batch_size': None,
        },
        'cache': {
            'max_entries': 256,
            'max_bytes': 64 * 1024 * 1024,
        },
        'rules_path': None,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
    },
}

# env var -> (section, dotted key, converter)
ENV_OVERRIDES = {
    'WEALTH_MODEL_LOG_LEVEL': ('logging', 'level', str),
    'WEALTH_MODEL_MAX_WORKERS': ('runtime', 'max_workers', int),
    'WEALTH_MODEL_MC_EXECUTOR': ('runtime', 'montecarlo.executor', str),
    'WEALTH_MODEL_MC_ITERATIONS': ('financial', 'montecarlo.default_iterations', int),
    'WEALTH_MODEL_CACHE_MAX_BYTES': ('runtime', 'cache.max_bytes', int),
    'WEALTH_MODEL_RULES_PATH': ('runtime', 'rules_path', str),
}


class ConfigSection:
    """One named group of settings with dotted-key lookup."""

    def __init__(self, name: str, values: Dict[str, Any]):
        self.name = name
        self._values = values

    def get(self, key: str, default: Any = None) -> Any:
        current: Any = self._values
        for part in key.split('.'):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return default if current is None else current

    def set(self, key: str, value: Any):
        parts = key.split('.')
        current = self._values
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = value

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    def __repr__(self) -> str:
        return f"ConfigSection({self.name!r})"


def _deep_merge(base: Dict[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in overlay.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


class ConfigManager:
    """Loads and holds the wealth model configuration.

    Example:
        >>> manager = ConfigManager()
        >>> manager.financial.get('montecarlo.default_iterations')
        10000
    """

    def __init__(self, overrides: Optional[Mapping[str, Any]] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Build the configuration.

        Args:
            overrides: Optional nested dict merged over the defaults (after
                      the JSON file, before environment variables).
            environ: Environment mapping to read. Defaults to ``os.environ``.
        """
        env = os.environ if environ is None else environ
        values = copy.deepcopy(DEFAULTS)

        config_path = env.get('WEALTH_MODEL_CONFIG')
        if config_path:
            _deep_merge(values, self._read_file(Path(config_path)))
        if overrides:
            _deep_merge(values, overrides)

        self.financial = ConfigSection('financial', values['financial'])
        self.runtime = ConfigSection('runtime', values['runtime'])
        self.logging = ConfigSection('logging', values['logging'])
        self._apply_environment(env)

    @staticmethod
    def _read_file(path: Path) -> Dict[str, Any]:
        try:
            with path.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
        except FileNotFoundError as e:
            raise ValueError(f"Config file not found: {path}") from e
        except json.JSONDecodeError as e:
            raise ValueError(f"Config file {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        return data

    def _apply_environment(self, env: Mapping[str, str]):
        for name, (section_name, key, convert) in ENV_OVERRIDES.items():
            raw = env.get(name)
            if raw is None or raw.strip() == '':
                continue
            try:
                value = convert(raw.strip())
            except ValueError as e:
                raise ValueError(f"Invalid value for {name}: {raw!r}") from e
            getattr(self, section_name).set(key, value)

    def section(self, name: str) -> ConfigSection:
        if name not in ('financial', 'runtime', 'logging'):
            raise KeyError(name)
        return getattr(self, name)


config = ConfigManager()
