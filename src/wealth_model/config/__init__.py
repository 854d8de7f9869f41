# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Configuration and logging setup."""

import logging
from typing import Optional

from .config_manager import ConfigManager, ConfigSection, config

__all__ = ['ConfigManager', 'ConfigSection', 'config', 'configure_logging']


def configure_logging(level: Optional[str] = None,
                      manager: Optional[ConfigManager] = None) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Library modules only create loggers; applications (the HTTP service,
    scripts) call this once at startup.
    """
    manager = manager or config
    level_name = (level or manager.logging.get('level', 'INFO')).upper()
    package_logger = logging.getLogger('wealth_model')
    package_logger.setLevel(level_name)
    if not any(getattr(h, '_wealth_model', False) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(manager.logging.get('format')))
        handler._wealth_model = True
        package_logger.addHandler(handler)
    return package_logger
