"""Configuration module for loading and managing application settings"""
import os
from typing import Dict, Any, Optional

from .lib.load_settings_conf import load_settings_conf, validate_settings, SettingsError, DEFAULTS

__all__ = ['load_settings', 'load_settings_conf', 'validate_settings', 'SettingsError', 'DEFAULTS']

SETTINGS_ENV = 'MARKET_SETTINGS'


def load_settings(settings_path: Optional[str] = None) -> Dict[str, Any]:
    """Load settings.conf from the given directory, $MARKET_SETTINGS or the working directory.

    Raises:
        SettingsError: With a report of every invalid setting
    """
    path = settings_path or os.environ.get(SETTINGS_ENV) or '.'
    try:
        return load_settings_conf(path)
    except SettingsError as e:
        raise SettingsError(
            f"Configuration Error\n"
            "=================\n\n"
            f"{str(e)}\n\n"
            "Please ensure settings.conf is properly configured.\n"
            "See settings.conf.example for the available settings."
        )
