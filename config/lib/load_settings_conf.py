"""Settings configuration loader module.

This module handles loading and parsing of the settings.conf file which
contains the service settings: database connection, store backend, world
reference data, upload and query limits, and HTTP server options.

The settings file uses INI format with a [DEFAULT] section containing
key-value pairs. Every setting has a built-in default, so the file itself
is optional.

Example settings.conf:
    [DEFAULT]
    db_url = postgresql://root@localhost:26257/marketboard?sslmode=disable
    store_backend = postgres
    store_timeout = 10
    worlds_file = /etc/marketboard/worlds.json
    port = 4000

Raises:
    SettingsError: If the file is unreadable or a setting fails validation
"""
from configparser import ConfigParser, Error as ConfigParserError
from pathlib import Path
from typing import Dict, Any, List


class ConfigValidationError:
    """Helper class to format configuration validation errors"""
    def __init__(self):
        self.invalid: List[str] = []
        self.invalid_paths: List[str] = []

    def has_errors(self) -> bool:
        """Check if any errors exist"""
        return bool(self.invalid or self.invalid_paths)

    def format_message(self) -> str:
        """Format error message in a clean, readable way"""
        messages = []

        if self.invalid:
            messages.append("Invalid settings:")
            messages.extend(f"  - {item}" for item in self.invalid)

        if self.invalid_paths:
            if messages:
                messages.append("")
            messages.append("Invalid paths (file does not exist):")
            messages.extend(f"  - {item}" for item in self.invalid_paths)

        return "\n".join(messages)


class SettingsError(Exception):
    """Raised when there are issues loading or parsing the settings configuration."""
    pass


# Default settings
DEFAULTS = {
    'db_url': 'postgresql://root@localhost:26257/marketboard?sslmode=disable',
    'store_backend': 'postgres',  # postgres or memory
    'store_timeout': '10',  # Seconds before a store call fails
    'worlds_file': '',  # Empty uses the bundled world table
    'worlds_url': '',  # Fetch the world table from here instead, if set
    'world_id_floor': '16',  # Worlds at or below this id are rejected
    'world_id_ceiling': '100',  # Worlds at or above this id are rejected
    'history_max_entries': '500',
    'recent_history_size': '20',
    'max_query_items': '100',
    'recency_default_limit': '50',
    'recency_max_limit': '200',
    'host': '0.0.0.0',
    'port': '4000',
    'log_level': 'INFO'
}

INT_SETTINGS = (
    'world_id_floor', 'world_id_ceiling', 'history_max_entries',
    'recent_history_size', 'max_query_items', 'recency_default_limit',
    'recency_max_limit', 'port'
)

POSITIVE_SETTINGS = (
    'history_max_entries', 'recent_history_size', 'max_query_items',
    'recency_default_limit', 'recency_max_limit'
)

STORE_BACKENDS = ('postgres', 'memory')


def load_settings_conf(settings_path: str = ".") -> Dict[str, Any]:
    """Load, merge over defaults and validate settings.conf

    Args:
        settings_path: Directory containing settings.conf

    Returns:
        Dictionary containing validated settings

    Raises:
        SettingsError: If parsing or validation fails
    """
    config_path = Path(settings_path) / 'settings.conf'
    settings = dict(DEFAULTS)

    if config_path.exists():
        try:
            parser = ConfigParser()
            parser.read(config_path)
        except ConfigParserError as e:
            raise SettingsError(f"Error parsing {config_path}: {e}")
        settings.update(parser['DEFAULT'])

    return validate_settings(settings)


def validate_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Validate loaded settings and convert them to their types.

    Args:
        settings: Dictionary of raw settings to validate

    Returns:
        Validated and processed settings

    Raises:
        SettingsError: If validation fails
    """
    settings = dict(settings)
    errors = ConfigValidationError()

    for key in INT_SETTINGS:
        try:
            settings[key] = int(settings[key])
        except (KeyError, TypeError, ValueError):
            errors.invalid.append(f"{key} must be an integer")

    try:
        settings['store_timeout'] = float(settings['store_timeout'])
        if settings['store_timeout'] <= 0:
            errors.invalid.append("store_timeout must be positive")
    except (KeyError, TypeError, ValueError):
        errors.invalid.append("store_timeout must be a number")

    for key in POSITIVE_SETTINGS:
        if isinstance(settings.get(key), int) and settings[key] < 1:
            errors.invalid.append(f"{key} must be at least 1")

    if (isinstance(settings.get('world_id_floor'), int)
            and isinstance(settings.get('world_id_ceiling'), int)
            and settings['world_id_floor'] >= settings['world_id_ceiling']):
        errors.invalid.append("world_id_floor must be below world_id_ceiling")

    if settings.get('store_backend') not in STORE_BACKENDS:
        errors.invalid.append(f"store_backend must be one of: {', '.join(STORE_BACKENDS)}")

    if settings.get('worlds_file'):
        worlds_file = Path(settings['worlds_file']).expanduser().resolve()
        if not worlds_file.exists():
            errors.invalid_paths.append(f"worlds_file: {worlds_file}")
        else:
            settings['worlds_file'] = str(worlds_file)

    settings['log_level'] = str(settings.get('log_level', 'INFO')).upper()

    if errors.has_errors():
        raise SettingsError(
            "Settings Configuration Validation Failed\n\n" +
            errors.format_message()
        )

    return settings
