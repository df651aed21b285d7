"""
Configuration layer — load and validate cbzdrop.toml

Responsibilities:
- Locate the config file (environment override or user config directory)
- Parse TOML and validate it into immutable settings models
- Create a commented template on first run
"""

from .errors import ConfigError
from .settings import (
    AppSettings,
    WatchSettings,
    PackagingSettings,
    SmtpSettings,
    LedgerSettings,
)
from .loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_TEMPLATE,
    default_config_path,
    write_default_config,
    load_settings,
    parse_settings,
)

__all__ = [
    "ConfigError",
    "AppSettings",
    "WatchSettings",
    "PackagingSettings",
    "SmtpSettings",
    "LedgerSettings",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_TEMPLATE",
    "default_config_path",
    "write_default_config",
    "load_settings",
    "parse_settings",
]
