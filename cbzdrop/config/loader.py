"""
Configuration file loading.

Reads a TOML file and validates it into AppSettings. A missing file is
replaced by a commented template and reported, so the first run tells the
user exactly what to edit.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .errors import ConfigError
from .settings import AppSettings

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CBZDROP_CONFIG"
CONFIG_FILENAME = "cbzdrop.toml"

DEFAULT_CONFIG_TEMPLATE = """\
# cbzdrop configuration

[watch]
# Directory to watch for new .cbz archives (searched recursively)
directory = "/path/to/your/comics"
# Delete the source archive once every package was delivered
delete_after_processing = false
# Also process archives that already exist when cbzdrop starts
process_existing = false

[packaging]
# Maximum image size per package in MB (most mail servers cap around 25MB)
size_limit_mb = 25

[smtp]
server = "smtp.example.com"
port = 587
username = ""
password = ""
from_email = ""
to_email = ""
subject = "Comics"

[ledger]
# path = "/custom/location/processed.txt"
"""


def default_config_path() -> Path:
    """
    Config file location.

    $CBZDROP_CONFIG if set, else $XDG_CONFIG_HOME/cbzdrop.toml, falling back
    to %APPDATA% on Windows and ~/.config elsewhere.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    config_root = os.environ.get("XDG_CONFIG_HOME") or os.environ.get("APPDATA")
    base = Path(config_root) if config_root else Path.home() / ".config"
    return base / CONFIG_FILENAME


def write_default_config(config_path: Path) -> None:
    """Write the commented template to ``config_path``."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")


def load_settings(config_path: Optional[Union[str, Path]] = None) -> AppSettings:
    """
    Load and validate the configuration file.

    Args:
        config_path: Explicit path; defaults to default_config_path()

    Returns:
        Validated AppSettings

    Raises:
        ConfigError: If the file is missing (a template is created),
            unreadable, not valid TOML, or fails validation
    """
    path = Path(config_path).expanduser() if config_path else default_config_path()

    if not path.exists():
        try:
            write_default_config(path)
            logger.info(f"Created default config file at {path}")
        except OSError as e:
            raise ConfigError(f"Config file {path} is missing and could not be created: {e}", path)
        raise ConfigError(f"Please edit the config file at {path}", path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}", path) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Config file {path} is not valid TOML: {e}", path) from e

    return parse_settings(data, path)


def parse_settings(data: dict, config_path: Optional[Path] = None) -> AppSettings:
    """
    Validate an already-parsed configuration mapping.

    Raises:
        ConfigError: Listing every invalid or missing field
    """
    try:
        return AppSettings.model_validate(data)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        where = f" in {config_path}" if config_path else ""
        raise ConfigError(f"Invalid configuration{where}", config_path, problems) from e
