"""
Configuration errors.

Raised once at start-up; the core never sees an unvalidated configuration.
"""

from pathlib import Path
from typing import List, Optional


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""

    def __init__(self, message: str, config_path: Optional[Path] = None, problems: Optional[List[str]] = None):
        self.message = message
        self.config_path = config_path
        self.problems = problems or []
        detail = message
        if self.problems:
            detail += "\n" + "\n".join(f"  - {problem}" for problem in self.problems)
        super().__init__(detail)
