"""Centralized configuration for barberbook.

Loads configuration from a .env file and the environment and provides
typed access to settings.

- A fresh checkout runs with no .env at all (Cairo, 0% cashier share)
- Invalid values produce clear errors
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import pytz

from ..core.money import clamp_percent
from ..rollups.aggregator import UNATTRIBUTED_POLICIES
from ..rollups.time_windows import CAIRO_TIMEZONE

__all__ = [
    "ConfigError",
    "Settings",
    "generate_example_env",
    "get_settings",
    "load_env_file",
    "load_settings",
]

_TRUE_VALUES = ("1", "true", "yes", "on")


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class Settings:
    """Settings for the reporting core.

    Attributes
    ----------
    timezone : str
        Civil timezone all business periods are computed in
    cashier_share_pct : float
        Configured cashier share of net profit, in percent
    default_role : str
        Role assumed for actors whose role is unknown
    unattributed_policy : str
        "count" or "drop" bills/expenses without an actor in store totals
    log_level : str
        Logging level
    log_dir : Path | None
        Directory for JSONL logs (console only when unset)
    log_console : bool
        Log to stderr
    """

    timezone: str = CAIRO_TIMEZONE
    cashier_share_pct: float = 0.0
    default_role: str = "cashier"
    unattributed_policy: str = "count"

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None
    log_console: bool = True

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.log_dir and isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)

        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError as exc:
            raise ConfigError(
                f"Invalid timezone: {self.timezone}. Use an IANA name such as Africa/Cairo in BARBERBOOK_TIMEZONE"
            ) from exc

        self.cashier_share_pct = clamp_percent(self.cashier_share_pct)

        if self.unattributed_policy not in UNATTRIBUTED_POLICIES:
            raise ConfigError(
                f"Invalid unattributed policy: {self.unattributed_policy}. "
                f"Expected one of: {', '.join(UNATTRIBUTED_POLICIES)}"
            )

        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls, env_file: Path | str | None = None) -> Settings:
        """Load settings from environment.

        Loads from .env file if present, then reads os.environ.

        Parameters
        ----------
        env_file
            Path to .env file (default: .env in current directory)

        Returns
        -------
        Settings
            Loaded settings

        Raises
        ------
        ConfigError
            If settings are invalid
        """
        if env_file is None:
            env_file = Path(".env")

        if isinstance(env_file, str):
            env_file = Path(env_file)

        if env_file.exists():
            load_env_file(env_file)

        raw_share = os.environ.get("BARBERBOOK_CASHIER_SHARE_PCT", "0")
        try:
            cashier_share_pct = float(raw_share)
        except ValueError as exc:
            raise ConfigError(
                f"BARBERBOOK_CASHIER_SHARE_PCT must be a number, got {raw_share!r}"
            ) from exc

        return cls(
            timezone=os.environ.get("BARBERBOOK_TIMEZONE", CAIRO_TIMEZONE),
            cashier_share_pct=cashier_share_pct,
            default_role=os.environ.get("BARBERBOOK_DEFAULT_ROLE", "cashier"),
            unattributed_policy=os.environ.get("BARBERBOOK_UNATTRIBUTED_POLICY", "count").lower(),
            log_level=os.environ.get("BARBERBOOK_LOG_LEVEL", "INFO"),
            log_dir=Path(os.environ["BARBERBOOK_LOG_DIR"]) if os.environ.get("BARBERBOOK_LOG_DIR") else None,
            log_console=os.environ.get("BARBERBOOK_LOG_CONSOLE", "true").lower() in _TRUE_VALUES,
        )


def load_env_file(env_file: Path) -> None:
    """Load environment variables from .env file.

    Parameters
    ----------
    env_file
        Path to .env file
    """
    with open(env_file, encoding="utf-8") as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]

                os.environ[key] = value


# Global settings instance
_settings: Settings | None = None


def load_settings(env_file: Path | str | None = None) -> Settings:
    """Load settings from .env and environment and remember them.

    Raises
    ------
    ConfigError
        If settings are invalid
    """
    global _settings
    _settings = Settings.from_env(env_file)
    return _settings


def get_settings() -> Settings:
    """Get current settings.

    Raises
    ------
    ConfigError
        If settings not loaded
    """
    if _settings is None:
        raise ConfigError("Settings not loaded. Call load_settings() first.")
    return _settings


def generate_example_env(output_path: Path | None = None) -> str:
    """Generate example .env file with all settings.

    Parameters
    ----------
    output_path
        Optional path to write .env file

    Returns
    -------
    str
        Example .env contents
    """
    example = """# barberbook configuration
# Copy this to .env and adjust values

# Civil timezone for business days and weeks (default: Africa/Cairo)
BARBERBOOK_TIMEZONE=Africa/Cairo

# Cashier share of net profit in percent, 0-100 (default: 0)
# Used for bills that carry no share percentage of their own
BARBERBOOK_CASHIER_SHARE_PCT=0

# Role assumed for actors with unknown role (default: cashier)
BARBERBOOK_DEFAULT_ROLE=cashier

# Bills and expenses without an actor in store totals: count or drop
BARBERBOOK_UNATTRIBUTED_POLICY=count

# Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
BARBERBOOK_LOG_LEVEL=INFO

# Directory for JSONL logs (optional, console only if not set)
# BARBERBOOK_LOG_DIR=logs

# Log to stderr (default: true)
BARBERBOOK_LOG_CONSOLE=true
"""

    if output_path:
        output_path.write_text(example, encoding="utf-8")

    return example
