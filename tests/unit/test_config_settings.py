"""Tests for configuration loading."""

import os
import tempfile
from pathlib import Path

import pytest

from barberbook.config.settings import (
    ConfigError,
    Settings,
    generate_example_env,
    get_settings,
    load_env_file,
    load_settings,
)


@pytest.fixture(autouse=True)
def clean_env():
    """Clean environment variables before each test."""
    original_env = os.environ.copy()

    for var in [k for k in os.environ if k.startswith("BARBERBOOK_")]:
        del os.environ[var]

    import barberbook.config.settings as settings_module

    settings_module._settings = None

    yield

    os.environ.clear()
    os.environ.update(original_env)
    settings_module._settings = None


def test_settings_defaults():
    """A fresh checkout runs without any configuration."""
    settings = Settings()

    assert settings.timezone == "Africa/Cairo"
    assert settings.cashier_share_pct == 0.0
    assert settings.default_role == "cashier"
    assert settings.unattributed_policy == "count"
    assert settings.log_level == "INFO"
    assert settings.log_dir is None


def test_settings_with_string_log_dir():
    settings = Settings(log_dir="logs")  # type: ignore[arg-type]

    assert settings.log_dir == Path("logs")


def test_settings_invalid_timezone():
    with pytest.raises(ConfigError, match="Invalid timezone"):
        Settings(timezone="Mars/Olympus_Mons")


def test_settings_invalid_policy():
    with pytest.raises(ConfigError, match="Invalid unattributed policy"):
        Settings(unattributed_policy="guess")


def test_settings_clamps_share():
    assert Settings(cashier_share_pct=120).cashier_share_pct == 100.0
    assert Settings(cashier_share_pct=-1).cashier_share_pct == 0.0
    assert Settings(cashier_share_pct=35.555).cashier_share_pct == 35.56


def test_settings_normalizes_log_level():
    assert Settings(log_level="debug").log_level == "DEBUG"


def test_load_env_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        env_file = Path(tmpdir) / ".env"
        env_file.write_text(
            """
# Shop settings
BARBERBOOK_TIMEZONE="Africa/Cairo"
BARBERBOOK_CASHIER_SHARE_PCT='35'

BARBERBOOK_LOG_LEVEL=DEBUG
"""
        )

        load_env_file(env_file)

        assert os.environ["BARBERBOOK_TIMEZONE"] == "Africa/Cairo"
        assert os.environ["BARBERBOOK_CASHIER_SHARE_PCT"] == "35"
        assert os.environ["BARBERBOOK_LOG_LEVEL"] == "DEBUG"


def test_settings_from_env():
    with tempfile.TemporaryDirectory() as tmpdir:
        env_file = Path(tmpdir) / ".env"
        env_file.write_text(
            """
BARBERBOOK_TIMEZONE=UTC
BARBERBOOK_CASHIER_SHARE_PCT=40
BARBERBOOK_DEFAULT_ROLE=admin
BARBERBOOK_UNATTRIBUTED_POLICY=DROP
BARBERBOOK_LOG_LEVEL=warning
BARBERBOOK_LOG_DIR=/tmp/barberbook-logs
BARBERBOOK_LOG_CONSOLE=false
"""
        )

        settings = Settings.from_env(env_file)

        assert settings.timezone == "UTC"
        assert settings.cashier_share_pct == 40.0
        assert settings.default_role == "admin"
        assert settings.unattributed_policy == "drop"
        assert settings.log_level == "WARNING"
        assert settings.log_dir == Path("/tmp/barberbook-logs")
        assert settings.log_console is False


def test_settings_from_env_without_file(tmp_path):
    settings = Settings.from_env(tmp_path / "missing.env")

    assert settings.timezone == "Africa/Cairo"
    assert settings.log_console is True


def test_settings_from_env_invalid_share(monkeypatch, tmp_path):
    monkeypatch.setenv("BARBERBOOK_CASHIER_SHARE_PCT", "a third")

    with pytest.raises(ConfigError, match="must be a number"):
        Settings.from_env(tmp_path / "missing.env")


def test_settings_from_env_invalid_timezone(monkeypatch, tmp_path):
    monkeypatch.setenv("BARBERBOOK_TIMEZONE", "Cairo")

    with pytest.raises(ConfigError, match="Invalid timezone"):
        Settings.from_env(tmp_path / "missing.env")


def test_get_settings_not_loaded():
    with pytest.raises(ConfigError, match="Settings not loaded"):
        get_settings()


def test_get_settings_after_load(monkeypatch, tmp_path):
    monkeypatch.setenv("BARBERBOOK_CASHIER_SHARE_PCT", "25")

    loaded = load_settings(tmp_path / "missing.env")

    assert get_settings() is loaded
    assert loaded.cashier_share_pct == 25.0


def test_generate_example_env(tmp_path):
    output = tmp_path / ".env.example"

    example = generate_example_env(output)

    assert output.read_text() == example
    for key in (
        "BARBERBOOK_TIMEZONE",
        "BARBERBOOK_CASHIER_SHARE_PCT",
        "BARBERBOOK_DEFAULT_ROLE",
        "BARBERBOOK_UNATTRIBUTED_POLICY",
        "BARBERBOOK_LOG_LEVEL",
        "BARBERBOOK_LOG_DIR",
    ):
        assert key in example


def test_example_env_round_trips(tmp_path):
    """The generated example is itself a valid configuration."""
    output = tmp_path / ".env"
    generate_example_env(output)

    settings = Settings.from_env(output)

    assert settings.timezone == "Africa/Cairo"
    assert settings.unattributed_policy == "count"
