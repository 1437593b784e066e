"""Tests for the configuration management subsystem."""

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from git_bzr.config import Config, parse_size


@pytest.fixture(autouse=True)
def clear_config_cache() -> Any:
    """Ensures every test starts with a clean config cache."""
    Config._global_cache = None
    yield
    Config._global_cache = None


def test_config_defaults() -> None:
    """Verifies that the configuration initializes with sensible defaults."""
    conf = Config()
    assert conf.tools.git == "git"
    assert conf.tools.bzr == "bzr"
    assert conf.pull.mode == "merge"
    assert conf.logging.level == "WARNING"
    assert conf.logging.max_log_size == 1024 * 1024


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (2048, 2048),
        ("512kb", 512 * 1024),
        ("1mb", 1024**2),
        ("1.5 MB", int(1.5 * 1024**2)),
        ("2g", 2 * 1024**3),
    ],
)
def test_parse_size(value: int | str, expected: int) -> None:
    """Verifies human-readable size parsing."""
    assert parse_size(value) == expected


def test_parse_size_rejects_garbage() -> None:
    """Verifies that unknown units are rejected."""
    with pytest.raises(ValueError):
        parse_size("ten megs")


def test_load_global_file(tmp_path: Path, mocker: MagicMock) -> None:
    """Verifies that the global file overrides defaults."""
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        '[tools]\nbzr = "/opt/bzr/bin/bzr"\n'
        '[pull]\nmode = "Rebase"\n'
        '[logging]\nlevel = "info"\nmax_log_size = "256kb"\n'
    )
    mocker.patch("git_bzr.config.CONFIG_FILE", config_file)

    conf = Config.load()

    assert conf.tools.bzr == "/opt/bzr/bin/bzr"
    assert conf.tools.git == "git"
    assert conf.pull.mode == "rebase"
    assert conf.logging.level == "INFO"
    assert conf.logging.max_log_size == 256 * 1024


def test_load_missing_file_uses_defaults(tmp_path: Path, mocker: MagicMock) -> None:
    """Verifies that no config file means pure defaults."""
    mocker.patch("git_bzr.config.CONFIG_FILE", tmp_path / "nope.toml")

    assert Config.load().pull.mode == "merge"


def test_load_is_cached(tmp_path: Path, mocker: MagicMock) -> None:
    """Verifies that the global file is only parsed once per process."""
    config_file = tmp_path / "config.toml"
    config_file.write_text('[pull]\nmode = "rebase"\n')
    mocker.patch("git_bzr.config.CONFIG_FILE", config_file)

    first = Config.load()
    config_file.write_text('[pull]\nmode = "merge"\n')
    second = Config.load()

    assert first.pull.mode == second.pull.mode == "rebase"
    assert first is not second


def test_invalid_values_fall_back(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that bad values warn and keep the defaults."""
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        '[pull]\nmode = "squash"\n[logging]\nlevel = "loud"\nmax_log_size = "huge"\n'
    )

    conf = Config.load(config_file)

    assert conf.pull.mode == "merge"
    assert conf.logging.level == "WARNING"
    assert conf.logging.max_log_size == 1024 * 1024
    assert "Config error in [pull].mode" in caplog.text
    assert "Config error in [logging].max_log_size" in caplog.text


def test_unknown_keys_warn(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    """Verifies that typos in keys and sections are reported."""
    config_file = tmp_path / "config.toml"
    config_file.write_text('[tools]\nbazaar = "brz"\n[daemon]\nx = 1\n')

    conf = Config.load(config_file)

    assert conf.tools.bzr == "bzr"
    assert "Unknown config keys in [tools]: bazaar" in caplog.text
    assert "Unknown config sections" in caplog.text


def test_syntax_error_uses_defaults(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that a broken TOML file is logged and ignored."""
    config_file = tmp_path / "config.toml"
    config_file.write_text("[tools\nbzr = ")

    conf = Config.load(config_file)

    assert conf.tools.bzr == "bzr"
    assert "Config syntax error" in caplog.text
