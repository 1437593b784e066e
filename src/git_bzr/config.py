import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .constants import APP_NAME, CONFIG_FILE, PULL_MODES

logger = logging.getLogger(APP_NAME)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_size(value: int | str) -> int:
    """Converts human-readable size strings (e.g., '512kb') to bytes."""
    if isinstance(value, int):
        return value
    match = re.match(r"^(\d+(?:\.\d+)?)\s*([kmg]b?)$", str(value).strip().lower())
    if not match:
        raise ValueError(f"Invalid size format '{value}'")
    num, unit = float(match.group(1)), match.group(2)
    multiplier = {
        "k": 1024,
        "kb": 1024,
        "m": 1024**2,
        "mb": 1024**2,
        "g": 1024**3,
        "gb": 1024**3,
    }
    return int(num * multiplier[unit])


def parse_pull_mode(value: str) -> str:
    """Validates the `[pull] mode` setting."""
    mode = str(value).strip().lower()
    if mode not in PULL_MODES:
        raise ValueError(f"Invalid pull mode '{value}' (expected one of {PULL_MODES})")
    return mode


def parse_level(value: str) -> str:
    """Validates a logging level name."""
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Invalid log level '{value}'")
    return level


@dataclass
class ToolsConfig:
    """External executables.

    Attributes:
        git (str): The git executable.
        bzr (str): The Bazaar executable (needs the fastimport plugin).
    """

    git: str = "git"
    bzr: str = "bzr"


@dataclass
class PullConfig:
    """Settings for `git bzr pull`.

    Attributes:
        mode (str): How the tracking branch is integrated, 'merge' or 'rebase'.
    """

    mode: str = "merge"


@dataclass
class LoggingConfig:
    """Logging settings.

    Attributes:
        level (str): Console log level when --verbose is not given.
        max_log_size (int): Max bytes for the log file before rotation.
    """

    level: str = "WARNING"
    max_log_size: int = 1024 * 1024


@dataclass
class Config:
    """Global configuration aggregator.

    Attributes:
        tools (ToolsConfig): External executables.
        pull (PullConfig): Pull behavior.
        logging (LoggingConfig): Logging behavior.
    """

    tools: ToolsConfig = field(default_factory=ToolsConfig)
    pull: PullConfig = field(default_factory=PullConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Cache for the parsed global configuration
    _global_cache: "Config | None" = None

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Loads configuration from defaults and the global TOML file.

        Args:
            path (Path | None): An explicit file to read instead of the
                global config. Explicit files bypass the cache.

        Returns:
            Config: The merged configuration object.
        """
        if path is not None:
            instance = cls()
            if path.exists():
                instance._merge_from_file(path)
            return instance

        if cls._global_cache is None:
            instance = cls()
            if CONFIG_FILE.exists():
                instance._merge_from_file(CONFIG_FILE)
            cls._global_cache = instance

        return replace(cls._global_cache)

    def _merge_from_file(self, path: Path) -> None:
        """Parses a TOML file and merges it into the current instance.

        Args:
            path (Path): Path to the TOML file.
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Config syntax error in {path}: {e}")
            return
        except OSError as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            return

        unknown = set(data) - {"tools", "pull", "logging"}
        if unknown:
            logger.warning(
                f"Unknown config sections in {path}: {', '.join(sorted(unknown))}. Ignoring."
            )

        if "tools" in data:
            self.tools = self._update_dataclass("tools", self.tools, data["tools"])
        if "pull" in data:
            self.pull = self._update_dataclass("pull", self.pull, data["pull"])
        if "logging" in data:
            self.logging = self._update_dataclass(
                "logging", self.logging, data["logging"]
            )

    @staticmethod
    def _update_dataclass(section_name: str, instance: Any, updates: Any) -> Any:
        """Updates a dataclass, warning on invalid keys and parsing values."""
        if not isinstance(updates, dict):
            logger.warning(f"Config section [{section_name}] must be a table. Ignoring.")
            return instance

        valid_keys = instance.__dataclass_fields__.keys()
        filtered_updates = {}

        invalid_keys = set(updates.keys()) - set(valid_keys)
        if invalid_keys:
            logger.warning(
                f"Unknown config keys in [{section_name}]: {', '.join(sorted(invalid_keys))}. Ignoring."
            )

        parsers = {
            "max_log_size": parse_size,
            "mode": parse_pull_mode,
            "level": parse_level,
        }

        for k, v in updates.items():
            if k not in valid_keys:
                continue

            try:
                parser = parsers.get(k)
                filtered_updates[k] = parser(v) if parser else str(v)
            except ValueError as e:
                logger.warning(
                    f"Config error in [{section_name}].{k}: {e}. Falling back to default."
                )

        return replace(instance, **filtered_updates)
