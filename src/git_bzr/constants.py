import os
from pathlib import Path

"""Global constants and path definitions for git-bzr.

This module defines the naming scheme used inside a Git repository (config
namespace, tracking branch prefix, marks file layout) as well as the
tool's own state and configuration locations.
"""

# --- Identity ---
APP_NAME = "git-bzr"
"""str: The human-readable application name (also the logger name)."""

CONFIG_NAMESPACE = "git-bzr"
"""str: The git config section holding registered aliases."""

BRANCH_PREFIX = "bzr"
"""str: Local tracking branches are named `<BRANCH_PREFIX>/<alias>`."""

# --- Marks ---
MARKS_SUBDIR = "bzr-git"
"""str: Directory under the git metadata dir that holds the marks files."""

GIT_MARKS_SUFFIX = "-git-map"
"""str: Suffix of the marks file written by git fast-import/fast-export."""

BZR_MARKS_SUFFIX = "-bzr-map"
"""str: Suffix of the marks file written by bzr fast-export/fast-import."""

BZR_MARKER = ".bzr"
"""str: Metadata directory that identifies a Bazaar branch."""

# --- Paths ---
_XDG_STATE = os.environ.get("XDG_STATE_HOME")
_BASE_STATE = Path(_XDG_STATE) if _XDG_STATE else Path.home() / ".local/state"

STATE_DIR = _BASE_STATE / "git-bzr"
"""Path: The directory for runtime state data (logs)."""

LOG_FILE = STATE_DIR / "git-bzr.log"
"""Path: The rotating log file."""

CONFIG_DIR: Path = Path.home() / ".config/git-bzr"
"""Path: The directory for user configuration files."""

CONFIG_FILE: Path = CONFIG_DIR / "config.toml"
"""Path: The main configuration file path."""

# --- Defaults ---
PULL_MODES = ("merge", "rebase")
"""tuple[str, ...]: Accepted values for the `[pull] mode` setting."""
