"""git-bzr: track Bazaar branches from a git repository.

This package provides the `git bzr` command-line interface and the
operations behind it: registering a Bazaar branch under an alias, importing
its history into a local tracking branch, and exporting local commits back,
all by driving the fast-export/fast-import tools of both systems.
"""

__version__ = "0.2.0"

from . import (  # noqa: E402
    bzr_wrapper,
    cli,
    config,
    constants,
    exceptions,
    git_wrapper,
    marks,
    ops,
    pipeline,
)

__all__ = [
    "bzr_wrapper",
    "cli",
    "config",
    "constants",
    "exceptions",
    "git_wrapper",
    "marks",
    "ops",
    "pipeline",
]
