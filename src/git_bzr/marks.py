"""Paths and consistency checks for the per-alias marks files.

Each alias owns two marks files, one maintained by git and one by bzr. Their
contents belong to the fast-export/fast-import tools; this module only
decides where they live and whether the pair is usable.
"""

import enum
from dataclasses import dataclass
from pathlib import Path

from .constants import BZR_MARKS_SUFFIX, GIT_MARKS_SUFFIX, MARKS_SUBDIR
from .exceptions import InconsistentStateError


class MarksState(enum.Enum):
    ABSENT = "absent"
    COMPLETE = "complete"
    PARTIAL = "partial"


@dataclass(frozen=True)
class MarksPair:
    """The git/bzr marks files of one alias.

    Attributes:
        name (str): The alias the pair belongs to.
        git_map (Path): Absolute path of the git-side marks file.
        bzr_map (Path): Absolute path of the bzr-side marks file.
    """

    name: str
    git_map: Path
    bzr_map: Path

    @classmethod
    def for_alias(cls, git_dir: Path, name: str) -> "MarksPair":
        directory = git_dir.resolve() / MARKS_SUBDIR
        return cls(
            name=name,
            git_map=directory / f"{name}{GIT_MARKS_SUFFIX}",
            bzr_map=directory / f"{name}{BZR_MARKS_SUFFIX}",
        )

    @property
    def directory(self) -> Path:
        return self.git_map.parent

    def state(self) -> MarksState:
        git_exists = self.git_map.exists()
        bzr_exists = self.bzr_map.exists()
        if git_exists and bzr_exists:
            return MarksState.COMPLETE
        if not git_exists and not bzr_exists:
            return MarksState.ABSENT
        return MarksState.PARTIAL

    def missing(self) -> list[Path]:
        return [p for p in (self.git_map, self.bzr_map) if not p.exists()]

    def check_consistent(self) -> MarksState:
        """Returns the pair's state, raising if exactly one file exists.

        Raises:
            InconsistentStateError: If only one of the two files is present.
        """
        state = self.state()
        if state is MarksState.PARTIAL:
            missing = ", ".join(str(p) for p in self.missing())
            raise InconsistentStateError(
                f"One of the mapfiles is missing ({missing})! Something went wrong!"
            )
        return state

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
