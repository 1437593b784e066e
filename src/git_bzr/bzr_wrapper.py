from pathlib import Path

from .constants import BZR_MARKER


def is_bzr_branch(location: Path) -> bool:
    """Checks whether `location` holds Bazaar metadata."""
    return (location / BZR_MARKER).exists()


class BzrBranch:
    """Command builder for a Bazaar branch reached through a filesystem path.

    Attributes:
        location (Path): The branch directory.
        bzr_bin (str): The Bazaar executable to invoke.
    """

    def __init__(self, location: Path, bzr_bin: str = "bzr"):
        self.location = location
        self.bzr_bin = bzr_bin

    def fast_export_cmd(
        self, git_branch: str, export_marks: Path, import_marks: Path | None = None
    ) -> list[str]:
        """Builds a `bzr fast-export` command line.

        Args:
            git_branch (str): The git branch the stream should update.
            export_marks (Path): File the updated marks are written to.
            import_marks (Path | None, optional): Marks from a previous run.

        Returns:
            list[str]: The argument vector.
        """
        cmd = [self.bzr_bin, "fast-export"]
        if import_marks is not None:
            cmd.append(f"--import-marks={import_marks}")
        cmd.append(f"--export-marks={export_marks}")
        cmd.append(f"--git-branch={git_branch}")
        cmd.append(str(self.location))
        return cmd

    def fast_import_cmd(self, marks: Path) -> list[str]:
        """Builds a `bzr fast-import` command that reads the stream from stdin.

        The command must run with the branch directory as its working
        directory.
        """
        return [
            self.bzr_bin,
            "fast-import",
            f"--import-marks={marks}",
            f"--export-marks={marks}",
            "-",
        ]
