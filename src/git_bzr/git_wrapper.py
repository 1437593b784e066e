import logging
import subprocess
from pathlib import Path

from .constants import APP_NAME
from .exceptions import NotARepositoryError, ToolFailedError, spawn_error

logger = logging.getLogger(APP_NAME)


class GitRepo:
    """A wrapper around the Git command-line interface for a specific repository.

    An instance is the explicit repository context threaded through every
    operation: commands run with `cwd` set to the top-level work tree, so the
    process working directory is never changed.

    Attributes:
        path (Path): The top-level directory of the work tree.
        git_dir (Path): The absolute path of the repository metadata directory.
        git_bin (str): The git executable to invoke.
    """

    def __init__(self, path: Path, git_dir: Path | None = None, git_bin: str = "git"):
        """Initializes the GitRepo instance.

        Args:
            path (Path): The path to the repository root directory.
            git_dir (Path | None, optional): The metadata directory. Defaults to
                                             `path / ".git"`.
            git_bin (str, optional): The git executable. Defaults to "git".

        Raises:
            NotARepositoryError: If the metadata directory does not exist.
        """
        self.path = path
        self.git_dir = git_dir if git_dir is not None else path / ".git"
        self.git_bin = git_bin
        if not self.git_dir.exists():
            raise NotARepositoryError(f"Not a git repository: {self.path}")

    @classmethod
    def discover(cls, start: Path, git_bin: str = "git") -> "GitRepo":
        """Locates the repository enclosing `start`.

        Args:
            start (Path): Any directory inside the work tree.
            git_bin (str, optional): The git executable. Defaults to "git".

        Returns:
            GitRepo: A repository rooted at the work tree's top level.

        Raises:
            NotARepositoryError: If `start` is not inside a git work tree.
            ToolNotFoundError: If git is not installed.
            ToolStartError: If the git executable cannot be started.
        """
        if not start.is_dir():
            raise NotARepositoryError(f"Not a directory: {start}")

        cmd = [git_bin, "rev-parse", "--show-toplevel", "--absolute-git-dir"]
        try:
            res = subprocess.run(
                cmd,
                cwd=start,
                capture_output=True,
                text=True,
                stdin=subprocess.DEVNULL,
            )
        except OSError as e:
            raise spawn_error(cmd, e) from e

        lines = res.stdout.splitlines()
        if res.returncode != 0 or len(lines) != 2:
            logger.debug(f"rev-parse in {start} failed: {res.stderr.strip()}")
            raise NotARepositoryError("Must be inside a git repository to work")

        top, git_dir = lines
        return cls(Path(top), Path(git_dir), git_bin=git_bin)

    def _exec(self, args: list[str], capture: bool = True) -> subprocess.CompletedProcess:
        """Executes a Git command without interpreting its exit status.

        Args:
            args (list[str]): A list of arguments to pass to the git command.
            capture (bool, optional): Whether to capture stdout and stderr.
                                      Defaults to True.

        Returns:
            subprocess.CompletedProcess: The finished process.

        Raises:
            NotARepositoryError: If the work tree has been removed.
            ToolNotFoundError: If the git executable cannot be found.
            ToolStartError: If the git executable cannot be started.
        """
        if not self.path.is_dir():
            raise NotARepositoryError(f"Work tree {self.path} no longer exists")

        cmd = [self.git_bin, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            return subprocess.run(
                cmd,
                cwd=self.path,
                capture_output=capture,
                text=True,
                stdin=subprocess.DEVNULL,
            )
        except OSError as e:
            raise spawn_error(cmd, e) from e

    def _run(self, args: list[str], capture: bool = True) -> str:
        """Executes a Git command within the repository context.

        Args:
            args (list[str]): A list of arguments to pass to the git command.
            capture (bool, optional):   Whether to capture and return stdout.
                                        Defaults to True.

        Returns:
            str:    The stripped stdout of the command if capture is True,
                    otherwise an empty string.

        Raises:
            ToolFailedError: If the git command returns a non-zero exit code.
        """
        res = self._exec(args, capture=capture)
        if res.returncode != 0:
            raise ToolFailedError(
                [self.git_bin, *args], res.returncode, res.stderr or ""
            )
        return res.stdout.strip() if capture else ""

    def remote_names(self) -> list[str]:
        """Lists the names of the configured git remotes."""
        output = self._run(["remote"])
        return output.splitlines() if output else []

    def config_get(self, key: str) -> str | None:
        """Reads a single configuration value.

        Args:
            key (str): The fully qualified key (e.g. 'git-bzr.trunk.location').

        Returns:
            str | None: The value, or None if the key is not set.

        Raises:
            ToolFailedError: If git reports anything other than "not set".
        """
        args = ["config", "--get", key]
        res = self._exec(args)
        if res.returncode == 1:
            return None
        if res.returncode != 0:
            raise ToolFailedError([self.git_bin, *args], res.returncode, res.stderr)
        return res.stdout.rstrip("\n")

    def config_set(self, key: str, value: str) -> None:
        """Writes a configuration value to the repository config."""
        self._run(["config", key, value])

    def rev_parse(self, rev: str) -> str | None:
        """Resolves a revision (tag, branch, relative ref) to a full SHA-1 hash.

        Args:
            rev (str): The revision to parse (e.g., 'HEAD', 'bzr/trunk').

        Returns:
            Optional[str]:  The full SHA-1 hash,
                            or None if the revision could not be resolved.
        """
        res = self._exec(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"])
        if res.returncode != 0:
            logger.debug(f"rev-parse failed for '{rev}': {res.stderr.strip()}")
            return None
        return res.stdout.strip()

    def is_valid_branch_name(self, branch: str) -> bool:
        """Asks git whether `branch` is a legal name under refs/heads/."""
        res = self._exec(["check-ref-format", f"refs/heads/{branch}"])
        return res.returncode == 0

    def rev_list_left_right(self, left: str, right: str) -> tuple[list[str], list[str]]:
        """Lists the commits unique to each side of a symmetric difference.

        Args:
            left (str): The left revision (e.g. 'HEAD').
            right (str): The right revision (e.g. 'bzr/trunk').

        Returns:
            tuple[list[str], list[str]]: Commits reachable only from `left`, and
                                         commits reachable only from `right`.
        """
        output = self._run(["rev-list", "--left-right", f"{left}...{right}"])
        left_only, right_only = [], []
        for line in output.splitlines():
            if line.startswith("<"):
                left_only.append(line[1:])
            elif line.startswith(">"):
                right_only.append(line[1:])
        return left_only, right_only

    def shortlog(self, rev_range: str) -> str:
        """Summarizes the commits in a revision range, grouped by author."""
        return self._run(["shortlog", rev_range])

    def current_branch(self) -> str:
        """Retrieves the name of the currently checked-out branch.

        Returns:
            str: The name of the current branch (empty when HEAD is detached).
        """
        return self._run(["branch", "--show-current"])

    def merge(self, rev: str) -> None:
        """Merges `rev` into the current branch, output going to the terminal."""
        self._run(["merge", rev], capture=False)

    def rebase(self, upstream: str) -> None:
        """Rebases the current branch onto `upstream`."""
        self._run(["rebase", upstream], capture=False)

    def fast_import_cmd(
        self, import_marks: Path | None, export_marks: Path, quiet: bool = False
    ) -> list[str]:
        """Builds a `git fast-import` command line.

        Args:
            import_marks (Path | None): Marks to load before importing.
            export_marks (Path): File the updated marks are written to.
            quiet (bool, optional): Suppress the statistics report.

        Returns:
            list[str]: The argument vector.
        """
        cmd = [self.git_bin, "fast-import"]
        if quiet:
            cmd.append("--quiet")
        cmd.append(f"--export-marks={export_marks}")
        if import_marks is not None:
            cmd.append(f"--import-marks={import_marks}")
        return cmd

    def fast_export_cmd(self, marks: Path, rev: str = "HEAD") -> list[str]:
        """Builds a `git fast-export` command line reusing `marks` both ways."""
        return [
            self.git_bin,
            "fast-export",
            f"--import-marks={marks}",
            f"--export-marks={marks}",
            rev,
        ]
