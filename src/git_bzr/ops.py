import logging
import re
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from .bzr_wrapper import BzrBranch, is_bzr_branch
from .config import Config
from .constants import APP_NAME, BRANCH_PREFIX, CONFIG_NAMESPACE
from .exceptions import PreconditionError
from .git_wrapper import GitRepo
from .marks import MarksPair, MarksState
from .pipeline import Stage, run_pipeline

console = Console()
logger = logging.getLogger(APP_NAME)

# Alias names end up in a config key, a branch name and a file name.
_ALIAS_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


@dataclass
class BzrRemote:
    """A registered alias.

    Attributes:
        name (str): The alias.
        location (str): The Bazaar branch path exactly as registered.
    """

    name: str
    location: str

    @property
    def tracking_branch(self) -> str:
        return tracking_branch(self.name)

    def resolve(self, repo: GitRepo) -> Path:
        """Returns the branch path, interpreting relative paths from the repo root."""
        return repo.path / Path(self.location).expanduser()


@dataclass
class FetchResult:
    """The outcome of a fetch.

    Attributes:
        remote (BzrRemote): The alias that was fetched.
        initial (bool): True if this was a first-time import.
        old_rev (str | None): Tracking branch tip before the fetch.
        new_rev (str | None): Tracking branch tip after the fetch.
        changelog (str): Shortlog of the new commits (incremental fetches only).
    """

    remote: BzrRemote
    initial: bool
    old_rev: str | None
    new_rev: str | None
    changelog: str = ""

    @property
    def updated(self) -> bool:
        return self.initial or self.old_rev != self.new_rev


def tracking_branch(name: str) -> str:
    """Returns the local branch that mirrors alias `name`."""
    return f"{BRANCH_PREFIX}/{name}"


def location_key(name: str) -> str:
    """Returns the git config key that stores the location of alias `name`."""
    return f"{CONFIG_NAMESPACE}.{name}.location"


def validate_alias(name: str) -> str:
    """Rejects alias names that cannot be used as a branch or file name.

    Raises:
        PreconditionError: If the name is not usable.
    """
    if (
        not _ALIAS_RE.match(name)
        or ".." in name
        or name.endswith((".", ".lock"))
    ):
        raise PreconditionError(
            f"Invalid remote name '{name}': use letters, digits, '.', '_' and '-'"
        )
    return name


def branch_location(repo: GitRepo, remote: BzrRemote) -> Path:
    """Resolves the Bazaar branch of `remote`, checking that it is still there.

    Raises:
        PreconditionError: If the registered location is no longer a Bazaar
            branch (moved or deleted).
    """
    location = remote.resolve(repo)
    if not is_bzr_branch(location):
        raise PreconditionError(
            f"Bazaar branch for `{remote.name}` not found at {location}. "
            f"Was it moved? Update it with `git config {location_key(remote.name)}`"
        )
    return location


def get_remote(repo: GitRepo, name: str) -> BzrRemote:
    """Looks up a registered alias.

    Raises:
        PreconditionError: If no location is registered for `name`.
    """
    location = repo.config_get(location_key(name))
    if not location:
        raise PreconditionError(f"Cannot find bazaar remote with name `{name}`.")
    return BzrRemote(name=name, location=location)


def add_remote(repo: GitRepo, name: str, location: str) -> BzrRemote:
    """Registers `location` as the Bazaar branch behind alias `name`.

    Args:
        repo (GitRepo): The repository context.
        name (str): The alias to create.
        location (str): Path to the Bazaar branch.

    Returns:
        BzrRemote: The registered alias.

    Raises:
        PreconditionError: If the name is taken or the location is not a
            Bazaar branch.
    """
    validate_alias(name)
    if not repo.is_valid_branch_name(tracking_branch(name)):
        raise PreconditionError(
            f"Invalid remote name '{name}': {tracking_branch(name)} is not a valid branch"
        )

    if name in repo.remote_names():
        raise PreconditionError("There is already a remote with that name")

    if repo.config_get(location_key(name)) is not None:
        raise PreconditionError("There is already a bazaar branch with that name")

    remote = BzrRemote(name=name, location=location)
    if not is_bzr_branch(remote.resolve(repo)):
        raise PreconditionError("Remote is not a bazaar repository")

    repo.config_set(location_key(name), location)
    logger.info(f"Registered bazaar remote {name} -> {location}")
    console.print(
        f"Bazaar branch [cyan]{name}[/cyan] added. "
        f"You can fetch it with `git bzr fetch {name}`"
    )
    return remote


def fetch(repo: GitRepo, config: Config, name: str) -> FetchResult:
    """Imports new Bazaar revisions into the tracking branch.

    Args:
        repo (GitRepo): The repository context.
        config (Config): Loaded configuration (executables).
        name (str): The alias to fetch.

    Returns:
        FetchResult: What changed.

    Raises:
        PreconditionError: If the alias is unknown.
        InconsistentStateError: If only one marks file exists.
        ExternalToolError: If either side of the import pipeline fails.
    """
    remote = get_remote(repo, name)
    marks = MarksPair.for_alias(repo.git_dir, name)
    bzr = BzrBranch(branch_location(repo, remote), bzr_bin=config.tools.bzr)
    branch = remote.tracking_branch

    state = marks.check_consistent()

    if state is MarksState.ABSENT:
        console.print(
            "There doesn't seem to be an existing refmap. Doing an initial import"
        )
        marks.ensure_directory()
        run_pipeline(
            Stage(bzr.fast_export_cmd(branch, export_marks=marks.bzr_map), repo.path),
            Stage(
                repo.fast_import_cmd(import_marks=None, export_marks=marks.git_map),
                repo.path,
            ),
        )
        new_rev = repo.rev_parse(branch)
        logger.info(f"Initial import of {name} created {branch} at {new_rev}")
        return FetchResult(remote, initial=True, old_rev=None, new_rev=new_rev)

    console.print(f"Updating remote [cyan]{name}[/cyan]")
    old_rev = repo.rev_parse(branch)
    if old_rev is None:
        logger.warning(f"Tracking branch {branch} is missing; it will be recreated")

    run_pipeline(
        Stage(
            bzr.fast_export_cmd(
                branch, export_marks=marks.bzr_map, import_marks=marks.bzr_map
            ),
            repo.path,
        ),
        Stage(
            repo.fast_import_cmd(
                import_marks=marks.git_map, export_marks=marks.git_map, quiet=True
            ),
            repo.path,
        ),
    )
    new_rev = repo.rev_parse(branch)

    result = FetchResult(remote, initial=False, old_rev=old_rev, new_rev=new_rev)
    if new_rev is None or old_rev == new_rev:
        console.print(f"{branch} is already up to date.")
        return result

    rev_range = f"{old_rev}..{new_rev}" if old_rev else new_rev
    result.changelog = repo.shortlog(rev_range)
    console.print("Changes since last update:")
    console.print(result.changelog, markup=False, highlight=False)
    return result


def push(repo: GitRepo, config: Config, name: str) -> None:
    """Exports the commits on HEAD that are not yet in the Bazaar branch.

    Args:
        repo (GitRepo): The repository context.
        config (Config): Loaded configuration (executables).
        name (str): The alias to push to.

    Raises:
        PreconditionError: If the alias is unknown, HEAD is not a strict
            descendant of the tracking branch, or no marks exist yet.
        ExternalToolError: If either side of the export pipeline fails.
    """
    remote = get_remote(repo, name)
    branch = remote.tracking_branch

    if repo.rev_parse(branch) is None:
        raise PreconditionError(
            f"No tracking branch {branch} yet. Run `git bzr fetch {name}` first"
        )

    ahead, behind = repo.rev_list_left_right("HEAD", branch)
    if behind:
        raise PreconditionError(
            f"HEAD is not a strict child of {name}, cannot push. Merge first"
        )
    if not ahead:
        raise PreconditionError("Nothing to push. Commit something first")

    marks = MarksPair.for_alias(repo.git_dir, name)
    if marks.state() is not MarksState.COMPLETE:
        raise PreconditionError("We do not have refmapping yet. Then how can I push?")

    location = branch_location(repo, remote)
    bzr = BzrBranch(location, bzr_bin=config.tools.bzr)
    logger.info(f"Pushing {len(ahead)} commit(s) to {name} ({location})")
    run_pipeline(
        Stage(repo.fast_export_cmd(marks.git_map), repo.path),
        Stage(bzr.fast_import_cmd(marks.bzr_map), location),
    )


def pull(repo: GitRepo, config: Config, name: str) -> FetchResult:
    """Fetches alias `name` and integrates its tracking branch into HEAD.

    The integration strategy comes from `[pull] mode` ('merge' or 'rebase').

    Raises:
        PreconditionError: If HEAD is detached.
        ExternalToolError: If the fetch, merge or rebase fails.
    """
    if not repo.current_branch():
        raise PreconditionError("HEAD is detached. Check out a branch before pulling")

    result = fetch(repo, config, name)
    branch = result.remote.tracking_branch
    if result.new_rev is None:
        raise PreconditionError(f"Fetching {name} did not produce {branch}")

    if config.pull.mode == "rebase":
        logger.info(f"Rebasing onto {branch}")
        repo.rebase(branch)
    else:
        logger.info(f"Merging {branch}")
        repo.merge(branch)
    return result
