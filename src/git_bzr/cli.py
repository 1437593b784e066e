import argparse
import logging
import sys
from collections.abc import Callable
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console

from . import __version__, ops
from .config import Config
from .constants import APP_NAME, LOG_FILE
from .exceptions import GitBzrError
from .git_wrapper import GitRepo

logger = logging.getLogger(APP_NAME)
console = Console()
err_console = Console(stderr=True)


def setup_logging(config: Config, verbose: bool = False) -> None:
    """Configures the logging subsystem.

    Args:
        config (Config): Supplies the console level and the rotation size.
        verbose (bool): If True, the console handler logs at DEBUG.
    """
    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(logging.DEBUG if verbose else config.logging.level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    try:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=config.logging.max_log_size,
            backupCount=5,
        )
    except OSError as e:
        logger.warning(f"Could not open log file {LOG_FILE}: {e}")
        return
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    """Builds the `git bzr` argument parser."""
    parser = argparse.ArgumentParser(
        prog="git bzr",
        description="Track Bazaar branches from a git repository.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every command that runs"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    add_parser = subparsers.add_parser("add", help="Register a bazaar branch")
    add_parser.add_argument("name", help="Alias for the branch")
    add_parser.add_argument("location", help="Path to the bazaar branch")

    push_parser = subparsers.add_parser("push", help="Push HEAD to a bazaar branch")
    push_parser.add_argument("name", help="Registered alias")

    fetch_parser = subparsers.add_parser(
        "fetch", help="Import new revisions into bzr/<name>"
    )
    fetch_parser.add_argument("name", help="Registered alias")

    pull_parser = subparsers.add_parser(
        "pull", help="Fetch, then merge or rebase onto bzr/<name>"
    )
    pull_parser.add_argument("name", help="Registered alias")

    return parser


def _run_add(repo: GitRepo, config: Config, args: argparse.Namespace) -> None:
    ops.add_remote(repo, args.name, args.location)


def _run_fetch(repo: GitRepo, config: Config, args: argparse.Namespace) -> None:
    ops.fetch(repo, config, args.name)


def _run_push(repo: GitRepo, config: Config, args: argparse.Namespace) -> None:
    ops.push(repo, config, args.name)


def _run_pull(repo: GitRepo, config: Config, args: argparse.Namespace) -> None:
    ops.pull(repo, config, args.name)


COMMANDS: dict[str, Callable[[GitRepo, Config, argparse.Namespace], None]] = {
    "add": _run_add,
    "push": _run_push,
    "fetch": _run_fetch,
    "pull": _run_pull,
}


def main(argv: list[str] | None = None) -> None:
    """Main entry point for `git bzr`."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_usage(sys.stderr)
        sys.exit(1)

    # Default handlers first so config warnings reach the log file.
    setup_logging(Config(), verbose=args.verbose)
    config = Config.load()
    setup_logging(config, verbose=args.verbose)

    try:
        repo = GitRepo.discover(Path.cwd(), git_bin=config.tools.git)
        logger.debug(f"Repository root: {repo.path} (git dir {repo.git_dir})")
        COMMANDS[args.command](repo, config, args)
    except GitBzrError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        err_console.print(f"[bold red]ERROR:[/bold red] {e}", highlight=False)
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
