"""Tests for marks file layout and consistency checks."""

from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from git_bzr.exceptions import InconsistentStateError
from git_bzr.marks import MarksPair, MarksState

alias_strategy = st.from_regex(r"[A-Za-z0-9][A-Za-z0-9_-]{0,20}", fullmatch=True)


def test_layout_under_git_dir(tmp_path: Path) -> None:
    """Verifies that both files live in `<git-dir>/bzr-git/`."""
    pair = MarksPair.for_alias(tmp_path / ".git", "trunk")

    base = (tmp_path / ".git").resolve() / "bzr-git"
    assert pair.git_map == base / "trunk-git-map"
    assert pair.bzr_map == base / "trunk-bzr-map"
    assert pair.directory == base


@given(name=alias_strategy)
def test_paths_are_absolute_and_distinct(name: str) -> None:
    """
    Property: For every alias the two marks files are absolute, distinct and
    share one directory.
    """
    pair = MarksPair.for_alias(Path("relative/.git"), name)

    assert pair.git_map.is_absolute()
    assert pair.bzr_map.is_absolute()
    assert pair.git_map != pair.bzr_map
    assert pair.git_map.parent == pair.bzr_map.parent
    assert pair.git_map.name == f"{name}-git-map"
    assert pair.bzr_map.name == f"{name}-bzr-map"


def test_state_absent(tmp_path: Path) -> None:
    """Verifies that a fresh alias has no marks."""
    pair = MarksPair.for_alias(tmp_path, "trunk")

    assert pair.state() is MarksState.ABSENT
    assert pair.check_consistent() is MarksState.ABSENT


def test_state_complete(tmp_path: Path) -> None:
    """Verifies that two files make a complete pair."""
    pair = MarksPair.for_alias(tmp_path, "trunk")
    pair.ensure_directory()
    pair.git_map.write_text(":1 abc\n")
    pair.bzr_map.write_text(":1 rev-id\n")

    assert pair.check_consistent() is MarksState.COMPLETE
    assert pair.missing() == []


@pytest.mark.parametrize("present", ["git_map", "bzr_map"])
def test_partial_pair_is_inconsistent(tmp_path: Path, present: str) -> None:
    """Verifies that either half on its own is rejected."""
    pair = MarksPair.for_alias(tmp_path, "trunk")
    pair.ensure_directory()
    getattr(pair, present).write_text("")

    assert pair.state() is MarksState.PARTIAL
    with pytest.raises(InconsistentStateError, match="mapfiles is missing"):
        pair.check_consistent()


def test_ensure_directory_is_idempotent(tmp_path: Path) -> None:
    """Verifies that creating the marks directory twice is harmless."""
    pair = MarksPair.for_alias(tmp_path / ".git", "trunk")

    pair.ensure_directory()
    pair.ensure_directory()

    assert pair.directory.is_dir()
