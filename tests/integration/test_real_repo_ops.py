"""Integration tests for RealRepoOps and RealTagDates against real git repositories."""

import os
import shutil
import subprocess
from pathlib import Path

import pytest

from repotree.core.registry import RepositoryRegistry
from repotree.core.repo_ops.abc import RepoOpsError, TagNotFoundError
from repotree.core.repo_ops.real import RealRepoOps
from repotree.core.tag_dates.real import RealTagDates
from repotree.core.walker import DependencyWalker, EntryStatus, WalkOptions
from tests.fakes.user_feedback import FakeUserFeedback
from tests.test_utils.dependency_files import dep, dep_file_content, write_dep_file

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed"),
]


def _git(cwd: Path, *args: str, date: str | None = None) -> None:
    env = dict(os.environ)
    if date is not None:
        env["GIT_AUTHOR_DATE"] = date
        env["GIT_COMMITTER_DATE"] = date
    subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            "-c",
            "tag.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        env=env,
        check=True,
        capture_output=True,
    )


def _make_origin(path: Path, tags: list[tuple[str, str, dict[str, str]]]) -> Path:
    """Create a repository with one commit per (tag, date, files) triple."""
    path.mkdir(parents=True)
    _git(path, "init", "--quiet", "--initial-branch=main")
    for tag, date, files in tags:
        for relative, content in files.items():
            (path / relative).write_text(content, encoding="utf-8")
        (path / "VERSION").write_text(tag, encoding="utf-8")
        _git(path, "add", "--all")
        _git(path, "commit", "--quiet", "-m", f"release {tag}", date=date)
        _git(path, "tag", tag, date=date)
    return path


@pytest.fixture
def origin(tmp_path: Path) -> Path:
    return _make_origin(
        tmp_path.resolve() / "origin",
        [
            ("v1", "2024-01-01T00:00:00+00:00", {}),
            ("v2", "2024-06-01T00:00:00+00:00", {}),
        ],
    )


def test_clone_and_checkout_tag(tmp_path: Path, origin: Path) -> None:
    ops = RealRepoOps()
    destination = tmp_path.resolve() / "work" / "lib"

    ops.clone(str(origin), destination, skip_lfs=False)
    ops.checkout(destination, "v1")

    assert (destination / "VERSION").read_text(encoding="utf-8") == "v1"
    assert ops.is_repository_at(destination, str(origin) + "/")
    assert not ops.is_repository_at(destination, str(tmp_path / "other"))


def test_checkout_missing_tag_raises_tag_not_found(tmp_path: Path, origin: Path) -> None:
    ops = RealRepoOps()
    destination = tmp_path.resolve() / "lib"
    ops.clone(str(origin), destination, skip_lfs=False)

    with pytest.raises(TagNotFoundError, match="Tag 'v9' not found"):
        ops.checkout(destination, "v9")


def test_clone_of_missing_remote_raises_with_context(tmp_path: Path) -> None:
    ops = RealRepoOps()

    with pytest.raises(RepoOpsError, match="Failed to clone"):
        ops.clone(str(tmp_path / "absent"), tmp_path / "lib", skip_lfs=True)


def test_fetch_picks_up_new_tags(tmp_path: Path, origin: Path) -> None:
    ops = RealRepoOps()
    destination = tmp_path.resolve() / "lib"
    ops.clone(str(origin), destination, skip_lfs=False)
    (origin / "VERSION").write_text("v3", encoding="utf-8")
    _git(origin, "commit", "--quiet", "-am", "release v3")
    _git(origin, "tag", "v3")

    ops.fetch_all(destination)
    ops.checkout(destination, "v3")

    assert (destination / "VERSION").read_text(encoding="utf-8") == "v3"


def test_reset_hard_discards_local_edits(tmp_path: Path, origin: Path) -> None:
    ops = RealRepoOps()
    destination = tmp_path.resolve() / "lib"
    ops.clone(str(origin), destination, skip_lfs=False)
    ops.checkout(destination, "v2")
    (destination / "VERSION").write_text("edited", encoding="utf-8")

    ops.reset_hard(destination)

    assert (destination / "VERSION").read_text(encoding="utf-8") == "v2"


def test_remove_working_copy_deletes_clone(tmp_path: Path, origin: Path) -> None:
    ops = RealRepoOps()
    destination = tmp_path.resolve() / "lib"
    ops.clone(str(origin), destination, skip_lfs=False)

    ops.remove_working_copy(destination)

    assert not destination.exists()


def test_is_repository_at_rejects_plain_directory(tmp_path: Path) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()

    assert not RealRepoOps().is_repository_at(plain, "https://example.com/x.git")


def test_tag_dates_follow_commit_dates(tmp_path: Path, origin: Path) -> None:
    dates = RealTagDates().dates_for_tags(origin, ["v1", "v2", "missing"])

    assert set(dates) == {"v1", "v2"}
    assert dates["v2"] > dates["v1"]


def test_tag_dates_fail_soft_outside_repository(tmp_path: Path) -> None:
    assert RealTagDates().dates_for_tags(tmp_path, ["v1"]) == {}


def test_walk_against_real_repositories(tmp_path: Path) -> None:
    base = tmp_path.resolve()
    shared = _make_origin(
        base / "origins" / "shared",
        [("v1", "2024-01-01T00:00:00+00:00", {}), ("v2", "2024-02-01T00:00:00+00:00", {})],
    )
    app = _make_origin(
        base / "origins" / "app",
        [
            (
                "v1",
                "2024-01-01T00:00:00+00:00",
                {"repotree.json": dep_file_content(dep(str(shared), "../shared", "v1"))},
            )
        ],
    )
    root = write_dep_file(
        base / "ws",
        dep(str(app), "deps/app", "v1"),
        dep(str(shared), "deps/shared", "v2", ["v1"]),
    )
    walker = DependencyWalker(
        RealRepoOps(),
        RepositoryRegistry(RealTagDates()),
        FakeUserFeedback(),
        WalkOptions(),
    )

    summary = walker.walk(root)

    assert summary.ok, summary
    assert [entry.status for entry in summary.entries] == [
        EntryStatus.MATERIALIZED,
        EntryStatus.MATERIALIZED,
        EntryStatus.SATISFIED,
    ]
    assert (base / "ws" / "deps" / "shared" / "VERSION").read_text(encoding="utf-8") == "v2"


def test_skip_lfs_clone_keeps_skip_filter_in_local_config(tmp_path: Path, origin: Path) -> None:
    ops = RealRepoOps()
    destination = tmp_path.resolve() / "lib"

    ops.clone(str(origin), destination, skip_lfs=True)
    ops.checkout(destination, "v2")

    smudge = subprocess.run(
        ["git", "config", "--local", "--get", "filter.lfs.smudge"],
        cwd=destination,
        capture_output=True,
        text=True,
        check=True,
    )
    assert "--skip" in smudge.stdout
    assert (destination / "VERSION").read_text(encoding="utf-8") == "v2"
