"""Tests for RealRepoOps with git invocations patched out."""

import re
from pathlib import Path
from unittest.mock import patch

import pytest

from repotree.core.repo_ops.abc import RepoOpsError
from repotree.core.repo_ops.real import RealRepoOps, normalize_url


def _git_args(mock_run) -> list[list[str]]:
    return [call.args[0] for call in mock_run.call_args_list]


def test_clone_with_skip_lfs_configures_skip_for_later_checkouts(tmp_path: Path) -> None:
    """Test that skipping large files is stored in the clone, not only its environment."""
    destination = tmp_path / "lib"
    with (
        patch("repotree.core.repo_ops.real.run_subprocess_with_context") as mock_run,
        patch("repotree.core.repo_ops.real.subprocess.run") as mock_verify,
    ):
        mock_verify.return_value.returncode = 0
        ops = RealRepoOps()

        ops.clone("https://x/lib.git", destination, skip_lfs=True)
        ops.checkout(destination, "v1")

        clone_cmd, checkout_cmd = _git_args(mock_run)
        assert clone_cmd[:4] == ["git", "clone", "--quiet", "--no-checkout"]
        assert "filter.lfs.smudge=git-lfs smudge --skip -- %f" in clone_cmd
        assert "filter.lfs.process=git-lfs filter-process --skip" in clone_cmd
        assert clone_cmd[-2:] == ["https://x/lib.git", str(destination)]
        assert "checkout" in checkout_cmd
        assert mock_run.call_args_list[1].kwargs["cwd"] == destination


def test_clone_without_skip_lfs_leaves_filters_alone(tmp_path: Path) -> None:
    """Test that a normal clone does not touch the LFS filter configuration."""
    with patch("repotree.core.repo_ops.real.run_subprocess_with_context") as mock_run:
        RealRepoOps().clone("https://x/lib.git", tmp_path / "lib", skip_lfs=False)

        [clone_cmd] = _git_args(mock_run)
        assert not any("filter.lfs" in arg for arg in clone_cmd)


def test_git_failure_becomes_repo_ops_error(tmp_path: Path) -> None:
    """Test that subprocess failures surface as RepoOpsError."""
    with patch("repotree.core.repo_ops.real.run_subprocess_with_context") as mock_run:
        mock_run.side_effect = RuntimeError("Failed to fetch remotes")

        with pytest.raises(RepoOpsError, match="Failed to fetch remotes"):
            RealRepoOps().fetch_all(tmp_path)


def test_remove_working_copy_wraps_filesystem_errors(tmp_path: Path) -> None:
    """Test that a failed removal is reported as RepoOpsError."""
    target = tmp_path / "lib"
    target.mkdir()
    with patch("repotree.core.repo_ops.real.shutil.rmtree") as mock_rmtree:
        mock_rmtree.side_effect = PermissionError(13, "Permission denied")

        with pytest.raises(RepoOpsError, match=re.escape(f"Failed to remove {target}")):
            RealRepoOps().remove_working_copy(target)


def test_remove_working_copy_ignores_missing_path(tmp_path: Path) -> None:
    with patch("repotree.core.repo_ops.real.shutil.rmtree") as mock_rmtree:
        RealRepoOps().remove_working_copy(tmp_path / "absent")

        mock_rmtree.assert_not_called()


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://host/org/repo.git", "https://host/org/repo"),
        ("https://host/org/repo.git/", "https://host/org/repo"),
        (" git@host:org/repo ", "git@host:org/repo"),
    ],
)
def test_normalize_url(url: str, expected: str) -> None:
    assert normalize_url(url) == expected
