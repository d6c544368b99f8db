"""Dry-run RepoOps wrapper.

Read-only operations are delegated to the wrapped implementation; mutating
operations print what would happen and return without executing.
"""

from pathlib import Path

import click

from repotree.cli.output import user_output
from repotree.core.repo_ops.abc import RepoOps


class DryRunRepoOps(RepoOps):
    """Wrapper that reports intended repository changes instead of making them.

    Usage:
        real_ops = RealRepoOps()
        dry_ops = DryRunRepoOps(real_ops)

        # Prints "(dry run) would clone ..." instead of cloning
        dry_ops.clone(url, Path("deps/lib"), skip_lfs=False)
    """

    def __init__(self, wrapped: RepoOps) -> None:
        """Create a dry-run wrapper around a RepoOps implementation.

        Args:
            wrapped: The implementation answering read-only queries
        """
        self._wrapped = wrapped

    def _report(self, message: str) -> None:
        user_output(click.style("(dry run) ", fg="yellow") + message)

    # Read-only operations: delegate to wrapped implementation

    def path_exists(self, path: Path) -> bool:
        return self._wrapped.path_exists(path)

    def is_repository_at(self, path: Path, expected_url: str) -> bool:
        return self._wrapped.is_repository_at(path, expected_url)

    # Mutating operations: report instead of executing

    def clone(self, url: str, destination: Path, *, skip_lfs: bool) -> None:
        suffix = " (skipping large files)" if skip_lfs else ""
        self._report(f"would clone {url} into {destination}{suffix}")

    def fetch_all(self, path: Path) -> None:
        self._report(f"would fetch all remotes in {path}")

    def checkout(self, path: Path, tag: str) -> None:
        self._report(f"would check out {tag} in {path}")

    def reset_hard(self, path: Path) -> None:
        self._report(f"would hard-reset {path}")

    def sync_submodules(self, path: Path) -> None:
        self._report(f"would sync submodules in {path}")

    def sync_large_files(self, path: Path, *, skip: bool) -> None:
        if skip:
            return
        self._report(f"would sync large files in {path}")

    def remove_working_copy(self, path: Path) -> None:
        self._report(f"would remove {path}")
