"""Production RepoOps implementation using git subprocess calls."""

import logging
import os
import shutil
import stat
import subprocess
from pathlib import Path

from repotree.core.repo_ops.abc import RepoOps, RepoOpsError, TagNotFoundError
from repotree.core.subprocess import run_subprocess_with_context

logger = logging.getLogger(__name__)

# Written into the clone's local config, so every checkout in that working
# copy leaves LFS pointer files in place instead of downloading content.
_SKIP_LFS_CONFIG = [
    "-c",
    "filter.lfs.smudge=git-lfs smudge --skip -- %f",
    "-c",
    "filter.lfs.process=git-lfs filter-process --skip",
]


def normalize_url(url: str) -> str:
    """Reduce a repository URL to a comparable form.

    Trailing slashes and a trailing ".git" are ignored, so
    "https://host/org/repo.git/" and "https://host/org/repo" compare equal.
    """
    normalized = url.strip().rstrip("/")
    if normalized.endswith(".git"):
        normalized = normalized[: -len(".git")]
    return normalized


def _make_writable_and_retry(func, path, _exc) -> None:
    # Git marks pack files read-only, which blocks rmtree on some platforms.
    os.chmod(path, stat.S_IWRITE)
    func(path)


class RealRepoOps(RepoOps):
    """Production implementation using git.

    Every mutating call goes through run_subprocess_with_context and surfaces
    failures as RepoOpsError carrying the command and its stderr.
    """

    def __init__(self, timeout: float | None = None) -> None:
        """Create the git-backed implementation.

        Args:
            timeout: Seconds allowed per git invocation (None waits forever)
        """
        self._timeout = timeout

    def _git(
        self,
        args: list[str],
        operation_context: str,
        cwd: Path | None = None,
    ) -> subprocess.CompletedProcess[str]:
        try:
            return run_subprocess_with_context(
                ["git", *args],
                operation_context=operation_context,
                cwd=cwd,
                timeout=self._timeout,
            )
        except RuntimeError as e:
            raise RepoOpsError(str(e)) from e

    def path_exists(self, path: Path) -> bool:
        return path.exists()

    def is_repository_at(self, path: Path, expected_url: str) -> bool:
        if not path.is_dir():
            return False

        toplevel = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=path,
            capture_output=True,
            text=True,
            check=False,
        )
        if toplevel.returncode != 0:
            return False
        if Path(toplevel.stdout.strip()).resolve() != path.resolve():
            return False

        remote = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            cwd=path,
            capture_output=True,
            text=True,
            check=False,
        )
        if remote.returncode != 0:
            return False
        return normalize_url(remote.stdout) == normalize_url(expected_url)

    def clone(self, url: str, destination: Path, *, skip_lfs: bool) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        args = ["clone", "--quiet", "--no-checkout"]
        if skip_lfs:
            args.extend(_SKIP_LFS_CONFIG)
        self._git(
            [*args, url, str(destination)],
            operation_context=f"clone {url} into {destination}",
        )

    def fetch_all(self, path: Path) -> None:
        self._git(
            ["fetch", "--all", "--tags", "--force", "--quiet"],
            operation_context=f"fetch remotes in {path}",
            cwd=path,
        )

    def checkout(self, path: Path, tag: str) -> None:
        verify = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", f"refs/tags/{tag}^{{commit}}"],
            cwd=path,
            capture_output=True,
            text=True,
            check=False,
        )
        if verify.returncode != 0:
            raise TagNotFoundError(path, tag)

        self._git(
            ["-c", "advice.detachedHead=false", "checkout", "--quiet", f"refs/tags/{tag}"],
            operation_context=f"check out tag '{tag}' in {path}",
            cwd=path,
        )

    def reset_hard(self, path: Path) -> None:
        self._git(
            ["reset", "--hard", "--quiet"],
            operation_context=f"reset {path}",
            cwd=path,
        )

    def sync_submodules(self, path: Path) -> None:
        if not (path / ".gitmodules").exists():
            return
        self._git(
            ["submodule", "sync", "--recursive", "--quiet"],
            operation_context=f"sync submodule URLs in {path}",
            cwd=path,
        )
        self._git(
            ["submodule", "update", "--init", "--recursive", "--quiet"],
            operation_context=f"update submodules in {path}",
            cwd=path,
        )

    def sync_large_files(self, path: Path, *, skip: bool) -> None:
        if skip:
            logger.debug("Skipping large-file sync in %s", path)
            return
        if not self._uses_lfs(path):
            return
        self._git(
            ["lfs", "pull"],
            operation_context=f"download large files in {path}",
            cwd=path,
        )

    def remove_working_copy(self, path: Path) -> None:
        if not path.exists():
            return
        logger.info("Removing partial working copy %s", path)
        try:
            shutil.rmtree(path, onexc=_make_writable_and_retry)
        except OSError as e:
            raise RepoOpsError(f"Failed to remove {path}: {e}") from e

    def _uses_lfs(self, path: Path) -> bool:
        attributes = path / ".gitattributes"
        if not attributes.exists():
            return False
        return "filter=lfs" in attributes.read_text(encoding="utf-8", errors="replace")
