"""Repository operations subpackage.

This subpackage provides abstractions over git operations with support for
testing via fakes and dry-run via wrappers.
"""

from repotree.core.repo_ops.abc import RepoOps, RepoOpsError, TagNotFoundError
from repotree.core.repo_ops.dry_run import DryRunRepoOps
from repotree.core.repo_ops.real import RealRepoOps, normalize_url

__all__ = [
    "RepoOps",
    "RepoOpsError",
    "TagNotFoundError",
    "RealRepoOps",
    "DryRunRepoOps",
    "normalize_url",
]
