"""Repository operations interface.

This module provides an abstraction over the version-control commands needed
to materialize a dependency, making the resolution engine testable without a
git binary.

Architecture:
- RepoOps: Abstract base class defining the interface
- RealRepoOps: Production implementation using git subprocess calls
- DryRunRepoOps: Wrapper reporting mutating calls instead of running them
"""

from abc import ABC, abstractmethod
from pathlib import Path


class RepoOpsError(RuntimeError):
    """A version-control operation against a working copy failed."""


class TagNotFoundError(RepoOpsError):
    """The requested tag does not exist in the working copy."""

    def __init__(self, path: Path, tag: str) -> None:
        super().__init__(f"Tag '{tag}' not found in {path}")
        self.path = path
        self.tag = tag


class RepoOps(ABC):
    """Abstract interface for repository operations.

    All implementations (real, dry-run and fake) must implement this interface.
    Mutating operations raise RepoOpsError on failure.
    """

    @abstractmethod
    def path_exists(self, path: Path) -> bool:
        """Check if anything exists at path."""
        ...

    @abstractmethod
    def is_repository_at(self, path: Path, expected_url: str) -> bool:
        """Check if path is the root of a working copy cloned from expected_url."""
        ...

    @abstractmethod
    def clone(self, url: str, destination: Path, *, skip_lfs: bool) -> None:
        """Clone url into destination.

        Args:
            url: Repository URL
            destination: Directory to create (must not exist)
            skip_lfs: Do not download large-file content during the clone
        """
        ...

    @abstractmethod
    def fetch_all(self, path: Path) -> None:
        """Fetch all remotes, including tags."""
        ...

    @abstractmethod
    def checkout(self, path: Path, tag: str) -> None:
        """Check out tag as a detached HEAD.

        Raises:
            TagNotFoundError: If tag does not exist in the working copy
            RepoOpsError: If the checkout fails for any other reason
        """
        ...

    @abstractmethod
    def reset_hard(self, path: Path) -> None:
        """Discard all local modifications to tracked files."""
        ...

    @abstractmethod
    def sync_submodules(self, path: Path) -> None:
        """Synchronize and update submodules recursively."""
        ...

    @abstractmethod
    def sync_large_files(self, path: Path, *, skip: bool) -> None:
        """Download large-file content for the checked-out revision.

        Args:
            path: Working copy
            skip: When True, do nothing
        """
        ...

    @abstractmethod
    def remove_working_copy(self, path: Path) -> None:
        """Delete a working copy left in a partial state.

        Raises:
            RepoOpsError: If the directory cannot be removed
        """
        ...
