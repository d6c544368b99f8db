"""Recursive dependency walk.

Reads one dependency file, materializes each listed repository, and descends
into the dependency files found inside newly materialized repositories.

The walk is depth-first and synchronous: an entry is fully processed before
the next one starts. A path conflict or API incompatibility stops the whole
run; any other failure is confined to the entry that caused it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from repotree.core.dependency_file import (
    DEFAULT_DEPENDENCY_FILENAME,
    ConfigurationError,
    canonical_path,
    load_dependency_file,
)
from repotree.core.registry import RepositoryRegistry
from repotree.core.repo_ops.abc import RepoOps, RepoOpsError, TagNotFoundError
from repotree.core.tags import ordered_tag_list
from repotree.core.types import (
    AlreadySatisfied,
    ApiIncompatibility,
    CompatibilityMode,
    Conflict,
    DependencyEntry,
    NeedsCheckout,
    NewRepository,
    PathConflict,
    RegistryRecord,
)
from repotree.core.user_feedback import UserFeedback

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 5


class EntryStatus(Enum):
    """What happened to one dependency entry."""

    MATERIALIZED = "materialized"
    UPDATED = "updated"
    SATISFIED = "satisfied"
    FAILED = "failed"


@dataclass(frozen=True)
class EntryResult:
    """Outcome of processing one dependency entry."""

    url: str
    path: Path
    tag: str
    status: EntryStatus
    source_file: Path
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status != EntryStatus.FAILED


@dataclass(frozen=True)
class WalkOptions:
    """Settings for one walk."""

    max_depth: int = DEFAULT_MAX_DEPTH
    default_mode: CompatibilityMode = CompatibilityMode.PERMISSIVE
    recursive: bool = True
    force: bool = False
    dependency_filename: str = DEFAULT_DEPENDENCY_FILENAME


@dataclass(frozen=True)
class WalkSummary:
    """Everything a finished (or aborted) walk produced."""

    entries: list[EntryResult] = field(default_factory=list)
    processed_files: list[Path] = field(default_factory=list)
    config_errors: list[str] = field(default_factory=list)
    repositories: list[RegistryRecord] = field(default_factory=list)
    conflict: Conflict | None = None

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def succeeded(self) -> int:
        return sum(1 for entry in self.entries if entry.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def skipped(self) -> int:
        return sum(1 for entry in self.entries if entry.status == EntryStatus.SATISFIED)

    @property
    def unique_repositories(self) -> int:
        return len({entry.url for entry in self.entries})

    @property
    def ok(self) -> bool:
        return self.conflict is None and self.failed == 0 and not self.config_errors


class DependencyWalker:
    """Walks a tree of dependency files against one registry.

    A walker instance serves a single run: the set of processed files and the
    collected results live on the instance.
    """

    def __init__(
        self,
        repo_ops: RepoOps,
        registry: RepositoryRegistry,
        feedback: UserFeedback,
        options: WalkOptions,
    ) -> None:
        self._repo_ops = repo_ops
        self._registry = registry
        self._feedback = feedback
        self._options = options
        self._processed: set[Path] = set()
        self._processed_order: list[Path] = []
        self._results: list[EntryResult] = []
        self._config_errors: list[str] = []
        self._conflict: Conflict | None = None

    def walk(self, root_file: Path) -> WalkSummary:
        """Process root_file at depth 0 and everything reachable from it."""
        self._visit(canonical_path(root_file), depth=0)
        return WalkSummary(
            entries=list(self._results),
            processed_files=list(self._processed_order),
            config_errors=list(self._config_errors),
            repositories=self._registry.records(),
            conflict=self._conflict,
        )

    def _visit(self, config_path: Path, depth: int) -> bool:
        """Process one dependency file. Returns False when the run must stop."""
        if config_path in self._processed:
            logger.debug("Already processed %s; skipping", config_path)
            return True
        self._processed.add(config_path)
        self._processed_order.append(config_path)

        indent = "  " * depth
        self._feedback.info(f"{indent}Reading {config_path}")
        try:
            entries = load_dependency_file(config_path, self._options.default_mode)
        except ConfigurationError as e:
            self._feedback.error(f"{indent}Error: {e}")
            self._config_errors.append(str(e))
            return True

        discovered: list[DependencyEntry] = []
        for entry in entries:
            if self._options.recursive:
                outcome = self._reconcile_entry(entry, indent)
            else:
                outcome = self._materialize_entry(entry, indent)

            if isinstance(outcome, PathConflict | ApiIncompatibility):
                self._feedback.error(f"{indent}Error: {outcome.message}")
                self._conflict = outcome
                return False

            self._results.append(outcome)
            if outcome.status == EntryStatus.MATERIALIZED:
                discovered.append(entry)

        if not self._options.recursive:
            return True
        if depth >= self._options.max_depth:
            if discovered:
                logger.info(
                    "Depth limit %d reached at %s; not descending into %d repositories",
                    self._options.max_depth,
                    config_path,
                    len(discovered),
                )
            return True

        for entry in discovered:
            record = self._registry.lookup(entry.url)
            if record is None or record.checkout_failed:
                continue
            nested = record.absolute_path / self._options.dependency_filename
            if not nested.is_file():
                continue
            if not self._visit(canonical_path(nested), depth + 1):
                return False
        return True

    def _reconcile_entry(self, entry: DependencyEntry, indent: str) -> EntryResult | Conflict:
        outcome = self._registry.reconcile(
            entry.url, entry.base_path, ordered_tag_list(entry), entry.mode
        )

        match outcome:
            case PathConflict() | ApiIncompatibility():
                return outcome
            case AlreadySatisfied(record=record):
                if record.checkout_failed:
                    return self._previously_failed(entry, record, indent)
                self._feedback.info(
                    f"{indent}{entry.url} @ {record.resolved_tag}: already satisfied"
                )
                return self._result(entry, record.resolved_tag, EntryStatus.SATISFIED)
            case NeedsCheckout(record=record, tag=tag):
                if record.checkout_failed:
                    return self._previously_failed(entry, record, indent)
                try:
                    self._move_to_tag(entry.url, record.absolute_path, tag)
                except RepoOpsError as e:
                    return self._failure(entry, tag, e, indent)
                self._registry.mark_materialized(entry.url)
                self._feedback.success(f"{indent}{entry.url}: moved to {tag}")
                return self._result(entry, tag, EntryStatus.UPDATED)
            case NewRepository(record=record):
                try:
                    self._materialize(
                        entry.url, record.absolute_path, record.resolved_tag, entry.skip_lfs
                    )
                except RepoOpsError as e:
                    return self._failure(entry, record.resolved_tag, e, indent)
                self._registry.mark_materialized(entry.url)
                self._feedback.success(
                    f"{indent}{entry.url} @ {record.resolved_tag} -> {record.absolute_path}"
                )
                return self._result(entry, record.resolved_tag, EntryStatus.MATERIALIZED)
        raise AssertionError(f"Unhandled reconcile outcome: {outcome!r}")

    def _materialize_entry(self, entry: DependencyEntry, indent: str) -> EntryResult:
        """Check out an entry exactly as listed, without registry arbitration."""
        try:
            self._materialize(entry.url, entry.base_path, entry.pinned_tag, entry.skip_lfs)
        except RepoOpsError as e:
            return self._failure(entry, entry.pinned_tag, e, indent)
        self._feedback.success(f"{indent}{entry.url} @ {entry.pinned_tag} -> {entry.base_path}")
        return self._result(entry, entry.pinned_tag, EntryStatus.MATERIALIZED)

    def _materialize(self, url: str, path: Path, tag: str, skip_lfs: bool) -> None:
        """Bring the working copy at path to tag, cloning it if needed.

        Raises:
            RepoOpsError: If any operation fails. A working copy cloned by
                this call is removed before the error propagates. A failed removal is
                reported and does not replace the original error.
        """
        if self._repo_ops.path_exists(path):
            if not self._repo_ops.is_repository_at(path, url):
                raise RepoOpsError(f"{path} exists but is not a clone of {url}")
            self._move_to_tag(url, path, tag)
            self._repo_ops.sync_submodules(path)
            self._repo_ops.sync_large_files(path, skip=skip_lfs)
            return

        try:
            self._repo_ops.clone(url, path, skip_lfs=skip_lfs)
            self._checkout(url, path, tag)
            self._repo_ops.sync_submodules(path)
            self._repo_ops.sync_large_files(path, skip=skip_lfs)
        except RepoOpsError:
            self._discard_partial_clone(path)
            raise

    def _discard_partial_clone(self, path: Path) -> None:
        try:
            self._repo_ops.remove_working_copy(path)
        except RepoOpsError as e:
            logger.warning("Could not remove partial working copy %s: %s", path, e)
            self._feedback.error(f"Warning: partial working copy left at {path}")

    def _move_to_tag(self, url: str, path: Path, tag: str) -> None:
        self._repo_ops.fetch_all(path)
        if self._options.force:
            self._repo_ops.reset_hard(path)
        self._checkout(url, path, tag)

    def _checkout(self, url: str, path: Path, tag: str) -> None:
        try:
            self._repo_ops.checkout(path, tag)
        except TagNotFoundError as e:
            raise RepoOpsError(f"{url}: tag '{tag}' does not exist (working copy {path})") from e

    def _failure(
        self, entry: DependencyEntry, tag: str, error: RepoOpsError, indent: str
    ) -> EntryResult:
        self._registry.mark_failed(entry.url)
        self._feedback.error(f"{indent}Error: {entry.url} @ {tag}: {error}")
        return self._result(entry, tag, EntryStatus.FAILED, error=str(error))

    def _previously_failed(
        self, entry: DependencyEntry, record: RegistryRecord, indent: str
    ) -> EntryResult:
        message = f"an earlier operation on {record.absolute_path} failed"
        self._feedback.error(f"{indent}Error: {entry.url}: {message}")
        return self._result(entry, record.resolved_tag, EntryStatus.FAILED, error=message)

    def _result(
        self, entry: DependencyEntry, tag: str, status: EntryStatus, error: str | None = None
    ) -> EntryResult:
        return EntryResult(
            url=entry.url,
            path=entry.base_path,
            tag=tag,
            status=status,
            source_file=entry.source_file,
            error=error,
        )
