"""Core data types shared by the registry, resolver and walker."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class CompatibilityMode(Enum):
    """How a repository reconciles competing tag requests.

    STRICT resolves via intersection (the safest common tag wins).
    PERMISSIVE resolves via union (the most advanced known tag wins).
    """

    STRICT = "strict"
    PERMISSIVE = "permissive"

    @classmethod
    def parse(cls, value: str) -> "CompatibilityMode":
        """Parse a mode name case-insensitively.

        Raises:
            ValueError: If value names no known mode
        """
        normalized = value.strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown compatibility mode '{value}' (expected one of: {valid})")


@dataclass(frozen=True)
class DependencyEntry:
    """One repository reference parsed from a dependency file."""

    url: str
    base_path: Path
    pinned_tag: str
    compatible_tags: tuple[str, ...]
    mode: CompatibilityMode
    skip_lfs: bool
    source_file: Path


@dataclass
class RegistryRecord:
    """Resolved state of one repository, owned by RepositoryRegistry.

    Mutated in place on every reconciliation. absolute_path never changes
    after insertion.
    """

    url: str
    absolute_path: Path
    resolved_tag: str
    compatible_tags: list[str]
    mode: CompatibilityMode
    already_materialized: bool = False
    pending_checkout: bool = False
    checkout_failed: bool = False

    @property
    def ordered_tags(self) -> list[str]:
        """Compatible tags with the resolved tag appended last."""
        return [*self.compatible_tags, self.resolved_tag]


# ============================================================================
# Reconciliation outcomes
# ============================================================================


@dataclass(frozen=True)
class NewRepository:
    """The URL was never seen before; a fresh record was inserted."""

    record: RegistryRecord


@dataclass(frozen=True)
class AlreadySatisfied:
    """The existing working copy already matches the resolved tag."""

    record: RegistryRecord


@dataclass(frozen=True)
class NeedsCheckout:
    """The resolved tag changed and the working copy must be moved to it."""

    record: RegistryRecord
    tag: str


@dataclass(frozen=True)
class PathConflict:
    """Two requests for one URL point at different working copy locations."""

    url: str
    existing_path: Path
    requested_path: Path

    @property
    def message(self) -> str:
        return (
            f"Path conflict for {self.url}:\n"
            f"  already resolved at: {self.existing_path}\n"
            f"  requested at:        {self.requested_path}\n"
            "One repository cannot be checked out at two different locations."
        )


@dataclass(frozen=True)
class ApiIncompatibility:
    """Two requests for one URL share no acceptable tag."""

    url: str
    existing_tags: tuple[str, ...]
    requested_tags: tuple[str, ...]

    @property
    def message(self) -> str:
        return (
            f"API incompatibility for {self.url}: no tag satisfies both requests.\n"
            f"  existing tags:  {', '.join(self.existing_tags)}\n"
            f"  requested tags: {', '.join(self.requested_tags)}"
        )


Conflict = PathConflict | ApiIncompatibility
ReconcileOutcome = NewRepository | AlreadySatisfied | NeedsCheckout | PathConflict | ApiIncompatibility


@dataclass(frozen=True)
class Resolution:
    """Result of applying the mode matrix to one record and one request."""

    resolved_tag: str
    compatible_tags: list[str]
    mode: CompatibilityMode
    changed: bool
