"""Run-wide registry of every repository encountered while walking dependencies.

The registry is the single source of truth for path conflicts and tag
arbitration. One instance lives for one walk and is passed explicitly to
everything that needs it.

Reconciliation is a read-modify-write on the record. The walker is
single-threaded; running entries in parallel would require serializing
reconcile() calls per URL.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path

from repotree.core.resolver import TagDateLookup, resolve
from repotree.core.tag_dates.abc import TagDates
from repotree.core.tags import intersect
from repotree.core.types import (
    AlreadySatisfied,
    ApiIncompatibility,
    CompatibilityMode,
    NeedsCheckout,
    NewRepository,
    PathConflict,
    ReconcileOutcome,
    RegistryRecord,
)

logger = logging.getLogger(__name__)


class RepositoryRegistry:
    """Mapping from repository URL to its resolved state."""

    def __init__(self, tag_dates: TagDates) -> None:
        """Create an empty registry.

        Args:
            tag_dates: Provider consulted lazily when tag chronology decides a
                conflict
        """
        self._tag_dates = tag_dates
        self._records: dict[str, RegistryRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, url: object) -> bool:
        return url in self._records

    def lookup(self, url: str) -> RegistryRecord | None:
        """Return the record for url, or None if it was never registered."""
        return self._records.get(url)

    def records(self) -> list[RegistryRecord]:
        """Return all records in registration order."""
        return list(self._records.values())

    def insert_new(
        self,
        url: str,
        absolute_path: Path,
        tag: str,
        compatible_tags: Sequence[str],
        mode: CompatibilityMode,
    ) -> RegistryRecord:
        """Register a repository seen for the first time.

        Raises:
            ValueError: If url is already registered
        """
        if url in self._records:
            raise ValueError(f"Repository already registered: {url}")
        record = RegistryRecord(
            url=url,
            absolute_path=absolute_path,
            resolved_tag=tag,
            compatible_tags=[t for t in compatible_tags if t != tag],
            mode=mode,
        )
        self._records[url] = record
        logger.debug("Registered %s at %s (%s, %s)", url, absolute_path, tag, mode.value)
        return record

    def reconcile(
        self,
        url: str,
        absolute_path: Path,
        requested_tags: Sequence[str],
        requested_mode: CompatibilityMode,
    ) -> ReconcileOutcome:
        """Merge a dependency request into the registry.

        Unknown URLs are inserted and reported as NewRepository. Known URLs
        are checked for a path conflict, then for a shared tag when either
        side is strict, then resolved through the mode matrix. Conflicts are
        returned, never raised; the record is left untouched in that case.

        Args:
            url: Repository identity
            absolute_path: Normalized working copy location for this request
            requested_tags: Ordered tag list of the request (pinned tag last)
            requested_mode: Compatibility mode of the request

        Returns:
            One of NewRepository, AlreadySatisfied, NeedsCheckout, PathConflict,
            ApiIncompatibility
        """
        if not requested_tags:
            raise ValueError(f"Empty tag list requested for {url}")

        record = self._records.get(url)
        if record is None:
            record = self.insert_new(
                url, absolute_path, requested_tags[-1], requested_tags[:-1], requested_mode
            )
            return NewRepository(record=record)

        if record.absolute_path != absolute_path:
            return PathConflict(
                url=url, existing_path=record.absolute_path, requested_path=absolute_path
            )

        existing_tags = record.ordered_tags
        strict_involved = CompatibilityMode.STRICT in (record.mode, requested_mode)
        if strict_involved and not intersect(existing_tags, requested_tags):
            return ApiIncompatibility(
                url=url,
                existing_tags=tuple(existing_tags),
                requested_tags=tuple(requested_tags),
            )

        resolution = resolve(record, requested_tags, requested_mode, self._date_lookup(record))
        record.compatible_tags = resolution.compatible_tags
        record.mode = resolution.mode

        if resolution.changed:
            logger.info(
                "%s: resolved tag %s -> %s", url, record.resolved_tag, resolution.resolved_tag
            )
            record.resolved_tag = resolution.resolved_tag
            record.pending_checkout = True
            record.already_materialized = False
            return NeedsCheckout(record=record, tag=resolution.resolved_tag)

        return AlreadySatisfied(record=record)

    def mark_materialized(self, url: str) -> None:
        """Record that the working copy now matches the resolved tag."""
        record = self._require(url)
        record.already_materialized = True
        record.pending_checkout = False

    def mark_failed(self, url: str) -> None:
        """Record a failed operation; the repository is excluded from recursion."""
        record = self._records.get(url)
        if record is not None:
            record.checkout_failed = True

    def _require(self, url: str) -> RegistryRecord:
        record = self._records.get(url)
        if record is None:
            raise KeyError(f"Repository not registered: {url}")
        return record

    def _date_lookup(self, record: RegistryRecord) -> TagDateLookup:
        def lookup(tags: list[str]) -> Mapping[str, datetime]:
            return self._tag_dates.dates_for_tags(record.absolute_path, tags)

        return lookup
