"""Compatibility resolution between an existing record and a new request.

The mode of the existing record and the mode of the incoming request select
one of four rules:

    existing    incoming     rule
    ---------   ----------   ------------------------------------------------
    strict      strict       keep the pinned tag if both accept it, otherwise
                             move to the most advanced common tag
    strict      permissive   keep the existing resolution unchanged
    permissive  permissive   merge both tag lists, newest merged tag wins
    permissive  strict       adopt the incoming request, switch to strict

Callers must have verified that strict requests share at least one tag with
the record before calling resolve().
"""

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime

from repotree.core.tags import intersect, ordered_union, shares_timeline
from repotree.core.types import CompatibilityMode, RegistryRecord, Resolution

logger = logging.getLogger(__name__)

# Maps candidate tags to their creation time. Tags without a known time are
# simply absent from the result.
TagDateLookup = Callable[[list[str]], Mapping[str, datetime]]


def resolve(
    record: RegistryRecord,
    requested_tags: Sequence[str],
    requested_mode: CompatibilityMode,
    tag_dates: TagDateLookup,
) -> Resolution:
    """Apply the mode interaction matrix to one record and one request.

    Args:
        record: Current registry state for the repository
        requested_tags: Incoming ordered tag list (pinned tag last)
        requested_mode: Incoming compatibility mode
        tag_dates: Lazy lookup used only when chronology must break a tie

    Returns:
        Resolution describing the new record state
    """
    existing = record.ordered_tags
    requested = list(requested_tags)

    match (record.mode, requested_mode):
        case (CompatibilityMode.STRICT, CompatibilityMode.STRICT):
            return _resolve_strict_strict(existing, requested, tag_dates)
        case (CompatibilityMode.STRICT, CompatibilityMode.PERMISSIVE):
            logger.debug(
                "%s is strict; ignoring permissive request for %s", record.url, requested[-1]
            )
            return Resolution(
                resolved_tag=record.resolved_tag,
                compatible_tags=list(record.compatible_tags),
                mode=CompatibilityMode.STRICT,
                changed=False,
            )
        case (CompatibilityMode.PERMISSIVE, CompatibilityMode.PERMISSIVE):
            return _resolve_permissive_permissive(existing, requested, tag_dates)
        case (CompatibilityMode.PERMISSIVE, CompatibilityMode.STRICT):
            logger.info("%s switches from permissive to strict at %s", record.url, requested[-1])
            return Resolution(
                resolved_tag=requested[-1],
                compatible_tags=requested[:-1],
                mode=CompatibilityMode.STRICT,
                changed=requested[-1] != record.resolved_tag,
            )
    raise AssertionError(f"Unhandled mode pair: {record.mode}, {requested_mode}")


def most_advanced_common_tag(
    existing: Sequence[str],
    requested: Sequence[str],
    tag_dates: TagDateLookup,
) -> str:
    """Pick the common tag that sits furthest along in both timelines.

    Each common tag scores the smaller of its two positions. The highest
    score wins. Ties go to the most recently created tag when creation
    dates are known, otherwise to the tag latest in the existing order.

    Raises:
        ValueError: If the two sequences share no tag
    """
    common = intersect(existing, requested)
    if not common:
        raise ValueError("Tag lists share no tag")

    scores = {tag: min(existing.index(tag), requested.index(tag)) for tag in common}
    best = max(scores.values())
    candidates = [tag for tag in common if scores[tag] == best]
    if len(candidates) == 1:
        return candidates[0]

    logger.debug("Tags %s tie at position %d; consulting tag dates", candidates, best)
    newest = newest_tag(candidates, tag_dates)
    if newest is not None:
        return newest
    return candidates[-1]


def newest_tag(candidates: list[str], tag_dates: TagDateLookup) -> str | None:
    """Return the most recently created candidate, or None if none is dated."""
    dates = tag_dates(candidates)
    dated = [tag for tag in candidates if tag in dates]
    if not dated:
        return None
    return max(dated, key=lambda tag: (dates[tag], tag_sort_key(tag)))


def tag_sort_key(tag: str) -> list[str | int]:
    """Fixed ordering for tags that no timeline or date can rank.

    Digit runs compare as numbers, so "v10" sorts after "v9".
    """
    return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", tag)]


def _resolve_strict_strict(
    existing: list[str], requested: list[str], tag_dates: TagDateLookup
) -> Resolution:
    common = intersect(existing, requested)
    pinned = existing[-1]
    if pinned in common:
        return Resolution(
            resolved_tag=pinned,
            compatible_tags=[tag for tag in common if tag != pinned],
            mode=CompatibilityMode.STRICT,
            changed=False,
        )

    winner = most_advanced_common_tag(existing, requested, tag_dates)
    logger.info("Pinned tag %s is not shared; moving to common tag %s", pinned, winner)
    return Resolution(
        resolved_tag=winner,
        compatible_tags=[tag for tag in common if tag != winner],
        mode=CompatibilityMode.STRICT,
        changed=True,
    )


def _resolve_permissive_permissive(
    existing: list[str], requested: list[str], tag_dates: TagDateLookup
) -> Resolution:
    pinned = existing[-1]
    merged = ordered_union(existing, requested)

    if shares_timeline(existing, requested):
        winner = merged[-1]
    else:
        # Merged order is meaningless here, only creation dates can rank tags.
        newest = newest_tag(merged, tag_dates)
        if newest is None:
            winner = max(pinned, requested[-1], key=tag_sort_key)
            logger.warning(
                "No tag dates available to order %s; taking the greater pinned tag %s",
                merged,
                winner,
            )
        else:
            winner = newest

    return Resolution(
        resolved_tag=winner,
        compatible_tags=[tag for tag in merged if tag != winner],
        mode=CompatibilityMode.PERMISSIVE,
        changed=winner != pinned,
    )
