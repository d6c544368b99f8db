"""Pure comparison helpers over ordered tag sequences.

Tag sequences are ordered oldest first. Tags are opaque identifiers: no
version parsing happens here.
"""

import logging
from collections.abc import Sequence

from repotree.core.types import DependencyEntry

logger = logging.getLogger(__name__)


def ordered_tag_list(entry: DependencyEntry) -> list[str]:
    """Return the entry's compatible tags with its pinned tag appended last."""
    tags = [tag for tag in entry.compatible_tags if tag != entry.pinned_tag]
    tags.append(entry.pinned_tag)
    return tags


def intersect(a: Sequence[str], b: Sequence[str]) -> list[str]:
    """Return the elements of a that also occur in b, in a's order."""
    members = set(b)
    return [tag for tag in a if tag in members]


def unordered_union(a: Sequence[str], b: Sequence[str]) -> list[str]:
    """Return every tag of a and b exactly once.

    The result carries no chronological meaning. It is built first-seen (a,
    then the tags of b missing from a) only so that it is deterministic.
    """
    merged = list(dict.fromkeys(a))
    seen = set(merged)
    for tag in b:
        if tag not in seen:
            merged.append(tag)
            seen.add(tag)
    return merged


def shares_timeline(a: Sequence[str], b: Sequence[str]) -> bool:
    """Check whether two sequences can be merged without losing order.

    Two non-empty sequences starting at different tags, or two different
    sequences of the same length, cannot be placed on one timeline.
    """
    if a and b and a[0] != b[0]:
        return False
    if len(a) == len(b) and list(a) != list(b):
        return False
    return True


def ordered_union(a: Sequence[str], b: Sequence[str]) -> list[str]:
    """Merge two chronologically ordered tag sequences.

    The longer sequence is the backbone. Tags of the shorter sequence that
    the backbone lacks are appended at the end. Falls back to an unordered
    union, with a warning, when the sequences do not share a timeline.
    """
    if not shares_timeline(a, b):
        if a and b and a[0] != b[0]:
            logger.warning(
                "Tag lists start at different tags (%s vs %s); merging without order: %s | %s",
                a[0],
                b[0],
                list(a),
                list(b),
            )
        else:
            logger.warning(
                "Tag lists have equal length but differ; merging without order: %s | %s",
                list(a),
                list(b),
            )
        return unordered_union(a, b)

    backbone, other = (list(a), b) if len(a) >= len(b) else (list(b), a)
    present = set(backbone)
    tail = [tag for tag in other if tag not in present]
    if tail:
        logger.info("Appending tags missing from the longer tag list: %s", tail)
        backbone.extend(tail)
    return backbone
