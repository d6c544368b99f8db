"""Tests for the compatibility mode matrix."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from repotree.core.resolver import (
    most_advanced_common_tag,
    newest_tag,
    resolve,
    tag_sort_key,
)
from repotree.core.types import CompatibilityMode, RegistryRecord

STRICT = CompatibilityMode.STRICT
PERMISSIVE = CompatibilityMode.PERMISSIVE


def _record(tags: list[str], mode: CompatibilityMode) -> RegistryRecord:
    return RegistryRecord(
        url="https://example.com/shared.git",
        absolute_path=Path("/work/shared"),
        resolved_tag=tags[-1],
        compatible_tags=tags[:-1],
        mode=mode,
        already_materialized=True,
    )


def _no_dates(tags: list[str]) -> dict[str, datetime]:
    return {}


class _RecordingDates:
    def __init__(self, dates: dict[str, datetime]) -> None:
        self._dates = dates
        self.calls: list[list[str]] = []

    def __call__(self, tags: list[str]) -> dict[str, datetime]:
        self.calls.append(list(tags))
        return {tag: self._dates[tag] for tag in tags if tag in self._dates}


# Strict + Strict


def test_strict_strict_keeps_pinned_tag_when_shared() -> None:
    record = _record(["v1.0", "v1.5", "v2.0"], STRICT)

    resolution = resolve(record, ["v1.5", "v2.0"], STRICT, _no_dates)

    assert resolution.resolved_tag == "v2.0"
    assert resolution.compatible_tags == ["v1.5"]
    assert resolution.mode == STRICT
    assert not resolution.changed


def test_strict_strict_moves_to_most_advanced_common_tag() -> None:
    record = _record(["v1.0", "v1.5", "v2.0"], STRICT)

    resolution = resolve(record, ["v1.0", "v1.5"], STRICT, _no_dates)

    assert resolution.resolved_tag == "v1.5"
    assert resolution.compatible_tags == ["v1.0"]
    assert resolution.changed


def test_strict_strict_does_not_consult_dates_without_a_tie() -> None:
    dates = _RecordingDates({})
    record = _record(["v1.0", "v1.5", "v2.0"], STRICT)

    resolve(record, ["v1.0", "v1.5"], STRICT, dates)

    assert dates.calls == []


def test_most_advanced_common_tag_uses_minimum_index_of_both_timelines() -> None:
    # c is newest in existing but oldest in requested, so b ranks higher.
    existing = ["a", "b", "c"]
    requested = ["c", "a", "x", "b"]

    assert most_advanced_common_tag(existing, requested, _no_dates) == "b"


def test_most_advanced_common_tag_breaks_tie_with_newest_date() -> None:
    dates = _RecordingDates(
        {
            "alpha": datetime(2024, 1, 1, tzinfo=UTC),
            "beta": datetime(2023, 1, 1, tzinfo=UTC),
        }
    )

    winner = most_advanced_common_tag(["alpha", "beta"], ["beta", "alpha"], dates)

    assert winner == "alpha"
    assert dates.calls == [["alpha", "beta"]]


def test_most_advanced_common_tag_prefers_dated_tags_over_undated() -> None:
    dates = _RecordingDates({"beta": datetime(2020, 1, 1, tzinfo=UTC)})

    assert most_advanced_common_tag(["alpha", "beta"], ["beta", "alpha"], dates) == "beta"


def test_most_advanced_common_tag_without_dates_takes_latest_existing_tag() -> None:
    assert most_advanced_common_tag(["alpha", "beta"], ["beta", "alpha"], _no_dates) == "beta"


def test_most_advanced_common_tag_rejects_disjoint_lists() -> None:
    with pytest.raises(ValueError):
        most_advanced_common_tag(["v1"], ["v2"], _no_dates)


def test_newest_tag_returns_none_when_nothing_is_dated() -> None:
    assert newest_tag(["a", "b"], _no_dates) is None


# Strict + Permissive


def test_strict_existing_ignores_permissive_request() -> None:
    record = _record(["v1", "v2"], STRICT)

    resolution = resolve(record, ["v1", "v2", "v3"], PERMISSIVE, _no_dates)

    assert resolution.resolved_tag == "v2"
    assert resolution.compatible_tags == ["v1"]
    assert resolution.mode == STRICT
    assert not resolution.changed


# Permissive + Permissive


def test_permissive_permissive_takes_newest_of_merged_list() -> None:
    record = _record(["v1", "v2"], PERMISSIVE)

    resolution = resolve(record, ["v1", "v2", "v3"], PERMISSIVE, _no_dates)

    assert resolution.resolved_tag == "v3"
    assert resolution.compatible_tags == ["v1", "v2"]
    assert resolution.mode == PERMISSIVE
    assert resolution.changed


def test_permissive_permissive_keeps_tag_when_request_is_older() -> None:
    record = _record(["v1", "v2", "v3"], PERMISSIVE)

    resolution = resolve(record, ["v1", "v2"], PERMISSIVE, _no_dates)

    assert resolution.resolved_tag == "v3"
    assert not resolution.changed


@pytest.mark.parametrize(
    ("x", "y"),
    [
        (["v1", "v2"], ["v1", "v2", "v3"]),
        (["v1", "v4"], ["v1", "v2", "v3"]),
        (["v1"], ["v1", "v2"]),
        (["v1", "v2", "v3"], ["v1", "v2", "v3"]),
        (["v1", "v2"], ["v1", "v3"]),
        (["v1", "v2"], ["v3", "v4"]),
        (["v9"], ["v10"]),
    ],
)
def test_permissive_permissive_outcome_is_commutative(x: list[str], y: list[str]) -> None:
    forward = resolve(_record(x, PERMISSIVE), y, PERMISSIVE, _no_dates)
    backward = resolve(_record(y, PERMISSIVE), x, PERMISSIVE, _no_dates)

    assert forward.resolved_tag == backward.resolved_tag


def test_permissive_permissive_without_shared_timeline_uses_dates() -> None:
    dates = _RecordingDates(
        {
            "v2": datetime(2024, 6, 1, tzinfo=UTC),
            "v4": datetime(2022, 6, 1, tzinfo=UTC),
        }
    )
    record = _record(["v1", "v2"], PERMISSIVE)

    resolution = resolve(record, ["v3", "v4"], PERMISSIVE, dates)

    assert resolution.resolved_tag == "v2"
    assert sorted(resolution.compatible_tags) == ["v1", "v3", "v4"]
    assert not resolution.changed


def test_permissive_permissive_without_shared_timeline_or_dates_takes_greater_pinned_tag(
    caplog: pytest.LogCaptureFixture,
) -> None:
    record = _record(["v1", "v4"], PERMISSIVE)

    resolution = resolve(record, ["v3", "v2"], PERMISSIVE, _no_dates)

    assert resolution.resolved_tag == "v4"
    assert not resolution.changed
    assert "No tag dates available" in caplog.text


def test_permissive_permissive_equal_length_lists_without_dates_move_forward() -> None:
    record = _record(["v1", "v2"], PERMISSIVE)

    resolution = resolve(record, ["v1", "v3"], PERMISSIVE, _no_dates)

    assert resolution.resolved_tag == "v3"
    assert sorted(resolution.compatible_tags) == ["v1", "v2"]
    assert resolution.changed


@pytest.mark.parametrize(
    ("tags", "expected"),
    [
        (["v9", "v10"], "v10"),
        (["release-2", "release-11"], "release-11"),
        (["1.2.3", "1.10.0"], "1.10.0"),
        (["beta", "alpha"], "beta"),
    ],
)
def test_tag_sort_key_orders_digit_runs_numerically(tags: list[str], expected: str) -> None:
    assert max(tags, key=tag_sort_key) == expected


# Permissive + Strict


def test_permissive_existing_adopts_strict_request_verbatim() -> None:
    record = _record(["v1", "v2", "v3"], PERMISSIVE)

    resolution = resolve(record, ["v1", "v2"], STRICT, _no_dates)

    assert resolution.resolved_tag == "v2"
    assert resolution.compatible_tags == ["v1"]
    assert resolution.mode == STRICT
    assert resolution.changed


def test_permissive_to_strict_without_tag_change_is_not_a_checkout() -> None:
    record = _record(["v1", "v2"], PERMISSIVE)

    resolution = resolve(record, ["v2"], STRICT, _no_dates)

    assert resolution.mode == STRICT
    assert resolution.compatible_tags == []
    assert not resolution.changed
