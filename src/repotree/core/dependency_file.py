"""Loading of dependency files.

A dependency file is a JSON array of repository references:

    [
      {
        "url": "git@example.com:org/lib.git",
        "path": "deps/lib",
        "tag": "v2.0",
        "compatibleTags": ["v1.0", "v1.5"],
        "compatibility": "strict",
        "skipLfs": false
      }
    ]

An object with a "dependencies" array is accepted as well. Relative paths
are resolved against the directory containing the file.
"""

import json
from pathlib import Path
from typing import Any

from repotree.core.types import CompatibilityMode, DependencyEntry

DEFAULT_DEPENDENCY_FILENAME = "repotree.json"


class ConfigurationError(Exception):
    """A dependency file is unreadable or malformed."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


def canonical_path(path: Path) -> Path:
    """Return the absolute, normalized form of path used for identity checks."""
    return path.expanduser().resolve()


def load_dependency_file(path: Path, default_mode: CompatibilityMode) -> list[DependencyEntry]:
    """Parse a dependency file into entries.

    Args:
        path: File to read
        default_mode: Mode for entries that do not name one

    Returns:
        Entries in file order

    Raises:
        ConfigurationError: If the file cannot be read or any entry is invalid
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(path, f"cannot read file: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(path, f"invalid JSON: {e}") from e

    if isinstance(raw, dict) and "dependencies" in raw:
        raw = raw["dependencies"]
    if not isinstance(raw, list):
        raise ConfigurationError(path, "expected a list of dependency entries")

    base_dir = path.parent
    return [
        _parse_entry(path, base_dir, index, item, default_mode) for index, item in enumerate(raw)
    ]


def _parse_entry(
    path: Path, base_dir: Path, index: int, item: Any, default_mode: CompatibilityMode
) -> DependencyEntry:
    if not isinstance(item, dict):
        raise ConfigurationError(path, f"entry {index} is not an object")

    url = _required_string(path, index, item, "url")
    raw_path = _required_string(path, index, item, "path")
    tag = _required_string(path, index, item, "tag")

    compatible = item.get("compatibleTags", [])
    if not isinstance(compatible, list) or not all(
        isinstance(t, str) and t for t in compatible
    ):
        raise ConfigurationError(
            path, f"entry {index} ({url}): 'compatibleTags' must be a list of tag names"
        )

    mode = default_mode
    if "compatibility" in item:
        value = item["compatibility"]
        if not isinstance(value, str):
            raise ConfigurationError(path, f"entry {index} ({url}): 'compatibility' must be text")
        try:
            mode = CompatibilityMode.parse(value)
        except ValueError as e:
            raise ConfigurationError(path, f"entry {index} ({url}): {e}") from e

    skip_lfs = item.get("skipLfs", False)
    if not isinstance(skip_lfs, bool):
        raise ConfigurationError(path, f"entry {index} ({url}): 'skipLfs' must be true or false")

    base_path = Path(raw_path).expanduser()
    if not base_path.is_absolute():
        base_path = base_dir / base_path

    return DependencyEntry(
        url=url,
        base_path=canonical_path(base_path),
        pinned_tag=tag,
        compatible_tags=tuple(dict.fromkeys(t for t in compatible if t != tag)),
        mode=mode,
        skip_lfs=skip_lfs,
        source_file=path,
    )


def _required_string(path: Path, index: int, item: dict[str, Any], key: str) -> str:
    value = item.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(path, f"entry {index}: missing or empty '{key}'")
    return value.strip()
