"""Global configuration data and storage.

Settings are read from ~/.repotree/config.toml once at CLI entry and stored
in RepoTreeContext. A missing file means defaults.
"""

import os
import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import tomlkit

from repotree.core.dependency_file import DEFAULT_DEPENDENCY_FILENAME
from repotree.core.types import CompatibilityMode
from repotree.core.walker import DEFAULT_MAX_DEPTH


@dataclass(frozen=True)
class GlobalConfig:
    """Immutable global configuration data."""

    default_compatibility: CompatibilityMode = CompatibilityMode.PERMISSIVE
    max_depth: int = DEFAULT_MAX_DEPTH
    config_filename: str = DEFAULT_DEPENDENCY_FILENAME


CONFIG_KEYS = ("default_compatibility", "max_depth", "config_filename")


def parse_config_value(key: str, value: object, source: str) -> object:
    """Validate one raw setting and convert it to its typed form.

    Args:
        key: Setting name
        value: Raw value (from TOML or the command line)
        source: Where the value came from, for error messages

    Raises:
        ValueError: If key is unknown or value is invalid
    """
    match key:
        case "default_compatibility":
            if not isinstance(value, str):
                raise ValueError(f"'{key}' in {source} must be text")
            try:
                return CompatibilityMode.parse(value)
            except ValueError as e:
                raise ValueError(f"'{key}' in {source}: {e}") from e
        case "max_depth":
            if isinstance(value, str) and value.strip().isdigit():
                value = int(value.strip())
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"'{key}' in {source} must be a non-negative integer")
            return value
        case "config_filename":
            if not isinstance(value, str) or not value.strip() or "/" in value:
                raise ValueError(f"'{key}' in {source} must be a plain file name")
            return value.strip()
        case _:
            raise ValueError(f"Unknown setting '{key}' (valid: {', '.join(CONFIG_KEYS)})")


def config_to_dict(config: GlobalConfig) -> dict[str, str | int]:
    return {
        "default_compatibility": config.default_compatibility.value,
        "max_depth": config.max_depth,
        "config_filename": config.config_filename,
    }


class ConfigStore(ABC):
    """Abstract interface for global config storage."""

    @abstractmethod
    def exists(self) -> bool:
        """Check if the global config exists."""
        ...

    @abstractmethod
    def load(self) -> GlobalConfig:
        """Load global config, falling back to defaults when absent.

        Raises:
            ValueError: If the config contains unknown keys or invalid values
        """
        ...

    @abstractmethod
    def save(self, config: GlobalConfig) -> None:
        """Persist global config."""
        ...

    @abstractmethod
    def path(self) -> Path:
        """Get the path to the global config file (for messages)."""
        ...


class RealConfigStore(ConfigStore):
    """Production implementation that reads/writes ~/.repotree/config.toml."""

    def __init__(self, config_path: Path | None = None) -> None:
        self._path = config_path

    def path(self) -> Path:
        if self._path is not None:
            return self._path
        override = os.environ.get("REPOTREE_CONFIG")
        if override:
            return Path(override).expanduser()
        return Path.home() / ".repotree" / "config.toml"

    def exists(self) -> bool:
        return self.path().exists()

    def load(self) -> GlobalConfig:
        config_path = self.path()
        if not config_path.exists():
            return GlobalConfig()

        try:
            data = tomllib.loads(config_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

        values = {
            key: parse_config_value(key, raw, str(config_path)) for key, raw in data.items()
        }
        return GlobalConfig(**values)

    def save(self, config: GlobalConfig) -> None:
        """Write config, preserving comments and layout of an existing file."""
        config_path = self.path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        if config_path.exists():
            doc = tomlkit.parse(config_path.read_text(encoding="utf-8"))
        else:
            doc = tomlkit.document()
            doc.add(tomlkit.comment("Global repotree configuration"))

        for key, value in config_to_dict(config).items():
            doc[key] = value

        config_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
