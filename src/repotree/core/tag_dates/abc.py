"""Tag creation date lookup interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path


class TagDates(ABC):
    """Abstract provider of tag creation timestamps."""

    @abstractmethod
    def dates_for_tags(self, repo_path: Path, tags: Sequence[str]) -> dict[str, datetime]:
        """Return creation timestamps for the given tags.

        Fails soft: tags whose timestamp cannot be determined, or a
        repo_path that is not a working copy, simply yield no entry.

        Args:
            repo_path: Working copy to read tags from
            tags: Tags of interest

        Returns:
            Mapping of tag name to timezone-aware creation time
        """
        ...
