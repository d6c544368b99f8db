"""Progress lines printed while a sync walks the dependency tree."""

from abc import ABC, abstractmethod

import click

from repotree.cli.output import user_output


class UserFeedback(ABC):
    """Sink for the walker's per-file and per-entry progress.

    The walker reports through ctx.feedback and never checks --quiet itself.
    A typical interactive run prints:

        Reading /ws/repotree.json
        https://host/lib.git @ v2 -> /ws/deps/lib        (green)
          Reading /ws/deps/lib/repotree.json
          Error: https://host/util.git @ v1: ...          (red)

    With --quiet only the red lines remain.
    """

    @abstractmethod
    def info(self, message: str) -> None:
        """Report a file being read or an entry already satisfied."""

    @abstractmethod
    def success(self, message: str) -> None:
        """Report a repository cloned or moved to a new tag."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Report a failed entry, unreadable file or conflict."""


class InteractiveFeedback(UserFeedback):
    def info(self, message: str) -> None:
        user_output(message)

    def success(self, message: str) -> None:
        user_output(click.style(message, fg="green"))

    def error(self, message: str) -> None:
        user_output(click.style(message, fg="red"))


class QuietFeedback(UserFeedback):
    """Used for sync --quiet: failures still reach stderr."""

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        user_output(click.style(message, fg="red"))
