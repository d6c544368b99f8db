"""CLI error handling utilities with styled output.

Ensure asserts invariants in CLI commands with consistent error messages.
All errors use a red "Error:" prefix and exit with code 1.
"""

from pathlib import Path

import click

from repotree.cli.output import user_output


class Ensure:
    """Helper class for asserting invariants with consistent error handling."""

    @staticmethod
    def invariant(condition: bool, error_message: str) -> None:
        """Ensure condition is true, otherwise output styled error and exit.

        Raises:
            SystemExit: If condition is false (with exit code 1)
        """
        if not condition:
            user_output(click.style("Error: ", fg="red") + error_message)
            raise SystemExit(1)

    @staticmethod
    def file_exists(path: Path, error_message: str | None = None) -> None:
        """Ensure path is an existing regular file.

        Raises:
            SystemExit: If path is missing or not a file (with exit code 1)
        """
        if not path.is_file():
            message = error_message or f"Dependency file not found: {path}"
            user_output(click.style("Error: ", fg="red") + message)
            raise SystemExit(1)
