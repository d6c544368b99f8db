"""Output utilities for CLI commands with clear intent.

user_output is for humans and goes to stderr. machine_output is for scripts
and goes to stdout.
"""

from typing import TYPE_CHECKING, Any

import click
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from repotree.core.walker import WalkSummary


def user_output(message: str = "", nl: bool = True) -> None:
    """Write a human-readable message to stderr."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: str = "", nl: bool = True) -> None:
    """Write script-consumable output to stdout."""
    click.echo(message, nl=nl)


def format_sync_summary(summary: "WalkSummary") -> Panel:
    """Format the end-of-run summary box.

    Example:
        >>> panel = format_sync_summary(summary)
        >>> Console(stderr=True).print(panel)
    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Entries", str(summary.total))
    table.add_row("Succeeded", Text(str(summary.succeeded), style="green"))
    table.add_row(
        "Failed", Text(str(summary.failed), style="red" if summary.failed else "default")
    )
    table.add_row("Already satisfied", str(summary.skipped))
    table.add_row("Repositories", str(summary.unique_repositories))
    table.add_row("Files read", str(len(summary.processed_files)))

    lines: list[Text | Table] = [table]

    failed_entries = [entry for entry in summary.entries if not entry.succeeded]
    if failed_entries:
        lines.append(Text(""))
        lines.append(Text("Failed entries:", style="red bold"))
        for entry in failed_entries:
            lines.append(Text(f"  {entry.url} @ {entry.tag}: {entry.error}", style="red"))

    if summary.config_errors:
        lines.append(Text(""))
        lines.append(Text("Unreadable dependency files:", style="red bold"))
        for message in summary.config_errors:
            lines.append(Text(f"  {message}", style="red"))

    if summary.conflict is not None:
        lines.append(Text(""))
        lines.append(Text("Run aborted:", style="red bold"))
        lines.append(Text(summary.conflict.message, style="red"))

    title = "Sync Complete" if summary.ok else "Sync Failed"
    return Panel(
        _stack(lines),
        title=title,
        border_style="green" if summary.ok else "red",
        padding=(1, 2),
    )


def _stack(parts: list[Text | Table]) -> Table:
    grid = Table.grid()
    grid.add_column()
    for part in parts:
        grid.add_row(part)
    return grid


def summary_to_dict(summary: "WalkSummary") -> dict[str, Any]:
    """Serialize a summary for --json output."""
    return {
        "ok": summary.ok,
        "total": summary.total,
        "succeeded": summary.succeeded,
        "failed": summary.failed,
        "skipped": summary.skipped,
        "unique_repositories": summary.unique_repositories,
        "processed_files": [str(path) for path in summary.processed_files],
        "config_errors": list(summary.config_errors),
        "conflict": summary.conflict.message if summary.conflict is not None else None,
        "entries": [
            {
                "url": entry.url,
                "path": str(entry.path),
                "tag": entry.tag,
                "status": entry.status.value,
                "source_file": str(entry.source_file),
                "error": entry.error,
            }
            for entry in summary.entries
        ],
        "repositories": [
            {
                "url": record.url,
                "path": str(record.absolute_path),
                "tag": record.resolved_tag,
                "compatible_tags": list(record.compatible_tags),
                "compatibility": record.mode.value,
                "failed": record.checkout_failed,
            }
            for record in summary.repositories
        ],
    }
