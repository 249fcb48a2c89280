"""Rendering helpers for field statuses and run summaries.

Produces status labels and Rich tables for the validation fields of the
terminal interface and for the terminal ``RunStats`` of a run.
"""

from __future__ import annotations

from onepager.pipeline.generation import RunStats
from onepager.setup.console_helpers import Table
from onepager.setup.validation import FieldStatus, ProbeTracker

_LABELS = {
    FieldStatus.IDLE: "⏳ Waiting",
    FieldStatus.CHECKING: "▶️  Checking",
    FieldStatus.VALID: "✅ Valid",
    FieldStatus.INVALID: "❌ Invalid",
}


def status_label(status: FieldStatus) -> str:
    """Return the display label of a field status.

    Examples
    --------
    >>> status_label(FieldStatus.VALID)
    '✅ Valid'
    """
    return _LABELS[status]


def render_field_table(tracker: ProbeTracker) -> Table:
    """Construct a table of every probed field and its current status.

    Parameters
    ----------
    tracker : ProbeTracker
        Tracker holding the latest applied statuses.

    Returns
    -------
    Table
        Two columns (field, status), plus the discovered languages as a
        caption when the templates root is valid.
    """
    table = Table(title="Inputs", show_header=True, header_style="bold blue")
    table.add_column("Field", style="bold")
    table.add_column("Status")
    for field in tracker.fields:
        table.add_row(field, status_label(tracker.status(field)))
    if tracker.languages:
        table.caption = "Languages: " + ", ".join(tracker.languages)
    return table


def render_stats_table(stats: RunStats) -> Table:
    """Construct the summary table of a finished run."""
    table = Table(title="Generation summary", show_header=True, header_style="bold blue")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Total files", str(stats.total_files))
    table.add_row("Succeeded", f"[green]{stats.success_count}[/green]")
    table.add_row(
        "Failed",
        f"[red]{stats.error_count}[/red]" if stats.error_count else "0",
    )
    table.add_row("Duration", f"{stats.total_time_secs:.2f}s")
    return table


__all__ = ["render_field_table", "render_stats_table", "status_label"]
