"""Shared Rich console for terminal output.

All terminal rendering goes through the single ``console`` defined here so
tests can swap it for a recording console.

Examples
--------
>>> from onepager.setup.console_helpers import rprint
>>> rprint("[bold]Done[/bold]")  # doctest: +SKIP
"""

from __future__ import annotations

from typing import IO, Any

from rich.console import Console
from rich.table import Table

console = Console()


def rprint(
    *objects: Any,
    sep: str = " ",
    end: str = "\n",
    file: IO[str] | None = None,
) -> None:
    """Print objects with Rich markup on the shared console, or on ``file``."""
    target = console if file is None else Console(file=file)
    target.print(*objects, sep=sep, end=end)


__all__ = ["Console", "Table", "console", "rprint"]
