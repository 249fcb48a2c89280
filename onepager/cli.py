"""Command-line entrypoint for one-pager generation.

Usage::

    onepager --csv clients.csv --templates templates --output out --lang FR --lang EN
    onepager --csv clients.csv --templates templates --output out \\
        --map "Nom du client=<<CLIENT>>" --row-filters
    onepager --interactive --csv clients.csv --templates templates --output out

Exit codes: 0 when every job succeeded, 1 when at least one job failed,
2 when the run could not start (invalid paths, mapping or selection).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn

from onepager.exceptions import AppError, UserInputError
from onepager.pipeline.generation import GenerationSession, ProgressEvent, RunStats, build_request
from onepager.pipeline.generation.runner import configure_logging
from onepager.pipeline.templates import scan_languages
from onepager.settings import GeneratorSettings
from onepager.setup.console_helpers import console, rprint
from onepager.setup.prompts import ask_confirm, ask_languages
from onepager.setup.status import render_field_table, render_stats_table
from onepager.setup.validation import (
    PREVIOUS_CSV_FIELD,
    PRIMARY_CSV_FIELD,
    FieldStatus,
    ProbeTracker,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_JOB_FAILURES = 1
EXIT_CONFIG_ERROR = 2


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv : Sequence[str] | None, optional
        Arguments without the program name; ``None`` reads ``sys.argv``.
    """
    parser = argparse.ArgumentParser(
        prog="onepager",
        description="Generate PPTX one-pagers from CSV records and language template folders.",
    )
    parser.add_argument("--csv", type=Path, help="Current-year records CSV.")
    parser.add_argument("--prev-year-csv", type=Path, help="Previous-year records CSV.")
    parser.add_argument("--templates", type=Path, help="Templates root (one folder per language).")
    parser.add_argument("--output", type=Path, help="Output root directory.")
    parser.add_argument(
        "--lang",
        action="append",
        default=[],
        metavar="CODE",
        help="Language to generate; repeatable. Defaults to every discovered language.",
    )
    parser.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="COL=TAG",
        help="Mapping rule overriding the defaults; repeatable.",
    )
    parser.add_argument(
        "--row-filters",
        action="store_true",
        help="Only generate rows whose audience and language match the template.",
    )
    parser.add_argument(
        "--interactive", action="store_true", help="Validate inputs and pick languages interactively."
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=os.environ.get("LOG_LEVEL", "WARNING"),
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    )
    return parser.parse_args(argv)


def parse_mapping_arguments(entries: Sequence[str]) -> dict[str, str]:
    """Turn ``COL=TAG`` entries into an ordered mapping.

    Raises
    ------
    UserInputError
        If an entry has no ``=``.

    Examples
    --------
    >>> parse_mapping_arguments(["Org ID=<<ORG>>", "a=b=c"])
    {'Org ID': '<<ORG>>', 'a': 'b=c'}
    """
    mapping: dict[str, str] = {}
    for entry in entries:
        column, sep, tag = entry.partition("=")
        if not sep:
            raise UserInputError(
                f"Invalid --map value {entry!r}, expected COL=TAG", context={"value": entry}
            )
        mapping[column.strip()] = tag.strip()
    return mapping


async def _probe_inputs(args: argparse.Namespace, tracker: ProbeTracker) -> None:
    await asyncio.gather(
        tracker.probe_record_source(PRIMARY_CSV_FIELD, args.csv),
        tracker.probe_record_source(PREVIOUS_CSV_FIELD, args.prev_year_csv),
        tracker.probe_template_root(args.templates),
    )


def _select_languages(args: argparse.Namespace, settings: GeneratorSettings) -> list[str]:
    if not args.interactive:
        if args.lang:
            return list(args.lang)
        return scan_languages(args.templates, settings.template_extension)

    tracker = ProbeTracker(settings.template_extension)
    asyncio.run(_probe_inputs(args, tracker))
    console.print(render_field_table(tracker))
    if FieldStatus.INVALID in {tracker.status(field) for field in tracker.fields}:
        raise UserInputError("One or more inputs are invalid")
    return ask_languages(tracker.languages, args.lang or None)


def _generate(
    session: GenerationSession, args: argparse.Namespace, languages: list[str], mapping: dict[str, str]
) -> RunStats:
    request = build_request(
        template_root=args.templates,
        output_root=args.output,
        languages=languages,
        primary_csv=args.csv,
        previous_csv=args.prev_year_csv,
        mapping=mapping,
        apply_row_filters=args.row_filters,
    )
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("Generating", total=100.0)

        def on_event(event: ProgressEvent) -> None:
            if not event.ok:
                progress.console.print(f"[red]{event.message}[/red]")
            progress.update(task_id, completed=event.percent, description=event.message)

        return asyncio.run(session.run(request, on_event))


def main(argv: Sequence[str] | None = None) -> int:
    """Run a generation from command-line arguments and return the exit code."""
    args = parse_arguments(argv)
    disable_file = bool(os.environ.get("DISABLE_FILE_LOGS") or os.environ.get("PYTEST_CURRENT_TEST"))
    configure_logging(args.log_level, enable_file=not disable_file)

    try:
        settings = GeneratorSettings()
        mapping = parse_mapping_arguments(args.map)
        languages = _select_languages(args, settings)
        if not languages:
            raise UserInputError("No language selected")
        if args.interactive and not ask_confirm(
            f"Generate one-pagers for {', '.join(languages)}?"
        ):
            rprint("[yellow]Cancelled.[/yellow]")
            return EXIT_OK
        session = GenerationSession(settings=settings)
        stats = _generate(session, args, languages, mapping)
    except AppError as error:
        logger.error("Generation not started: %s", error)
        rprint(f"[red]{error.message}[/red]")
        return EXIT_CONFIG_ERROR

    console.print(render_stats_table(stats))
    if session.last_output_root is not None:
        rprint(f"Output: {session.last_output_root}")
    return EXIT_OK if stats.error_count == 0 else EXIT_JOB_FAILURES


if __name__ == "__main__":
    raise SystemExit(main())
