"""Generation Runner Module.

This module provides the programmatic entrypoint and logging configuration
for the presentation generation step. It is the boundary between terminal
or scripting callers and the asynchronous generation session: it builds a
request from plain paths, runs it to completion on a fresh event loop and
reports the outcome as data.

Notes
-----
All defaults (log directory, log format) come from ``onepager.config``.

Examples
--------
>>> from onepager.pipeline.generation.runner import configure_logging, run_from_config
>>> configure_logging(log_level="INFO", enable_file=False)
>>> stats = run_from_config(
...     primary_csv="clients.csv", template_root="templates", output_root="out",
...     languages=["FR", "EN"],
... )  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from onepager.config import LOG_DIR, LOG_FILENAME_GENERATE, LOG_FORMAT
from onepager.exceptions import AppError
from onepager.pipeline.rendering import Renderer
from onepager.settings import GeneratorSettings

from .channel import ProgressListener
from .models import RunStats
from .session import GenerationSession, build_request

logger = logging.getLogger(__name__)


def configure_logging(log_level: str = "INFO", enable_file: bool = True) -> None:
    r"""Configure logging for generation runs.

    Sets up a console handler and, optionally, a file handler in
    ``LOG_DIR``, both using ``LOG_FORMAT``. A file handler that cannot be
    created is reported on the console and skipped.

    Parameters
    ----------
    log_level : str, optional
        Logging level name, e.g. ``"INFO"`` or ``"DEBUG"``.
    enable_file : bool, optional
        Whether to also write to ``LOG_DIR / LOG_FILENAME_GENERATE``.

    Notes
    -----
    Existing root handlers are removed first, so the call is idempotent.
    """
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    file_error: OSError | None = None
    if enable_file:
        try:
            LOG_DIR.mkdir(exist_ok=True)
            handlers.insert(
                0, logging.FileHandler(LOG_DIR / LOG_FILENAME_GENERATE, mode="a")
            )
        except OSError as error:
            file_error = error
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
    if file_error is not None:
        logger.warning("File logging disabled: %s", file_error)


def run_from_config(
    *,
    template_root: Path | str,
    output_root: Path | str,
    languages: Iterable[str],
    primary_csv: Path | str | None = None,
    previous_csv: Path | str | None = None,
    mapping: Mapping[str, str] | None = None,
    apply_row_filters: bool = False,
    renderer: Renderer | None = None,
    settings: GeneratorSettings | None = None,
    listener: ProgressListener | None = None,
) -> RunStats | None:
    """Build a request from paths and run it to completion.

    Returns
    -------
    RunStats | None
        The run summary, or ``None`` when the request was rejected before
        any job ran (the reason is logged).
    """
    try:
        request = build_request(
            template_root=template_root,
            output_root=output_root,
            languages=languages,
            primary_csv=primary_csv,
            previous_csv=previous_csv,
            mapping=mapping,
            apply_row_filters=apply_row_filters,
        )
        session = GenerationSession(renderer=renderer, settings=settings)
        return asyncio.run(session.run(request, listener))
    except AppError as error:
        logger.error("Generation not started: %s", error, extra={"error": error.to_dict()})
        return None


__all__ = ["configure_logging", "run_from_config"]
