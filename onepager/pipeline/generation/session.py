"""Run control: request building, preparation and the single active run.

A ``GenerationSession`` owns the one-run-at-a-time rule. Its ``RunGuard``
moves ``IDLE -> RUNNING -> COMPLETED`` and rejects a start request while a
run is active with ``RunInProgressError``, so two runs' job streams never
interleave. Everything that can make a run pointless (no templates for the
selected languages, invalid mapping rules, zero planned jobs, an output
root that cannot be created) is detected by ``prepare`` and raised as a
configuration error before the guard ever enters ``RUNNING``.

Typical usage::

    session = GenerationSession()
    channel = session.start(request)
    async for event in channel:
        print(event.percent, event.message)
    stats = await channel.result()
"""

from __future__ import annotations

import asyncio
import datetime as dt
import enum
import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from onepager.config import RUN_FOLDER_PREFIX, RUN_FOLDER_TIMESTAMP_FORMAT
from onepager.exceptions import ConfigurationError, RunInProgressError
from onepager.pipeline.data_source import load_record_set
from onepager.pipeline.rendering import PptxRenderer, Renderer
from onepager.pipeline.templates import TemplateSet, scan_templates
from onepager.settings import GeneratorSettings

from .channel import ProgressChannel, ProgressListener
from .engine import ExecutionEngine
from .mapping import EffectiveMapping, MappingRule, resolve, rules_from_mapping
from .models import GenerationJob, GenerationRequest, RunStats
from .planner import normalize_languages, plan

logger = logging.getLogger(__name__)


class RunState(enum.Enum):
    """Lifecycle of the session's current run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class RunGuard:
    """Explicit active-run state; at most one run is ``RUNNING``."""

    def __init__(self) -> None:
        self._state = RunState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    def ensure_idle(self) -> None:
        """Raise ``RunInProgressError`` if a run is active."""
        if self.is_running:
            raise RunInProgressError()

    def acquire(self) -> None:
        """Enter ``RUNNING``.

        Raises
        ------
        RunInProgressError
            If a run is already active.
        """
        with self._lock:
            if self._state is RunState.RUNNING:
                raise RunInProgressError()
            self._state = RunState.RUNNING

    def release(self) -> None:
        """Mark the active run as completed."""
        with self._lock:
            self._state = RunState.COMPLETED


@dataclass(frozen=True)
class PreparedRun:
    """Validated inputs of a run, ready for the engine."""

    template_set: TemplateSet
    mapping: EffectiveMapping
    jobs: list[GenerationJob]


def build_request(
    *,
    template_root: Path | str | None,
    output_root: Path | str | None,
    languages: Iterable[str],
    primary_csv: Path | str | None = None,
    previous_csv: Path | str | None = None,
    mapping: Mapping[str, str] | Iterable[MappingRule] | None = None,
    join_key: str | None = None,
    apply_row_filters: bool = False,
) -> GenerationRequest:
    """Build a ``GenerationRequest`` from user-facing paths.

    At least one record source is required. When only the previous-year
    source is given it is used as the primary record set.

    Raises
    ------
    ConfigurationError
        If a required path is missing.
    DataValidationError
        If a record source cannot be read.
    """
    if not template_root:
        raise ConfigurationError("Template directory is required")
    if not output_root:
        raise ConfigurationError("Output directory is required")
    if not primary_csv and not previous_csv:
        raise ConfigurationError("No record source supplied")

    if isinstance(mapping, Mapping):
        rules = rules_from_mapping(mapping)
    else:
        rules = list(mapping or ())

    if primary_csv:
        records = load_record_set(Path(primary_csv))
        previous = load_record_set(Path(previous_csv)) if previous_csv else None
    else:
        records = load_record_set(Path(str(previous_csv)))
        previous = None

    return GenerationRequest(
        records=records,
        template_root=Path(template_root),
        output_root=Path(output_root),
        languages=tuple(normalize_languages(list(languages))),
        mapping_rules=tuple(rules),
        previous_records=previous,
        join_key=join_key,
        apply_row_filters=apply_row_filters,
    )


class GenerationSession:
    """Single-run orchestrator around the execution engine.

    Parameters
    ----------
    renderer : Renderer | None, optional
        Output producer; defaults to :class:`PptxRenderer`.
    settings : GeneratorSettings | None, optional
        Runtime settings; defaults to environment-backed settings.
    """

    def __init__(
        self,
        renderer: Renderer | None = None,
        settings: GeneratorSettings | None = None,
    ) -> None:
        self.renderer: Renderer = renderer or PptxRenderer()
        self.settings = settings or GeneratorSettings()
        self.guard = RunGuard()
        self.last_output_root: Path | None = None
        self.last_stats: RunStats | None = None
        self._task: asyncio.Task[RunStats] | None = None

    @property
    def state(self) -> RunState:
        return self.guard.state

    def prepare(self, request: GenerationRequest) -> PreparedRun:
        """Re-scan templates, resolve the mapping and plan the jobs.

        Raises
        ------
        ConfigurationError
            If no selected language has templates or no job is planned.
        MappingRuleError
            If a user mapping rule is malformed.
        """
        template_set = scan_templates(request.template_root, self.settings.template_extension)
        if not template_set.is_valid:
            raise ConfigurationError(
                f"Invalid templates root: {request.template_root}",
                context={"template_root": str(request.template_root)},
            )
        usable = [code for code in normalize_languages(request.languages) if code in template_set]
        if not usable:
            raise ConfigurationError(
                "No templates found for selected languages",
                context={
                    "requested": list(request.languages),
                    "available": template_set.languages,
                },
            )
        mapping = resolve(None, request.mapping_rules, request.records.columns)
        jobs = plan(request, template_set, self.settings.join_key)
        if not jobs:
            raise ConfigurationError(
                "No jobs planned (check records and filters)",
                context={"records": len(request.records), "languages": usable},
            )
        return PreparedRun(template_set=template_set, mapping=mapping, jobs=jobs)

    def _create_run_folder(self, output_root: Path) -> Path:
        target = Path(output_root)
        if self.settings.timestamped_output:
            stamp = dt.datetime.now().strftime(RUN_FOLDER_TIMESTAMP_FORMAT)
            target = target / f"{RUN_FOLDER_PREFIX}{stamp}"
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise ConfigurationError(
                f"Failed to create output dir: {error}", context={"output_root": str(target)}
            ) from error
        return target

    def start(
        self, request: GenerationRequest, listener: ProgressListener | None = None
    ) -> ProgressChannel:
        """Validate the request and schedule its run on the running loop.

        Must be called from a coroutine. Returns immediately with the
        channel the run reports to.

        Raises
        ------
        RunInProgressError
            If another run of this session is active.
        ConfigurationError
            If the request cannot produce any job.
        """
        asyncio.get_running_loop()  # fails outside a running loop
        self.guard.ensure_idle()
        prepared = self.prepare(request)
        output_root = self._create_run_folder(request.output_root)
        return self._launch(prepared, output_root, listener)

    def _launch(
        self,
        prepared: PreparedRun,
        output_root: Path,
        listener: ProgressListener | None,
    ) -> ProgressChannel:
        loop = asyncio.get_running_loop()
        self.guard.acquire()
        self.last_output_root = output_root
        channel = ProgressChannel(listener)
        engine = ExecutionEngine(
            self.renderer,
            max_workers=self.settings.max_workers,
            date_format=self.settings.date_format,
        )
        logger.info(
            "Run started: %d jobs into %s", len(prepared.jobs), output_root
        )
        self._task = loop.create_task(self._execute(engine, prepared, output_root, channel))
        return channel

    async def _execute(
        self,
        engine: ExecutionEngine,
        prepared: PreparedRun,
        output_root: Path,
        channel: ProgressChannel,
    ) -> RunStats:
        try:
            stats = await engine.execute(prepared.jobs, prepared.mapping, output_root, channel)
        except Exception:
            logger.exception("Run aborted unexpectedly")
            succeeded = sum(1 for outcome in engine.outcomes if outcome.ok)
            stats = RunStats(
                total_files=len(prepared.jobs),
                success_count=succeeded,
                error_count=len(prepared.jobs) - succeeded,
            )
            if not channel.closed:
                channel.close(stats)
        finally:
            self.guard.release()
        self.last_stats = stats
        return stats

    async def run(
        self, request: GenerationRequest, listener: ProgressListener | None = None
    ) -> RunStats:
        """Start a run and wait for its ``RunStats``.

        Unlike ``start``, the template scan and the run folder creation are
        done in a worker thread so the event loop stays responsive.
        """
        self.guard.ensure_idle()
        prepared = await asyncio.to_thread(self.prepare, request)
        output_root = await asyncio.to_thread(self._create_run_folder, request.output_root)
        channel = self._launch(prepared, output_root, listener)
        return await channel.result()
