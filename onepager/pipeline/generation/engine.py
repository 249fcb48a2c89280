"""Execution engine: run planned jobs against a renderer.

Each job's renderer call is the unit of concurrency. Calls run in worker
threads, at most ``max_workers`` at a time, while outcomes are released to
the progress channel strictly in plan order: the engine awaits job tasks in
the order they were planned, so a fast job finishing early simply waits in
its task until every earlier job has been reported.

A failing job is logged, counted and reported, and the run moves on; every
planned job is attempted exactly once and nothing is retried. The run always
ends with a ``RunStats`` whose success and error counts add up to the number
of planned jobs.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import time
from collections.abc import Sequence
from pathlib import Path

from onepager.config import DEFAULT_DATE_FORMAT, DEFAULT_MAX_WORKERS
from onepager.pipeline.rendering import Renderer

from .channel import ProgressChannel
from .mapping import EffectiveMapping, build_substitution_context
from .models import GenerationJob, JobOutcome, ProgressEvent, RunStats

logger = logging.getLogger(__name__)


def percent_complete(completed: int, total: int) -> float:
    """Return ``completed / total * 100``; exactly 100.0 once all are done.

    Examples
    --------
    >>> percent_complete(1, 4), percent_complete(3, 3)
    (25.0, 100.0)
    """
    if total <= 0:
        return 100.0
    if completed >= total:
        return 100.0
    return completed / total * 100.0


class ExecutionEngine:
    """Dispatch jobs to a ``Renderer`` and stream ordered progress.

    Parameters
    ----------
    renderer : Renderer
        Collaborator producing one output file per call.
    max_workers : int, optional
        Bound on concurrent renderer calls.
    date_format : str, optional
        Format of the reserved date token.
    """

    def __init__(
        self,
        renderer: Renderer,
        max_workers: int = DEFAULT_MAX_WORKERS,
        date_format: str = DEFAULT_DATE_FORMAT,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.renderer = renderer
        self.max_workers = max_workers
        self.date_format = date_format
        self.outcomes: list[JobOutcome] = []

    def _render_job(
        self,
        job: GenerationJob,
        mapping: EffectiveMapping,
        output_root: Path,
        today: dt.date,
    ) -> JobOutcome:
        destination = output_root / job.output_name
        try:
            context = build_substitution_context(
                mapping,
                job.record,
                job.previous_record,
                today=today,
                date_format=self.date_format,
            )
            written = self.renderer.render(job.template, context, destination)
        except Exception as error:
            logger.error(
                "Job %d failed (%s -> %s): %s", job.index, job.template.name, destination, error
            )
            return JobOutcome(job=job, error=str(error) or type(error).__name__)
        return JobOutcome(job=job, output_path=Path(written) if written else destination)

    async def _run_job(
        self,
        semaphore: asyncio.Semaphore,
        job: GenerationJob,
        mapping: EffectiveMapping,
        output_root: Path,
        today: dt.date,
    ) -> JobOutcome:
        async with semaphore:
            return await asyncio.to_thread(
                self._render_job, job, mapping, output_root, today
            )

    async def execute(
        self,
        jobs: Sequence[GenerationJob],
        mapping: EffectiveMapping,
        output_root: Path,
        channel: ProgressChannel | None = None,
    ) -> RunStats:
        """Run every job once and report progress in plan order.

        Parameters
        ----------
        jobs : Sequence[GenerationJob]
            Planned jobs, in reporting order.
        mapping : EffectiveMapping
            Resolved mapping of the run.
        output_root : Path
            Root joined with each job's ``output_name``.
        channel : ProgressChannel | None, optional
            Receives one event per job and is closed with the result.

        Returns
        -------
        RunStats
            Final counts and wall-clock duration.
        """
        start = time.perf_counter()
        today = dt.date.today()
        total = len(jobs)
        self.outcomes = []
        success_count = 0
        error_count = 0
        logger.info("Starting run: %d jobs, %d workers", total, self.max_workers)

        semaphore = asyncio.Semaphore(self.max_workers)
        tasks = [
            asyncio.create_task(
                self._run_job(semaphore, job, mapping, Path(output_root), today)
            )
            for job in jobs
        ]
        for completed, task in enumerate(tasks, start=1):
            outcome = await task
            self.outcomes.append(outcome)
            job = outcome.job
            if outcome.ok:
                success_count += 1
                message = f"Processed {completed}/{total}: {job.output_name.as_posix()}"
            else:
                error_count += 1
                message = f"Failed {completed}/{total}: {job.template.name} ({outcome.error})"
            logger.info(message)
            if channel is not None:
                channel.publish(
                    ProgressEvent(
                        percent=percent_complete(completed, total),
                        message=message,
                        job_index=job.index,
                        ok=outcome.ok,
                    )
                )

        stats = RunStats(
            total_files=total,
            total_time_secs=time.perf_counter() - start,
            success_count=success_count,
            error_count=error_count,
        )
        logger.info(
            "Run completed: total=%d success=%d failed=%d in %.2fs",
            stats.total_files,
            stats.success_count,
            stats.error_count,
            stats.total_time_secs,
        )
        if channel is not None:
            channel.close(stats)
        return stats
