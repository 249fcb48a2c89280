"""Tests for the execution engine: ordering, partial failure and progress."""

import asyncio
import random
import threading
import time
from pathlib import Path

import pytest

from onepager.pipeline.data_source import RecordSet
from onepager.pipeline.generation import (
    ExecutionEngine,
    GenerationJob,
    ProgressChannel,
    percent_complete,
    resolve,
)


class FakeRenderer:
    """In-memory renderer recording calls; fails for configured clients."""

    def __init__(self, fail_for=(), jitter: float = 0.0):
        self.fail_for = set(fail_for)
        self.jitter = jitter
        self.calls: list[tuple[Path, dict, Path]] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def render(self, template, context, destination):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.jitter:
                time.sleep(random.uniform(0, self.jitter))
            self.calls.append((template, dict(context), destination))
            if context.get("<<NOM CLIENT>>") in self.fail_for:
                raise RuntimeError("template unreadable")
            return destination
        finally:
            with self._lock:
                self.active -= 1


def _jobs(names: list[str]) -> list[GenerationJob]:
    records = RecordSet.from_rows(["Nom du client"], [{"Nom du client": n} for n in names])
    return [
        GenerationJob(
            index=i,
            language="FR",
            template=Path("T/FR/t.pptx"),
            record=row,
            output_name=Path("FR") / f"{row['Nom du client']}.pptx",
        )
        for i, row in enumerate(records.rows)
    ]


MAPPING = resolve(None, [], ["Nom du client"])


def test_percent_complete():
    assert percent_complete(0, 4) == 0.0
    assert percent_complete(1, 3) == pytest.approx(33.333, rel=1e-3)
    assert percent_complete(3, 3) == 100.0
    assert percent_complete(0, 0) == 100.0


def test_engine_rejects_zero_workers():
    with pytest.raises(ValueError):
        ExecutionEngine(FakeRenderer(), max_workers=0)


@pytest.mark.asyncio
async def test_events_follow_plan_order_under_concurrency(tmp_path: Path):
    names = [f"C{i}" for i in range(12)]
    renderer = FakeRenderer(jitter=0.01)
    engine = ExecutionEngine(renderer, max_workers=4)
    channel = ProgressChannel()
    stats = await engine.execute(_jobs(names), MAPPING, tmp_path, channel)

    events = [event async for event in channel]
    assert [e.job_index for e in events] == list(range(12))
    assert [o.job.index for o in engine.outcomes] == list(range(12))
    assert stats.success_count == 12 and stats.error_count == 0
    assert renderer.max_active <= 4
    assert events[0].message == "Processed 1/12: FR/C0.pptx"


@pytest.mark.asyncio
async def test_partial_failure_continues_and_conserves_counts(tmp_path: Path):
    renderer = FakeRenderer(fail_for={"B"})
    engine = ExecutionEngine(renderer, max_workers=2)
    channel = ProgressChannel()
    stats = await engine.execute(_jobs(["A", "B", "C"]), MAPPING, tmp_path, channel)

    assert len(renderer.calls) == 3
    assert stats.total_files == 3
    assert stats.success_count == 2
    assert stats.error_count == 1
    assert stats.success_count + stats.error_count == stats.total_files
    failed = [e for e in channel.events if not e.ok]
    assert len(failed) == 1
    assert failed[0].message == "Failed 2/3: t.pptx (template unreadable)"
    assert engine.outcomes[1].output_path is None


@pytest.mark.asyncio
async def test_percent_is_monotonic_and_ends_at_100(tmp_path: Path):
    engine = ExecutionEngine(FakeRenderer(fail_for={"C2"}, jitter=0.005), max_workers=3)
    channel = ProgressChannel()
    await engine.execute(_jobs([f"C{i}" for i in range(7)]), MAPPING, tmp_path, channel)
    percents = [e.percent for e in channel.events]
    assert percents == sorted(percents)
    assert percents[-1] == 100.0
    assert all(p < 100.0 for p in percents[:-1])


@pytest.mark.asyncio
async def test_all_jobs_failing_still_completes(tmp_path: Path):
    engine = ExecutionEngine(FakeRenderer(fail_for={"A", "B"}))
    channel = ProgressChannel()
    stats = await engine.execute(_jobs(["A", "B"]), MAPPING, tmp_path, channel)
    assert stats.error_count == stats.total_files == 2
    assert channel.closed
    assert await channel.result() == stats


@pytest.mark.asyncio
async def test_renderer_receives_context_and_destination(tmp_path: Path):
    renderer = FakeRenderer()
    await ExecutionEngine(renderer).execute(_jobs(["Acme"]), MAPPING, tmp_path)
    template, context, destination = renderer.calls[0]
    assert template == Path("T/FR/t.pptx")
    assert context["<<NOM CLIENT>>"] == "Acme"
    assert destination == tmp_path / "FR" / "Acme.pptx"


@pytest.mark.asyncio
async def test_empty_job_list(tmp_path: Path):
    channel = ProgressChannel()
    stats = await ExecutionEngine(FakeRenderer()).execute([], MAPPING, tmp_path, channel)
    assert stats.total_files == 0
    assert channel.events == []
    assert await asyncio.wait_for(channel.result(), 1) == stats
