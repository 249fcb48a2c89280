"""Value types shared by the planner, the engine and the run session."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from onepager.pipeline.data_source import RecordSet

from .mapping import MappingRule


@dataclass(frozen=True)
class GenerationRequest:
    """Full, immutable configuration of one generation run.

    Attributes
    ----------
    records : RecordSet
        Primary (current-year) records; one job per record and template.
    template_root : Path
        Root holding one folder per language.
    output_root : Path
        Destination root of the run.
    languages : tuple[str, ...]
        Selected language codes, in the order jobs are planned.
    mapping_rules : tuple[MappingRule, ...]
        User rules overriding the built-in defaults.
    previous_records : RecordSet | None
        Optional previous-year records, attached as auxiliary context.
    join_key : str | None
        Column correlating current and previous-year records; ``None``
        means the session's configured join key.
    apply_row_filters : bool
        Enable the audience and row-language filters of the planner.
    """

    records: RecordSet
    template_root: Path
    output_root: Path
    languages: tuple[str, ...]
    mapping_rules: tuple[MappingRule, ...] = ()
    previous_records: RecordSet | None = None
    join_key: str | None = None
    apply_row_filters: bool = False


@dataclass(frozen=True)
class GenerationJob:
    """One (language, template, record) unit of work."""

    index: int
    language: str
    template: Path
    record: Mapping[str, str] = field(repr=False)
    output_name: Path
    previous_record: Mapping[str, str] | None = field(default=None, repr=False)


@dataclass(frozen=True)
class JobOutcome:
    """Terminal state of a job: ``output_path`` on success, ``error`` otherwise."""

    job: GenerationJob
    output_path: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ProgressEvent:
    """Progress notification for the most recently completed job."""

    percent: float
    message: str
    job_index: int = -1
    ok: bool = True


@dataclass(frozen=True)
class RunStats:
    """Terminal summary of a run; ``success_count + error_count == total_files``."""

    total_files: int = 0
    total_time_secs: float = 0.0
    success_count: int = 0
    error_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the summary with its wire field names."""
        return {
            "total_files": self.total_files,
            "total_time_secs": self.total_time_secs,
            "success_count": self.success_count,
            "error_count": self.error_count,
        }
