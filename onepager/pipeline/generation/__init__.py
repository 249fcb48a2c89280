"""Generation orchestration subpackage.

This package is the stable API boundary of the generation engine: mapping
resolution, job planning, ordered execution with progress reporting, and
single-run control. Consumers (the CLI, scripts, tests) import from here
rather than from the submodules.

Examples
--------
>>> from onepager.pipeline.generation import resolve
>>> resolve([], [("Nom du client", "<<CLIENT>>")], ["Nom du client"]).as_dict()
{'Nom du client': '<<CLIENT>>'}
"""

from .channel import ProgressChannel, ProgressListener
from .engine import ExecutionEngine, percent_complete
from .mapping import (
    EffectiveMapping,
    MappingRule,
    build_substitution_context,
    default_rules,
    fallback_tag,
    resolve,
    rules_from_mapping,
)
from .models import (
    GenerationJob,
    GenerationRequest,
    JobOutcome,
    ProgressEvent,
    RunStats,
)
from .planner import normalize_languages, output_name_for, plan, row_matches_template
from .session import (
    GenerationSession,
    PreparedRun,
    RunGuard,
    RunState,
    build_request,
)

__all__ = [
    "EffectiveMapping",
    "ExecutionEngine",
    "GenerationJob",
    "GenerationRequest",
    "GenerationSession",
    "JobOutcome",
    "MappingRule",
    "PreparedRun",
    "ProgressChannel",
    "ProgressEvent",
    "ProgressListener",
    "RunGuard",
    "RunState",
    "RunStats",
    "build_request",
    "build_substitution_context",
    "default_rules",
    "fallback_tag",
    "normalize_languages",
    "output_name_for",
    "percent_complete",
    "plan",
    "resolve",
    "row_matches_template",
    "rules_from_mapping",
]
