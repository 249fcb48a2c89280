"""Job planning: expand languages x templates x records into ordered jobs.

The plan order is the progress-reporting order of a run: selected language
order, then template discovery order within the language, then record
order. Re-planning the same request against the same template set always
yields the same jobs in the same order with the same output names.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path

from onepager.config import (
    AUDIENCE_COLUMN,
    AUDIENCE_PM_ONLY,
    AUDIENCE_PM_RM,
    AUDIENCE_SKIP_VALUE,
    CLIENT_NAME_COLUMN,
    DATE_COLUMN,
    FALLBACK_CLIENT_NAME,
    FALLBACK_DATE,
    FALLBACK_ORG_ID,
    FORBIDDEN_FILENAME_CHARS,
    LANGUAGE_NAMES,
    ORG_ID_COLUMN,
    ROW_LANGUAGE_COLUMN,
)
from onepager.pipeline.data_source import correlate
from onepager.pipeline.templates import TemplateSet

from .models import GenerationJob, GenerationRequest

logger = logging.getLogger(__name__)

_FORBIDDEN = re.compile(FORBIDDEN_FILENAME_CHARS)


def normalize_languages(languages: list[str] | tuple[str, ...]) -> list[str]:
    """Uppercase and de-duplicate language codes, keeping first positions.

    Examples
    --------
    >>> normalize_languages(["fr", "EN", "FR", " de "])
    ['FR', 'EN', 'DE']
    """
    seen: list[str] = []
    for language in languages:
        code = language.strip().upper()
        if code and code not in seen:
            seen.append(code)
    return seen


def sanitize_filename_part(value: str) -> str:
    """Strip characters that are not allowed in file names."""
    return _FORBIDDEN.sub("", value).strip()


def output_name_for(record: Mapping[str, str], language: str, template: Path) -> Path:
    """Return the output path of a job, relative to the run's output root.

    Layout: ``<LANG>/<client>_<org>/<date>_<org>_<client>_<template stem><ext>``.

    Examples
    --------
    >>> row = {"Nom du client": "Acme/Co", "Org ID": "7", "JJ/MM/AAAA": "01/02/2026"}
    >>> output_name_for(row, "FR", Path("T/FR/onepager.pptx")).as_posix()
    'FR/AcmeCo_7/01-02-2026_7_AcmeCo_onepager.pptx'
    """
    client = sanitize_filename_part(record.get(CLIENT_NAME_COLUMN, "")) or FALLBACK_CLIENT_NAME
    org_id = sanitize_filename_part(record.get(ORG_ID_COLUMN, "")) or FALLBACK_ORG_ID
    date = sanitize_filename_part(record.get(DATE_COLUMN, "").replace("/", "-")) or FALLBACK_DATE
    filename = f"{date}_{org_id}_{client}_{template.stem}{template.suffix}"
    return Path(language) / f"{client}_{org_id}" / filename


def _deduplicate(name: Path, taken: set[Path]) -> Path:
    candidate = name
    counter = 2
    while candidate in taken:
        candidate = name.with_name(f"{name.stem}_{counter}{name.suffix}")
        counter += 1
    taken.add(candidate)
    return candidate


def row_matches_template(record: Mapping[str, str], language: str, template: Path) -> bool:
    """Apply the audience and row-language filters to one (row, template) pair.

    - rows marked ``Do not generate OP`` never produce output;
    - ``PM_RM`` templates only take ``PM-RM`` rows;
    - ``_PM_`` templates (not ``PM_RM``) only take ``PM only`` rows;
    - a non-empty ``Language`` cell must mention the code or its full name.
    """
    name = template.name
    audience = record.get(AUDIENCE_COLUMN)
    if audience is not None:
        if audience == AUDIENCE_SKIP_VALUE:
            return False
        is_pm_rm = "PM_RM" in name
        is_pm_only = "_PM_" in name and not is_pm_rm
        if is_pm_rm and audience != AUDIENCE_PM_RM:
            return False
        if is_pm_only and audience != AUDIENCE_PM_ONLY:
            return False
    row_languages = record.get(ROW_LANGUAGE_COLUMN, "")
    if row_languages:
        full_name = LANGUAGE_NAMES.get(language, language)
        if full_name not in row_languages and language not in row_languages:
            return False
    return True


def plan(
    request: GenerationRequest,
    template_set: TemplateSet,
    join_key: str | None = None,
) -> list[GenerationJob]:
    """Expand a request into its ordered job list.

    Parameters
    ----------
    request : GenerationRequest
        Run configuration.
    template_set : TemplateSet
        Result of scanning ``request.template_root``.
    join_key : str | None, optional
        Correlation column used when ``request.join_key`` is not set.

    Returns
    -------
    list[GenerationJob]
        Possibly empty. Requested languages absent from ``template_set``
        contribute no jobs and raise nothing.
    """
    previous_matches = correlate(
        request.records, request.previous_records, request.join_key or join_key or ""
    )
    jobs: list[GenerationJob] = []
    taken: set[Path] = set()
    for language in normalize_languages(request.languages):
        templates = template_set.templates_for(language)
        if not templates:
            logger.info("No templates for requested language %s, skipped", language)
            continue
        for template in templates:
            for record, previous in zip(request.records.rows, previous_matches):
                if request.apply_row_filters and not row_matches_template(
                    record, language, template
                ):
                    continue
                jobs.append(
                    GenerationJob(
                        index=len(jobs),
                        language=language,
                        template=template,
                        record=record,
                        output_name=_deduplicate(
                            output_name_for(record, language, template), taken
                        ),
                        previous_record=previous,
                    )
                )
    logger.info("Planned %d jobs", len(jobs))
    return jobs
