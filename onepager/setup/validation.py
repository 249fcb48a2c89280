"""Input validation probes with stale-result protection.

Each input field (primary CSV, previous-year CSV, templates root) has its
own lifecycle ``IDLE -> CHECKING -> {VALID, INVALID}``. Every probe takes a
fresh token from a per-field monotonic counter; when it finishes, its
result is applied only if no newer probe was issued for the same field in
the meantime. A slow probe for an old path can therefore never overwrite
the status of the path the user has since typed.

Probes run the blocking check in a worker thread and never raise: any
failure becomes ``INVALID``.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from pathlib import Path

from onepager.pipeline.data_source import validate_record_source
from onepager.pipeline.templates import scan_templates
from onepager.settings import GeneratorSettings

logger = logging.getLogger(__name__)

PRIMARY_CSV_FIELD = "csv"
PREVIOUS_CSV_FIELD = "prev_year_csv"
TEMPLATES_FIELD = "templates"


class FieldStatus(enum.Enum):
    IDLE = "idle"
    CHECKING = "checking"
    VALID = "valid"
    INVALID = "invalid"


class ProbeTracker:
    """Per-field probe tokens and latest applied statuses.

    Examples
    --------
    >>> tracker = ProbeTracker()
    >>> old, new = tracker.issue("csv"), tracker.issue("csv")
    >>> tracker.apply("csv", old, FieldStatus.VALID)
    False
    >>> tracker.apply("csv", new, FieldStatus.INVALID), tracker.status("csv")
    (True, <FieldStatus.INVALID: 'invalid'>)
    """

    def __init__(self, extension: str | None = None) -> None:
        self.extension = extension or GeneratorSettings().template_extension
        self._tokens: dict[str, int] = {}
        self._statuses: dict[str, FieldStatus] = {}
        self._languages: list[str] = []

    @property
    def languages(self) -> list[str]:
        """Languages found by the latest applied templates probe."""
        return list(self._languages)

    @property
    def fields(self) -> list[str]:
        return list(self._statuses)

    def status(self, field: str) -> FieldStatus:
        return self._statuses.get(field, FieldStatus.IDLE)

    def issue(self, field: str) -> int:
        """Start a probe for ``field`` and return its token."""
        token = self._tokens.get(field, 0) + 1
        self._tokens[field] = token
        self._statuses[field] = FieldStatus.CHECKING
        return token

    def is_current(self, field: str, token: int) -> bool:
        return self._tokens.get(field) == token

    def apply(self, field: str, token: int, status: FieldStatus) -> bool:
        """Record ``status`` unless a newer probe was issued; return whether applied."""
        if not self.is_current(field, token):
            logger.debug("Discarding stale probe %d for %s", token, field)
            return False
        self._statuses[field] = status
        return True

    def reset(self, field: str) -> None:
        """Supersede any in-flight probe and return the field to ``IDLE``."""
        self._tokens[field] = self._tokens.get(field, 0) + 1
        self._statuses[field] = FieldStatus.IDLE
        if field == TEMPLATES_FIELD:
            self._languages = []

    async def probe_record_source(self, field: str, path: Path | str | None) -> FieldStatus:
        """Check that ``path`` is a readable record source.

        Returns the field's status after the probe, which is the status of
        a newer probe when this one turned out to be stale.
        """
        if not path or not str(path).strip():
            self.reset(field)
            return FieldStatus.IDLE
        token = self.issue(field)
        try:
            ok = await asyncio.to_thread(validate_record_source, Path(path))
        except Exception:
            logger.exception("Record source probe failed for %s", path)
            ok = False
        self.apply(field, token, FieldStatus.VALID if ok else FieldStatus.INVALID)
        return self.status(field)

    async def probe_template_root(self, path: Path | str | None) -> FieldStatus:
        """Scan ``path`` and publish its languages when the probe is current."""
        if not path or not str(path).strip():
            self.reset(TEMPLATES_FIELD)
            return FieldStatus.IDLE
        token = self.issue(TEMPLATES_FIELD)
        try:
            template_set = await asyncio.to_thread(scan_templates, Path(path), self.extension)
            languages = template_set.languages
        except Exception:
            logger.exception("Template probe failed for %s", path)
            languages = []
        status = FieldStatus.VALID if languages else FieldStatus.INVALID
        if self.apply(TEMPLATES_FIELD, token, status):
            self._languages = languages
        return self.status(TEMPLATES_FIELD)
