"""Runtime settings loader for the presentation generator.

This module provides GeneratorSettings, which loads and validates the
overridable runtime knobs of a generation run (worker pool size, template
extension, previous-year join key, output folder layout, date format) from
the process environment and an optional ``.env`` file at the project root.

Role in Architecture
--------------------
- Forms the boundary between the process environment and the strongly
  typed settings consumed by the generation session.
- No business logic: only loading, structuring and validation.

Examples
--------
>>> from onepager.settings import GeneratorSettings
>>> settings = GeneratorSettings()
>>> settings.max_workers >= 1
True
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

import onepager.config as _project_config
from onepager.config import (
    CLIENT_NAME_COLUMN,
    DEFAULT_DATE_FORMAT,
    DEFAULT_MAX_WORKERS,
    TEMPLATE_EXTENSION,
)
from onepager.exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Invalid boolean for {name}: {raw!r}", context={"variable": name}
    )


class GeneratorSettings:
    r"""Environment-backed settings for a generation run.

    Attributes
    ----------
    max_workers : int
        Upper bound of concurrent renderer calls.
    template_extension : str
        File extension (with leading dot, lowercase) that marks a template.
    join_key : str
        Column used to correlate current and previous-year records.
    timestamped_output : bool
        Whether each run writes into its own timestamped folder.
    date_format : str
        ``strftime`` format of the reserved date token.

    Notes
    -----
    Explicit keyword arguments win over the environment, which wins over
    the defaults in :mod:`onepager.config`. Instantiate once per run.

    Examples
    --------
    >>> GeneratorSettings(max_workers=2).max_workers
    2
    """

    def __init__(
        self,
        *,
        max_workers: int | None = None,
        template_extension: str | None = None,
        join_key: str | None = None,
        timestamped_output: bool | None = None,
        date_format: str | None = None,
    ) -> None:
        """Load settings, reading ``.env`` first when present.

        Raises
        ------
        ConfigurationError
            If a variable cannot be parsed or is out of range.
        """
        env_path = Path(_project_config.ENV_FILE)
        if env_path.exists():
            load_dotenv(env_path, override=False)

        if max_workers is None:
            raw_workers = os.getenv("ONEPAGER_MAX_WORKERS", str(DEFAULT_MAX_WORKERS))
            try:
                max_workers = int(raw_workers)
            except ValueError as error:
                raise ConfigurationError(
                    f"Invalid ONEPAGER_MAX_WORKERS: {raw_workers!r}"
                ) from error
        if max_workers < 1:
            raise ConfigurationError(
                "max_workers must be at least 1", context={"max_workers": max_workers}
            )
        self.max_workers: int = max_workers

        extension = template_extension or os.getenv(
            "ONEPAGER_TEMPLATE_EXTENSION", TEMPLATE_EXTENSION
        )
        if not extension.startswith("."):
            extension = "." + extension
        self.template_extension: str = extension.lower()

        self.join_key: str = join_key or os.getenv(
            "ONEPAGER_JOIN_KEY", CLIENT_NAME_COLUMN
        )

        if timestamped_output is None:
            timestamped_output = _parse_bool(
                "ONEPAGER_TIMESTAMPED_OUTPUT",
                os.getenv("ONEPAGER_TIMESTAMPED_OUTPUT", "true"),
            )
        self.timestamped_output: bool = timestamped_output

        self.date_format: str = date_format or os.getenv(
            "ONEPAGER_DATE_FORMAT", DEFAULT_DATE_FORMAT
        )

    def __repr__(self) -> str:
        return (
            f"GeneratorSettings(max_workers={self.max_workers}, "
            f"template_extension={self.template_extension!r}, "
            f"join_key={self.join_key!r}, "
            f"timestamped_output={self.timestamped_output}, "
            f"date_format={self.date_format!r})"
        )
