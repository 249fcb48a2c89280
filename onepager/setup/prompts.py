"""Interactive prompts built on questionary.

Prompts fall back to their defaults when standard input is not a terminal
or when running under pytest, so scripted and CI runs never block.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence

import questionary

from onepager.config import LANGUAGE_NAMES


def _interactive() -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return bool(getattr(sys.stdin, "isatty", lambda: False)())


def ask_languages(
    available: Sequence[str], preselected: Sequence[str] | None = None
) -> list[str]:
    r"""Let the user tick the languages to generate.

    Parameters
    ----------
    available : Sequence[str]
        Language codes discovered under the templates root.
    preselected : Sequence[str] | None, optional
        Codes ticked initially; ``None`` ticks every available code.

    Returns
    -------
    list[str]
        Chosen codes in ``available`` order. When not interactive, or when
        the prompt is aborted, the preselected codes that are available.
    """
    wanted = {code.upper() for code in (preselected if preselected is not None else available)}
    defaults = [code for code in available if code.upper() in wanted]
    if not available or not _interactive():
        return defaults
    choices = [
        questionary.Choice(
            title=f"{code} ({LANGUAGE_NAMES[code]})" if code in LANGUAGE_NAMES else code,
            value=code,
            checked=code in defaults,
        )
        for code in available
    ]
    answer = questionary.checkbox("Languages to generate:", choices=choices).ask()
    if answer is None:
        return defaults
    return [code for code in available if code in answer]


def ask_confirm(prompt: str, default: bool = True) -> bool:
    """Ask a yes/no question; returns ``default`` when not interactive."""
    if not _interactive():
        return default
    answer = questionary.confirm(prompt, default=default).ask()
    return default if answer is None else bool(answer)


__all__ = ["ask_confirm", "ask_languages"]
