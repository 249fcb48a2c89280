"""Template directory discovery.

A templates root holds one folder per language (``FR/``, ``EN/`` ...), each
containing the slide templates for that language. This module turns such a
root into a ``TemplateSet``. Scanning is read-only and deterministic: the
same directory always yields the same languages in the same order, and the
same files per language in the same order.

An absent root, an unreadable root or a root without any usable language
folder is not an error; it yields an empty ``TemplateSet``, which callers
present as an invalid templates root.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from onepager.config import TEMPLATE_EXTENSION, TEMPLATE_LOCK_PREFIX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateSet:
    """Language code to ordered template files.

    Invariant: every code is uppercase and unique, and no language maps to
    an empty tuple.
    """

    root: Path | None = None
    entries: Mapping[str, tuple[Path, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def languages(self) -> list[str]:
        """Language codes in discovery order."""
        return list(self.entries)

    @property
    def is_valid(self) -> bool:
        """False when no language folder holds a template."""
        return bool(self.entries)

    def templates_for(self, language: str) -> tuple[Path, ...]:
        """Return the templates of ``language`` (case-insensitive), possibly empty."""
        return self.entries.get(language.upper(), ())

    def __contains__(self, language: object) -> bool:
        return isinstance(language, str) and language.upper() in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _is_template(path: Path, extension: str) -> bool:
    return (
        path.is_file()
        and path.suffix.lower() == extension
        and not path.name.startswith(TEMPLATE_LOCK_PREFIX)
    )


def scan_templates(
    root: Path | str | None, extension: str = TEMPLATE_EXTENSION
) -> TemplateSet:
    """Discover language folders and their template files under ``root``.

    Parameters
    ----------
    root : Path | str | None
        Templates root directory.
    extension : str, optional
        Template extension, matched case-insensitively.

    Returns
    -------
    TemplateSet
        Possibly empty; never raises for missing or unreadable paths.

    Examples
    --------
    >>> scan_templates("/definitely/missing").is_valid
    False
    """
    if not root:
        return TemplateSet()
    root_path = Path(root)
    extension = extension.lower()
    try:
        subdirs = sorted(
            (child for child in root_path.iterdir() if child.is_dir()),
            key=lambda child: child.name,
        )
    except OSError as error:
        logger.info("Templates root %s not readable: %s", root_path, error)
        return TemplateSet(root=root_path)

    found: dict[str, list[Path]] = {}
    for subdir in subdirs:
        try:
            files = sorted(
                (p for p in subdir.iterdir() if _is_template(p, extension)),
                key=lambda p: p.name,
            )
        except OSError as error:
            logger.warning("Skipping unreadable language folder %s: %s", subdir, error)
            continue
        if not files:
            logger.debug("Language folder %s holds no templates, skipped", subdir.name)
            continue
        found.setdefault(subdir.name.upper(), []).extend(files)

    entries = {code: tuple(files) for code, files in found.items()}
    logger.debug("Scanned %s: %s", root_path, {k: len(v) for k, v in entries.items()})
    return TemplateSet(root=root_path, entries=MappingProxyType(entries))


def scan_languages(root: Path | str | None, extension: str = TEMPLATE_EXTENSION) -> list[str]:
    """Return the uppercase language codes that hold at least one template."""
    return scan_templates(root, extension).languages
