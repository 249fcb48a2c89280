"""PPTX rendering: open a template, substitute placeholder text, save a copy.

Placeholders such as ``<<NOM CLIENT>>`` are plain text typed into slide
shapes. The renderer walks every text frame of the presentation (slide
masters, layouts, slides, notes, table cells and grouped shapes) and
replaces each tag with its value. Chart and SmartArt parts have no text
frames; their text runs and cached values are substituted at XML level.

Replacement is run-level first, which keeps the formatting of the run that
holds the tag. PowerPoint sometimes splits a tag across several runs (after
spell checking or partial formatting); such a paragraph is rewritten into
its first run, keeping that run's formatting.

Substitution is a single pass: an inserted value is never scanned for tags
again.

Boundaries
----------
- Reads the template, writes exactly one destination file.
- A failed save may leave a partial file, which is removed on a
  best-effort basis.
- Embedded chart workbooks are not edited; only the chart's cached values
  are.
"""

from __future__ import annotations

import logging
import re
import zipfile
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from pptx import Presentation
from pptx.exc import PackageNotFoundError
from pptx.opc.oxml import serialize_part_xml
from pptx.oxml import parse_xml
from pptx.oxml.ns import qn
from pptx.parts.chart import ChartPart
from pptx.shapes.group import GroupShape

from onepager.exceptions import RenderError

logger = logging.getLogger(__name__)

# Package parts without text frames, substituted at XML level
_XML_PART_PREFIXES: tuple[str, ...] = ("/ppt/charts/", "/ppt/diagrams/")


@runtime_checkable
class Renderer(Protocol):
    """Renderer contract consumed by the execution engine.

    ``render`` writes ``destination`` from ``template`` with every key of
    ``context`` replaced by its value and returns the written path. Any
    exception signals a failure of that single job.
    """

    def render(
        self, template: Path, context: Mapping[str, str], destination: Path
    ) -> Path: ...


def _tag_pattern(context: Mapping[str, str]) -> re.Pattern[str] | None:
    tags = sorted((tag for tag in context if tag), key=len, reverse=True)
    if not tags:
        return None
    return re.compile("|".join(map(re.escape, tags)))


def substitute_placeholders(text: str, context: Mapping[str, str]) -> tuple[str, bool]:
    """Replace every tag of ``context`` found in ``text`` in one pass.

    At each position the longest matching tag wins. Inserted values are
    not searched again, so a value containing another tag is kept as is.

    Returns
    -------
    tuple[str, bool]
        The new text and whether anything was replaced.

    Examples
    --------
    >>> substitute_placeholders("<<A>> / <<A (N-1)>>", {"<<A>>": "9", "<<A (N-1)>>": "7"})
    ('9 / 7', True)
    >>> substitute_placeholders("<<C>>", {"<<C>>": "ORGANIC", "ORG": "7"})
    ('ORGANIC', True)
    """
    pattern = _tag_pattern(context)
    if pattern is None:
        return text, False
    return _substitute(pattern, text, context)


def _substitute(
    pattern: re.Pattern[str], text: str, context: Mapping[str, str]
) -> tuple[str, bool]:
    new_text, count = pattern.subn(lambda match: context[match.group(0)], text)
    return new_text, count > 0


def _replace_in_texts(
    pattern: re.Pattern[str], texts: Sequence[str], context: Mapping[str, str]
) -> list[str] | None:
    """Substitute the run texts of one paragraph.

    Returns the new run texts, or ``None`` when nothing matched. When a tag
    spans a run boundary the whole paragraph goes into the first run.
    """
    per_run = [pattern.findall(text) for text in texts]
    merged = "".join(texts)
    if len(texts) > 1 and pattern.findall(merged) != [tag for found in per_run for tag in found]:
        new_text, _ = _substitute(pattern, merged, context)
        return [new_text] + [""] * (len(texts) - 1)
    if not any(per_run):
        return None
    return [_substitute(pattern, text, context)[0] for text in texts]


def _iter_text_frames(shapes) -> Iterator:
    for shape in shapes:
        if isinstance(shape, GroupShape):
            yield from _iter_text_frames(shape.shapes)
            continue
        if shape.has_text_frame:
            yield shape.text_frame
        if getattr(shape, "has_table", False):
            for row in shape.table.rows:
                for cell in row.cells:
                    yield cell.text_frame


def _iter_shape_trees(presentation) -> Iterator:
    for master in presentation.slide_masters:
        yield master.shapes
        for layout in master.slide_layouts:
            yield layout.shapes
    for slide in presentation.slides:
        yield slide.shapes
        if slide.has_notes_slide:
            yield slide.notes_slide.shapes


def _replace_in_paragraph(
    paragraph, pattern: re.Pattern[str], context: Mapping[str, str]
) -> bool:
    runs = list(paragraph.runs)
    new_texts = _replace_in_texts(pattern, [run.text for run in runs], context)
    if new_texts is None:
        return False
    for run, text in zip(runs, new_texts):
        if run.text != text:
            run.text = text
    return True


def _substitute_in_tree(root, pattern: re.Pattern[str], context: Mapping[str, str]) -> int:
    """Substitute ``a:t`` runs per paragraph and ``c:v`` values under ``root``.

    Returns the number of paragraphs and values changed.
    """
    changed = 0
    for paragraph in root.iter(qn("a:p")):
        nodes = list(paragraph.iter(qn("a:t")))
        new_texts = _replace_in_texts(pattern, [node.text or "" for node in nodes], context)
        if new_texts is None:
            continue
        for node, text in zip(nodes, new_texts):
            node.text = text
        changed += 1
    for node in root.iter(qn("c:v")):
        if node.text:
            node.text, value_changed = _substitute(pattern, node.text, context)
            changed += int(value_changed)
    return changed


def _substitute_xml_parts(presentation, pattern: re.Pattern[str], context: Mapping[str, str]) -> int:
    changed = 0
    for part in presentation.part.package.iter_parts():
        partname = str(part.partname)
        if not partname.endswith(".xml") or not partname.startswith(_XML_PART_PREFIXES):
            continue
        if isinstance(part, ChartPart):
            changed += _substitute_in_tree(part.chart.element, pattern, context)
            continue
        root = parse_xml(part.blob)
        part_changed = _substitute_in_tree(root, pattern, context)
        if part_changed:
            part.blob = serialize_part_xml(root)
            changed += part_changed
    return changed


class PptxRenderer:
    """Produce presentations by placeholder substitution with python-pptx."""

    def render(
        self, template: Path, context: Mapping[str, str], destination: Path
    ) -> Path:
        """Write ``destination`` from ``template`` with ``context`` applied.

        Raises
        ------
        RenderError
            If the template cannot be opened as a presentation or the
            destination cannot be written.
        """
        template = Path(template)
        destination = Path(destination)
        try:
            presentation = Presentation(str(template))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, OSError) as error:
            raise RenderError(
                f"Cannot open template {template.name}: {error}",
                context={"template": str(template), "destination": str(destination)},
            ) from error

        replaced = 0
        pattern = _tag_pattern(context)
        if pattern is not None:
            for shapes in _iter_shape_trees(presentation):
                for frame in _iter_text_frames(shapes):
                    for paragraph in frame.paragraphs:
                        replaced += int(_replace_in_paragraph(paragraph, pattern, context))
            replaced += _substitute_xml_parts(presentation, pattern, context)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            presentation.save(str(destination))
        except OSError as error:
            destination.unlink(missing_ok=True)
            raise RenderError(
                f"Cannot write {destination.name}: {error}",
                context={"template": str(template), "destination": str(destination)},
            ) from error
        logger.debug(
            "Rendered %s -> %s (%d text items changed)", template.name, destination, replaced
        )
        return destination
