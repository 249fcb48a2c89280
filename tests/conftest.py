"""Pytest configuration and shared fixtures.

- Forces ``DISABLE_FILE_LOGS=1`` to avoid writing log files during tests.
- Ensures the project root is available on ``sys.path`` for imports.
- Provides builders for CSV sources and presentation template trees.
"""

import os
import sys

os.environ.setdefault("DISABLE_FILE_LOGS", "1")
from pathlib import Path

import pytest
from pptx import Presentation
from pptx.util import Inches

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

DEFAULT_LINES = ("<<NOM CLIENT>>", "<<[JJ/MM/AAAA]>>")
BLANK_LAYOUT = 6


def build_pptx(path: Path, lines=DEFAULT_LINES) -> Path:
    """Save a one-slide presentation with one text box paragraph per line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    presentation = Presentation()
    slide = presentation.slides.add_slide(presentation.slide_layouts[BLANK_LAYOUT])
    frame = slide.shapes.add_textbox(Inches(1), Inches(1), Inches(6), Inches(3)).text_frame
    frame.text = lines[0]
    for line in lines[1:]:
        frame.add_paragraph().text = line
    presentation.save(str(path))
    return path


def slide_texts(path: Path) -> list[str]:
    """Return the paragraph texts of every text frame on every slide."""
    texts = []
    for slide in Presentation(str(path)).slides:
        for shape in slide.shapes:
            if shape.has_text_frame:
                texts.extend(p.text for p in shape.text_frame.paragraphs)
            if shape.has_table:
                for row in shape.table.rows:
                    texts.extend(cell.text for cell in row.cells)
    return texts


@pytest.fixture
def make_pptx():
    """Expose :func:`build_pptx` to tests."""
    return build_pptx


@pytest.fixture
def read_texts():
    """Expose :func:`slide_texts` to tests."""
    return slide_texts


@pytest.fixture
def write_csv(tmp_path: Path):
    """Return a helper writing ``text`` to a CSV file under ``tmp_path``."""

    def _write(text: str, name: str = "records.csv") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def template_root(tmp_path: Path) -> Path:
    """Templates root with one ``onepager.pptx`` under ``FR`` and ``EN``."""
    root = tmp_path / "templates"
    for language in ("FR", "EN"):
        build_pptx(root / language / "onepager.pptx")
    return root


@pytest.fixture
def scenario_csv(write_csv) -> Path:
    """Single-row CSV with the client name and date columns."""
    return write_csv("Nom du client;JJ/MM/AAAA\nAcme;01/01/2026\n")
