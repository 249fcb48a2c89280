"""Tests for template directory scanning."""

from pathlib import Path

from onepager.pipeline.templates import TemplateSet, scan_languages, scan_templates


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x")
    return path


def test_scan_discovers_sorted_languages_and_templates(tmp_path: Path):
    _touch(tmp_path / "fr" / "b.pptx")
    _touch(tmp_path / "fr" / "a.PPTX")
    _touch(tmp_path / "EN" / "one.pptx")
    template_set = scan_templates(tmp_path)
    assert template_set.languages == ["EN", "FR"]
    assert [p.name for p in template_set.templates_for("fr")] == ["a.PPTX", "b.pptx"]
    assert "en" in template_set
    assert template_set.is_valid


def test_scan_skips_empty_and_non_matching_folders(tmp_path: Path):
    _touch(tmp_path / "DE" / "notes.txt")
    _touch(tmp_path / "IT" / "~$lock.pptx")
    (tmp_path / "ES").mkdir()
    _touch(tmp_path / "FR" / "t.pptx")
    _touch(tmp_path / "loose.pptx")
    assert scan_languages(tmp_path) == ["FR"]


def test_scan_missing_or_empty_root_is_invalid(tmp_path: Path):
    assert not scan_templates(tmp_path / "missing").is_valid
    assert not scan_templates(tmp_path).is_valid
    assert not scan_templates(None).is_valid
    assert scan_templates("").languages == []


def test_scan_root_is_a_file(tmp_path: Path):
    assert not scan_templates(_touch(tmp_path / "file.pptx")).is_valid


def test_scan_is_idempotent(tmp_path: Path):
    _touch(tmp_path / "FR" / "a.pptx")
    _touch(tmp_path / "EN" / "b.pptx")
    assert scan_templates(tmp_path) == scan_templates(tmp_path)


def test_scan_with_custom_extension(tmp_path: Path):
    _touch(tmp_path / "FR" / "a.potx")
    _touch(tmp_path / "FR" / "b.pptx")
    template_set = scan_templates(tmp_path, ".potx")
    assert [p.name for p in template_set.templates_for("FR")] == ["a.potx"]


def test_empty_template_set_defaults():
    template_set = TemplateSet()
    assert len(template_set) == 0
    assert template_set.templates_for("FR") == ()
    assert 3 not in template_set
