"""Tests for CSV loading, cleaning and previous-year correlation."""

from pathlib import Path

import pytest

from onepager.exceptions import DataValidationError
from onepager.pipeline.data_source import (
    RecordSet,
    clean_value,
    correlate,
    detect_delimiter,
    load_record_set,
    read_preview,
    validate_record_source,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  Acme  ", "Acme"),
        ("#N/A", ""),
        ("nan", ""),
        (None, ""),
        ("10.0", "10"),
        ("-3.00", "-3"),
        ("10.5", "10.5"),
        ("007", "007"),
        ("10.", "10"),
        ("1e3", "1000"),
        ("1.5E1", "15"),
        ("-0.0", "0"),
        ("2.5e-1", "2.5e-1"),
        ("1e400", "1e400"),
    ],
)
def test_clean_value(raw, expected):
    assert clean_value(raw) == expected


def test_detect_delimiter(write_csv):
    assert detect_delimiter(write_csv("a;b\n1;2\n")) == ";"
    assert detect_delimiter(write_csv("a,b\n1,2\n", name="c.csv")) == ","


def test_load_record_set_semicolon_keeps_order_and_cleans(write_csv):
    path = write_csv(" Nom du client ;Score;Org ID\nAcme;10.0;007\nBeta;#N/A;12\n")
    records = load_record_set(path)
    assert records.columns == ("Nom du client", "Score", "Org ID")
    assert len(records) == 2
    assert dict(records.rows[0]) == {"Nom du client": "Acme", "Score": "10", "Org ID": "007"}
    assert records.rows[1]["Score"] == ""
    assert records.source == path


def test_load_record_set_comma_with_bom(tmp_path: Path):
    path = tmp_path / "bom.csv"
    path.write_bytes("\ufeffName,City\nA,Paris\n".encode("utf-8"))
    records = load_record_set(path)
    assert records.columns == ("Name", "City")
    assert records.rows[0]["City"] == "Paris"


def test_load_record_set_header_only(write_csv):
    records = load_record_set(write_csv("A;B\n"))
    assert records.columns == ("A", "B")
    assert len(records) == 0


def test_load_record_set_limit(write_csv):
    path = write_csv("A\n1\n2\n3\n")
    assert len(load_record_set(path, limit=2)) == 2
    assert read_preview(path, limit=1) == [{"A": "1"}]


def test_load_record_set_missing_file(tmp_path: Path):
    with pytest.raises(DataValidationError) as excinfo:
        load_record_set(tmp_path / "nope.csv")
    assert excinfo.value.code == "DATA_VALIDATION_ERROR"


def test_load_record_set_empty_file(write_csv):
    with pytest.raises(DataValidationError):
        load_record_set(write_csv(""))


def test_record_rows_are_read_only():
    records = RecordSet.from_rows(["A"], [{"A": "1"}])
    with pytest.raises(TypeError):
        records.rows[0]["A"] = "2"  # type: ignore[index]


def test_validate_record_source(write_csv, tmp_path: Path):
    assert validate_record_source(write_csv("A;B\n1;2\n")) is True
    assert validate_record_source(str(tmp_path / "missing.csv")) is False
    assert validate_record_source(write_csv("", name="empty.csv")) is False


def test_correlate_first_match_wins_and_skips_empty_keys():
    current = RecordSet.from_rows(
        ["k"], [{"k": "a"}, {"k": ""}, {"k": "b"}, {"k": "zzz"}]
    )
    previous = RecordSet.from_rows(
        ["k", "v"],
        [{"k": "b", "v": "1"}, {"k": "b", "v": "2"}, {"k": "", "v": "3"}],
    )
    matches = correlate(current, previous, "k")
    assert matches[0] is None
    assert matches[1] is None
    assert matches[2]["v"] == "1"
    assert matches[3] is None


def test_correlate_without_previous():
    current = RecordSet.from_rows(["k"], [{"k": "a"}, {"k": "b"}])
    assert correlate(current, None, "k") == [None, None]
