"""Record loading and value cleaning for client CSV sources.

This module reads the current-year and previous-year client CSV files into
immutable ``RecordSet`` values with pandas. Delimiters are detected from the
header line (semicolon exports from Excel are common), every cell is read as
text and cleaned so that spreadsheet artefacts (``#N/A``, ``nan``, ``10.0``)
never leak into a presentation.

No generation logic lives here: the planner only ever sees a validated
schema (ordered columns) and ordered rows of string values.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import pandas as pd

from onepager.config import NULL_LIKE_VALUES, PREVIEW_ROW_LIMIT
from onepager.exceptions import DataValidationError

logger = logging.getLogger(__name__)

# Decimal or exponent notation; bare integers such as identifiers never match
_DECIMAL_NUMBER = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)[eE][+-]?\d+|\d+\.\d*|\.\d+)")


@dataclass(frozen=True)
class RecordSet:
    """Ordered column names plus ordered rows of cleaned string values.

    Attributes
    ----------
    columns : tuple[str, ...]
        Schema in file order.
    rows : tuple[Mapping[str, str], ...]
        One read-only mapping per record, in file order.
    source : Path | None
        File the records were read from, when known.
    """

    columns: tuple[str, ...]
    rows: tuple[Mapping[str, str], ...]
    source: Path | None = field(default=None, compare=False)

    @classmethod
    def from_rows(
        cls,
        columns: Sequence[str],
        rows: Sequence[Mapping[str, str]],
        source: Path | None = None,
    ) -> RecordSet:
        """Build a record set, freezing each row mapping.

        Examples
        --------
        >>> rs = RecordSet.from_rows(["A"], [{"A": "1"}])
        >>> len(rs), rs.rows[0]["A"]
        (1, '1')
        """
        return cls(
            columns=tuple(columns),
            rows=tuple(MappingProxyType(dict(row)) for row in rows),
            source=source,
        )

    def __len__(self) -> int:
        return len(self.rows)


def clean_value(raw: object) -> str:
    """Normalize a raw CSV cell into the string used for substitution.

    Null-like spreadsheet values become an empty string. Numbers written
    with a decimal point or an exponent whose value is integral are rendered
    as integers (``"10.0"``, ``"10."`` and ``"1e3"``). Digit-only text such
    as ``"007"`` is an identifier and kept verbatim.

    Parameters
    ----------
    raw : object
        Raw cell value.

    Returns
    -------
    str
        Cleaned value.

    Examples
    --------
    >>> clean_value("  10.0 ")
    '10'
    >>> clean_value("#N/A")
    ''
    >>> clean_value("10.5")
    '10.5'
    """
    if raw is None:
        return ""
    value = str(raw).strip()
    if value.lower() in NULL_LIKE_VALUES:
        return ""
    if _DECIMAL_NUMBER.fullmatch(value):
        number = float(value)
        if number.is_integer():
            return str(int(number))
    return value


def detect_delimiter(csv_path: Path) -> str:
    """Return ``';'`` when the header line contains one, ``','`` otherwise.

    Raises
    ------
    OSError
        If the file cannot be opened.
    """
    with Path(csv_path).open("r", encoding="utf-8-sig") as fh:
        header_line = fh.readline()
    return ";" if ";" in header_line else ","


def load_record_set(csv_path: Path, limit: int | None = None) -> RecordSet:
    """Read a client CSV into a cleaned ``RecordSet``.

    Parameters
    ----------
    csv_path : Path
        Comma- or semicolon-delimited UTF-8 file with a header line.
    limit : int | None, optional
        Maximum number of records to read.

    Returns
    -------
    RecordSet
        Columns in header order and cleaned rows in file order.

    Raises
    ------
    DataValidationError
        If the file is missing, unreadable, empty or malformed.
    """
    csv_path = Path(csv_path)
    try:
        delimiter = detect_delimiter(csv_path)
        dataframe = pd.read_csv(
            csv_path,
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            encoding="utf-8-sig",
            nrows=limit,
        )
    except FileNotFoundError as error:
        raise DataValidationError(
            f"Record source not found: {csv_path}", context={"path": str(csv_path)}
        ) from error
    except (
        OSError,
        UnicodeDecodeError,
        pd.errors.ParserError,
        pd.errors.EmptyDataError,
    ) as error:
        raise DataValidationError(
            f"Cannot read record source {csv_path}: {error}",
            context={"path": str(csv_path)},
        ) from error

    columns = [str(column).strip() for column in dataframe.columns]
    dataframe.columns = columns
    rows = [
        {column: clean_value(value) for column, value in raw_row.items()}
        for raw_row in dataframe.to_dict(orient="records")
    ]
    logger.debug("Loaded %d records with %d columns from %s", len(rows), len(columns), csv_path)
    return RecordSet.from_rows(columns, rows, source=csv_path)


def read_preview(csv_path: Path, limit: int = PREVIEW_ROW_LIMIT) -> list[dict[str, str]]:
    """Return the first ``limit`` cleaned rows of a CSV as plain dicts."""
    record_set = load_record_set(csv_path, limit=limit)
    return [dict(row) for row in record_set.rows]


def validate_record_source(csv_path: Path | str) -> bool:
    """Return True when the header and first record of a CSV can be read.

    Never raises; every failure is reported as ``False``.
    """
    try:
        load_record_set(Path(csv_path), limit=1)
    except DataValidationError as error:
        logger.info("Record source rejected: %s", error.message)
        return False
    return True


def correlate(
    primary: RecordSet, previous: RecordSet | None, join_key: str
) -> list[Mapping[str, str] | None]:
    """Pair every primary record with its previous-year record.

    The first previous-year row whose ``join_key`` value equals the primary
    row's value wins. Rows without a join value are never paired.

    Returns
    -------
    list[Mapping[str, str] | None]
        One entry per primary row, in primary order.

    Examples
    --------
    >>> cur = RecordSet.from_rows(["k"], [{"k": "a"}, {"k": "b"}])
    >>> prev = RecordSet.from_rows(["k", "v"], [{"k": "b", "v": "1"}])
    >>> [None if r is None else r["v"] for r in correlate(cur, prev, "k")]
    [None, '1']
    """
    if previous is None:
        return [None] * len(primary)
    index: dict[str, Mapping[str, str]] = {}
    for row in previous.rows:
        key = row.get(join_key, "")
        if key and key not in index:
            index[key] = row
    matches: list[Mapping[str, str] | None] = []
    for row in primary.rows:
        key = row.get(join_key, "")
        matches.append(index.get(key) if key else None)
    return matches
