# uploads/parsers.py
"""
Workbook parser for bulk uploads.

Reads the first sheet of an .xlsx file: the first row holds the column
names, every later non-blank row is a data row. Cell values are normalized
so downstream validation only ever sees strings, numbers or None:

- strings are trimmed and empty strings become None
- integral floats become ints (Excel stores 1001 as 1001.0)
- date/datetime cells become "YYYY-MM-DD"
- numbers in a declared date column are Excel serial dates (1899-12-30 epoch)
"""

import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from uploads.exceptions import EmptyFileError, SchemaError

logger = logging.getLogger(__name__)

EXCEL_EPOCH = date(1899, 12, 30)

# Serial for 9999-12-31; anything larger cannot be a calendar date.
MAX_EXCEL_SERIAL = 2958465


@dataclass(frozen=True)
class ColumnSchema:
    """Ordered column names for one upload kind."""

    columns: Tuple[str, ...]
    optional: FrozenSet[str] = field(default_factory=frozenset)
    date_columns: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def required(self) -> Tuple[str, ...]:
        return tuple(c for c in self.columns if c not in self.optional)


@dataclass(frozen=True)
class RawRow:
    """One data row: its 1-based sheet row number and column -> scalar."""

    row_number: int
    values: Dict[str, Any]

    def get(self, column: str, default: Any = None) -> Any:
        value = self.values.get(column)
        return default if value is None else value


def excel_serial_to_date(serial: float) -> date:
    """Convert an Excel serial day number to a date (fractional part ignored)."""
    return EXCEL_EPOCH + timedelta(days=int(serial))


def normalize_cell(value: Any, *, is_date_column: bool = False) -> Any:
    """Normalize one cell value to a canonical scalar."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if is_date_column and 0 < value <= MAX_EXCEL_SERIAL:
            return excel_serial_to_date(value).isoformat()
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value
    return str(value)


def _is_blank(cells) -> bool:
    return all(c is None or (isinstance(c, str) and not c.strip()) for c in cells)


class WorkbookRows:
    """
    Lazy, restartable sequence of RawRow for the first sheet of a workbook.

    The header is checked when the object is created, so a bad upload fails
    before anything is persisted. Each ``iter()`` re-reads the sheet from
    the first data row.

    Raises:
        SchemaError: unreadable file, no sheet, or missing required columns
        EmptyFileError: header present but no data rows
    """

    def __init__(self, content: bytes, schema: ColumnSchema):
        self.schema = schema
        try:
            self._workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as exc:
            raise SchemaError(f"Unable to read workbook: {exc}") from exc

        if not self._workbook.worksheets:
            self.close()
            raise SchemaError("Workbook has no sheets.")
        self._sheet = self._workbook.worksheets[0]

        self.header = self._read_header()
        missing = [c for c in schema.required if c not in self._positions]
        if missing:
            self.close()
            raise SchemaError(
                f"Missing required columns: {', '.join(missing)}",
                missing_columns=missing,
            )

        if next(iter(self), None) is None:
            self.close()
            raise EmptyFileError("The first sheet has no data rows.")

    def _read_header(self) -> List[Optional[str]]:
        first = next(self._sheet.iter_rows(min_row=1, max_row=1, values_only=True), None)
        if first is None or _is_blank(first):
            self.close()
            raise EmptyFileError("The first sheet is empty; expected a header row.")

        header = [str(c).strip() if c is not None else None for c in first]
        self._positions = {}
        for index, name in enumerate(header):
            if name and name not in self._positions:
                self._positions[name] = index
        return header

    def __iter__(self) -> Iterator[RawRow]:
        columns = [c for c in self.schema.columns if c in self._positions]
        for row_number, cells in enumerate(
            self._sheet.iter_rows(min_row=2, values_only=True), start=2
        ):
            if _is_blank(cells):
                continue
            values = {c: None for c in self.schema.columns}
            for column in columns:
                index = self._positions[column]
                cell = cells[index] if index < len(cells) else None
                values[column] = normalize_cell(
                    cell, is_date_column=column in self.schema.date_columns
                )
            yield RawRow(row_number=row_number, values=values)

    def close(self) -> None:
        self._workbook.close()


def parse_workbook(content: bytes, schema: ColumnSchema) -> WorkbookRows:
    """
    Parse an uploaded workbook against a column schema.

    Args:
        content: Raw .xlsx bytes
        schema: Expected columns for the upload kind

    Returns:
        WorkbookRows; iterate it (any number of times) for RawRow values
    """
    rows = WorkbookRows(content, schema)
    logger.debug("Workbook header accepted", extra={"columns": rows.header})
    return rows
