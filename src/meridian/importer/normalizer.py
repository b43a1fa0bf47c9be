"""RowNormalizer: raw spreadsheet cells -> ImportRow via a typed column mapping."""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Any

from meridian.core.types import RawRow
from meridian.models.import_row import ColumnMapping, ImportField, ImportRow

SPREADSHEET_EPOCH = date(1899, 12, 30)

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%d-%m-%Y",
    "%d-%m-%y",
    "%d %b %Y",
    "%b %d, %Y",
    "%B %d, %Y",
)


def serial_to_date(serial: float) -> date:
    """Spreadsheet day serial (days since 1899-12-30) -> calendar date."""
    return SPREADSHEET_EPOCH + timedelta(days=math.floor(serial))


def parse_date(value: Any) -> date | str | None:
    """Coerce a DOB cell to a calendar date.

    Returns the input as a stripped string when it cannot be parsed so that the
    validator can report it. Numeric serials outside the calendar range count
    as unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        try:
            return serial_to_date(value)
        except (OverflowError, ValueError):
            return str(value)

    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return text


def clean_text(value: Any) -> str | None:
    """Strip a text cell; numeric cells (phone numbers, ids) lose a trailing ``.0``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
    text = str(value).strip()
    return text or None


class RowNormalizer:
    """Projects raw rows onto ImportRow using one run's column mapping.

    Unmapped fields are None, except marital status which falls back to
    ``default_marital_status``. Pure and deterministic.
    """

    def __init__(self, mapping: ColumnMapping, default_marital_status: str | None = "Single") -> None:
        self._mapping = mapping
        self._default_marital_status = default_marital_status

    @property
    def mapping(self) -> ColumnMapping:
        return self._mapping

    def _cell(self, row: RawRow, field: ImportField) -> Any:
        index = self._mapping.index_of(field)
        if index is None or index >= len(row):
            return None
        return row[index]

    def names(self, row: RawRow) -> tuple[str | None, str | None]:
        """First and last name cells only, for labelling rows that fail to normalize."""
        return (
            clean_text(self._cell(row, ImportField.FIRST_NAME)),
            clean_text(self._cell(row, ImportField.LAST_NAME)),
        )

    def normalize(self, row: RawRow) -> ImportRow:
        values: dict[str, Any] = {}
        for field in ImportField:
            raw = self._cell(row, field)
            if field is ImportField.DOB:
                values[field.value] = parse_date(raw)
            else:
                values[field.value] = clean_text(raw)

        if ImportField.MARITAL_STATUS not in self._mapping:
            values[ImportField.MARITAL_STATUS.value] = self._default_marital_status

        return ImportRow(**values)
