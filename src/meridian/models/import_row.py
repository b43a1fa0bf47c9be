"""Import row models: canonical fields, typed column mapping, normalized row."""

from __future__ import annotations

from datetime import date
from enum import StrEnum
from typing import Any, Optional, Union

from pydantic import BaseModel, field_validator


class ImportField(StrEnum):
    FIRST_NAME = "first_name"
    MIDDLE_NAME = "middle_name"
    LAST_NAME = "last_name"
    DOB = "dob"
    SSN = "ssn"
    TAX_FILING_STATUS = "tax_filing_status"
    MARITAL_STATUS = "marital_status"
    MOBILE_NUMBER = "mobile_number"
    HOME_PHONE = "home_phone"
    EMAIL = "email"
    HOME_ADDRESS = "home_address"
    EXTERNAL_HOUSEHOLD_ID = "external_household_id"

    @property
    def label(self) -> str:
        """camelCase name used in user-facing messages (``firstName``)."""
        head, *rest = self.value.split("_")
        return head + "".join(part.capitalize() for part in rest)


# Column headings offered by the mapping UI, plus camelCase field names.
_FIELD_ALIASES: dict[str, ImportField] = {
    "client first": ImportField.FIRST_NAME,
    "client middle": ImportField.MIDDLE_NAME,
    "client last": ImportField.LAST_NAME,
    "dob": ImportField.DOB,
    "ssn": ImportField.SSN,
    "tax filing status": ImportField.TAX_FILING_STATUS,
    "marital status": ImportField.MARITAL_STATUS,
    "mobile": ImportField.MOBILE_NUMBER,
    "home": ImportField.HOME_PHONE,
    "email": ImportField.EMAIL,
    "home address": ImportField.HOME_ADDRESS,
    "household id": ImportField.EXTERNAL_HOUSEHOLD_ID,
}
_FIELD_ALIASES.update({f.label.lower(): f for f in ImportField})
_FIELD_ALIASES.update({f.value: f for f in ImportField})


def resolve_field(name: str | ImportField) -> ImportField:
    """Map a canonical, camelCase or UI-heading field name to an ImportField."""
    if isinstance(name, ImportField):
        return name
    key = name.replace("mapping[", "").replace("]", "").strip().lower()
    try:
        return _FIELD_ALIASES[key]
    except KeyError:
        raise ValueError(f"Unknown import field: {name!r}") from None


class ColumnMapping(BaseModel):
    """Canonical field -> zero-based column index, validated once per run."""

    columns: dict[ImportField, int]

    @field_validator("columns", mode="before")
    @classmethod
    def _resolve_names(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {resolve_field(k): v for k, v in value.items()}

    @field_validator("columns")
    @classmethod
    def _non_negative(cls, value: dict[ImportField, int]) -> dict[ImportField, int]:
        for field, index in value.items():
            if index < 0:
                raise ValueError(f"Column index for {field.value} must be >= 0, got {index}")
        return value

    @classmethod
    def from_dict(cls, mapping: dict[str, int]) -> ColumnMapping:
        return cls(columns=mapping)

    def __contains__(self, field: object) -> bool:
        return field in self.columns

    def __len__(self) -> int:
        return len(self.columns)

    def index_of(self, field: ImportField) -> int | None:
        return self.columns.get(field)


class ImportRow(BaseModel):
    """Normalized projection of one spreadsheet row."""

    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    dob: Union[date, str, None] = None  # raw string kept when unparseable
    ssn: Optional[str] = None
    tax_filing_status: Optional[str] = None
    marital_status: Optional[str] = None
    mobile_number: Optional[str] = None
    home_phone: Optional[str] = None
    email: Optional[str] = None
    home_address: Optional[str] = None
    external_household_id: Optional[str] = None
