"""Per-field business rules for normalized import rows.

Required names are checked first and short-circuit. Every other rule runs
independently so that a rejected row reports all of its problems at once.
"""

from __future__ import annotations

import re
from datetime import date

from meridian.core.exceptions import RecordValidationError, RequiredFieldError
from meridian.models.import_row import ImportField, ImportRow

REQUIRED_FIELDS = (ImportField.FIRST_NAME, ImportField.LAST_NAME)
NAME_FIELDS = (ImportField.FIRST_NAME, ImportField.MIDDLE_NAME, ImportField.LAST_NAME)
PHONE_FIELDS = (ImportField.MOBILE_NUMBER, ImportField.HOME_PHONE)
STATUS_FIELDS = (ImportField.MARITAL_STATUS, ImportField.TAX_FILING_STATUS)

MIN_NAME_LENGTH = 2
INITIALS_MAX_LENGTH = 2

_DIGIT = re.compile(r"\d")
_LETTER = re.compile(r"[a-zA-Z]")
_NAME_INVALID = re.compile(r"[^a-zA-Z\-' ]")
_INITIALS_INVALID = re.compile(r"[^a-zA-Z\-'. ]")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_SSN = re.compile(r"^\d{3}-\d{2}-\d{4}$")


def check_required_fields(row: ImportRow) -> None:
    missing = [f.label for f in REQUIRED_FIELDS if not getattr(row, f.value)]
    if missing:
        raise RequiredFieldError(missing)


def _name_violations(field: ImportField, value: str) -> list[str]:
    errors: list[str] = []
    if _DIGIT.search(value):
        errors.append(f"{field.label} contains numbers.")

    if field is ImportField.MIDDLE_NAME:
        pattern = _INITIALS_INVALID if len(value) <= INITIALS_MAX_LENGTH else _NAME_INVALID
        if pattern.search(value):
            errors.append(f"{field.label} contains invalid characters.")
        return errors

    if len(value) < MIN_NAME_LENGTH:
        errors.append(f"{field.label} must be at least {MIN_NAME_LENGTH} characters long.")
    if _NAME_INVALID.search(value):
        errors.append(f"{field.label} contains invalid characters.")
    return errors


def validate_row(row: ImportRow, today: date | None = None) -> list[str]:
    """Return every rule violation for ``row`` in a fixed order; empty means valid."""
    today = today or date.today()
    errors: list[str] = []

    for field in NAME_FIELDS:
        value = getattr(row, field.value)
        if value:
            errors.extend(_name_violations(field, value))

    for field in PHONE_FIELDS:
        value = getattr(row, field.value)
        if value and _LETTER.search(value):
            errors.append(f"{field.label} contains letters.")

    for field in STATUS_FIELDS:
        value = getattr(row, field.value)
        if value and _DIGIT.search(value):
            errors.append(f"{field.label} contains numbers.")

    if row.email and not _EMAIL.match(row.email):
        errors.append("Email is not in a valid format.")

    if row.dob is not None:
        if not isinstance(row.dob, date):
            errors.append("Date of birth is not a valid date.")
        elif row.dob > today:
            errors.append("Date of birth cannot be in the future.")

    if row.ssn and not _SSN.match(row.ssn):
        errors.append("SSN is not in a valid format (XXX-XX-XXXX).")

    return errors


def ensure_valid(row: ImportRow, today: date | None = None) -> None:
    """Raise RequiredFieldError or RecordValidationError if the row is unusable."""
    check_required_fields(row)
    violations = validate_row(row, today)
    if violations:
        raise RecordValidationError(violations)
