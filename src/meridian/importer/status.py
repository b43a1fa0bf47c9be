"""Canonical labels for free-text tax filing and marital statuses.

Matching ignores case and repeated whitespace. Unknown text fails the row;
it is never mapped to a default label.
"""

from __future__ import annotations

from meridian.core.exceptions import StatusNormalizationError
from meridian.models.import_row import ImportField, ImportRow

MARRIED_FILING_JOINTLY = "Married Filing Jointly"
MARRIED_FILING_SEPARATELY = "Married Filing Separately"
SINGLE = "Single"
HEAD_OF_HOUSEHOLD = "Head of Household"
QUALIFYING_WIDOWER = "Qualifying Widower"

TAX_FILING_STATUS_SYNONYMS: dict[str, str] = {
    "married filing jointly": MARRIED_FILING_JOINTLY,
    "married joint": MARRIED_FILING_JOINTLY,
    "married filing joint": MARRIED_FILING_JOINTLY,
    "mfj": MARRIED_FILING_JOINTLY,
    "joint": MARRIED_FILING_JOINTLY,
    "married filing separately": MARRIED_FILING_SEPARATELY,
    "married separate": MARRIED_FILING_SEPARATELY,
    "married filing separate": MARRIED_FILING_SEPARATELY,
    "mfs": MARRIED_FILING_SEPARATELY,
    "separate": MARRIED_FILING_SEPARATELY,
    "single": SINGLE,
    "head of household": HEAD_OF_HOUSEHOLD,
    "head household": HEAD_OF_HOUSEHOLD,
    "hoh": HEAD_OF_HOUSEHOLD,
    "qualifying widower": QUALIFYING_WIDOWER,
    "qualifying widow": QUALIFYING_WIDOWER,
    "widow": QUALIFYING_WIDOWER,
    "qualifying widower with dependent child": QUALIFYING_WIDOWER,
}

MARITAL_STATUS_SYNONYMS: dict[str, str] = {
    "married": "Married",
    "single": "Single",
    "not married": "Single",
    "unmarried": "Single",
    "widowed": "Widowed",
    "widow": "Widowed",
    "widower": "Widowed",
    "divorced": "Divorced",
    "divorcee": "Divorced",
}


def _lookup(table: dict[str, str], field: ImportField, value: str) -> str:
    key = " ".join(value.split()).lower()
    try:
        return table[key]
    except KeyError:
        raise StatusNormalizationError(field.label, value) from None


def normalize_tax_filing_status(value: str) -> str:
    return _lookup(TAX_FILING_STATUS_SYNONYMS, ImportField.TAX_FILING_STATUS, value)


def normalize_marital_status(value: str) -> str:
    return _lookup(MARITAL_STATUS_SYNONYMS, ImportField.MARITAL_STATUS, value)


def normalize_statuses(row: ImportRow) -> ImportRow:
    """Return a copy of ``row`` with present statuses replaced by canonical labels."""
    updates: dict[str, str] = {}
    if row.tax_filing_status:
        updates["tax_filing_status"] = normalize_tax_filing_status(row.tax_filing_status)
    if row.marital_status:
        updates["marital_status"] = normalize_marital_status(row.marital_status)
    return row.model_copy(update=updates) if updates else row
