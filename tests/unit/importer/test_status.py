"""Tests for tax filing and marital status synonym tables."""

from __future__ import annotations

import pytest

from meridian.core.exceptions import StatusNormalizationError
from meridian.importer.status import (
    normalize_marital_status,
    normalize_statuses,
    normalize_tax_filing_status,
)
from meridian.models.import_row import ImportRow


class TestTaxFilingStatus:
    @pytest.mark.parametrize("text", ["mfj", "Married  Joint", " MARRIED FILING JOINTLY "])
    def test_joint_synonyms(self, text):
        assert normalize_tax_filing_status(text) == "Married Filing Jointly"

    def test_head_of_household(self):
        assert normalize_tax_filing_status("HoH") == "Head of Household"

    def test_unknown_raises(self):
        with pytest.raises(StatusNormalizationError) as exc_info:
            normalize_tax_filing_status("complicated")
        assert exc_info.value.reason == "Invalid taxFilingStatus: complicated"


class TestMaritalStatus:
    def test_widower(self):
        assert normalize_marital_status("Widower") == "Widowed"

    def test_unknown_raises_not_defaulted(self):
        with pytest.raises(StatusNormalizationError):
            normalize_marital_status("it's complicated")


class TestNormalizeStatuses:
    def test_absent_statuses_untouched(self):
        row = ImportRow(first_name="Jane", last_name="Doe")
        assert normalize_statuses(row) is row

    def test_present_statuses_replaced(self):
        row = ImportRow(first_name="Jane", last_name="Doe", tax_filing_status="mfs", marital_status="married")
        result = normalize_statuses(row)
        assert result.tax_filing_status == "Married Filing Separately"
        assert result.marital_status == "Married"
        assert row.tax_filing_status == "mfs"
