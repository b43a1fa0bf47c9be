"""Tests for the pure prepare_row stage."""

from __future__ import annotations

from datetime import date

import pytest

from meridian.importer.dedupe import BatchDeduplicator
from meridian.importer.normalizer import RowNormalizer
from meridian.importer.pipeline import DUPLICATE_REASON, PreparedRow, prepare_row
from meridian.models.import_row import ColumnMapping
from meridian.models.progress import OutcomeKind, RowOutcome

TODAY = date(2024, 6, 1)


@pytest.fixture
def normalizer():
    mapping = ColumnMapping.from_dict(
        {"firstName": 0, "lastName": 1, "email": 2, "taxFilingStatus": 3, "maritalStatus": 4}
    )
    return RowNormalizer(mapping)


class TestPrepareRow:
    def test_valid_row_is_prepared_with_canonical_statuses(self, normalizer):
        result = prepare_row(["Jane", "Doe", "jane@example.com", "mfj", "married"], normalizer,
                             BatchDeduplicator(), today=TODAY)
        assert isinstance(result, PreparedRow)
        assert result.row.tax_filing_status == "Married Filing Jointly"
        assert result.row.marital_status == "Married"

    def test_missing_name_fails(self, normalizer):
        result = prepare_row(["", "Doe"], normalizer, BatchDeduplicator(), today=TODAY)
        assert isinstance(result, RowOutcome)
        assert result.kind is OutcomeKind.FAILED
        assert result.summary.reason == "Missing fields: firstName"
        assert result.summary.first_name == "N/A"
        assert not result.reconciled

    def test_unknown_status_fails(self, normalizer):
        result = prepare_row(["Jane", "Doe", None, "sometimes"], normalizer, BatchDeduplicator(), today=TODAY)
        assert result.kind is OutcomeKind.FAILED
        assert result.summary.reason == "Invalid taxFilingStatus: sometimes"

    def test_rejected_row_does_not_claim_identity(self, normalizer):
        dedupe = BatchDeduplicator()
        prepare_row(["Jane", "Doe", "broken"], normalizer, dedupe, today=TODAY)
        result = prepare_row(["Jane", "Doe", "jane@example.com"], normalizer, dedupe, today=TODAY)
        assert isinstance(result, PreparedRow)

    def test_repeat_name_is_duplicate(self, normalizer):
        dedupe = BatchDeduplicator()
        prepare_row(["Jane", "Doe"], normalizer, dedupe, today=TODAY)
        result = prepare_row(["jane ", "DOE", "jane@example.com"], normalizer, dedupe, today=TODAY)
        assert result.kind is OutcomeKind.DUPLICATE
        assert result.summary.reason == DUPLICATE_REASON
