"""Tests for ImportField names and ColumnMapping validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from meridian.models.household import generate_household_code
from meridian.models.import_row import ColumnMapping, ImportField, resolve_field
from meridian.models.progress import RecordSummary


class TestImportField:
    def test_label_is_camel_case(self):
        assert ImportField.EXTERNAL_HOUSEHOLD_ID.label == "externalHouseholdId"
        assert ImportField.DOB.label == "dob"

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("firstName", ImportField.FIRST_NAME),
            ("Client First", ImportField.FIRST_NAME),
            ("mapping[Household ID]", ImportField.EXTERNAL_HOUSEHOLD_ID),
            ("home_phone", ImportField.HOME_PHONE),
        ],
    )
    def test_resolve_aliases(self, name, expected):
        assert resolve_field(name) is expected

    def test_unknown_name_rejected(self):
        with pytest.raises(ValueError):
            resolve_field("favouriteColour")


class TestColumnMapping:
    def test_from_dict_resolves_names(self):
        mapping = ColumnMapping.from_dict({"firstName": 0, "Client Last": 3})
        assert mapping.index_of(ImportField.LAST_NAME) == 3
        assert ImportField.FIRST_NAME in mapping
        assert ImportField.EMAIL not in mapping
        assert len(mapping) == 2

    def test_negative_index_rejected(self):
        with pytest.raises(ValidationError):
            ColumnMapping.from_dict({"firstName": -1})

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            ColumnMapping.from_dict({"shoeSize": 4})


class TestHouseholdCode:
    def test_shape(self):
        prefix, stamp, suffix = generate_household_code().split("-")
        assert prefix == "HH"
        assert int(stamp, 36) > 0
        assert len(suffix) == 5

    def test_codes_are_unique(self):
        assert len({generate_household_code() for _ in range(50)}) == 50


class TestRecordSummary:
    def test_missing_names_render_na(self):
        summary = RecordSummary.for_names(None, "", reason="Missing fields: firstName, lastName")
        assert (summary.first_name, summary.last_name) == ("N/A", "N/A")
