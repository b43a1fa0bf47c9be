"""Audit report persisted at the end of a household import run."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from meridian.models.progress import ImportProgress, RecordSummary

HOUSEHOLD_IMPORT_TYPE = "Household Data Import"


class ImportReport(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    import_type: str = HOUSEHOLD_IMPORT_TYPE
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source_file_key: Optional[str] = None
    created_records: list[RecordSummary] = Field(default_factory=list)
    updated_records: list[RecordSummary] = Field(default_factory=list)
    failed_records: list[RecordSummary] = Field(default_factory=list)
    duplicate_records: list[RecordSummary] = Field(default_factory=list)

    @classmethod
    def from_progress(
        cls, user_id: str, progress: ImportProgress, source_file_key: str | None = None
    ) -> ImportReport:
        return cls(
            user_id=user_id,
            source_file_key=source_file_key,
            created_records=list(progress.created_records_detail),
            updated_records=list(progress.updated_records_detail),
            failed_records=list(progress.failed_records_detail),
            duplicate_records=list(progress.duplicate_records_detail),
        )
