"""Import progress, per-row outcome, and record summary models."""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field

IMPORT_PROGRESS_EVENT = "importProgress"
IMPORT_COMPLETE_EVENT = "importComplete"

NOT_AVAILABLE = "N/A"


class ProgressStatus(StrEnum):
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OutcomeKind(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"  # matched one client, nothing differed
    FAILED = "failed"
    DUPLICATE = "duplicate"


class RecordSummary(BaseModel):
    """Compact per-row entry in the progress/report detail lists."""

    first_name: str = NOT_AVAILABLE
    last_name: str = NOT_AVAILABLE
    reason: Optional[str] = None
    updated_fields: list[str] = Field(default_factory=list)

    @classmethod
    def for_names(
        cls,
        first_name: object,
        last_name: object,
        reason: str | None = None,
        updated_fields: list[str] | None = None,
    ) -> RecordSummary:
        return cls(
            first_name=str(first_name) if first_name else NOT_AVAILABLE,
            last_name=str(last_name) if last_name else NOT_AVAILABLE,
            reason=reason,
            updated_fields=updated_fields or [],
        )


class CurrentRecord(BaseModel):
    first_name: str
    last_name: str


class RowOutcome(BaseModel):
    """Terminal classification of one row."""

    kind: OutcomeKind
    summary: RecordSummary
    client_id: Optional[str] = None
    household_id: Optional[str] = None
    reconciled: bool = False  # reached the create/update/ambiguous decision


class ImportProgress(BaseModel):
    """Per-user progress snapshot published after every row."""

    total_records: int
    processed_records: int = 0
    created_count: int = 0
    updated_count: int = 0
    failed_count: int = 0
    duplicate_count: int = 0
    percentage: int = 0
    estimated_time_remaining: str = "Calculating..."
    current_record: Optional[CurrentRecord] = None
    status: ProgressStatus = ProgressStatus.IN_PROGRESS
    created_records_detail: list[RecordSummary] = Field(default_factory=list)
    updated_records_detail: list[RecordSummary] = Field(default_factory=list)
    failed_records_detail: list[RecordSummary] = Field(default_factory=list)
    duplicate_records_detail: list[RecordSummary] = Field(default_factory=list)
    import_report_id: Optional[str] = None
