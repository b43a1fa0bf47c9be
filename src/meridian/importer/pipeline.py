"""Pure per-row stages ahead of reconciliation.

``prepare_row`` turns one raw row into either a ``PreparedRow`` ready for the
store or a terminal ``RowOutcome`` (failed or duplicate). It performs no I/O,
so every rejection path can be tested without a backend.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Union

from pydantic import BaseModel

from meridian.core.exceptions import RowError
from meridian.core.types import RawRow
from meridian.importer.dedupe import BatchDeduplicator
from meridian.importer.normalizer import RowNormalizer
from meridian.importer.status import normalize_statuses
from meridian.importer.validator import check_required_fields, ensure_valid
from meridian.models.import_row import ImportRow
from meridian.models.progress import OutcomeKind, RecordSummary, RowOutcome

DUPLICATE_REASON = "Duplicate record in uploaded data."


class PreparedRow(BaseModel):
    """A normalized, validated, first-in-batch row."""

    row: ImportRow


def failed_outcome(first_name: Any, last_name: Any, reason: str, reconciled: bool = False) -> RowOutcome:
    return RowOutcome(
        kind=OutcomeKind.FAILED,
        summary=RecordSummary.for_names(first_name, last_name, reason=reason),
        reconciled=reconciled,
    )


def prepare_row(
    raw: RawRow,
    normalizer: RowNormalizer,
    deduplicator: BatchDeduplicator,
    today: date | None = None,
) -> Union[PreparedRow, RowOutcome]:
    row = normalizer.normalize(raw)
    try:
        check_required_fields(row)
        ensure_valid(row, today=today)
        row = normalize_statuses(row)
    except RowError as exc:
        return failed_outcome(row.first_name, row.last_name, exc.reason)

    if deduplicator.check_and_add(row):
        return RowOutcome(
            kind=OutcomeKind.DUPLICATE,
            summary=RecordSummary.for_names(row.first_name, row.last_name, reason=DUPLICATE_REASON),
        )
    return PreparedRow(row=row)
