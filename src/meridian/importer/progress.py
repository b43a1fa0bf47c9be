"""ProgressPublisher: per-row progress snapshot and completion event for one run."""

from __future__ import annotations

import logging
import time
from typing import Callable

from meridian.core.exceptions import CacheError
from meridian.core.protocols import IProgressChannel
from meridian.models.progress import (
    IMPORT_COMPLETE_EVENT,
    IMPORT_PROGRESS_EVENT,
    CurrentRecord,
    ImportProgress,
    OutcomeKind,
    ProgressStatus,
    RowOutcome,
)

logger = logging.getLogger(__name__)

ETA_COMPLETED = "Completed"
ETA_COMPLETED_WITH_ERRORS = "Completed with errors"
ETA_CANCELLED = "Cancelled"


def rounded_percentage(processed: int, total: int) -> int:
    """``round(100 * processed / total)`` with halves rounded up, in integers."""
    if total <= 0:
        return 100
    return (200 * processed + total) // (2 * total)


def format_eta(elapsed: float, processed: int, total: int) -> str:
    if processed >= total:
        return ETA_COMPLETED
    remaining = (elapsed / processed) * (total - processed)
    return f"{int(remaining + 0.5)} seconds"


class ProgressPublisher:
    """Owns the ImportProgress snapshot of one run and pushes it after every row.

    Counters move monotonically: each recorded outcome bumps
    ``processed_records`` and at most one of the created/updated/failed/
    duplicate counters. Unchanged rows only count as processed.
    """

    def __init__(
        self,
        channel: IProgressChannel,
        user_id: str,
        total_records: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._channel = channel
        self._user_id = user_id
        self._clock = clock
        self._started_at = clock()
        self._progress = ImportProgress(total_records=total_records)

    @property
    def progress(self) -> ImportProgress:
        return self._progress

    async def _publish(self, event: str) -> None:
        # every payload is a full snapshot, so a dropped one is superseded by the next
        try:
            await self._channel.publish(self._user_id, event, self._progress.model_dump(mode="json"))
        except CacheError:
            logger.exception("Failed to publish %s for user %s", event, self._user_id)

    async def start(self) -> None:
        """Publish the initial in-progress snapshot, replacing any previous run's."""
        await self._publish(IMPORT_PROGRESS_EVENT)

    async def record(self, outcome: RowOutcome) -> ImportProgress:
        p = self._progress
        p.processed_records += 1

        if outcome.kind is OutcomeKind.CREATED:
            p.created_count += 1
            p.created_records_detail.append(outcome.summary)
        elif outcome.kind is OutcomeKind.UPDATED:
            p.updated_count += 1
            p.updated_records_detail.append(outcome.summary)
        elif outcome.kind is OutcomeKind.FAILED:
            p.failed_count += 1
            p.failed_records_detail.append(outcome.summary)
        elif outcome.kind is OutcomeKind.DUPLICATE:
            p.duplicate_count += 1
            p.duplicate_records_detail.append(outcome.summary)

        p.percentage = rounded_percentage(p.processed_records, p.total_records)
        p.estimated_time_remaining = format_eta(
            self._clock() - self._started_at, p.processed_records, p.total_records
        )
        if outcome.reconciled:
            p.current_record = CurrentRecord(
                first_name=outcome.summary.first_name,
                last_name=outcome.summary.last_name,
            )
        else:
            p.current_record = None

        await self._publish(IMPORT_PROGRESS_EVENT)
        return p

    async def complete(self, report_id: str | None = None, report_failed: bool = False) -> ImportProgress:
        p = self._progress
        p.status = ProgressStatus.COMPLETED
        p.percentage = 100
        p.estimated_time_remaining = ETA_COMPLETED_WITH_ERRORS if report_failed else ETA_COMPLETED
        p.import_report_id = report_id
        await self._publish(IMPORT_COMPLETE_EVENT)
        logger.info(
            "Import finished for user %s: %d created, %d updated, %d failed, %d duplicate",
            self._user_id,
            p.created_count,
            p.updated_count,
            p.failed_count,
            p.duplicate_count,
        )
        return p

    async def cancel(self) -> ImportProgress:
        p = self._progress
        p.status = ProgressStatus.CANCELLED
        p.estimated_time_remaining = ETA_CANCELLED
        p.current_record = None
        await self._publish(IMPORT_COMPLETE_EVENT)
        logger.info(
            "Import cancelled for user %s after %d of %d rows",
            self._user_id,
            p.processed_records,
            p.total_records,
        )
        return p
