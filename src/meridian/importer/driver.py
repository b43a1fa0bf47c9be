"""ReconciliationDriver: runs one import batch row by row.

Rows are processed strictly in input order. First-occurrence dedupe and
first-row-creates household grouping both depend on that order. Every row
yields exactly one outcome; no per-row failure aborts the run.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Callable, Sequence

from meridian.core.config import ImportConfig
from meridian.core.exceptions import (
    ImportCancelled,
    RowError,
    StoreError,
    StructuralError,
)
from meridian.core.protocols import IHouseholdStore, IProgressChannel
from meridian.core.types import RawRow
from meridian.importer.dedupe import BatchDeduplicator
from meridian.importer.grouper import HouseholdGrouper
from meridian.importer.normalizer import RowNormalizer
from meridian.importer.pipeline import PreparedRow, failed_outcome, prepare_row
from meridian.importer.progress import ProgressPublisher
from meridian.importer.resolver import IdentityResolver
from meridian.models.import_row import ColumnMapping
from meridian.models.progress import ImportProgress, OutcomeKind, RowOutcome
from meridian.models.report import ImportReport

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative stop signal, honoured between rows."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ImportCancelled("Import cancelled")


def check_structure(mapping: ColumnMapping | None, rows: Sequence[Any] | None) -> None:
    """Reject a request that cannot start a run at all."""
    if not rows:
        raise StructuralError("No data to import.")
    if mapping is None or len(mapping) == 0:
        raise StructuralError("No column mapping provided.")


class _RunContext:
    """Stage objects whose state lives for exactly one run."""

    def __init__(self, store: IHouseholdStore, owner_id: str, mapping: ColumnMapping, config: ImportConfig) -> None:
        self.normalizer = RowNormalizer(mapping, default_marital_status=config.default_marital_status)
        self.deduplicator = BatchDeduplicator()
        self.grouper = HouseholdGrouper(store, owner_id, code_prefix=config.household_code_prefix)
        self.resolver = IdentityResolver(store, owner_id, self.grouper)


class ReconciliationDriver:
    def __init__(
        self,
        store: IHouseholdStore,
        channel: IProgressChannel,
        config: ImportConfig | None = None,
        clock: Callable[[], float] | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._channel = channel
        self._config = config or ImportConfig()
        self._clock = clock
        self._today = today

    def _publisher(self, user_id: str, total: int) -> ProgressPublisher:
        if self._clock is None:
            return ProgressPublisher(self._channel, user_id, total)
        return ProgressPublisher(self._channel, user_id, total, clock=self._clock)

    async def _process(self, raw: RawRow, index: int, ctx: _RunContext, today: date) -> RowOutcome:
        try:
            prepared = prepare_row(raw, ctx.normalizer, ctx.deduplicator, today=today)
        except Exception as exc:
            logger.exception("Row %d could not be prepared", index)
            first, last = ctx.normalizer.names(raw)
            return failed_outcome(first, last, str(exc) or type(exc).__name__)
        if not isinstance(prepared, PreparedRow):
            if prepared.kind is OutcomeKind.FAILED:
                logger.warning("Row %d rejected: %s", index, prepared.summary.reason)
            return prepared

        row = prepared.row
        try:
            return await ctx.resolver.reconcile(row)
        except RowError as exc:
            logger.warning("Row %d failed: %s", index, exc.reason)
            return failed_outcome(row.first_name, row.last_name, exc.reason, reconciled=True)
        except StoreError as exc:
            logger.warning("Row %d store failure: %s", index, exc)
            return failed_outcome(row.first_name, row.last_name, str(exc))
        except Exception as exc:
            logger.exception("Row %d unexpected error", index)
            return failed_outcome(row.first_name, row.last_name, str(exc) or type(exc).__name__)

    async def _save_report(
        self, user_id: str, progress: ImportProgress, source_file_key: str | None
    ) -> str | None:
        report = ImportReport.from_progress(user_id, progress, source_file_key=source_file_key)
        try:
            saved = await self._store.save_import_report(report)
        except StoreError:
            logger.exception("Failed to save import report for user %s", user_id)
            return None
        return saved.id

    async def run(
        self,
        user_id: str,
        mapping: ColumnMapping,
        rows: Sequence[RawRow],
        token: CancellationToken | None = None,
        source_file_key: str | None = None,
    ) -> ImportProgress:
        """Process every row and publish progress after each one.

        Raises:
            StructuralError: no rows or an empty mapping; nothing is published.
        """
        check_structure(mapping, rows)
        token = token or CancellationToken()
        ctx = _RunContext(self._store, user_id, mapping, self._config)
        publisher = self._publisher(user_id, len(rows))
        today = self._today()

        logger.info("Import started for user %s: %d rows", user_id, len(rows))
        await publisher.start()

        try:
            for index, raw in enumerate(rows, start=1):
                token.raise_if_cancelled()
                outcome = await self._process(list(raw), index, ctx, today)
                await publisher.record(outcome)
        except ImportCancelled:
            return await publisher.cancel()

        report_id = await self._save_report(user_id, publisher.progress, source_file_key)
        return await publisher.complete(report_id=report_id, report_failed=report_id is None)
