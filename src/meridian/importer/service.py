"""ImportService: starts, tracks and stops background import runs per user."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Sequence

from meridian.core.config import ImportConfig
from meridian.core.protocols import IHouseholdStore, IProgressChannel
from meridian.core.types import RawRow
from meridian.importer.driver import CancellationToken, ReconciliationDriver, check_structure
from meridian.models.import_row import ColumnMapping
from meridian.models.progress import ImportProgress

logger = logging.getLogger(__name__)


@dataclass
class _Run:
    task: asyncio.Task
    token: CancellationToken


class ImportService:
    """One in-flight run per user id.

    Starting a run for a user who already has one cancels the old run and
    waits for it to stop before the new run publishes anything, so the
    user's progress entry is only ever written by one run at a time.
    """

    def __init__(
        self,
        store: IHouseholdStore,
        channel: IProgressChannel,
        config: ImportConfig | None = None,
        driver: ReconciliationDriver | None = None,
    ) -> None:
        self._channel = channel
        self._driver = driver or ReconciliationDriver(store, channel, config)
        self._runs: dict[str, _Run] = {}
        self._start_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def is_running(self, user_id: str) -> bool:
        run = self._runs.get(user_id)
        return run is not None and not run.task.done()

    async def _execute(
        self,
        user_id: str,
        mapping: ColumnMapping,
        rows: Sequence[RawRow],
        token: CancellationToken,
        source_file_key: str | None,
    ) -> ImportProgress | None:
        try:
            return await self._driver.run(
                user_id, mapping, rows, token=token, source_file_key=source_file_key
            )
        except Exception:
            logger.exception("Import run for user %s aborted", user_id)
            return None

    async def start(
        self,
        user_id: str,
        mapping: ColumnMapping,
        rows: Sequence[RawRow],
        source_file_key: str | None = None,
    ) -> None:
        """Validate the request and schedule the run; returns before any row is processed.

        Raises:
            StructuralError: no rows or an empty mapping.
        """
        check_structure(mapping, rows)

        # held until the new run is registered; concurrent starts supersede in arrival order
        async with self._start_locks[user_id]:
            previous = self._runs.get(user_id)
            if previous is not None and not previous.task.done():
                logger.info("Superseding in-flight import for user %s", user_id)
                previous.token.cancel()
                await asyncio.wait([previous.task])

            token = CancellationToken()
            task = asyncio.create_task(
                self._execute(user_id, mapping, list(rows), token, source_file_key),
                name=f"import:{user_id}",
            )
            self._runs[user_id] = _Run(task=task, token=token)

    def cancel(self, user_id: str) -> bool:
        """Signal the user's in-flight run to stop before its next row."""
        run = self._runs.get(user_id)
        if run is None or run.task.done():
            return False
        run.token.cancel()
        return True

    async def wait(self, user_id: str) -> ImportProgress | None:
        run = self._runs.get(user_id)
        if run is None:
            return None
        return await run.task

    async def current(self, user_id: str) -> dict[str, Any] | None:
        return await self._channel.get_current(user_id)

    async def dismiss(self, user_id: str) -> None:
        await self._channel.clear(user_id)

    async def shutdown(self) -> None:
        runs = list(self._runs.values())
        for run in runs:
            run.token.cancel()
        if runs:
            await asyncio.gather(*(run.task for run in runs))
        self._runs.clear()
