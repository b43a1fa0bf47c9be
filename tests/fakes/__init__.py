"""Shared test doubles: re-export memory backends plus failure-injecting variants."""

from __future__ import annotations

from typing import Any

from meridian.core.exceptions import CacheError, StoreError
from meridian.models.household import Client
from meridian.models.report import ImportReport
from meridian.persistence.memory_backend import (
    MemoryFileStore,
    MemoryHouseholdStore,
    MemoryProgressChannel,
)


class FlakyHouseholdStore(MemoryHouseholdStore):
    """MemoryHouseholdStore that fails client writes for chosen first names."""

    def __init__(self, fail_first_names: set[str] | None = None, fail_reports: bool = False) -> None:
        super().__init__()
        self.fail_first_names = fail_first_names or set()
        self.fail_reports = fail_reports
        self.client_writes = 0

    async def create_client(self, client: Client) -> Client:
        if client.first_name in self.fail_first_names:
            raise StoreError(f"Write rejected for {client.first_name}")
        self.client_writes += 1
        return await super().create_client(client)

    async def update_client(self, client_id: str, fields: dict[str, Any]) -> Client:
        self.client_writes += 1
        return await super().update_client(client_id, fields)

    async def save_import_report(self, report: ImportReport) -> ImportReport:
        if self.fail_reports:
            raise StoreError("Report table unavailable")
        return await super().save_import_report(report)


class FlakyProgressChannel(MemoryProgressChannel):
    """MemoryProgressChannel whose publish raises CacheError on the chosen call numbers (1-based)."""

    def __init__(self, fail_on: set[int] | None = None) -> None:
        super().__init__()
        self.fail_on = fail_on or set()
        self.attempts = 0

    async def publish(self, user_id: str, event: str, payload: dict[str, Any]) -> None:
        self.attempts += 1
        if self.attempts in self.fail_on:
            raise CacheError("Redis connection reset")
        await super().publish(user_id, event, payload)


__all__ = [
    "FlakyHouseholdStore",
    "FlakyProgressChannel",
    "MemoryFileStore",
    "MemoryHouseholdStore",
    "MemoryProgressChannel",
]
