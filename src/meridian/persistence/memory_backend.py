"""In-memory backends for unit tests and local runs: dict-backed fakes."""

from __future__ import annotations

import asyncio
import copy
from collections import defaultdict
from typing import Any, AsyncIterator

from meridian.core.exceptions import StoreError
from meridian.models.household import Client, Household, normalize_name
from meridian.models.progress import IMPORT_PROGRESS_EVENT
from meridian.models.report import ImportReport


class MemoryHouseholdStore:
    """Dict-backed IHouseholdStore. Returns copies so callers never alias stored state."""

    def __init__(self) -> None:
        self._households: dict[str, Household] = {}
        self._clients: dict[str, Client] = {}
        self._reports: dict[str, ImportReport] = {}

    @property
    def households(self) -> list[Household]:
        return [h.model_copy() for h in self._households.values()]

    @property
    def clients(self) -> list[Client]:
        return [c.model_copy() for c in self._clients.values()]

    @property
    def reports(self) -> list[ImportReport]:
        return list(self._reports.values())

    async def find_clients_by_name(self, owner_id: str, first_name: str, last_name: str) -> list[Client]:
        first, last = normalize_name(first_name), normalize_name(last_name)
        matches = []
        for client in self._clients.values():
            household = self._households.get(client.household_id)
            if household is None or household.owner_id != owner_id:
                continue
            if normalize_name(client.first_name) == first and normalize_name(client.last_name) == last:
                matches.append(client.model_copy())
        return matches

    async def get_household(self, household_id: str) -> Household | None:
        household = self._households.get(household_id)
        return household.model_copy() if household else None

    async def find_household_by_external_id(self, owner_id: str, external_id: str) -> Household | None:
        for household in self._households.values():
            if household.owner_id == owner_id and household.external_household_id == external_id:
                return household.model_copy()
        return None

    async def create_household(self, household: Household) -> Household:
        if household.id in self._households:
            raise StoreError(f"Household {household.id!r} already exists")
        self._households[household.id] = household.model_copy()
        return household

    async def save_household(self, household: Household) -> Household:
        if household.id not in self._households:
            raise StoreError(f"Household {household.id!r} not found")
        self._households[household.id] = household.model_copy()
        return household

    async def create_client(self, client: Client) -> Client:
        if client.household_id not in self._households:
            raise StoreError(f"Household {client.household_id!r} not found")
        self._clients[client.id] = client.model_copy()
        return client

    async def update_client(self, client_id: str, fields: dict[str, Any]) -> Client:
        existing = self._clients.get(client_id)
        if existing is None:
            raise StoreError(f"Client {client_id!r} not found")
        updated = existing.model_copy(update=fields)
        self._clients[client_id] = updated
        return updated.model_copy()

    async def save_import_report(self, report: ImportReport) -> ImportReport:
        self._reports[report.id] = report.model_copy()
        return report


class MemoryProgressChannel:
    """IProgressChannel over a dict of snapshots with per-user locks and subscriber queues."""

    def __init__(self) -> None:
        self._snapshots: dict[str, dict[str, Any]] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._subscribers: defaultdict[str, set[asyncio.Queue]] = defaultdict(set)
        self.published: list[tuple[str, str, dict[str, Any]]] = []

    def events_for(self, user_id: str) -> list[tuple[str, dict[str, Any]]]:
        return [(event, payload) for uid, event, payload in self.published if uid == user_id]

    async def publish(self, user_id: str, event: str, payload: dict[str, Any]) -> None:
        snapshot = copy.deepcopy(payload)
        async with self._locks[user_id]:
            self._snapshots[user_id] = snapshot
            self.published.append((user_id, event, snapshot))
            for queue in self._subscribers[user_id]:
                queue.put_nowait((event, copy.deepcopy(snapshot)))

    async def get_current(self, user_id: str) -> dict[str, Any] | None:
        async with self._locks[user_id]:
            snapshot = self._snapshots.get(user_id)
            return copy.deepcopy(snapshot) if snapshot is not None else None

    async def clear(self, user_id: str) -> None:
        async with self._locks[user_id]:
            self._snapshots.pop(user_id, None)

    async def subscribe(self, user_id: str) -> AsyncIterator[tuple[str, dict[str, Any]]]:
        queue: asyncio.Queue = asyncio.Queue()
        try:
            async with self._locks[user_id]:
                self._subscribers[user_id].add(queue)
                snapshot = self._snapshots.get(user_id)
                if snapshot is not None:
                    queue.put_nowait((IMPORT_PROGRESS_EVENT, copy.deepcopy(snapshot)))
            while True:
                yield await queue.get()
        finally:
            self._subscribers[user_id].discard(queue)


class MemoryFileStore:
    """Dict-backed IFileStore for unit tests."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def read(self, path: str) -> bytes:
        try:
            return self._files[path]
        except KeyError:
            raise StoreError(f"File {path!r} not found") from None

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        self._files[path] = data
        return path

    def delete(self, path: str) -> None:
        self._files.pop(path, None)
