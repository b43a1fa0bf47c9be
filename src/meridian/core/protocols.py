"""Protocol interfaces for all Meridian abstractions.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Protocol, runtime_checkable

from meridian.core.types import JsonDict
from meridian.models.household import Client, Household
from meridian.models.report import ImportReport


# ---------------------------------------------------------------------------
# Persistence: Household Document Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IHouseholdStore(Protocol):
    """Tenant-scoped household/client document store."""

    async def find_clients_by_name(
        self, owner_id: str, first_name: str, last_name: str
    ) -> list[Client]: ...

    async def get_household(self, household_id: str) -> Household | None: ...

    async def find_household_by_external_id(
        self, owner_id: str, external_id: str
    ) -> Household | None: ...

    async def create_household(self, household: Household) -> Household: ...

    async def save_household(self, household: Household) -> Household: ...

    async def create_client(self, client: Client) -> Client: ...

    async def update_client(self, client_id: str, fields: dict[str, Any]) -> Client: ...

    async def save_import_report(self, report: ImportReport) -> ImportReport: ...


# ---------------------------------------------------------------------------
# Progress Channel
# ---------------------------------------------------------------------------

@runtime_checkable
class IProgressChannel(Protocol):
    """Per-user progress snapshot store plus event fan-out."""

    async def publish(self, user_id: str, event: str, payload: JsonDict) -> None: ...

    async def get_current(self, user_id: str) -> JsonDict | None: ...

    async def clear(self, user_id: str) -> None: ...

    def subscribe(self, user_id: str) -> AsyncIterator[tuple[str, JsonDict]]:
        """Yield the current snapshot (as importProgress) if any, then every later event."""
        ...


# ---------------------------------------------------------------------------
# Persistence: File Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IFileStore(Protocol):
    """S3-compatible storage for uploaded spreadsheets."""

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str: ...

    def delete(self, path: str) -> None: ...
