"""IdentityResolver: create, update, or refuse a row based on existing clients.

Identity is the case-insensitive (first, last) name within the tenant's
households. It is not a stable key, so two or more matches are surfaced as
ambiguous and nothing is written.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from meridian.core.exceptions import AmbiguousMatchError
from meridian.core.protocols import IHouseholdStore
from meridian.importer.grouper import HouseholdGrouper
from meridian.models.household import Client, Household, normalize_name
from meridian.models.import_row import ImportField, ImportRow
from meridian.models.progress import OutcomeKind, RecordSummary, RowOutcome

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS: tuple[ImportField, ...] = (
    ImportField.MIDDLE_NAME,
    ImportField.DOB,
    ImportField.SSN,
    ImportField.TAX_FILING_STATUS,
    ImportField.MARITAL_STATUS,
    ImportField.MOBILE_NUMBER,
    ImportField.HOME_PHONE,
    ImportField.EMAIL,
    ImportField.HOME_ADDRESS,
)

CLIENT_FIELDS: tuple[ImportField, ...] = (
    ImportField.FIRST_NAME,
    ImportField.LAST_NAME,
) + UPDATABLE_FIELDS


def _values_equal(incoming: Any, current: Any) -> bool:
    if isinstance(incoming, date):
        return isinstance(current, date) and incoming == current
    if isinstance(incoming, str):
        return normalize_name(incoming) == normalize_name(current if isinstance(current, str) else None)
    return incoming == current


def diff_fields(existing: Client, row: ImportRow) -> dict[str, Any]:
    """Allow-listed fields whose incoming value differs from the stored client.

    Fields absent from the row are never compared.
    """
    changes: dict[str, Any] = {}
    for field in UPDATABLE_FIELDS:
        incoming = getattr(row, field.value)
        if incoming is None:
            continue
        if not _values_equal(incoming, getattr(existing, field.value)):
            changes[field.value] = incoming
    return changes


class IdentityResolver:
    def __init__(self, store: IHouseholdStore, owner_id: str, grouper: HouseholdGrouper) -> None:
        self._store = store
        self._owner_id = owner_id
        self._grouper = grouper

    async def reconcile(self, row: ImportRow) -> RowOutcome:
        matches = await self._store.find_clients_by_name(
            self._owner_id, row.first_name or "", row.last_name or ""
        )
        if not matches:
            return await self._create(row)
        if len(matches) == 1:
            return await self._update(matches[0], row)
        logger.warning("Ambiguous match: %d existing clients share the row's name", len(matches))
        raise AmbiguousMatchError(len(matches))

    async def _assign_head(self, household: Household, client_id: str) -> None:
        if household.head_of_client_id:
            return
        household.head_of_client_id = client_id
        await self._store.save_household(household)

    async def _create(self, row: ImportRow) -> RowOutcome:
        household = await self._grouper.resolve(row.external_household_id)
        client = Client(
            household_id=household.id,
            **{field.value: getattr(row, field.value) for field in CLIENT_FIELDS},
        )
        created = await self._store.create_client(client)
        await self._assign_head(household, created.id)
        return RowOutcome(
            kind=OutcomeKind.CREATED,
            summary=RecordSummary.for_names(row.first_name, row.last_name),
            client_id=created.id,
            household_id=household.id,
            reconciled=True,
        )

    async def _update(self, existing: Client, row: ImportRow) -> RowOutcome:
        changes = diff_fields(existing, row)
        if not changes:
            return RowOutcome(
                kind=OutcomeKind.UNCHANGED,
                summary=RecordSummary.for_names(row.first_name, row.last_name),
                client_id=existing.id,
                household_id=existing.household_id,
                reconciled=True,
            )

        updated = await self._store.update_client(existing.id, changes)
        household = await self._store.get_household(updated.household_id)
        if household is not None:
            await self._assign_head(household, updated.id)

        return RowOutcome(
            kind=OutcomeKind.UPDATED,
            summary=RecordSummary.for_names(
                row.first_name,
                row.last_name,
                updated_fields=[ImportField(name).label for name in changes],
            ),
            client_id=updated.id,
            household_id=updated.household_id,
            reconciled=True,
        )
