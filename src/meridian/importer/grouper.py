"""HouseholdGrouper: external household id -> Household, one per id per run."""

from __future__ import annotations

import logging

from meridian.core.protocols import IHouseholdStore
from meridian.models.household import Household, generate_household_code

logger = logging.getLogger(__name__)


class HouseholdGrouper:
    """Resolves or creates the household a new client belongs to.

    Rows sharing a non-empty external id land in the same household: the
    in-run cache is consulted first, then the store. Rows without an id
    always get a fresh household.
    """

    def __init__(self, store: IHouseholdStore, owner_id: str, code_prefix: str = "HH") -> None:
        self._store = store
        self._owner_id = owner_id
        self._code_prefix = code_prefix
        self._cache: dict[str, Household] = {}

    @property
    def cached_ids(self) -> list[str]:
        return list(self._cache)

    async def _create(self, external_id: str | None) -> Household:
        household = Household(
            owner_id=self._owner_id,
            external_household_id=external_id,
            household_code=generate_household_code(self._code_prefix),
        )
        created = await self._store.create_household(household)
        logger.debug("Created household %s (external id %r)", created.household_code, external_id)
        return created

    async def resolve(self, external_id: str | None) -> Household:
        key = external_id.strip() if external_id else ""
        if not key:
            return await self._create(None)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        household = await self._store.find_household_by_external_id(self._owner_id, key)
        if household is None:
            household = await self._create(key)
        self._cache[key] = household
        return household
