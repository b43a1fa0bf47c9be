"""DynamoDB backend implementing IHouseholdStore on a single table.

Item layout (``PK``/``SK``):

- ``HOUSEHOLD#<id>`` / ``HOUSEHOLD``; sparse ``GSI2PK = OWNER#<owner>#EXT#<external id>``
- ``CLIENT#<id>`` / ``CLIENT``; ``GSI1PK = OWNER#<owner>#NAME#<first>#<last>`` (normalized)
- ``USER#<user>`` / ``REPORT#<created_at>#<id>``

boto3 is blocking, so every call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any

import boto3
from botocore.exceptions import ClientError

from meridian.core.exceptions import StoreError
from meridian.models.household import Client, Household, normalize_name
from meridian.models.report import ImportReport

logger = logging.getLogger(__name__)

CLIENT_NAME_INDEX = "ByClientName"
EXTERNAL_HOUSEHOLD_INDEX = "ByExternalHousehold"

_KEY_ATTRIBUTES = ("PK", "SK", "GSI1PK", "GSI2PK", "entity")


def client_name_key(owner_id: str, first_name: str, last_name: str) -> str:
    return f"OWNER#{owner_id}#NAME#{normalize_name(first_name)}#{normalize_name(last_name)}"


def external_household_key(owner_id: str, external_id: str) -> str:
    return f"OWNER#{owner_id}#EXT#{external_id}"


def _to_attributes(data: dict[str, Any]) -> dict[str, Any]:
    """Drop None values; DynamoDB has no use for absent optional fields."""
    return {k: v for k, v in data.items() if v is not None}


def _strip_keys(item: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in item.items() if k not in _KEY_ATTRIBUTES}


def _household_item(household: Household) -> dict[str, Any]:
    item = _to_attributes(household.model_dump(mode="json"))
    item["total_account_value"] = household.total_account_value
    item.update(PK=f"HOUSEHOLD#{household.id}", SK="HOUSEHOLD", entity="household")
    if household.external_household_id:
        item["GSI2PK"] = external_household_key(household.owner_id, household.external_household_id)
    return item


def _client_item(client: Client, owner_id: str) -> dict[str, Any]:
    item = _to_attributes(client.model_dump(mode="json"))
    item.update(
        PK=f"CLIENT#{client.id}",
        SK="CLIENT",
        entity="client",
        owner_id=owner_id,
        GSI1PK=client_name_key(owner_id, client.first_name, client.last_name),
    )
    return item


def _client_from_item(item: dict[str, Any]) -> Client:
    data = _strip_keys(item)
    data.pop("owner_id", None)
    return Client.model_validate(data)


def _household_from_item(item: dict[str, Any]) -> Household:
    return Household.model_validate(_strip_keys(item))


class DynamoDBHouseholdStore:
    """Production IHouseholdStore backed by DynamoDB."""

    def __init__(self, table_name: str = "meridian-households", table_suffix: str = "",
                 region: str = "us-east-1", endpoint_url: str | None = None) -> None:
        self._table_name = f"{table_name}{table_suffix}"
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)
        self._table = self._ddb.Table(self._table_name)

    @property
    def table_name(self) -> str:
        return self._table_name

    # ---- blocking helpers (run via asyncio.to_thread) ----

    def _get_item(self, pk: str, sk: str) -> dict[str, Any] | None:
        try:
            resp = self._table.get_item(Key={"PK": pk, "SK": sk})
        except ClientError as exc:
            raise StoreError(f"DynamoDB get_item failed for {pk!r}: {exc}") from exc
        return resp.get("Item")

    def _put_item(self, item: dict[str, Any], must_not_exist: bool = False) -> None:
        kwargs: dict[str, Any] = {"Item": item}
        if must_not_exist:
            kwargs["ConditionExpression"] = "attribute_not_exists(PK)"
        try:
            self._table.put_item(**kwargs)
        except ClientError as exc:
            raise StoreError(f"DynamoDB put_item failed for {item['PK']!r}: {exc}") from exc

    def _query_index(self, index_name: str, key_attr: str, value: str) -> list[dict[str, Any]]:
        """Query all items with a given index partition key, following pagination."""
        kwargs: dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": f"{key_attr} = :pk",
            "ExpressionAttributeValues": {":pk": value},
        }
        items: list[dict[str, Any]] = []
        try:
            while True:
                resp = self._table.query(**kwargs)
                items.extend(resp.get("Items", []))
                last_key = resp.get("LastEvaluatedKey")
                if not last_key:
                    return items
                kwargs["ExclusiveStartKey"] = last_key
        except ClientError as exc:
            raise StoreError(f"DynamoDB query on {index_name} failed: {exc}") from exc

    def _update_client(self, client_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        names: dict[str, str] = {}
        values: dict[str, Any] = {}
        clauses: list[str] = []
        for i, (field, value) in enumerate(fields.items()):
            names[f"#f{i}"] = field
            values[f":v{i}"] = value.isoformat() if isinstance(value, date) else value
            clauses.append(f"#f{i} = :v{i}")
        try:
            resp = self._table.update_item(
                Key={"PK": f"CLIENT#{client_id}", "SK": "CLIENT"},
                UpdateExpression="SET " + ", ".join(clauses),
                ConditionExpression="attribute_exists(PK)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise StoreError(f"Client {client_id!r} not found") from exc
            raise StoreError(f"DynamoDB update_item failed for client {client_id!r}: {exc}") from exc
        return resp["Attributes"]

    # ---- IHouseholdStore methods ----

    async def find_clients_by_name(self, owner_id: str, first_name: str, last_name: str) -> list[Client]:
        items = await asyncio.to_thread(
            self._query_index, CLIENT_NAME_INDEX, "GSI1PK", client_name_key(owner_id, first_name, last_name)
        )
        return [_client_from_item(item) for item in items]

    async def get_household(self, household_id: str) -> Household | None:
        item = await asyncio.to_thread(self._get_item, f"HOUSEHOLD#{household_id}", "HOUSEHOLD")
        return _household_from_item(item) if item else None

    async def find_household_by_external_id(self, owner_id: str, external_id: str) -> Household | None:
        items = await asyncio.to_thread(
            self._query_index, EXTERNAL_HOUSEHOLD_INDEX, "GSI2PK", external_household_key(owner_id, external_id)
        )
        if len(items) > 1:
            logger.warning("External household id %r is not unique for owner %s", external_id, owner_id)
        return _household_from_item(items[0]) if items else None

    async def create_household(self, household: Household) -> Household:
        await asyncio.to_thread(self._put_item, _household_item(household), True)
        return household

    async def save_household(self, household: Household) -> Household:
        await asyncio.to_thread(self._put_item, _household_item(household))
        return household

    async def create_client(self, client: Client) -> Client:
        household = await self.get_household(client.household_id)
        if household is None:
            raise StoreError(f"Household {client.household_id!r} not found")
        await asyncio.to_thread(self._put_item, _client_item(client, household.owner_id), True)
        return client

    async def update_client(self, client_id: str, fields: dict[str, Any]) -> Client:
        item = await asyncio.to_thread(self._update_client, client_id, fields)
        return _client_from_item(item)

    async def save_import_report(self, report: ImportReport) -> ImportReport:
        item = report.model_dump(mode="json")
        item.update(
            PK=f"USER#{report.user_id}",
            SK=f"REPORT#{item['created_at']}#{report.id}",
            entity="import_report",
        )
        await asyncio.to_thread(self._put_item, _to_attributes(item))
        return report
