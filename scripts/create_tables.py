"""Create the household DynamoDB table and its indexes, optionally with sample data.

Usage:
    python scripts/create_tables.py --endpoint-url http://localhost:4566
    python scripts/create_tables.py --table-suffix -dev --seed-owner advisor-1
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import date
from typing import Any

import boto3

from meridian.models.household import Client, Household
from meridian.persistence.dynamodb_backend import (
    CLIENT_NAME_INDEX,
    EXTERNAL_HOUSEHOLD_INDEX,
    DynamoDBHouseholdStore,
)

TABLE_NAME = "meridian-households"

_INDEXES = ((CLIENT_NAME_INDEX, "GSI1PK"), (EXTERNAL_HOUSEHOLD_INDEX, "GSI2PK"))


def create_tables(ddb: Any, table_name: str = TABLE_NAME, suffix: str = "") -> bool:
    """Create the single household table with both GSIs. Returns False if it already exists."""
    client = ddb.meta.client
    full_name = f"{table_name}{suffix}"
    if full_name in client.list_tables().get("TableNames", []):
        print(f"  Table {full_name} already exists, skipping")
        return False

    client.create_table(
        TableName=full_name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
            {"AttributeName": "GSI1PK", "AttributeType": "S"},
            {"AttributeName": "GSI2PK", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": index_name,
                "KeySchema": [{"AttributeName": key_attr, "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
            for index_name, key_attr in _INDEXES
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    print(f"  Created table {full_name}")
    return True


async def _seed(store: DynamoDBHouseholdStore, owner_id: str) -> int:
    household = await store.create_household(
        Household(owner_id=owner_id, external_household_id="SAMPLE-001")
    )
    members = [
        Client(household_id=household.id, first_name="Jane", last_name="Sample",
               dob=date(1980, 4, 12), marital_status="Married"),
        Client(household_id=household.id, first_name="John", last_name="Sample",
               dob=date(1978, 9, 3), marital_status="Married"),
    ]
    for member in members:
        await store.create_client(member)
    household.head_of_client_id = members[0].id
    await store.save_household(household)
    return len(members)


def seed_sample_households(store: DynamoDBHouseholdStore, owner_id: str) -> int:
    """Write one sample household with two clients for ``owner_id``."""
    count = asyncio.run(_seed(store, owner_id))
    print(f"  Seeded 1 household with {count} clients for owner {owner_id}")
    return count


def main() -> None:
    parser = argparse.ArgumentParser(description="Create DynamoDB tables for Meridian")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="us-east-1", help="AWS region")
    parser.add_argument("--seed-owner", default=None, help="Owner id to seed a sample household for")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.table_suffix)

    if args.seed_owner:
        print("Seeding data...")
        store = DynamoDBHouseholdStore(
            table_suffix=args.table_suffix, region=args.region, endpoint_url=args.endpoint_url,
        )
        seed_sample_households(store, args.seed_owner)

    print("Done!")


if __name__ == "__main__":
    main()
