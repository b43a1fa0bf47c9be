"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from typing import NamedTuple

from meridian.core.config import AppSettings
from meridian.core.protocols import IFileStore, IHouseholdStore, IProgressChannel
from meridian.persistence.dynamodb_backend import DynamoDBHouseholdStore
from meridian.persistence.memory_backend import (
    MemoryFileStore,
    MemoryHouseholdStore,
    MemoryProgressChannel,
)
from meridian.persistence.redis_backend import RedisProgressChannel
from meridian.persistence.s3_backend import S3FileStore


class Persistence(NamedTuple):
    store: IHouseholdStore
    channel: IProgressChannel
    file_store: IFileStore


def create_persistence(settings: AppSettings | None = None) -> Persistence:
    """Create wired-up persistence backends from application settings.

    ``backend="memory"`` gives process-local dict backends; ``"aws"`` gives
    DynamoDB, Redis and S3.
    """
    if settings is None:
        settings = AppSettings()

    if settings.backend == "memory":
        return Persistence(MemoryHouseholdStore(), MemoryProgressChannel(), MemoryFileStore())

    channel = RedisProgressChannel(
        host=settings.redis.host,
        port=settings.redis.port,
        db=settings.redis.db,
        key_prefix=settings.redis.key_prefix,
        ttl_seconds=settings.redis.progress_ttl_seconds,
    )

    store = DynamoDBHouseholdStore(
        table_name=settings.dynamodb.table_name,
        table_suffix=settings.dynamodb.table_suffix,
        region=settings.dynamodb.region,
        endpoint_url=settings.dynamodb.endpoint_url,
    )

    file_store = S3FileStore(
        bucket=settings.s3.bucket,
        region=settings.s3.region,
        endpoint_url=settings.s3.endpoint_url,
    )

    return Persistence(store, channel, file_store)
