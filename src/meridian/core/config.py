"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class DynamoDBConfig(BaseSettings):
    """DynamoDB household/client document store configuration."""

    model_config = {"env_prefix": "MERIDIAN_DYNAMO_"}

    table_name: str = "meridian-households"
    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class RedisConfig(BaseSettings):
    """Redis progress channel configuration."""

    model_config = {"env_prefix": "MERIDIAN_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    key_prefix: str = "meridian:import"
    progress_ttl_seconds: int = 86400  # snapshot survives a day unless dismissed


class S3Config(BaseSettings):
    """S3 storage for uploaded spreadsheets."""

    model_config = {"env_prefix": "MERIDIAN_S3_"}

    bucket: str = "meridian-import-uploads"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class ImportConfig(BaseSettings):
    """Household import behaviour."""

    model_config = {"env_prefix": "MERIDIAN_IMPORT_"}

    default_marital_status: str = "Single"
    household_code_prefix: str = "HH"


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "MERIDIAN_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    backend: Literal["memory", "aws"] = "memory"

    dynamodb: DynamoDBConfig = DynamoDBConfig()
    redis: RedisConfig = RedisConfig()
    s3: S3Config = S3Config()
    imports: ImportConfig = ImportConfig()
