"""Unit tests for S3FileStore using moto."""

from __future__ import annotations

import boto3
import pytest
from moto import mock_aws

from meridian.core.exceptions import StoreError
from meridian.persistence.s3_backend import S3FileStore

BUCKET = "test-import-uploads"


@pytest.fixture
def s3_backend():
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield S3FileStore(bucket=BUCKET, region="us-east-1")


class TestWrite:
    def test_write_returns_path(self, s3_backend):
        result = s3_backend.write("uploads/file.csv", b"a,b,c", content_type="text/csv")
        assert result == "uploads/file.csv"

    def test_write_stores_bytes(self, s3_backend):
        s3_backend.write("test/data.bin", b"\x00\x01\x02")
        assert s3_backend.read("test/data.bin") == b"\x00\x01\x02"


class TestRead:
    def test_read_missing_key_raises_store_error(self, s3_backend):
        with pytest.raises(StoreError):
            s3_backend.read("does/not/exist.csv")


class TestDelete:
    def test_delete_removes_object(self, s3_backend):
        s3_backend.write("uploads/once.csv", b"data")
        s3_backend.delete("uploads/once.csv")
        with pytest.raises(StoreError):
            s3_backend.read("uploads/once.csv")

    def test_delete_missing_key_is_noop(self, s3_backend):
        s3_backend.delete("uploads/never.csv")  # should not raise
