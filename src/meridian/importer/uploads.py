"""Uploaded spreadsheet handling: scoped read-then-delete and CSV parsing."""

from __future__ import annotations

import csv
import io
import logging
from contextlib import contextmanager
from typing import Iterator

from meridian.core.protocols import IFileStore

logger = logging.getLogger(__name__)


@contextmanager
def staged_upload(file_store: IFileStore, key: str) -> Iterator[bytes]:
    """Yield the uploaded object's bytes and delete the object on exit.

    The object is deleted whether reading, parsing or the caller's block
    succeeds or fails.
    """
    try:
        yield file_store.read(key)
    finally:
        try:
            file_store.delete(key)
        except Exception:
            logger.exception("Failed to delete staged upload %s", key)


def parse_csv_rows(data: bytes, has_header: bool = True) -> tuple[list[str], list[list[str]]]:
    """Split CSV bytes into ``(header, rows)``; blank lines are dropped."""
    text = data.decode("utf-8-sig")
    records = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    if has_header and records:
        return records[0], records[1:]
    return [], records
