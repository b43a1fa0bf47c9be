"""Within-batch duplicate detection keyed on a hash of the normalized name.

The seen-set lives for one run only. First occurrence wins, so rows must be
fed in input order.
"""

from __future__ import annotations

import hashlib
import json

from meridian.models.household import normalize_name
from meridian.models.import_row import ImportRow


def identity_hash(first_name: str | None, last_name: str | None) -> str:
    """64-char SHA-256 hex digest over the normalized (first, last) pair."""
    canonical = json.dumps(
        {"firstName": normalize_name(first_name), "lastName": normalize_name(last_name)},
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class BatchDeduplicator:
    def __init__(self) -> None:
        self._seen: set[str] = set()

    def __len__(self) -> int:
        return len(self._seen)

    def check_and_add(self, row: ImportRow) -> bool:
        """Record the row's identity; return True when it was already seen this run."""
        key = identity_hash(row.first_name, row.last_name)
        if key in self._seen:
            return True
        self._seen.add(key)
        return False
