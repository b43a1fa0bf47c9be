"""Meridian exception hierarchy."""

from __future__ import annotations


class MeridianError(Exception):
    """Base exception for all Meridian errors."""


class StructuralError(MeridianError):
    """Import request is unusable as a whole (no rows, no mapping)."""


class RowError(MeridianError):
    """A single import row could not be reconciled.

    Row errors are recovered by the driver: the row is recorded as failed and
    the run continues.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class RequiredFieldError(RowError):
    """First or last name is missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing fields: {', '.join(missing)}")


class RecordValidationError(RowError):
    """One or more field rules were violated."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(" ".join(violations))


class StatusNormalizationError(RowError):
    """Free-text tax filing or marital status is not recognised."""

    def __init__(self, field: str, value: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value}")


class AmbiguousMatchError(RowError):
    """More than one existing client matches the row's name."""

    REASON = "Multiple clients with the same first and last name exist. Manual resolution required."

    def __init__(self, match_count: int) -> None:
        self.match_count = match_count
        super().__init__(self.REASON)


class StoreError(MeridianError):
    """Household/client document store operation failed."""


class CacheError(MeridianError):
    """Progress channel (Redis) operation failed."""


class ImportCancelled(MeridianError):
    """The run's cancellation token fired between rows."""
