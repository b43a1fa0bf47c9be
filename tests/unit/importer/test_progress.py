"""Tests for ProgressPublisher arithmetic and events."""

from __future__ import annotations

import asyncio

import pytest

from meridian.importer.progress import ProgressPublisher, format_eta, rounded_percentage
from meridian.models.progress import (
    IMPORT_COMPLETE_EVENT,
    IMPORT_PROGRESS_EVENT,
    OutcomeKind,
    RecordSummary,
    RowOutcome,
)
from tests.fakes import FlakyProgressChannel, MemoryProgressChannel

USER = "advisor-1"


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _outcome(kind: OutcomeKind, reconciled: bool = True, first: str = "Jane") -> RowOutcome:
    return RowOutcome(kind=kind, summary=RecordSummary.for_names(first, "Doe"), reconciled=reconciled)


@pytest.fixture
def channel():
    return MemoryProgressChannel()


class TestArithmetic:
    @pytest.mark.parametrize("total", [1, 2, 3, 7, 9, 200, 333])
    def test_percentage_matches_rounding_and_ends_at_100(self, total):
        for k in range(total + 1):
            expected = int(100 * k / total + 0.5)
            assert rounded_percentage(k, total) == expected
        assert rounded_percentage(total, total) == 100

    def test_eta_linear_extrapolation(self):
        assert format_eta(elapsed=10.0, processed=2, total=6) == "20 seconds"

    def test_eta_completed_on_last_row(self):
        assert format_eta(elapsed=10.0, processed=6, total=6) == "Completed"


class TestRecord:
    def test_counts_and_details(self, channel):
        publisher = ProgressPublisher(channel, USER, total_records=4, clock=FakeClock())

        async def scenario():
            await publisher.start()
            await publisher.record(_outcome(OutcomeKind.CREATED))
            await publisher.record(_outcome(OutcomeKind.UNCHANGED))
            await publisher.record(_outcome(OutcomeKind.DUPLICATE, reconciled=False))
            return await publisher.record(_outcome(OutcomeKind.FAILED, reconciled=False, first=""))

        progress = asyncio.run(scenario())
        assert progress.processed_records == 4
        assert (progress.created_count, progress.updated_count) == (1, 0)
        assert (progress.failed_count, progress.duplicate_count) == (1, 1)
        assert progress.failed_records_detail[0].first_name == "N/A"
        assert progress.percentage == 100
        assert progress.estimated_time_remaining == "Completed"

    def test_current_record_cleared_for_rejected_rows(self, channel):
        publisher = ProgressPublisher(channel, USER, total_records=3, clock=FakeClock())

        async def scenario():
            created = await publisher.record(_outcome(OutcomeKind.CREATED))
            current_after_created = created.current_record
            rejected = await publisher.record(_outcome(OutcomeKind.FAILED, reconciled=False))
            return current_after_created, rejected.current_record

        after_created, after_rejected = asyncio.run(scenario())
        assert after_created.first_name == "Jane"
        assert after_rejected is None

    def test_publishes_after_every_row(self, channel):
        clock = FakeClock()
        publisher = ProgressPublisher(channel, USER, total_records=2, clock=clock)

        async def scenario():
            await publisher.start()
            clock.now += 3
            await publisher.record(_outcome(OutcomeKind.CREATED))

        asyncio.run(scenario())
        events = channel.events_for(USER)
        assert [e for e, _ in events] == [IMPORT_PROGRESS_EVENT, IMPORT_PROGRESS_EVENT]
        last = events[-1][1]
        assert last["percentage"] == 50
        assert last["estimated_time_remaining"] == "3 seconds"
        assert last["status"] == "in-progress"


class TestTerminalEvents:
    def test_complete_sets_status_and_report(self, channel):
        publisher = ProgressPublisher(channel, USER, total_records=1, clock=FakeClock())

        async def scenario():
            await publisher.record(_outcome(OutcomeKind.CREATED))
            await publisher.complete(report_id="rep-1")
            return await channel.get_current(USER)

        snapshot = asyncio.run(scenario())
        event, payload = channel.events_for(USER)[-1]
        assert event == IMPORT_COMPLETE_EVENT
        assert payload == snapshot
        assert snapshot["status"] == "completed"
        assert snapshot["percentage"] == 100
        assert snapshot["import_report_id"] == "rep-1"

    def test_complete_flags_report_failure(self, channel):
        publisher = ProgressPublisher(channel, USER, total_records=1, clock=FakeClock())
        progress = asyncio.run(publisher.complete(report_failed=True))
        assert progress.estimated_time_remaining == "Completed with errors"

    def test_cancel_publishes_cancelled_completion(self, channel):
        publisher = ProgressPublisher(channel, USER, total_records=5, clock=FakeClock())
        progress = asyncio.run(publisher.cancel())
        assert progress.status == "cancelled"
        event, payload = channel.events_for(USER)[-1]
        assert event == IMPORT_COMPLETE_EVENT
        assert payload["status"] == "cancelled"

    def test_publish_failure_is_absorbed_and_next_snapshot_is_complete(self):
        channel = FlakyProgressChannel(fail_on={1})
        publisher = ProgressPublisher(channel, USER, total_records=2, clock=FakeClock())

        async def scenario():
            await publisher.record(_outcome(OutcomeKind.CREATED, first="Jane"))
            await publisher.record(_outcome(OutcomeKind.CREATED, first="John"))
            return await channel.get_current(USER)

        snapshot = asyncio.run(scenario())
        assert channel.attempts == 2
        assert snapshot["processed_records"] == 2
        assert [r["first_name"] for r in snapshot["created_records_detail"]] == ["Jane", "John"]
