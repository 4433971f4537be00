"""Tests for the cursor-paginated reader."""

import asyncio

import pytest
from conftest import BrokenStore, FakeHealthStore, at, steps

from healthbridge.core.exceptions import PermissionDeniedError, PlatformError
from healthbridge.registry import RECORD_READ_PERMISSIONS
from healthbridge.services.reader import PagedRecordReader
from healthbridge.store.base import TimeWindow
from healthbridge.store.records import RecordKind

WINDOW = TimeWindow(start=at(-24 * 60), end=at(24 * 60))


def many_steps(n: int):
    return [steps(i, i + 1, count=i) for i in range(n)]


class TestPageSize:
    """Tests for page size selection."""

    def test_limit_below_max(self):
        reader = PagedRecordReader(FakeHealthStore())
        assert reader.page_size_for(25) == 25

    def test_limit_capped_at_max(self):
        reader = PagedRecordReader(FakeHealthStore())
        assert reader.page_size_for(10_000) == 500

    def test_unlimited_uses_default(self):
        reader = PagedRecordReader(FakeHealthStore())
        assert reader.page_size_for(0) == 100

    def test_configured_sizes(self):
        reader = PagedRecordReader(FakeHealthStore(), default_page_size=7, max_page_size=20)
        assert reader.page_size_for(0) == 7
        assert reader.page_size_for(50) == 20


class TestRead:
    """Tests for the page loop."""

    def test_reads_every_page_when_unlimited(self):
        store = FakeHealthStore(records=many_steps(250))
        reader = PagedRecordReader(store)

        records = asyncio.run(reader.read(RecordKind.STEPS, WINDOW, limit=0))

        assert len(records) == 250
        assert [call[2] for call in store.page_calls] == [None, "100", "200"]

    def test_stops_once_limit_fetched(self):
        """Should not request more pages than the limit needs."""
        store = FakeHealthStore(records=many_steps(1200))
        reader = PagedRecordReader(store)

        records = asyncio.run(reader.read(RecordKind.STEPS, WINDOW, limit=600))

        # Page size is capped at 500, so two pages cover 600
        assert len(store.page_calls) == 2
        assert len(records) == 1000

    def test_stops_without_cursor(self):
        store = FakeHealthStore(records=many_steps(3))
        reader = PagedRecordReader(store)

        records = asyncio.run(reader.read(RecordKind.STEPS, WINDOW, limit=50))

        assert len(records) == 3
        assert len(store.page_calls) == 1

    def test_only_reads_requested_kind_in_window(self):
        store = FakeHealthStore(records=[steps(0, 5), steps(-5000, -4990)])
        reader = PagedRecordReader(store)

        assert len(asyncio.run(reader.read(RecordKind.STEPS, WINDOW, limit=0))) == 1
        assert asyncio.run(reader.read(RecordKind.DISTANCE, WINDOW, limit=0)) == []

    def test_filtered_records_count_toward_fetched(self):
        store = FakeHealthStore(records=many_steps(30))
        reader = PagedRecordReader(store)

        records = asyncio.run(
            reader.read(RecordKind.STEPS, WINDOW, limit=10, predicate=lambda r: r.count % 2 == 0)
        )

        assert len(store.page_calls) == 1
        assert [r.count for r in records] == [0, 2, 4, 6, 8]

    def test_failure_propagates_without_partial_result(self):
        store = BrokenStore(records=many_steps(10))
        reader = PagedRecordReader(store)

        with pytest.raises(PlatformError, match="disconnected"):
            asyncio.run(reader.read(RecordKind.STEPS, WINDOW, limit=0))

    def test_missing_permission_propagates(self):
        granted = set(RECORD_READ_PERMISSIONS.values()) - {RECORD_READ_PERMISSIONS[RecordKind.STEPS]}
        store = FakeHealthStore(records=many_steps(3), granted=granted)
        reader = PagedRecordReader(store)

        with pytest.raises(PermissionDeniedError) as exc_info:
            asyncio.run(reader.read(RecordKind.STEPS, WINDOW, limit=0))
        assert exc_info.value.details["permission"] == RECORD_READ_PERMISSIONS[RecordKind.STEPS]
        assert store.page_calls == []
