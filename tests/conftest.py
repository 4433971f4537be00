"""Pytest fixtures for HealthBridge tests."""

import os

# Must be set before the application modules read settings
os.environ.setdefault("HEALTHBRIDGE_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("HEALTHBRIDGE_ENVIRONMENT", "development")

from collections.abc import Generator, Iterable
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from healthbridge.api.deps import get_health_store
from healthbridge.config import Settings
from healthbridge.core.exceptions import PlatformError
from healthbridge.main import app
from healthbridge.models import Base
from healthbridge.registry import RECORD_READ_PERMISSIONS, RECORD_WRITE_PERMISSIONS
from healthbridge.store.base import HealthStore, ReadPage, StoreStatus, TimeWindow
from healthbridge.store.records import (
    ExerciseSessionRecord,
    NativeRecord,
    RecordKind,
    RecordMetadata,
    StepsRecord,
)
from healthbridge.store.sql import SCALAR_FIELDS, SqlHealthStore

# Use SQLite in-memory for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

ALL_PERMISSIONS = frozenset(RECORD_READ_PERMISSIONS.values()) | frozenset(
    RECORD_WRITE_PERMISSIONS.values()
)


def at(minutes: int) -> datetime:
    """A fixed instant offset from NOW."""
    return NOW + timedelta(minutes=minutes)


def meta(origin: str = "com.example.tracker", **kwargs) -> RecordMetadata:
    return RecordMetadata(data_origin=origin, **kwargs)


def steps(start: int, end: int, count: int = 100, origin: str = "com.example.tracker") -> StepsRecord:
    return StepsRecord(start_time=at(start), end_time=at(end), count=count, metadata=meta(origin))


def exercise(start: int, end: int, exercise_type: int, title: Optional[str] = None) -> ExerciseSessionRecord:
    return ExerciseSessionRecord(
        start_time=at(start),
        end_time=at(end),
        exercise_type=exercise_type,
        title=title,
        metadata=meta(),
    )


class FakeHealthStore(HealthStore):
    """In-memory store with controllable paging, grants and failures.

    Records come back in insertion order, which the engine must not rely on.
    """

    platform = "fake"

    def __init__(
        self,
        records: Iterable[NativeRecord] = (),
        granted: Iterable[str] = ALL_PERMISSIONS,
        read_only: bool = False,
        status: StoreStatus = StoreStatus.AVAILABLE,
    ):
        self.records: list[NativeRecord] = list(records)
        self.granted: set[str] = set(granted)
        self.read_only = read_only
        self._status = status
        self.page_calls: list[tuple[RecordKind, int, Optional[str]]] = []
        self.aggregate_calls: list[tuple[RecordKind, TimeWindow]] = []
        self.inserted: list[NativeRecord] = []
        self.grant_calls: list[frozenset[str]] = []
        self.store_calls = 0
        self.fail_reads: Optional[Exception] = None
        self.fail_aggregates: dict[RecordKind, Exception] = {}

    async def status(self) -> StoreStatus:
        self.store_calls += 1
        return self._status

    async def _granted_permissions(self) -> frozenset[str]:
        return frozenset(self.granted)

    async def _grant(self, permissions: frozenset[str]) -> None:
        self.grant_calls.append(permissions)
        self.granted |= permissions

    async def _read_page(
        self,
        kind: RecordKind,
        window: TimeWindow,
        page_size: int,
        page_token: Optional[str],
    ) -> ReadPage:
        self.page_calls.append((kind, page_size, page_token))
        if self.fail_reads is not None:
            raise self.fail_reads
        matching = [
            r
            for r in self.records
            if r.kind == kind and window.overlaps(r.start_time, r.end_time)
        ]
        offset = int(page_token) if page_token else 0
        page = matching[offset : offset + page_size]
        next_offset = offset + page_size
        return ReadPage(
            records=page,
            page_token=str(next_offset) if next_offset < len(matching) else None,
        )

    async def _aggregate(self, kind: RecordKind, window: TimeWindow) -> Optional[float]:
        self.aggregate_calls.append((kind, window))
        if kind in self.fail_aggregates:
            raise self.fail_aggregates[kind]
        shares = []
        for r in self.records:
            if r.kind != kind:
                continue
            fraction = window.overlap_fraction(r.start_time, r.end_time)
            if fraction > 0:
                shares.append(getattr(r, SCALAR_FIELDS[kind]) * fraction)
        if not shares:
            return None
        return sum(shares)

    async def _insert(self, record: NativeRecord) -> str:
        self.inserted.append(record)
        self.records.append(record)
        return f"fake-{len(self.inserted)}"


class BrokenStore(FakeHealthStore):
    """Store whose every read fails the way a platform outage does."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.fail_reads = PlatformError("Health Connect service disconnected", operation="read")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        environment="development",
        auto_grant_permissions=False,
    )


@pytest.fixture
def fake_store() -> FakeHealthStore:
    return FakeHealthStore()


@pytest.fixture(scope="function")
def session_factory() -> Generator[sessionmaker, None, None]:
    """Create a fresh test database for each test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def test_db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def sql_store(session_factory: sessionmaker) -> SqlHealthStore:
    return SqlHealthStore(session_factory)


@pytest.fixture
def client(sql_store: SqlHealthStore) -> Generator[TestClient, None, None]:
    """Create a test client over the in-memory SQL store."""
    app.dependency_overrides[get_health_store] = lambda: sql_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
