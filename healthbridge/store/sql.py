"""SQLAlchemy-backed health record store.

Records of every kind live in one table keyed by a monotonic id, which is
also the paging cursor. Blocking session work runs in a worker thread with
a fresh session per call, so a single store handle can serve concurrent
operations.
"""

import asyncio
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from healthbridge.core.exceptions import PlatformError
from healthbridge.core.logging import get_logger
from healthbridge.models import HealthRecord, PermissionGrant
from healthbridge.store.base import HealthStore, ReadPage, StoreStatus, TimeWindow
from healthbridge.store.records import (
    ActiveCaloriesBurnedRecord,
    Device,
    DistanceRecord,
    ExerciseSessionRecord,
    HeartRateRecord,
    HeartRateSample,
    HeightRecord,
    HydrationRecord,
    NativeRecord,
    RecordKind,
    RecordMetadata,
    SleepSessionRecord,
    SleepStage,
    StepsRecord,
    TotalCaloriesBurnedRecord,
    WeightRecord,
)

logger = get_logger(__name__)

T = TypeVar("T")

# Kinds whose value lives in the scalar column, and the record attribute holding it
SCALAR_FIELDS: dict[RecordKind, str] = {
    RecordKind.STEPS: "count",
    RecordKind.DISTANCE: "distance_meters",
    RecordKind.ACTIVE_CALORIES_BURNED: "energy_kilocalories",
    RecordKind.TOTAL_CALORIES_BURNED: "energy_kilocalories",
    RecordKind.WEIGHT: "weight_kilograms",
    RecordKind.HEIGHT: "height_meters",
    RecordKind.HYDRATION: "volume_milliliters",
}


def to_db_time(value: datetime) -> datetime:
    """Normalize to naive UTC for storage."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_db_time(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)


def _encode_time(value: datetime) -> str:
    return to_db_time(value).isoformat()


def _decode_time(value: str) -> datetime:
    return from_db_time(datetime.fromisoformat(value))


# =============================================================================
# Record <-> row conversion
# =============================================================================


def record_to_row(record: NativeRecord) -> HealthRecord:
    """Build an unsaved row for a native record."""
    meta = record.metadata
    payload: dict[str, Any] = {}
    row = HealthRecord(
        record_uid=meta.id or str(uuid.uuid4()),
        kind=record.kind.value,
        start_time=to_db_time(record.start_time),
        end_time=to_db_time(record.end_time),
        data_origin=meta.data_origin,
        device_manufacturer=meta.device.manufacturer if meta.device else None,
        device_model=meta.device.model if meta.device else None,
        client_record_id=meta.client_record_id,
        client_record_version=meta.client_record_version,
    )

    if record.kind in SCALAR_FIELDS:
        row.value = float(getattr(record, SCALAR_FIELDS[record.kind]))
    elif isinstance(record, HeartRateRecord):
        payload["samples"] = [
            {"time": _encode_time(s.time), "bpm": s.beats_per_minute} for s in record.samples
        ]
    elif isinstance(record, ExerciseSessionRecord):
        row.exercise_type = int(record.exercise_type)
        row.title = record.title
    elif isinstance(record, SleepSessionRecord):
        row.title = record.title
        payload["stages"] = [
            {
                "start": _encode_time(s.start_time),
                "end": _encode_time(s.end_time),
                "stage": int(s.stage),
            }
            for s in record.stages
        ]

    if meta.extras:
        payload["extras"] = dict(meta.extras)
    row.payload = payload or None
    return row


def row_to_record(row: HealthRecord) -> NativeRecord:
    """Rebuild the native record a row was stored from."""
    payload = row.payload or {}
    device = None
    if row.device_manufacturer or row.device_model:
        device = Device(manufacturer=row.device_manufacturer, model=row.device_model)
    metadata = RecordMetadata(
        data_origin=row.data_origin,
        device=device,
        id=row.record_uid,
        client_record_id=row.client_record_id,
        client_record_version=row.client_record_version or 0,
        extras=dict(payload.get("extras") or {}),
    )
    start = from_db_time(row.start_time)
    end = from_db_time(row.end_time)
    kind = RecordKind(row.kind)

    if kind == RecordKind.STEPS:
        return StepsRecord(start_time=start, end_time=end, count=int(row.value), metadata=metadata)
    if kind == RecordKind.DISTANCE:
        return DistanceRecord(
            start_time=start, end_time=end, distance_meters=row.value, metadata=metadata
        )
    if kind == RecordKind.ACTIVE_CALORIES_BURNED:
        return ActiveCaloriesBurnedRecord(
            start_time=start, end_time=end, energy_kilocalories=row.value, metadata=metadata
        )
    if kind == RecordKind.TOTAL_CALORIES_BURNED:
        return TotalCaloriesBurnedRecord(
            start_time=start, end_time=end, energy_kilocalories=row.value, metadata=metadata
        )
    if kind == RecordKind.HEART_RATE:
        samples = tuple(
            HeartRateSample(time=_decode_time(s["time"]), beats_per_minute=int(s["bpm"]))
            for s in payload.get("samples", [])
        )
        return HeartRateRecord(start_time=start, end_time=end, samples=samples, metadata=metadata)
    if kind == RecordKind.WEIGHT:
        return WeightRecord(time=start, weight_kilograms=row.value, metadata=metadata)
    if kind == RecordKind.HEIGHT:
        return HeightRecord(time=start, height_meters=row.value, metadata=metadata)
    if kind == RecordKind.EXERCISE_SESSION:
        return ExerciseSessionRecord(
            start_time=start,
            end_time=end,
            exercise_type=row.exercise_type or 0,
            title=row.title,
            metadata=metadata,
        )
    if kind == RecordKind.SLEEP_SESSION:
        stages = tuple(
            SleepStage(
                start_time=_decode_time(s["start"]),
                end_time=_decode_time(s["end"]),
                stage=int(s["stage"]),
            )
            for s in payload.get("stages", [])
        )
        return SleepSessionRecord(
            start_time=start, end_time=end, title=row.title, stages=stages, metadata=metadata
        )
    return HydrationRecord(
        start_time=start, end_time=end, volume_milliliters=row.value, metadata=metadata
    )


def _window_clause(window: TimeWindow):
    start = to_db_time(window.start)
    end = to_db_time(window.end)
    return or_(
        and_(HealthRecord.start_time < end, HealthRecord.end_time > start),
        and_(
            HealthRecord.start_time == HealthRecord.end_time,
            HealthRecord.start_time >= start,
            HealthRecord.start_time < end,
        ),
    )


# =============================================================================
# Store
# =============================================================================


class SqlHealthStore(HealthStore):
    """Health record store persisted through SQLAlchemy."""

    platform = "sql"

    def __init__(
        self,
        session_factory: sessionmaker,
        read_only: bool = False,
        status: StoreStatus = StoreStatus.AVAILABLE,
    ):
        self._session_factory = session_factory
        self.read_only = read_only
        self._status = status

    async def status(self) -> StoreStatus:
        return self._status

    async def _run(self, operation: str, fn: Callable[[Session], T]) -> T:
        def work() -> T:
            with self._session_factory() as db:
                return fn(db)

        try:
            return await asyncio.to_thread(work)
        except SQLAlchemyError as e:
            logger.error("store_operation_failed", operation=operation, error=str(e))
            raise PlatformError(str(e), operation=operation) from e

    async def _granted_permissions(self) -> frozenset[str]:
        def query(db: Session) -> frozenset[str]:
            return frozenset(p for (p,) in db.query(PermissionGrant.permission).all())

        return await self._run("granted_permissions", query)

    async def _grant(self, permissions: frozenset[str]) -> None:
        def grant(db: Session) -> None:
            for permission in permissions:
                db.merge(PermissionGrant(permission=permission))
            db.commit()

        await self._run("grant_permissions", grant)
        logger.info("permissions_granted", count=len(permissions))

    async def _read_page(
        self,
        kind: RecordKind,
        window: TimeWindow,
        page_size: int,
        page_token: Optional[str],
    ) -> ReadPage:
        try:
            after_id = int(page_token) if page_token else 0
        except ValueError:
            raise PlatformError(f"Invalid page token: {page_token}", operation="read_records") from None

        def query(db: Session) -> ReadPage:
            rows = (
                db.query(HealthRecord)
                .filter(
                    HealthRecord.kind == kind.value,
                    HealthRecord.id > after_id,
                    _window_clause(window),
                )
                .order_by(HealthRecord.id)
                .limit(page_size + 1)
                .all()
            )
            has_more = len(rows) > page_size
            rows = rows[:page_size]
            return ReadPage(
                records=[row_to_record(r) for r in rows],
                page_token=str(rows[-1].id) if has_more else None,
            )

        return await self._run("read_records", query)

    async def _aggregate(self, kind: RecordKind, window: TimeWindow) -> Optional[float]:
        def query(db: Session) -> Optional[float]:
            rows = (
                db.query(HealthRecord.value, HealthRecord.start_time, HealthRecord.end_time)
                .filter(HealthRecord.kind == kind.value, _window_clause(window))
                .all()
            )
            # Interval records partially inside the window count pro rata. A
            # record that only touches an empty window contributes nothing.
            shares = []
            for value, start, end in rows:
                fraction = window.overlap_fraction(from_db_time(start), from_db_time(end))
                if fraction > 0:
                    shares.append((value or 0.0) * fraction)
            if not shares:
                return None
            return sum(shares)

        return await self._run("aggregate", query)

    async def _insert(self, record: NativeRecord) -> str:
        def insert(db: Session) -> str:
            row = record_to_row(record)
            record_uid = row.record_uid
            db.add(row)
            db.commit()
            return record_uid

        record_uid = await self._run("insert_record", insert)
        logger.info("record_inserted", kind=record.kind.value, record_uid=record_uid)
        return record_uid
