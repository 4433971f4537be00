"""Projection of native records into canonical entities, and back for writes."""

from collections.abc import Callable
from datetime import datetime
from typing import Optional

from healthbridge.registry import (
    DataTypeDescriptor,
    sleep_stage_from_native,
    workout_type_from_native,
)
from healthbridge.schemas.health import (
    HydrationRecord,
    Sample,
    SleepSession,
    SleepStageRecord,
    Workout,
)
from healthbridge.store import records as native
from healthbridge.store.records import RecordKind, RecordMetadata

ML_PER_LITER = 1000.0


def resolve_source(metadata: RecordMetadata) -> tuple[str, str]:
    """Return (source_name, source_id) for a record's data origin.

    The id is the origin's package name. The name defaults to the same value
    and is replaced by "<manufacturer> <model>" when the device reports
    either part.
    """
    source_id = metadata.data_origin
    source_name = source_id
    device = metadata.device
    if device is not None:
        parts = [p.strip() for p in (device.manufacturer, device.model) if p and p.strip()]
        label = " ".join(parts)
        if label:
            source_name = label
    return source_name, source_id


def record_metadata(metadata: RecordMetadata) -> Optional[dict[str, str]]:
    """Flat string map of client bookkeeping, or None when there is nothing to report."""
    result = dict(metadata.extras)
    if metadata.client_record_id is not None:
        result["clientRecordId"] = metadata.client_record_id
    if metadata.client_record_version > 0:
        result["clientRecordVersion"] = str(metadata.client_record_version)
    return result or None


def _duration_seconds(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds())


# =============================================================================
# Samples
# =============================================================================


def _scalar_sample(descriptor: DataTypeDescriptor, record, value: float) -> list[Sample]:
    source_name, source_id = resolve_source(record.metadata)
    return [
        Sample(
            data_type=descriptor.identifier,
            value=float(value),
            unit=descriptor.unit,
            start_date=record.start_time,
            end_date=record.end_time,
            source_name=source_name,
            source_id=source_id,
        )
    ]


def _heart_rate_samples(
    descriptor: DataTypeDescriptor, record: native.HeartRateRecord
) -> list[Sample]:
    # Every reading inherits the series record's provenance
    source_name, source_id = resolve_source(record.metadata)
    return [
        Sample(
            data_type=descriptor.identifier,
            value=float(reading.beats_per_minute),
            unit=descriptor.unit,
            start_date=reading.time,
            end_date=reading.time,
            source_name=source_name,
            source_id=source_id,
        )
        for reading in record.samples
    ]


_SAMPLE_MAPPERS: dict[RecordKind, Callable[[DataTypeDescriptor, object], list[Sample]]] = {
    RecordKind.STEPS: lambda d, r: _scalar_sample(d, r, r.count),
    RecordKind.DISTANCE: lambda d, r: _scalar_sample(d, r, r.distance_meters),
    RecordKind.ACTIVE_CALORIES_BURNED: lambda d, r: _scalar_sample(d, r, r.energy_kilocalories),
    RecordKind.TOTAL_CALORIES_BURNED: lambda d, r: _scalar_sample(d, r, r.energy_kilocalories),
    RecordKind.WEIGHT: lambda d, r: _scalar_sample(d, r, r.weight_kilograms),
    RecordKind.HEIGHT: lambda d, r: _scalar_sample(d, r, r.height_meters),
    RecordKind.HEART_RATE: _heart_rate_samples,
}


def samples_from_record(descriptor: DataTypeDescriptor, record: native.NativeRecord) -> list[Sample]:
    """Project one native record into one or more samples of a data type."""
    mapper = _SAMPLE_MAPPERS.get(record.kind)
    if mapper is None or record.kind != descriptor.record_kind:
        raise ValueError(f"{record.kind.value} records cannot be read as {descriptor.identifier}")
    return mapper(descriptor, record)


# =============================================================================
# Sessions
# =============================================================================


def workout_from_record(record: native.ExerciseSessionRecord) -> Workout:
    """Workout without aggregated totals; the aggregator fills those in."""
    source_name, source_id = resolve_source(record.metadata)
    return Workout(
        workout_type=workout_type_from_native(record.exercise_type),
        duration=_duration_seconds(record.start_time, record.end_time),
        start_date=record.start_time,
        end_date=record.end_time,
        source_name=source_name,
        source_id=source_id,
        metadata=record_metadata(record.metadata),
    )


def sleep_session_from_record(record: native.SleepSessionRecord) -> SleepSession:
    source_name, source_id = resolve_source(record.metadata)
    stages = [
        SleepStageRecord(
            stage=sleep_stage_from_native(stage.stage),
            start_date=stage.start_time,
            end_date=stage.end_time,
        )
        for stage in record.stages
    ]
    return SleepSession(
        title=record.title if record.title and record.title.strip() else None,
        duration=_duration_seconds(record.start_time, record.end_time),
        start_date=record.start_time,
        end_date=record.end_time,
        stages=stages or None,
        source_name=source_name,
        source_id=source_id,
        metadata=record_metadata(record.metadata),
    )


def hydration_from_record(record: native.HydrationRecord) -> HydrationRecord:
    source_name, source_id = resolve_source(record.metadata)
    return HydrationRecord(
        volume=record.volume_milliliters / ML_PER_LITER,
        start_date=record.start_time,
        end_date=record.end_time,
        source_name=source_name,
        source_id=source_id,
        metadata=record_metadata(record.metadata),
    )


# =============================================================================
# Writes
# =============================================================================


def record_for_sample(
    descriptor: DataTypeDescriptor,
    value: float,
    start: datetime,
    end: datetime,
    metadata: RecordMetadata,
) -> native.NativeRecord:
    """Build the native record a canonical sample is written as."""
    kind = descriptor.record_kind
    if kind == RecordKind.STEPS:
        return native.StepsRecord(start_time=start, end_time=end, count=int(value), metadata=metadata)
    if kind == RecordKind.DISTANCE:
        return native.DistanceRecord(
            start_time=start, end_time=end, distance_meters=value, metadata=metadata
        )
    if kind == RecordKind.ACTIVE_CALORIES_BURNED:
        return native.ActiveCaloriesBurnedRecord(
            start_time=start, end_time=end, energy_kilocalories=value, metadata=metadata
        )
    if kind == RecordKind.TOTAL_CALORIES_BURNED:
        return native.TotalCaloriesBurnedRecord(
            start_time=start, end_time=end, energy_kilocalories=value, metadata=metadata
        )
    if kind == RecordKind.HEART_RATE:
        return native.HeartRateRecord(
            start_time=start,
            end_time=end,
            samples=(native.HeartRateSample(time=start, beats_per_minute=int(value)),),
            metadata=metadata,
        )
    if kind == RecordKind.WEIGHT:
        return native.WeightRecord(time=start, weight_kilograms=value, metadata=metadata)
    if kind == RecordKind.HEIGHT:
        return native.HeightRecord(time=start, height_meters=value, metadata=metadata)
    raise ValueError(f"{descriptor.identifier} cannot be written as a sample")
