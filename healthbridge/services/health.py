"""
Health record service.

Exposes the canonical operations over a permissioned health record store:
availability, authorization, sample reads and writes, and workout, sleep and
hydration queries. Every operation is an independent coroutine; one service
can serve many concurrent calls against the same store.
"""

import math
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Optional

from healthbridge.config import Settings, get_settings
from healthbridge.core.exceptions import ValidationError
from healthbridge.core.logging import get_logger
from healthbridge.registry import get_data_type, reported_workout_type, workout_type_from_native
from healthbridge.schemas.health import (
    AuthorizationRequest,
    AuthorizationStatus,
    AvailabilityResult,
    QueryHydrationRequest,
    QueryHydrationResult,
    QueryOptions,
    QuerySleepRequest,
    QuerySleepResult,
    QueryWorkoutsRequest,
    QueryWorkoutsResult,
    ReadSamplesRequest,
    ReadSamplesResult,
    SaveSampleRequest,
    VersionResult,
)
from healthbridge.services import mappers
from healthbridge.services.ordering import sort_and_limit
from healthbridge.services.permissions import (
    CapabilityRequest,
    ConsentHandler,
    DeferredConsentHandler,
    GrantAllConsentHandler,
    PermissionResolver,
)
from healthbridge.services.reader import PagedRecordReader
from healthbridge.services.workouts import WorkoutAggregator
from healthbridge.store.base import HealthStore, StoreStatus, TimeWindow
from healthbridge.store.records import RecordKind, RecordMetadata

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(value: Optional[str], default: datetime, field: str) -> datetime:
    """Parse an ISO-8601 timestamp; blank values fall back to the default.

    A trailing Z is accepted and naive timestamps are read as UTC.
    """
    if value is None or not value.strip():
        return default
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(field, f"Invalid ISO-8601 date for {field}: {value}") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def package_version() -> str:
    try:
        return version("healthbridge")
    except PackageNotFoundError:
        return "0.0.0"


class HealthService:
    """Service for reading and writing canonical health data."""

    def __init__(
        self,
        store: HealthStore,
        settings: Optional[Settings] = None,
        consent_handler: Optional[ConsentHandler] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._settings = settings or get_settings()
        if consent_handler is None:
            consent_handler = (
                GrantAllConsentHandler()
                if self._settings.auto_grant_permissions
                else DeferredConsentHandler()
            )
        self._permissions = PermissionResolver(store, consent_handler)
        self._reader = PagedRecordReader(
            store,
            default_page_size=self._settings.default_page_size,
            max_page_size=self._settings.max_page_size,
        )
        self._aggregator = WorkoutAggregator(store)
        self._clock = clock

    # =========================================================================
    # Request helpers
    # =========================================================================

    def _window(self, options: QueryOptions) -> TimeWindow:
        now = self._clock()
        start = parse_instant(
            options.start_date,
            now - timedelta(hours=self._settings.default_lookback_hours),
            "startDate",
        )
        end = parse_instant(options.end_date, now, "endDate")
        if end < start:
            raise ValidationError("endDate", "endDate must be greater than or equal to startDate")
        return TimeWindow(start=start, end=end)

    def _limit(self, options: QueryOptions) -> int:
        limit = options.limit if options.limit is not None else self._settings.default_query_limit
        return max(limit, 0)

    @staticmethod
    def _ascending(options: QueryOptions) -> bool:
        return bool(options.ascending) if options.ascending is not None else False

    # =========================================================================
    # Availability & Authorization
    # =========================================================================

    async def is_available(self) -> AvailabilityResult:
        status = await self._store.status()
        available = status == StoreStatus.AVAILABLE
        return AvailabilityResult(
            available=available,
            platform=self._store.platform,
            reason=None if available else self._store.unavailable_reason(status),
        )

    def get_plugin_version(self) -> VersionResult:
        return VersionResult(version=self._store.version or package_version())

    async def request_authorization(self, request: AuthorizationRequest) -> AuthorizationStatus:
        capabilities = CapabilityRequest.parse(request.read, request.write)
        return await self._permissions.request(capabilities)

    async def check_authorization(self, request: AuthorizationRequest) -> AuthorizationStatus:
        capabilities = CapabilityRequest.parse(request.read, request.write)
        return await self._permissions.check(capabilities)

    # =========================================================================
    # Samples
    # =========================================================================

    async def read_samples(self, request: ReadSamplesRequest) -> ReadSamplesResult:
        descriptor = get_data_type(request.data_type)
        window = self._window(request)
        limit = self._limit(request)

        records = await self._reader.read(descriptor.record_kind, window, limit)
        samples = [s for r in records for s in mappers.samples_from_record(descriptor, r)]
        samples = sort_and_limit(
            samples,
            key=lambda s: s.start_date,
            ascending=self._ascending(request),
            limit=limit,
        )

        logger.info(
            "samples_read",
            data_type=descriptor.identifier,
            records=len(records),
            returned=len(samples),
        )
        return ReadSamplesResult(samples=samples)

    async def save_sample(self, request: SaveSampleRequest) -> None:
        descriptor = get_data_type(request.data_type)

        if request.value is None:
            raise ValidationError("value", "value is required")
        if not math.isfinite(request.value):
            raise ValidationError("value", "value must be a finite number")

        if request.unit is not None and request.unit != descriptor.unit:
            raise ValidationError(
                "unit",
                f"Unsupported unit {request.unit} for {descriptor.identifier}. "
                f"Expected {descriptor.unit}.",
            )

        start = parse_instant(request.start_date, self._clock(), "startDate")
        end = parse_instant(request.end_date, start, "endDate")
        if end < start:
            raise ValidationError("endDate", "endDate must be greater than or equal to startDate")

        extras = self._flat_metadata(request.metadata)
        record = mappers.record_for_sample(
            descriptor,
            request.value,
            start,
            end,
            RecordMetadata(data_origin=self._settings.data_origin, extras=extras),
        )
        record_id = await self._store.insert_record(record)
        logger.info("sample_saved", data_type=descriptor.identifier, record_id=record_id)

    @staticmethod
    def _flat_metadata(metadata: Optional[dict[str, Any]]) -> dict[str, str]:
        """Keep string values only; other values are dropped."""
        if not metadata:
            return {}
        return {k: v for k, v in metadata.items() if isinstance(v, str)}

    # =========================================================================
    # Sessions
    # =========================================================================

    async def query_workouts(self, request: QueryWorkoutsRequest) -> QueryWorkoutsResult:
        predicate = None
        if request.workout_type:
            wanted = reported_workout_type(request.workout_type)
            predicate = lambda r: workout_type_from_native(r.exercise_type) == wanted  # noqa: E731

        window = self._window(request)
        limit = self._limit(request)

        sessions = await self._reader.read(RecordKind.EXERCISE_SESSION, window, limit, predicate)
        workouts = sort_and_limit(
            [mappers.workout_from_record(s) for s in sessions],
            key=lambda w: w.start_date,
            ascending=self._ascending(request),
            limit=limit,
        )
        # Totals do not affect ordering, so only the returned sessions are aggregated
        workouts = await self._aggregator.aggregate(workouts)

        logger.info(
            "workouts_queried",
            workout_type=request.workout_type,
            sessions=len(sessions),
            returned=len(workouts),
        )
        return QueryWorkoutsResult(workouts=workouts)

    async def query_sleep(self, request: QuerySleepRequest) -> QuerySleepResult:
        window = self._window(request)
        limit = self._limit(request)

        sessions = await self._reader.read(RecordKind.SLEEP_SESSION, window, limit)
        sleep_sessions = sort_and_limit(
            [mappers.sleep_session_from_record(s) for s in sessions],
            key=lambda s: s.start_date,
            ascending=self._ascending(request),
            limit=limit,
        )

        logger.info("sleep_queried", sessions=len(sessions), returned=len(sleep_sessions))
        return QuerySleepResult(sleep_sessions=sleep_sessions)

    async def query_hydration(self, request: QueryHydrationRequest) -> QueryHydrationResult:
        window = self._window(request)
        limit = self._limit(request)

        records = await self._reader.read(RecordKind.HYDRATION, window, limit)
        hydration = sort_and_limit(
            [mappers.hydration_from_record(r) for r in records],
            key=lambda h: h.start_date,
            ascending=self._ascending(request),
            limit=limit,
        )

        logger.info("hydration_queried", records=len(records), returned=len(hydration))
        return QueryHydrationResult(hydration_records=hydration)
