"""Base health record store with abstract interface."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from healthbridge.core.exceptions import PermissionDeniedError, PlatformError, StoreUnavailableError
from healthbridge.core.logging import get_logger
from healthbridge.registry import RECORD_READ_PERMISSIONS, RECORD_WRITE_PERMISSIONS
from healthbridge.store.records import NativeRecord, RecordKind

logger = get_logger(__name__)


class StoreStatus(str, Enum):
    """Availability of the underlying platform store."""

    AVAILABLE = "available"
    UPDATE_REQUIRED = "update_required"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


AVAILABILITY_REASONS = {
    StoreStatus.UPDATE_REQUIRED: "Health Connect needs an update.",
    StoreStatus.UNAVAILABLE: "Health Connect is unavailable on this device.",
    StoreStatus.UNKNOWN: "Health Connect availability unknown.",
}


class AggregateMetric(str, Enum):
    """Sums the store can compute over a time window."""

    DISTANCE_TOTAL = "distance_total"
    ACTIVE_CALORIES_TOTAL = "active_calories_total"
    TOTAL_CALORIES_TOTAL = "total_calories_total"


AGGREGATE_RECORD_KINDS = {
    AggregateMetric.DISTANCE_TOTAL: RecordKind.DISTANCE,
    AggregateMetric.ACTIVE_CALORIES_TOTAL: RecordKind.ACTIVE_CALORIES_BURNED,
    AggregateMetric.TOTAL_CALORIES_TOTAL: RecordKind.TOTAL_CALORIES_BURNED,
}


@dataclass(frozen=True)
class TimeWindow:
    """Half-open time range filter: start inclusive, end exclusive."""

    start: datetime
    end: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Whether a record spanning [start, end] falls in this window.

        Instantaneous records (start == end) match when start <= t < end.
        Interval records match when they overlap the window at all.
        """
        if start == end:
            return self.start <= start < self.end
        return start < self.end and end > self.start

    def overlap_fraction(self, start: datetime, end: datetime) -> float:
        """Share of [start, end] that lies inside the window, 0.0 to 1.0."""
        if start == end:
            return 1.0 if self.overlaps(start, end) else 0.0
        inside = (min(end, self.end) - max(start, self.start)).total_seconds()
        total = (end - start).total_seconds()
        if inside <= 0 or total <= 0:
            return 0.0
        return min(inside / total, 1.0)


@dataclass
class ReadPage:
    """One bounded page of native records plus the continuation cursor."""

    records: list[NativeRecord] = field(default_factory=list)
    page_token: Optional[str] = None


class HealthStore(ABC):
    """Abstract base class for the permissioned health record store.

    The store is the system of record. Every backend implements the protected
    hooks; the public methods enforce availability and permission checks the
    way the platform store does, raising at the point of access. Backends
    translate their own failures into PlatformError.

    A store handle is shared across concurrent operations and must not hold
    per-call state.
    """

    platform: str = ""  # Override in subclass
    read_only: bool = False
    # Reported by getPluginVersion instead of the package version when set
    version: Optional[str] = None

    # =========================================================================
    # Backend hooks
    # =========================================================================

    @abstractmethod
    async def status(self) -> StoreStatus:
        """Report whether the platform store can be used."""
        ...

    @abstractmethod
    async def _granted_permissions(self) -> frozenset[str]:
        ...

    @abstractmethod
    async def _read_page(
        self,
        kind: RecordKind,
        window: TimeWindow,
        page_size: int,
        page_token: Optional[str],
    ) -> ReadPage:
        ...

    @abstractmethod
    async def _aggregate(self, kind: RecordKind, window: TimeWindow) -> Optional[float]:
        """Sum of the kind's value over the window; None when nothing matched."""
        ...

    @abstractmethod
    async def _insert(self, record: NativeRecord) -> str:
        ...

    async def _grant(self, permissions: frozenset[str]) -> None:
        raise PlatformError("Permission grants are managed by the platform", operation="grant")

    # =========================================================================
    # Public API
    # =========================================================================

    def unavailable_reason(self, status: StoreStatus) -> str:
        return AVAILABILITY_REASONS.get(status, AVAILABILITY_REASONS[StoreStatus.UNKNOWN])

    async def ensure_available(self) -> None:
        status = await self.status()
        if status != StoreStatus.AVAILABLE:
            raise StoreUnavailableError(self.unavailable_reason(status))

    async def granted_permissions(self) -> frozenset[str]:
        """Permission tokens the user has currently granted."""
        await self.ensure_available()
        return await self._granted_permissions()

    async def grant_permissions(self, permissions: Iterable[str]) -> None:
        """Record user consent for the given tokens."""
        await self.ensure_available()
        await self._grant(frozenset(permissions))

    async def read_records(
        self,
        kind: RecordKind,
        window: TimeWindow,
        page_size: int,
        page_token: Optional[str] = None,
    ) -> ReadPage:
        """Fetch one page of records of a kind in the window, in no particular order."""
        await self._require(RECORD_READ_PERMISSIONS[kind])
        return await self._read_page(kind, window, page_size, page_token)

    async def aggregate(self, metric: AggregateMetric, window: TimeWindow) -> Optional[float]:
        """Sum a metric over the window across every data origin."""
        kind = AGGREGATE_RECORD_KINDS[metric]
        await self._require(RECORD_READ_PERMISSIONS[kind])
        return await self._aggregate(kind, window)

    async def insert_record(self, record: NativeRecord) -> str:
        """Insert a single record and return its store id."""
        if self.read_only:
            raise PermissionDeniedError(f"{self.platform or 'This'} store is read-only")
        await self._require(RECORD_WRITE_PERMISSIONS[record.kind])
        return await self._insert(record)

    async def _require(self, permission: str) -> None:
        granted = await self.granted_permissions()
        if permission not in granted:
            logger.info("store_permission_missing", platform=self.platform, permission=permission)
            raise PermissionDeniedError(
                f"Missing permission {permission}",
                permission=permission,
            )
