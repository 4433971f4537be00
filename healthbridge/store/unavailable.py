"""Store used where no native health record store exists (browser builds)."""

from typing import Optional

from healthbridge.core.exceptions import StoreUnavailableError
from healthbridge.store.base import HealthStore, ReadPage, StoreStatus, TimeWindow
from healthbridge.store.records import NativeRecord, RecordKind

WEB_UNAVAILABLE_REASON = "Native health APIs are not accessible in a browser environment."


class UnavailableHealthStore(HealthStore):
    """Read-only store that is never available.

    Every data operation fails at the availability check; write partitions of
    an authorization status are always empty since no write grants exist.
    """

    platform = "web"
    read_only = True
    version = "web"

    async def status(self) -> StoreStatus:
        return StoreStatus.UNAVAILABLE

    def unavailable_reason(self, status: StoreStatus) -> str:
        return WEB_UNAVAILABLE_REASON

    async def _granted_permissions(self) -> frozenset[str]:
        raise StoreUnavailableError(WEB_UNAVAILABLE_REASON)

    async def _read_page(
        self,
        kind: RecordKind,
        window: TimeWindow,
        page_size: int,
        page_token: Optional[str],
    ) -> ReadPage:
        raise StoreUnavailableError(WEB_UNAVAILABLE_REASON)

    async def _aggregate(self, kind: RecordKind, window: TimeWindow) -> Optional[float]:
        raise StoreUnavailableError(WEB_UNAVAILABLE_REASON)

    async def _insert(self, record: NativeRecord) -> str:
        raise StoreUnavailableError(WEB_UNAVAILABLE_REASON)
