"""Cursor-paginated reads of one native record kind over a time window."""

from collections.abc import Callable
from typing import Optional

from healthbridge.core.logging import get_logger
from healthbridge.store.base import HealthStore, TimeWindow
from healthbridge.store.records import NativeRecord, RecordKind

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 500


class PagedRecordReader:
    """Bounded page loop over the store's continuation cursor.

    No ordering is assumed from the store. Any failure aborts the read and
    propagates to the caller; nothing is retried and no partial result is
    returned.
    """

    def __init__(
        self,
        store: HealthStore,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self._store = store
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    def page_size_for(self, limit: int) -> int:
        if limit > 0:
            return min(limit, self._max_page_size)
        return self._default_page_size

    async def read(
        self,
        kind: RecordKind,
        window: TimeWindow,
        limit: int,
        predicate: Optional[Callable[[NativeRecord], bool]] = None,
    ) -> list[NativeRecord]:
        """Collect records of a kind in the window.

        Stops when the store returns no cursor, or once at least ``limit``
        records have been fetched (``limit <= 0`` reads every page). Records
        rejected by ``predicate`` still count as fetched.
        """
        page_size = self.page_size_for(limit)
        records: list[NativeRecord] = []
        page_token: Optional[str] = None
        fetched = 0
        pages = 0

        while True:
            page = await self._store.read_records(kind, window, page_size, page_token)
            pages += 1
            fetched += len(page.records)
            if predicate is None:
                records.extend(page.records)
            else:
                records.extend(r for r in page.records if predicate(r))

            page_token = page.page_token
            if not page_token or (limit > 0 and fetched >= limit):
                break

        logger.debug(
            "records_read",
            kind=kind.value,
            pages=pages,
            fetched=fetched,
            kept=len(records),
        )
        return records
