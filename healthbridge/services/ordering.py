"""Ordering and truncation shared by every read path."""

from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TypeVar

T = TypeVar("T")


def sort_and_limit(
    items: Iterable[T],
    key: Callable[[T], datetime],
    ascending: bool = False,
    limit: int = 0,
) -> list[T]:
    """Stable-sort by start time, newest first unless ascending, then truncate.

    Python's sort stays stable with reverse=True, so items with equal start
    times keep their collection order in both directions. A limit of zero or
    less means unlimited.
    """
    ordered = sorted(items, key=key, reverse=not ascending)
    if limit > 0:
        return ordered[:limit]
    return ordered
