"""Tests for the shared sort-and-limit step."""

from conftest import at

from healthbridge.services.ordering import sort_and_limit


def items(*pairs):
    return [{"name": name, "start": at(minute)} for name, minute in pairs]


def names(result):
    return [item["name"] for item in result]


def start(item):
    return item["start"]


class TestSortAndLimit:
    """Tests for sort_and_limit."""

    def test_descending_by_default(self):
        result = sort_and_limit(items(("a", 1), ("b", 3), ("c", 2)), key=start)
        assert names(result) == ["b", "c", "a"]

    def test_ascending(self):
        result = sort_and_limit(items(("a", 1), ("b", 3), ("c", 2)), key=start, ascending=True)
        assert names(result) == ["a", "c", "b"]

    def test_limit_truncates_after_sorting(self):
        """Should keep the newest items, not the first collected."""
        result = sort_and_limit(items(("a", 1), ("b", 3), ("c", 2)), key=start, limit=2)
        assert names(result) == ["b", "c"]

    def test_zero_and_negative_limit_are_unlimited(self):
        data = items(("a", 1), ("b", 2), ("c", 3))
        assert len(sort_and_limit(data, key=start, limit=0)) == 3
        assert len(sort_and_limit(data, key=start, limit=-5)) == 3

    def test_ties_keep_arrival_order_ascending(self):
        data = items(("first", 5), ("second", 5), ("early", 1), ("third", 5))
        result = sort_and_limit(data, key=start, ascending=True)
        assert names(result) == ["early", "first", "second", "third"]

    def test_ties_keep_arrival_order_descending(self):
        data = items(("first", 5), ("second", 5), ("early", 1), ("third", 5))
        result = sort_and_limit(data, key=start)
        assert names(result) == ["first", "second", "third", "early"]

    def test_empty(self):
        assert sort_and_limit([], key=start, limit=10) == []
