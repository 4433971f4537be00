"""Tests for TimeWindow matching."""

from conftest import at

from healthbridge.store.base import TimeWindow

WINDOW = TimeWindow(start=at(0), end=at(60))


class TestOverlaps:
    def test_instant_inside(self):
        assert WINDOW.overlaps(at(0), at(0))
        assert WINDOW.overlaps(at(59), at(59))

    def test_instant_at_end_excluded(self):
        assert not WINDOW.overlaps(at(60), at(60))

    def test_interval_partially_inside(self):
        assert WINDOW.overlaps(at(-10), at(10))
        assert WINDOW.overlaps(at(50), at(70))

    def test_interval_touching_edges_excluded(self):
        assert not WINDOW.overlaps(at(-10), at(0))
        assert not WINDOW.overlaps(at(60), at(70))


class TestOverlapFraction:
    def test_fully_inside(self):
        assert WINDOW.overlap_fraction(at(10), at(20)) == 1.0

    def test_half_inside(self):
        assert WINDOW.overlap_fraction(at(30), at(90)) == 0.5

    def test_outside(self):
        assert WINDOW.overlap_fraction(at(100), at(120)) == 0.0
        assert WINDOW.overlap_fraction(at(60), at(60)) == 0.0
