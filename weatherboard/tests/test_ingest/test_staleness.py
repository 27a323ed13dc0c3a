"""Tests for freshness checks with boundary conditions."""

from weatherboard.ingest.staleness import is_stale


class TestIsStale:
    def test_never_fetched(self):
        assert is_stale(None, 60_000, 0) is True

    def test_fresh(self):
        assert is_stale(0, 60_000, 30_000) is False

    def test_stale(self):
        assert is_stale(0, 60_000, 61_000) is True

    def test_boundary_exact(self):
        # Exactly the window = not stale (> window is stale)
        assert is_stale(0, 60_000, 60_000) is False

    def test_zero_window(self):
        assert is_stale(1_000, 0, 1_001) is True
        assert is_stale(1_000, 0, 1_000) is False
