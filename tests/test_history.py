"""Tests for HistoryStore."""

import pytest

from netradar.history import HistoryStore


class TestHistoryStore:
    def test_oldest_values_are_evicted(self):
        store = HistoryStore(capacity=3)
        for value in range(5):
            store.append("8.8.8.8", value)

        assert store.get("8.8.8.8") == [2, 3, 4]
        assert store.latest("8.8.8.8") == 4
        assert len(store) == 3

    def test_keys_are_independent(self):
        store = HistoryStore(capacity=2)
        store.append("a", 1)
        store.append("b", 10)
        store.append("b", 11)
        store.append("b", 12)

        assert store.get("a") == [1]
        assert store.get("b") == [11, 12]
        assert store.keys() == ["a", "b"]
        assert "a" in store
        assert "c" not in store

    def test_unknown_key(self):
        store = HistoryStore()
        assert store.get("missing") == []
        assert store.latest("missing") is None

    def test_get_returns_a_copy(self):
        store = HistoryStore()
        store.append("a", 1)
        store.get("a").append(99)
        assert store.get("a") == [1]

    def test_clear_one_key_or_all(self):
        store = HistoryStore()
        store.append("a", 1)
        store.append("b", 2)

        store.clear("a")
        assert store.keys() == ["b"]
        store.clear()
        assert len(store) == 0

    def test_trend(self):
        store = HistoryStore()
        for value in [10.0, 12.0, 14.0, 16.0]:
            store.append("rtt", value)

        assert store.trend("rtt") == 2.0
        assert store.trend("rtt", window=2) == 2.0

    def test_trend_needs_two_values(self):
        store = HistoryStore()
        assert store.trend("rtt") == 0.0
        store.append("rtt", 5.0)
        assert store.trend("rtt") == 0.0

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            HistoryStore(capacity=0)
