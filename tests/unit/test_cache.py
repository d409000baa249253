"""Unit tests for the query cache."""

from unittest.mock import Mock

from poco_records.query.cache import QueryCache


class TestQueryCache:
    def test_get_and_set(self):
        cache = QueryCache()
        assert cache.get(("patient", "1")) is None
        cache.set(("patient", "1"), "record")
        assert cache.get(("patient", "1")) == "record"

    def test_invalidate_drops_prefix_only(self):
        # Arrange
        cache = QueryCache()
        cache.set(("patients", "", 1), "page1")
        cache.set(("patients", "doe", 1), "page1-doe")
        cache.set(("patient", "1"), "record")

        # Act
        removed = cache.invalidate(("patients",))

        # Assert
        assert removed == 2
        assert cache.get(("patients", "", 1)) is None
        assert cache.get(("patient", "1")) == "record"

    def test_subscribers_of_overlapping_family_are_notified(self):
        cache = QueryCache()
        listener = Mock()
        cache.subscribe(("patients",), listener)

        cache.invalidate(("patients",))
        cache.invalidate(("patients", "doe"))
        cache.invalidate(("patient", "1"))

        assert [c.args[0] for c in listener.call_args_list] == [("patients",), ("patients", "doe")]

    def test_notified_even_when_nothing_cached(self):
        cache = QueryCache()
        listener = Mock()
        cache.subscribe(("patients",), listener)
        assert cache.invalidate(("patients",)) == 0
        listener.assert_called_once()

    def test_unsubscribe(self):
        cache = QueryCache()
        listener = Mock()
        unsubscribe = cache.subscribe(("patients",), listener)
        unsubscribe()
        unsubscribe()
        cache.invalidate(("patients",))
        listener.assert_not_called()

    def test_clear(self):
        cache = QueryCache()
        cache.set(("patient", "1"), "record")
        cache.clear()
        assert cache.get(("patient", "1")) is None
