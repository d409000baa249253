"""Unit tests for the searchable, paginated list controller.

Fetches are parked by the pending_submitter fixture so each test decides when
and in which order responses arrive; the manual_scheduler fixture drives the
search debounce clock.
"""

from unittest.mock import Mock

import pytest

from poco_records.api.patients import PatientApi
from poco_records.config.schema import Config, PaginationConfig
from poco_records.query.cache import QueryCache
from poco_records.query.list_controller import ListQueryController, ListQueryKey
from poco_records.utils.exceptions import NetworkError


@pytest.fixture
def api(page_factory):
    api = Mock(spec=PatientApi)
    api.list_patients.side_effect = lambda page, page_size, search: page_factory(page=page)
    return api


@pytest.fixture
def cache():
    return QueryCache()


@pytest.fixture
def controller(api, cache, manual_scheduler, pending_submitter):
    controller = ListQueryController(
        api,
        cache=cache,
        scheduler=manual_scheduler,
        submit=pending_submitter,
        page_size=10,
        debounce_seconds=0.3,
    )
    yield controller
    controller.close()


@pytest.fixture
def loaded(controller, pending_submitter):
    """Controller showing page 1 of a 15-patient result (2 pages)."""
    controller.start()
    pending_submitter.run(0)
    return controller


class TestInitialLoad:
    def test_start_fetches_first_page(self, controller, api, pending_submitter):
        # Act
        controller.start()

        # Assert
        assert len(pending_submitter) == 1
        assert controller.is_loading is True
        pending_submitter.run(0)
        api.list_patients.assert_called_once_with(page=1, page_size=10, search="")
        assert controller.is_loading is False
        assert controller.data.total_count == 15
        assert controller.total_pages == 2

    def test_listeners_are_notified(self, controller, pending_submitter):
        listener = Mock()
        controller.subscribe(listener)
        controller.start()
        pending_submitter.run(0)
        assert listener.call_count >= 2
        listener.assert_called_with(controller)

    def test_invalid_page_size(self, api):
        with pytest.raises(ValueError):
            ListQueryController(api, page_size=0)

    def test_from_config(self, api, manual_scheduler, pending_submitter):
        config = Config(pagination=PaginationConfig(default_page_size=25, search_debounce_ms=500))
        controller = ListQueryController.from_config(
            api, config, scheduler=manual_scheduler, submit=pending_submitter
        )
        assert controller.page_size == 25
        assert controller.debounce_seconds == 0.5
        controller.close()


class TestSearchDebounce:
    def test_rapid_typing_commits_once(self, loaded, api, manual_scheduler, pending_submitter):
        # Arrange
        api.list_patients.reset_mock()

        # Act
        loaded.set_search_text("a")
        manual_scheduler.advance(0.1)
        loaded.set_search_text("ab")
        manual_scheduler.advance(0.1)
        loaded.set_search_text("abc")
        manual_scheduler.advance(0.1)
        assert loaded.committed_search == ""
        manual_scheduler.advance(0.3)

        # Assert
        assert loaded.committed_search == "abc"
        assert len(pending_submitter) == 2
        pending_submitter.run(1)
        api.list_patients.assert_called_once_with(page=1, page_size=10, search="abc")

    def test_typed_text_is_visible_before_commit(self, loaded):
        loaded.set_search_text("do")
        assert loaded.search_text == "do"
        assert loaded.query_key == ListQueryKey("", 1)

    def test_commit_resets_page(self, loaded, manual_scheduler, pending_submitter):
        loaded.next_page()
        loaded.set_search_text("doe")
        manual_scheduler.advance(0.3)
        assert loaded.query_key == ListQueryKey("doe", 1)

    def test_unchanged_search_does_not_refetch(self, loaded, manual_scheduler, pending_submitter):
        loaded.set_search_text("x")
        loaded.set_search_text("")
        manual_scheduler.advance(0.3)
        assert len(pending_submitter) == 1

    def test_close_cancels_pending_commit(self, controller, manual_scheduler):
        controller.set_search_text("doe")
        controller.close()
        assert manual_scheduler.pending == []


class TestPagination:
    def test_navigation_without_data_is_ignored(self, controller, pending_submitter):
        assert controller.next_page() is False
        assert controller.go_to_page(2) is False
        assert controller.page_index == 1
        assert len(pending_submitter) == 0

    def test_clamped_to_known_page_range(self, loaded, pending_submitter):
        assert loaded.previous_page() is False
        assert loaded.go_to_page(3) is False
        assert loaded.go_to_page(1) is False
        assert loaded.page_index == 1
        assert len(pending_submitter) == 1

    def test_next_and_previous(self, loaded, pending_submitter, api):
        # Act
        assert loaded.next_page() is True
        pending_submitter.run(1)

        # Assert
        assert loaded.page_index == 2
        assert loaded.data.current_page == 2
        assert len(loaded.data.patients) == 5
        assert loaded.next_page() is False

        # Page 1 is cached, so going back does not fetch
        assert loaded.previous_page() is True
        assert len(pending_submitter) == 2
        assert loaded.data.current_page == 1


class TestStaleResponses:
    def test_late_response_for_old_key_is_discarded(self, loaded, pending_submitter, page_factory):
        # Arrange
        loaded.next_page()
        loaded.previous_page()

        # Act: page 2 arrives after the user went back to page 1
        pending_submitter.complete(1, page_factory(page=2))

        # Assert
        assert loaded.page_index == 1
        assert loaded.data.current_page == 1

    def test_out_of_order_search_results(self, loaded, manual_scheduler, pending_submitter, page_factory):
        # Arrange
        loaded.set_search_text("a")
        manual_scheduler.advance(0.3)
        loaded.set_search_text("ab")
        manual_scheduler.advance(0.3)

        # Act: newest response first, then the older one
        pending_submitter.complete(2, page_factory(total=3, prefix="ab"))
        pending_submitter.complete(1, page_factory(total=12, prefix="a"))

        # Assert
        assert loaded.committed_search == "ab"
        assert loaded.data.total_count == 3
        assert loaded.data.patients[0].id == "ab-1"

    def test_older_request_for_same_key_is_discarded(self, loaded, pending_submitter, page_factory):
        loaded.refresh()
        loaded.refresh()
        pending_submitter.complete(2, page_factory(total=20))
        pending_submitter.complete(1, page_factory(total=99))
        assert loaded.data.total_count == 20
        assert loaded.is_loading is False

    def test_stale_result_is_not_cached(self, loaded, pending_submitter, page_factory, cache):
        loaded.next_page()
        loaded.previous_page()
        pending_submitter.complete(1, page_factory(page=2))
        assert cache.get(ListQueryKey("", 2).cache_key()) is None


class TestErrors:
    def test_failed_refetch_keeps_previous_data(self, loaded, pending_submitter):
        # Arrange
        shown = loaded.data

        # Act
        loaded.refresh()
        pending_submitter.fail(1, NetworkError())

        # Assert
        assert loaded.data is shown
        assert isinstance(loaded.error, NetworkError)
        assert loaded.is_loading is False

    def test_success_clears_error(self, loaded, pending_submitter):
        loaded.refresh()
        pending_submitter.fail(1, NetworkError())
        loaded.refresh()
        pending_submitter.run(2)
        assert loaded.error is None

    def test_first_load_failure_has_no_data(self, controller, pending_submitter):
        controller.start()
        pending_submitter.fail(0, NetworkError())
        assert controller.data is None
        assert controller.total_pages == 0


class TestCacheInvalidation:
    def test_list_invalidation_refetches_current_key(self, loaded, cache, pending_submitter):
        cache.invalidate(("patients",))
        assert len(pending_submitter) == 2
        assert loaded.is_loading is True

    def test_record_invalidation_is_ignored(self, loaded, cache, pending_submitter):
        cache.invalidate(("patient", "p-1"))
        assert len(pending_submitter) == 1

    def test_cached_page_shown_without_fetch(self, api, cache, manual_scheduler, pending_submitter, page_factory):
        cache.set(ListQueryKey("", 1).cache_key(), page_factory(total=4))
        controller = ListQueryController(
            api, cache=cache, scheduler=manual_scheduler, submit=pending_submitter
        )
        controller.start()
        assert controller.data.total_count == 4
        assert len(pending_submitter) == 0
        controller.close()

    def test_closed_controller_stops_listening(self, loaded, cache, pending_submitter):
        loaded.close()
        cache.invalidate(("patients",))
        assert len(pending_submitter) == 1
