"""Searchable, paginated patient list state.

The controller owns the typed search text, the committed (debounced) search
and the page index. The pair (committed search, page) is the query key; a
fetch is issued whenever it changes. Several fetches may be in flight at
once, but only the newest fetch for the current key may update what is
shown, so a slow earlier response can never overwrite a later one.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from threading import RLock
from typing import TYPE_CHECKING, Any, Callable, Optional

from poco_records.api.patients import PatientApi
from poco_records.logging_audit import get_operation_logger
from poco_records.models.patient import PaginatedPatients
from poco_records.query.cache import QueryCache, QueryKey
from poco_records.query.scheduler import Cancellable, Scheduler, ThreadingScheduler

if TYPE_CHECKING:
    from poco_records.config.schema import Config

logger = get_operation_logger("list")

LIST_CACHE_FAMILY = "patients"
DEFAULT_PAGE_SIZE = 10
DEFAULT_DEBOUNCE_SECONDS = 0.3

Submit = Callable[[Callable[[], PaginatedPatients]], "Future[PaginatedPatients]"]
Listener = Callable[["ListQueryController"], None]


@dataclass(frozen=True)
class ListQueryKey:
    """Identity of one list fetch."""

    search: str
    page: int

    def cache_key(self) -> QueryKey:
        return (LIST_CACHE_FAMILY, self.search, self.page)


class ListQueryController:
    """Drives list fetches from search and pagination events.

    Attributes:
        search_text: Text as typed, not yet committed
        committed_search: Search text the current query uses
        page_index: 1-based page of the current query
        page_size: Fixed rows per page
        data: Page currently shown (kept when a later fetch fails)
        error: Error of the last applied fetch, None after a success

    Example:
        >>> controller = ListQueryController(api, page_size=10)
        >>> controller.subscribe(lambda c: render(c.data))
        >>> controller.start()
        >>> controller.set_search_text("doe")   # committed after 300 ms
        >>> controller.next_page()
    """

    def __init__(
        self,
        api: PatientApi,
        cache: Optional[QueryCache] = None,
        scheduler: Optional[Scheduler] = None,
        submit: Optional[Submit] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.api = api
        self.cache = cache or QueryCache()
        self.scheduler = scheduler or ThreadingScheduler()
        self.page_size = page_size
        self.debounce_seconds = debounce_seconds

        self._executor: Optional[ThreadPoolExecutor] = None
        self._submit = submit or self._submit_to_pool

        self.search_text = ""
        self.committed_search = ""
        self.page_index = 1
        self.data: Optional[PaginatedPatients] = None
        self.error: Optional[Exception] = None

        self._lock = RLock()
        self._pending_commit: Optional[Cancellable] = None
        self._request_counter = 0
        self._latest_by_key: dict[ListQueryKey, int] = {}
        self._in_flight: set[int] = set()
        self._listeners: list[Listener] = []
        self._unsubscribe = self.cache.subscribe(
            (LIST_CACHE_FAMILY,), self._on_cache_invalidated
        )

    @classmethod
    def from_config(
        cls, api: PatientApi, config: "Config", **kwargs: Any
    ) -> "ListQueryController":
        """Create a controller using the pagination section of ``config``."""
        return cls(
            api,
            page_size=config.pagination.default_page_size,
            debounce_seconds=config.pagination.search_debounce_ms / 1000.0,
            **kwargs,
        )

    @property
    def query_key(self) -> ListQueryKey:
        return ListQueryKey(self.committed_search, self.page_index)

    @property
    def is_loading(self) -> bool:
        with self._lock:
            return self._latest_by_key.get(self.query_key) in self._in_flight

    @property
    def total_pages(self) -> int:
        return self.data.total_pages if self.data else 0

    def subscribe(self, listener: Listener) -> None:
        """Register a callback run after every visible state change.

        Callbacks may run on timer or worker threads.
        """
        self._listeners.append(listener)

    def start(self) -> None:
        """Load the initial page."""
        self._load()

    def refresh(self) -> None:
        """Refetch the current key, ignoring any cached page."""
        self._load(force=True)

    # Search

    def set_search_text(self, text: str) -> None:
        """Record typed search text and restart the debounce timer."""
        with self._lock:
            self.search_text = text
            if self._pending_commit is not None:
                self._pending_commit.cancel()
            self._pending_commit = self.scheduler.call_later(
                self.debounce_seconds, self._commit_search
            )
        self._notify()

    def _commit_search(self) -> None:
        with self._lock:
            self._pending_commit = None
            previous = self.query_key
            self.committed_search = self.search_text
            self.page_index = 1
            changed = self.query_key != previous
        logger.debug("Committed search %r (key changed: %s)", self.committed_search, changed)
        if changed:
            self._load()

    # Pagination

    def go_to_page(self, page: int) -> bool:
        """Move to ``page`` if it lies within the last reported page range.

        Returns:
            True if the page index changed
        """
        with self._lock:
            if self.data is None or page < 1 or page > self.data.total_pages:
                logger.debug("Ignoring navigation to page %d of %d", page, self.total_pages)
                return False
            if page == self.page_index:
                return False
            self.page_index = page
        self._load()
        return True

    def next_page(self) -> bool:
        return self.go_to_page(self.page_index + 1)

    def previous_page(self) -> bool:
        return self.go_to_page(self.page_index - 1)

    # Fetching

    def _load(self, force: bool = False) -> None:
        key = self.query_key
        if not force:
            cached = self.cache.get(key.cache_key())
            if cached is not None:
                with self._lock:
                    self.data = cached
                    self.error = None
                logger.debug("Serving %s from cache", key)
                self._notify()
                return
        self._issue_fetch(key)

    def _issue_fetch(self, key: ListQueryKey) -> None:
        with self._lock:
            self._request_counter += 1
            request_id = self._request_counter
            self._latest_by_key[key] = request_id
            self._in_flight.add(request_id)
        logger.info(
            "Fetching patients page=%d search=%r (request %d)",
            key.page,
            key.search,
            request_id,
        )
        self._notify()

        future = self._submit(
            lambda: self.api.list_patients(
                page=key.page, page_size=self.page_size, search=key.search
            )
        )
        future.add_done_callback(
            lambda done: self._on_fetch_done(request_id, key, done)
        )

    def _on_fetch_done(
        self,
        request_id: int,
        key: ListQueryKey,
        future: "Future[PaginatedPatients]",
    ) -> None:
        with self._lock:
            self._in_flight.discard(request_id)
            if key != self.query_key or request_id != self._latest_by_key.get(key):
                logger.debug("Discarding stale result of request %d for %s", request_id, key)
                return

            error = future.exception()
            if error is not None:
                # The previously shown page stays visible
                self.error = error
                logger.warning("Patient list fetch failed for %s: %s", key, error)
            else:
                result = future.result()
                self.data = result
                self.error = None
                self.cache.set(key.cache_key(), result)
                logger.debug(
                    "Applied request %d: %d of %d patients",
                    request_id,
                    len(result.patients),
                    result.total_count,
                )
        self._notify()

    def _on_cache_invalidated(self, prefix: QueryKey) -> None:
        logger.debug("List cache invalidated (%s); refetching %s", prefix, self.query_key)
        self._load(force=True)

    def _submit_to_pool(
        self, fn: Callable[[], PaginatedPatients]
    ) -> "Future[PaginatedPatients]":
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=4, thread_name_prefix="patient-list"
                )
            return self._executor.submit(fn)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def close(self) -> None:
        """Cancel the pending commit, stop listening to the cache and release workers."""
        with self._lock:
            if self._pending_commit is not None:
                self._pending_commit.cancel()
                self._pending_commit = None
        self._unsubscribe()
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
