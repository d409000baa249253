"""In-memory cache of server reads keyed by query key tuples.

Keys are tuples whose first element names the query family, for example
``("patients", "doe", 2)`` for a list page and ``("patient", "<id>")`` for a
single record. Invalidating a prefix drops every matching entry and notifies
the subscribers of that family so active views can refetch.
"""

from threading import RLock
from typing import Any, Callable, Optional

from poco_records.logging_audit import get_logger

logger = get_logger(__name__)

QueryKey = tuple[Any, ...]
InvalidationListener = Callable[[QueryKey], None]


def _matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryCache:
    """Thread-safe cache with prefix invalidation.

    Example:
        >>> cache = QueryCache()
        >>> cache.set(("patient", "42"), record)
        >>> cache.invalidate(("patient", "42"))
        1
        >>> cache.get(("patient", "42")) is None
        True
    """

    def __init__(self) -> None:
        self._entries: dict[QueryKey, Any] = {}
        self._listeners: list[tuple[QueryKey, InvalidationListener]] = []
        self._lock = RLock()

    def get(self, key: QueryKey) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: QueryKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop all entries under ``prefix`` and notify its subscribers.

        Subscribers are notified even when nothing was cached, so a view that
        is still waiting for its first response refetches as well.

        Returns:
            Number of entries removed
        """
        with self._lock:
            stale = [key for key in self._entries if _matches(key, prefix)]
            for key in stale:
                del self._entries[key]
            listeners = [
                callback
                for family, callback in self._listeners
                if _matches(prefix, family) or _matches(family, prefix)
            ]

        logger.debug("Invalidated %d cached entries under %s", len(stale), prefix)
        for callback in listeners:
            callback(prefix)
        return len(stale)

    def subscribe(
        self, family: QueryKey, callback: InvalidationListener
    ) -> Callable[[], None]:
        """Call ``callback`` whenever a key overlapping ``family`` is invalidated.

        Returns:
            Function that removes the subscription
        """
        entry = (family, callback)
        with self._lock:
            self._listeners.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        return unsubscribe

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
