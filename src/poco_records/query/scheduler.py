"""Timer scheduling used for search debouncing."""

import threading
from typing import Callable, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay; the returned handle cancels it."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class ThreadingScheduler:
    """Scheduler backed by daemon ``threading.Timer`` instances."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer
