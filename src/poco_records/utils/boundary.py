"""Error boundary for view rendering.

Wraps a render callable so a failure produces an explicit ``Failed`` result
instead of propagating. Once a render has failed, the boundary keeps
returning the failure until ``reset()`` is called.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

from poco_records.logging_audit import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

FALLBACK_TITLE = "Something went wrong!"
FALLBACK_MESSAGE = (
    "We apologize for the inconvenience. Please try refreshing the page "
    "or contact support if the problem persists."
)


@dataclass(frozen=True)
class Rendered(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failed(Generic[T]):
    """Fallback state shown in place of the wrapped view.

    Attributes:
        error: Exception raised by the render callable
        last_good: Value of the last successful render, if any
    """

    error: Exception
    last_good: Optional[T] = None
    title: str = FALLBACK_TITLE
    message: str = FALLBACK_MESSAGE

    @property
    def detail(self) -> str:
        return f"Error: {self.error}"


BoundaryResult = Union[Rendered[T], Failed[T]]


class ErrorBoundary(Generic[T]):
    """Catches render failures and holds the fallback until reset.

    Example:
        >>> boundary = ErrorBoundary(lambda: 1 / 0)
        >>> isinstance(boundary.render(), Failed)
        True
        >>> boundary.has_error
        True
    """

    def __init__(
        self,
        render: Callable[[], T],
        on_reset: Optional[Callable[[], None]] = None,
    ) -> None:
        self._render = render
        self._on_reset = on_reset
        self.error: Optional[Exception] = None
        self.last_good: Optional[T] = None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def render(self) -> BoundaryResult:
        if self.error is not None:
            return Failed(self.error, self.last_good)
        try:
            value = self._render()
        except Exception as e:
            logger.error("Error caught by boundary: %s", e, exc_info=True)
            self.error = e
            return Failed(e, self.last_good)
        self.last_good = value
        return Rendered(value)

    def reset(self) -> None:
        """Clear the failure and run the ``on_reset`` hook.

        The next ``render()`` call tries the wrapped view again.
        """
        self.error = None
        if self._on_reset is not None:
            self._on_reset()
