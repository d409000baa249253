"""Process-wide session state holding the bearer token.

The request gateway only ever reads the token through a provider callable;
storing and clearing it is the job of whoever owns authentication.
"""

import os
from threading import Lock
from typing import Callable, Optional

from poco_records.logging_audit import get_logger

logger = get_logger(__name__)

TokenProvider = Callable[[], Optional[str]]


class SessionStore:
    """Thread-safe holder for the current bearer token.

    Example:
        >>> session = SessionStore()
        >>> session.set_token("abc123")
        >>> session.token_provider()()
        'abc123'
    """

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token or None
        self._lock = Lock()

    def get_token(self) -> Optional[str]:
        with self._lock:
            return self._token

    def set_token(self, token: Optional[str]) -> None:
        with self._lock:
            self._token = token or None
        logger.debug("Session token %s", "set" if token else "cleared")

    def clear(self) -> None:
        self.set_token(None)

    def load_from_env(self, env_var: str) -> bool:
        """Seed the token from an environment variable.

        Returns:
            True if the variable held a token
        """
        token = os.environ.get(env_var)
        if token:
            self.set_token(token)
            return True
        return False

    def token_provider(self) -> TokenProvider:
        """Read-only view of the token for the request gateway."""
        return self.get_token


# Module-level singleton for simple usage
_default_session: Optional[SessionStore] = None
_default_lock = Lock()


def get_default_session() -> SessionStore:
    """Get or create the process-wide session store."""
    global _default_session
    with _default_lock:
        if _default_session is None:
            _default_session = SessionStore()
        return _default_session


def reset_default_session() -> None:
    """Drop the process-wide session store (used between CLI runs and tests)."""
    global _default_session
    with _default_lock:
        _default_session = None
