"""HTTP request executor with connection pooling for the patients service.

This module provides the production request executor used by the request
gateway: a pooled ``requests.Session`` with a bounded urllib3 retry policy.
Retries only ever apply to idempotent methods; the gateway itself never
retries.
"""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from poco_records.config.schema import Config
from poco_records.models.responses import ExecutorResponse

logger = logging.getLogger(__name__)

# Default connection pool settings
DEFAULT_MAX_CONNECTIONS = 10
DEFAULT_POOL_BLOCK = True
DEFAULT_RETRY_COUNT = 1
DEFAULT_BACKOFF_FACTOR = 0.3
DEFAULT_TIMEOUT_CONNECT = 10
DEFAULT_TIMEOUT_READ = 30

RETRY_STATUS_CODES = [502, 503, 504]
IDEMPOTENT_METHODS = ["HEAD", "GET", "PUT", "DELETE", "OPTIONS"]


class NoResponseError(Exception):
    """The request was sent but no response was received."""


class RequestSetupError(Exception):
    """The request could not be constructed or sent."""


class RequestExecutor(Protocol):
    """Capability the request gateway needs from the transport layer.

    Implementations return an ExecutorResponse for every HTTP status
    (including 4xx/5xx) and raise NoResponseError or RequestSetupError
    otherwise.
    """

    def execute(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> ExecutorResponse: ...


@dataclass
class ConnectionPoolConfig:
    """Configuration for HTTP connection pooling.

    Attributes:
        max_connections: Maximum number of connections in the pool.
        pool_block: Whether to block when pool is exhausted.
        retry_count: Number of retries for failed idempotent requests.
        backoff_factor: Factor for exponential backoff between retries.
        timeout_connect: Connect timeout in seconds.
        timeout_read: Read timeout in seconds.
        verify_tls: Whether to verify TLS certificates.

    Example:
        >>> config = ConnectionPoolConfig(max_connections=20)
        >>> pool = ConnectionPool(config)
        >>> session = pool.get_session()
    """

    max_connections: int = DEFAULT_MAX_CONNECTIONS
    pool_block: bool = DEFAULT_POOL_BLOCK
    retry_count: int = DEFAULT_RETRY_COUNT
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    timeout_connect: int = DEFAULT_TIMEOUT_CONNECT
    timeout_read: int = DEFAULT_TIMEOUT_READ
    verify_tls: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_connections < 1:
            raise ValueError(
                f"max_connections must be >= 1, got {self.max_connections}"
            )
        if self.retry_count < 0:
            raise ValueError(
                f"retry_count must be >= 0, got {self.retry_count}"
            )
        if self.backoff_factor < 0:
            raise ValueError(
                f"backoff_factor must be >= 0, got {self.backoff_factor}"
            )
        if self.timeout_connect < 1 or self.timeout_read < 1:
            raise ValueError(
                f"timeouts must be >= 1, got connect={self.timeout_connect} "
                f"read={self.timeout_read}"
            )

    @classmethod
    def from_config(cls, config: Config) -> "ConnectionPoolConfig":
        transport = config.transport
        return cls(
            max_connections=transport.max_connections,
            retry_count=transport.max_retries,
            backoff_factor=transport.backoff_factor,
            timeout_connect=transport.timeout_connect,
            timeout_read=transport.timeout_read,
            verify_tls=transport.verify_tls,
        )


class ConnectionPool:
    """Manages a lazily created, pooled HTTP session.

    Thread-safe; list fetches may run concurrently on worker threads.

    Example:
        >>> with ConnectionPool(ConnectionPoolConfig(max_connections=15)) as pool:
        ...     session = pool.get_session()
    """

    def __init__(self, config: Optional[ConnectionPoolConfig] = None) -> None:
        self.config = config or ConnectionPoolConfig()
        self._session: Optional[requests.Session] = None
        self._lock = Lock()
        logger.debug(
            "ConnectionPool initialized with max_connections=%d, pool_block=%s",
            self.config.max_connections,
            self.config.pool_block,
        )

    def get_session(self) -> requests.Session:
        """Get or create the configured HTTP session."""
        with self._lock:
            if self._session is None:
                self._session = self._create_session()
            return self._session

    def _create_session(self) -> requests.Session:
        retry_strategy = Retry(
            total=self.config.retry_count,
            backoff_factor=self.config.backoff_factor,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=IDEMPOTENT_METHODS,
            # Hand the last response back instead of raising after retries
            raise_on_status=False,
        )

        adapter = HTTPAdapter(
            pool_connections=self.config.max_connections,
            pool_maxsize=self.config.max_connections,
            pool_block=self.config.pool_block,
            max_retries=retry_strategy,
        )

        session = requests.Session()
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.verify = self.config.verify_tls
        session.headers.update({"Content-Type": "application/json"})

        logger.info(
            "Created HTTP session with pool_maxsize=%d, retry_count=%d",
            self.config.max_connections,
            self.config.retry_count,
        )
        return session

    def close(self) -> None:
        """Close the session and release pooled connections."""
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None
                logger.debug("ConnectionPool session closed")

    def __enter__(self) -> "ConnectionPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class RequestsExecutor:
    """Request executor backed by a pooled requests session.

    Attributes:
        base_url: API base URL that resource paths are appended to
        pool: Connection pool providing the session

    Example:
        >>> executor = RequestsExecutor("http://localhost:8080/api/v1")
        >>> response = executor.execute("GET", "/patients", params={"page": 1})
        >>> response.status_code
        200
    """

    def __init__(
        self, base_url: str, pool: Optional[ConnectionPool] = None
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.pool = pool or ConnectionPool()

    @classmethod
    def from_config(cls, config: Config) -> "RequestsExecutor":
        return cls(
            config.api.base_url,
            ConnectionPool(ConnectionPoolConfig.from_config(config)),
        )

    def execute(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> ExecutorResponse:
        """Send one request and return the response whatever its status.

        Raises:
            NoResponseError: On connection failures, timeouts and exhausted retries
            RequestSetupError: On malformed URLs, headers or bodies
        """
        url = f"{self.base_url}{path}"
        timeout = (self.pool.config.timeout_connect, self.pool.config.timeout_read)
        try:
            response = self.pool.get_session().request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=timeout,
            )
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
            requests.exceptions.InvalidHeader,
            requests.exceptions.InvalidJSONError,
        ) as e:
            logger.error("Could not build %s %s: %s", method, url, e)
            raise RequestSetupError(str(e)) from e
        except (
            requests.ConnectionError,
            requests.Timeout,
            requests.exceptions.RetryError,
        ) as e:
            logger.warning("No response for %s %s: %s", method, url, e)
            raise NoResponseError(str(e)) from e

        return ExecutorResponse(
            status_code=response.status_code,
            body=_decode_body(response),
            text=response.text,
        )

    def close(self) -> None:
        self.pool.close()


def _decode_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None
