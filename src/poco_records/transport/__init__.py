"""Transport module.

This module provides the request executor, session state and request gateway.
"""

from poco_records.transport.gateway import RequestGateway, classify_failure
from poco_records.transport.http_client import (
    ConnectionPool,
    ConnectionPoolConfig,
    NoResponseError,
    RequestExecutor,
    RequestSetupError,
    RequestsExecutor,
)
from poco_records.transport.session import SessionStore, get_default_session

__all__ = [
    "ConnectionPool",
    "ConnectionPoolConfig",
    "NoResponseError",
    "RequestExecutor",
    "RequestGateway",
    "RequestSetupError",
    "RequestsExecutor",
    "SessionStore",
    "classify_failure",
    "get_default_session",
]
