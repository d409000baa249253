"""Config module.

This module provides configuration management functionality.
"""

from poco_records.config.manager import load_config
from poco_records.config.schema import (
    ApiConfig,
    AuthConfig,
    Config,
    FormConfig,
    LoggingConfig,
    OperationLoggingConfig,
    PaginationConfig,
    TransportConfig,
)

__all__ = [
    "load_config",
    "ApiConfig",
    "AuthConfig",
    "Config",
    "FormConfig",
    "LoggingConfig",
    "OperationLoggingConfig",
    "PaginationConfig",
    "TransportConfig",
]
