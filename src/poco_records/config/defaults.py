"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# API base URL per environment, used when no URL is configured explicitly
ENVIRONMENT_API_URLS: dict[str, str] = {
    "development": "http://localhost:8080/api/v1",
    "test": "http://localhost:8080/api/v1",
    "production": "https://api.pococlinic.com/api/v1",
}

# Default configuration dictionary
# This is used as a fallback when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "api": {
        "environment": "development",
    },
    "transport": {
        "verify_tls": True,
        "timeout_connect": 10,
        "timeout_read": 30,
        # One retry for idempotent requests
        "max_retries": 1,
        "backoff_factor": 0.3,
        "max_connections": 10,
    },
    "pagination": {
        "default_page_size": 10,
        "max_page_size": 100,
        "search_debounce_ms": 300,
    },
    "auth": {
        "token_env_var": "POCO_AUTH_TOKEN",
    },
    "forms": {
        "default_country": "US",
        "height_unit": "metric",
        "weight_unit": "metric",
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/poco-records.log",
        # Patient data is PII; redact unless the user opts out
        "redact_pii": True,
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"
