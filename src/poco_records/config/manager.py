"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
and configuration validation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from poco_records.config.defaults import (
    DEFAULT_CONFIG,
    DEFAULT_CONFIG_PATH,
    ENVIRONMENT_API_URLS,
)
from poco_records.config.schema import Config
from poco_records.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "POCO_"

# (environment variable suffix, section, field, parser)
_ENV_OVERRIDES: list[tuple[str, str, str, Any]] = [
    ("API_URL", "api", "base_url", str),
    ("ENVIRONMENT", "api", "environment", str),
    ("VERIFY_TLS", "transport", "verify_tls", "bool"),
    ("TIMEOUT_CONNECT", "transport", "timeout_connect", int),
    ("TIMEOUT_READ", "transport", "timeout_read", int),
    ("MAX_RETRIES", "transport", "max_retries", int),
    ("BACKOFF_FACTOR", "transport", "backoff_factor", float),
    ("MAX_CONNECTIONS", "transport", "max_connections", int),
    ("PAGE_SIZE", "pagination", "default_page_size", int),
    ("SEARCH_DEBOUNCE_MS", "pagination", "search_debounce_ms", int),
    ("DEFAULT_COUNTRY", "forms", "default_country", str),
    ("HEIGHT_UNIT", "forms", "height_unit", str),
    ("WEIGHT_UNIT", "forms", "weight_unit", str),
    ("LOG_LEVEL", "logging", "level", str),
    ("LOG_FILE", "logging", "log_file", str),
    ("REDACT_PII", "logging", "redact_pii", "bool"),
    ("OP_LOG_LIST_LEVEL", "operation_logging", "list_log_level", str),
    ("OP_LOG_MUTATION_LEVEL", "operation_logging", "mutation_log_level", str),
    ("OP_LOG_TRANSPORT_LEVEL", "operation_logging", "transport_log_level", str),
]


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (POCO_* prefix)
    3. Configuration file (JSON)
    4. Default values

    When no API URL is given anywhere, the URL registered for the configured
    environment in ENVIRONMENT_API_URLS is used.

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> config.api.base_url
        'http://localhost:8080/api/v1'
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)
    config_dict = _apply_environment_url(config_dict)
    _check_sensitive_values(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format. See documentation for details."
        ) from e


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file or return defaults.

    Raises:
        ConfigurationError: If JSON is malformed or the file cannot be read
    """
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
            logger.info(f"Loaded configuration from {config_path}")
            return config_dict
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check file permissions and path"
            ) from e
    else:
        logger.info(
            f"Config file not found: {config_path}. Using default configuration."
        )
        # Deep copy so callers cannot mutate the defaults
        return json.loads(json.dumps(DEFAULT_CONFIG))


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with POCO_ prefix.

    Environment variables follow the pattern: POCO_<NAME>, for example
    POCO_API_URL, POCO_PAGE_SIZE, POCO_LOG_LEVEL.

    Raises:
        ConfigurationError: If a numeric override cannot be parsed
    """
    for suffix, section, field, parser in _ENV_OVERRIDES:
        raw = os.getenv(f"{ENV_PREFIX}{suffix}")
        if not raw:
            continue
        try:
            value = _parse_bool(raw) if parser == "bool" else parser(raw)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {ENV_PREFIX}{suffix}: {raw!r}\n"
                f"Error: {e}\n"
                f"Fix: Set {ENV_PREFIX}{suffix} to a valid {parser.__name__}"
            ) from e
        config_dict.setdefault(section, {})[field] = value
        logger.debug(f"Override: {field} from environment")
    return config_dict


def _apply_environment_url(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Fill in the API URL for the configured environment if none is set."""
    api = config_dict.setdefault("api", {})
    if api.get("base_url"):
        return config_dict
    environment = str(api.get("environment", "development")).lower()
    if environment in ENVIRONMENT_API_URLS:
        api["base_url"] = ENVIRONMENT_API_URLS[environment]
    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string (case-insensitive)."""
    return value.lower() in ("true", "1", "yes", "on")


def _check_sensitive_values(config_dict: dict[str, Any]) -> None:
    """Warn when a bearer token is stored in the configuration file.

    Tokens belong in the environment variable named by auth.token_env_var.
    """
    auth = config_dict.get("auth", {})
    if "token" in auth:
        logger.warning(
            "WARNING: Auth token found in configuration file! "
            "Tokens should be stored in environment variables, not config files. "
            f"Use {auth.get('token_env_var', ENV_PREFIX + 'AUTH_TOKEN')} instead."
        )
