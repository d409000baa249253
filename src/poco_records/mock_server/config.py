"""Settings for the mock patients service."""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_MOCK_CONFIG_PATH = Path("mocks/config.json")
ENV_PREFIX = "MOCK_SERVER_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class MockServerConfig(BaseModel):
    """Mock service settings.

    Values come from, highest precedence first: ``MOCK_SERVER_<FIELD>``
    environment variables, the JSON file, then these defaults.
    """

    host: str = "127.0.0.1"
    http_port: int = Field(default=8080, ge=1, le=65535)
    api_prefix: str = Field(default="/api/v1", description="Prefix of the REST routes")
    log_level: str = "INFO"
    log_path: str = "mocks/logs/mock-server.log"
    response_delay_ms: int = Field(
        default=0, ge=0, le=5000, description="Delay added to every response"
    )
    seed_data: bool = Field(default=True, description="Start with the sample patient")
    max_page_size: int = Field(default=100, ge=1, description="Largest accepted pageSize")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v.upper() not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level '{v}'. Must be one of: {', '.join(_LOG_LEVELS)}")
        return v.upper()

    @field_validator("api_prefix")
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v


def _read_file(config_file: Path) -> dict[str, Any]:
    if not config_file.exists():
        if config_file != DEFAULT_MOCK_CONFIG_PATH:
            raise FileNotFoundError(f"Configuration file not found: '{config_file}'")
        return {}
    try:
        with open(config_file, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse configuration file '{config_file}': {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file '{config_file}' must contain a JSON object")
    return data


def load_mock_config(config_file: Optional[Path] = None) -> MockServerConfig:
    """Load mock service settings from file and environment.

    Args:
        config_file: JSON settings file; mocks/config.json when None, where a
            missing default file simply means defaults

    Raises:
        FileNotFoundError: If an explicitly named file does not exist
        ValueError: If the file is not valid JSON or a value is invalid
    """
    data = _read_file(config_file or DEFAULT_MOCK_CONFIG_PATH)
    for field in MockServerConfig.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{field.upper()}")
        if value is not None:
            data[field] = value

    try:
        return MockServerConfig(**data)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed: {e}") from e
