"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from poco_records.models.patient import UnitSystem

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_ENVIRONMENTS = ["development", "test", "production"]


def _validate_level(v: str) -> str:
    v_upper = v.upper()
    if v_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level: {v}. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )
    return v_upper


class ApiConfig(BaseModel):
    """Configuration for the patients service.

    Attributes:
        base_url: API base URL; resource paths such as /patients are appended
        environment: Deployment environment (development, test, production)
    """

    base_url: str = Field(
        default="http://localhost:8080/api/v1",
        description="Patients service base URL",
    )
    environment: str = Field(
        default="development",
        description="Deployment environment",
    )

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL is valid HTTP/HTTPS and strip a trailing slash.

        Raises:
            ValueError: If URL does not start with http:// or https://
        """
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid URL: {v}. Must start with http:// or https://"
            )
        return v.rstrip("/")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in VALID_ENVIRONMENTS:
            raise ValueError(
                f"Invalid environment: {v}. "
                f"Must be one of: {', '.join(VALID_ENVIRONMENTS)}"
            )
        return v_lower


class TransportConfig(BaseModel):
    """Configuration for HTTP/HTTPS transport.

    Attributes:
        verify_tls: Whether to verify TLS certificates
        timeout_connect: Connection timeout in seconds
        timeout_read: Read timeout in seconds
        max_retries: Retry attempts for idempotent requests (executor level)
        backoff_factor: Exponential backoff factor for retries
        max_connections: Connection pool size, also used for concurrent list fetches
    """

    verify_tls: bool = True
    timeout_connect: int = Field(default=10, ge=1, description="Connection timeout in seconds")
    timeout_read: int = Field(default=30, ge=1, description="Read timeout in seconds")
    max_retries: int = Field(default=1, ge=0, le=5, description="Maximum retry attempts")
    backoff_factor: float = Field(default=0.3, ge=0.0, description="Exponential backoff factor")
    max_connections: int = Field(default=10, ge=1, le=50, description="Connection pool size")


class PaginationConfig(BaseModel):
    """Configuration for the patient list.

    Attributes:
        default_page_size: Rows per page requested by the list controller
        max_page_size: Largest page size the server accepts
        search_debounce_ms: Quiet period before typed search text is committed
    """

    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    search_debounce_ms: int = Field(default=300, ge=0)

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "PaginationConfig":
        """Validate the default page size fits under the maximum.

        Raises:
            ValueError: If default_page_size > max_page_size
        """
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) cannot be greater "
                f"than max_page_size ({self.max_page_size}). "
                f"Fix: Set default_page_size <= max_page_size."
            )
        return self


class AuthConfig(BaseModel):
    """Where the bearer token is read from.

    Attributes:
        token_env_var: Environment variable holding the session token
    """

    token_env_var: str = Field(
        default="POCO_AUTH_TOKEN",
        description="Environment variable for the bearer token",
    )


class FormConfig(BaseModel):
    """Defaults applied to patient forms.

    Attributes:
        default_country: Country used when an address is composed without one
        height_unit: Initial display unit for height
        weight_unit: Initial display unit for weight
    """

    default_country: str = Field(default="US", min_length=2, max_length=3)
    height_unit: UnitSystem = UnitSystem.METRIC
    weight_unit: UnitSystem = UnitSystem.METRIC


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact PII from logs
    """

    level: str = Field(default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL")
    log_file: Path = Field(default=Path("logs/poco-records.log"), description="Log file path")
    redact_pii: bool = Field(default=True, description="Redact PII from logs")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return _validate_level(v)


class OperationLoggingConfig(BaseModel):
    """Per-operation logging configuration.

    Attributes:
        list_log_level: Log level for list queries
        mutation_log_level: Log level for create/update/delete
        transport_log_level: Log level for request gateway traffic
    """

    list_log_level: str = Field(default="INFO")
    mutation_log_level: str = Field(default="INFO")
    transport_log_level: str = Field(default="WARNING")

    @field_validator("list_log_level", "mutation_log_level", "transport_log_level")
    @classmethod
    def validate_operation_log_level(cls, v: str) -> str:
        return _validate_level(v)


class Config(BaseModel):
    """Root configuration model.

    Example:
        >>> config = Config(api=ApiConfig(base_url="https://api.example.com/v1"))
        >>> config.api.base_url
        'https://api.example.com/v1'
        >>> config.pagination.default_page_size
        10
    """

    api: ApiConfig = ApiConfig()
    transport: TransportConfig = TransportConfig()
    pagination: PaginationConfig = PaginationConfig()
    auth: AuthConfig = AuthConfig()
    forms: FormConfig = FormConfig()
    logging: LoggingConfig = LoggingConfig()
    operation_logging: OperationLoggingConfig = OperationLoggingConfig()
