"""Logging setup for the patient records client.

Console output follows the requested level while a rotating log file keeps
everything at DEBUG. Both go through PIIRedactingFormatter, so patient
details can be masked in every sink at once. Named operation loggers
(list, mutation, transport) can be tuned independently.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .formatters import PIIRedactingFormatter

if TYPE_CHECKING:
    from ..config.schema import OperationLoggingConfig

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = Path("logs") / "poco-records.log"
LOG_FILE_ENV_VAR = "POCO_LOG_FILE"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5

OPERATION_LOGGERS = {
    "list": "poco_records.list",
    "mutation": "poco_records.mutation",
    "transport": "poco_records.transport",
}

# Handlers added to the root logger by configure_logging()
_installed_handlers: list[logging.Handler] = []

logger = logging.getLogger(__name__)


def _numeric_level(level: str, label: str = "") -> int:
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        target = f" for {label}" if label else ""
        raise ValueError(
            f"Invalid log level{target}: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    return numeric_level


def _resolve_log_file(log_file: Optional[Path]) -> Path:
    if log_file is not None:
        return log_file
    from_env = os.environ.get(LOG_FILE_ENV_VAR)
    return Path(from_env) if from_env else DEFAULT_LOG_FILE


def _file_handler(log_file: Path, formatter: logging.Formatter) -> Optional[logging.Handler]:
    try:
        handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        logger.warning("Cannot write log file %s (%s); logging to console only", log_file, e)
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_pii: bool = False,
) -> None:
    """Install console and rotating file handlers on the root logger.

    Calling it again replaces the handlers from the previous call and leaves
    any other root handlers alone.

    Args:
        level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Log file path; POCO_LOG_FILE or logs/poco-records.log if None
        redact_pii: Mask emails, phone numbers, birth dates and name= pairs

    Raises:
        ValueError: If the level is not a logging level name
        RuntimeError: If the log directory cannot be created

    Example:
        >>> configure_logging(level="DEBUG", redact_pii=True)
    """
    console_level = _numeric_level(level)
    log_file = _resolve_log_file(log_file)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(
            f"Failed to create log directory: {log_file.parent}. "
            f"Ensure write permissions are available. Error: {e}"
        ) from e

    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    root.setLevel(logging.DEBUG)
    formatter = PIIRedactingFormatter(fmt=DEFAULT_LOG_FORMAT, redact_pii=redact_pii)

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(formatter)
    _installed_handlers.append(console)

    file_handler = _file_handler(log_file, formatter)
    if file_handler is not None:
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        root.addHandler(handler)


def get_logger(module_name: str) -> logging.Logger:
    """Logger for a module; call with ``__name__``."""
    return logging.getLogger(module_name)


def get_operation_logger(operation: str) -> logging.Logger:
    """Logger shared by one kind of operation: list, mutation or transport.

    Raises:
        ValueError: If operation is not a recognized type
    """
    try:
        return logging.getLogger(OPERATION_LOGGERS[operation])
    except KeyError:
        raise ValueError(
            f"Unknown operation: {operation}. "
            f"Must be one of: {', '.join(OPERATION_LOGGERS)}"
        ) from None


def configure_operation_logging(
    list_log_level: str = "INFO",
    mutation_log_level: str = "INFO",
    transport_log_level: str = "WARNING",
) -> None:
    """Set the level of each operation logger.

    Raises:
        ValueError: If any log level is invalid
    """
    levels = {
        "list": list_log_level,
        "mutation": mutation_log_level,
        "transport": transport_log_level,
    }
    for operation, level in levels.items():
        get_operation_logger(operation).setLevel(_numeric_level(level, operation))
    logger.debug("Operation log levels: %s", levels)


def configure_operation_logging_from_config(config: "OperationLoggingConfig") -> None:
    configure_operation_logging(
        list_log_level=config.list_log_level,
        mutation_log_level=config.mutation_log_level,
        transport_log_level=config.transport_log_level,
    )
