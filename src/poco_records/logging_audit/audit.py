"""Audit trail functionality for the patient records client.

This module provides structured audit logging for patient mutations and
request/response exchanges with the patients service.
"""

import json
import time
import uuid
from typing import Any, Dict, Optional

from .logger import get_logger

logger = get_logger(__name__)


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Log an audit trail event.

    Events are logged at INFO level, or ERROR level when ``status`` is
    "failure".

    Args:
        event_type: Type of operation (e.g., "PATIENT_CREATED",
                   "PATIENT_UPDATE_REJECTED", "PATIENT_DELETED")
        details: Event details. Common fields include:
                - status: "success" or "failure"
                - patient_id: Identifier of the affected record
                - duration: Operation duration in seconds
                - error_count: Number of field errors
                - error_message: Error details (if status is failure)
                - correlation_id: Optional correlation ID for related events

    Example:
        >>> log_audit_event("PATIENT_CREATED", {
        ...     "status": "success",
        ...     "patient_id": "b7c1",
        ...     "duration": 0.42
        ... })
    """
    details = dict(details)
    details.setdefault("timestamp", time.time())
    details.setdefault("correlation_id", str(uuid.uuid4()))

    message_parts = [f"AUDIT [{event_type}]"]

    field_order = [
        "status",
        "patient_id",
        "duration",
        "error_count",
        "error_message",
        "correlation_id",
    ]

    for field in field_order:
        if field in details:
            value = details[field]
            if field == "duration" and isinstance(value, (int, float)):
                message_parts.append(f"{field}={value:.2f}s")
            else:
                message_parts.append(f"{field}={value}")

    for key, value in details.items():
        if key not in field_order and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    if details.get("status") == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)


def log_transaction(
    method: str,
    path: str,
    request_body: Optional[Any],
    status_code: Optional[int],
    response_body: Optional[Any],
) -> None:
    """Log one request/response exchange with the patients service.

    The summary line is logged at INFO; full bodies at DEBUG.

    Args:
        method: HTTP method
        path: Resource path relative to the API base URL
        request_body: JSON body sent, if any
        status_code: HTTP status received, None when no response arrived
        response_body: Decoded response body, if any
    """
    correlation_id = str(uuid.uuid4())
    request_text = json.dumps(request_body, default=str) if request_body is not None else ""
    response_text = json.dumps(response_body, default=str) if response_body is not None else ""

    logger.info(
        f"TRANSACTION [{method} {path}] | "
        f"status={status_code if status_code is not None else 'no-response'} | "
        f"correlation_id={correlation_id} | "
        f"request_size={len(request_text)} bytes | "
        f"response_size={len(response_text)} bytes"
    )

    if request_text:
        logger.debug(
            f"TRANSACTION REQUEST [{method} {path}] | "
            f"correlation_id={correlation_id}\n"
            f"{request_text}"
        )
    if response_text:
        logger.debug(
            f"TRANSACTION RESPONSE [{method} {path}] | "
            f"correlation_id={correlation_id}\n"
            f"{response_text}"
        )
