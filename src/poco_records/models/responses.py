"""Response data models.

This module defines the raw response handed back by a request executor and
the outcome reported by create/update/delete mutations.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from poco_records.models.patient import Patient


@dataclass(frozen=True)
class ExecutorResponse:
    """HTTP response as seen by the request gateway.

    Attributes:
        status_code: HTTP status code
        body: Decoded JSON body, or None when the response had no body
        text: Raw body text, kept for logging non-JSON error pages
    """

    status_code: int
    body: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class MutationStatus(Enum):
    """How a mutation ended."""

    SUCCESS = "SUCCESS"
    CLIENT_INVALID = "CLIENT_INVALID"
    SERVER_INVALID = "SERVER_INVALID"
    FAILED = "FAILED"


@dataclass
class MutationOutcome:
    """Result of a create/update/delete call.

    Attributes:
        status: Outcome category
        patient: Saved record on create/update success
        field_errors: Field-scoped messages written to the form
        message: Notification text for SUCCESS and FAILED outcomes

    Example:
        >>> outcome = MutationOutcome(status=MutationStatus.SUCCESS)
        >>> outcome.is_success
        True
    """

    status: MutationStatus
    patient: Optional[Patient] = None
    field_errors: dict[str, str] = field(default_factory=dict)
    message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == MutationStatus.SUCCESS
