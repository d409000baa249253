"""Custom exception classes for the patient records client.

All exceptions inherit from PatientRecordsError to allow catching all custom exceptions.
Errors raised by the request gateway additionally inherit from GatewayError; those four
kinds are the only failures callers of the gateway ever see.
"""

from enum import Enum
from typing import Optional


VALIDATION_ERROR_CODE = "VALIDATION_ERROR"

GENERIC_SERVER_MESSAGE = "An error occurred"
NO_RESPONSE_MESSAGE = "Network error - no response received"
SETUP_FAILURE_MESSAGE = "Error setting up the request"


class PatientRecordsError(Exception):
    """Base exception for all patient records client exceptions."""

    pass


class ConfigurationError(PatientRecordsError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Invalid configuration file format
        - API base URL that is not http(s)
        - Configuration value out of range
    """

    pass


class InvalidInputError(PatientRecordsError):
    """Raised when form data cannot be turned into wire data.

    Examples:
        - Date of birth still empty at submission time
    """

    pass


class ClientValidationError(PatientRecordsError):
    """Raised when local form validation fails before anything is sent.

    Attributes:
        field_errors: Mapping of form field name to its first error message
    """

    def __init__(self, field_errors: dict[str, str]) -> None:
        self.field_errors = dict(field_errors)
        fields = ", ".join(sorted(self.field_errors))
        super().__init__(f"Form has invalid fields: {fields}")


class SubmissionInProgressError(PatientRecordsError):
    """Raised when a form is submitted while its previous submission is pending."""

    pass


class FailureKind(Enum):
    """Classification of a failed gateway request."""

    VALIDATION = "VALIDATION"
    SERVER = "SERVER"
    NETWORK = "NETWORK"
    SETUP = "SETUP"


class GatewayError(PatientRecordsError):
    """Base class for every failure surfaced by the request gateway."""

    kind: FailureKind = FailureKind.SERVER

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ServerValidationError(GatewayError):
    """Server rejected the payload with a field-scoped error map.

    Attributes:
        code: Discriminator code sent by the server (VALIDATION_ERROR)
        field_errors: Mapping of wire field name to ordered messages. The first
            message of each list is the one shown to the user.

    Example:
        >>> err = ServerValidationError(
        ...     "Validation failed", {"email": ["Email is required"]}
        ... )
        >>> err.first_messages()
        {'email': 'Email is required'}
    """

    kind = FailureKind.VALIDATION

    def __init__(
        self,
        message: str,
        field_errors: dict[str, list[str]],
        code: str = VALIDATION_ERROR_CODE,
        status_code: Optional[int] = 400,
    ) -> None:
        super().__init__(message, status_code)
        self.code = code
        self.field_errors = field_errors

    def first_messages(self) -> dict[str, str]:
        """Return the authoritative (first) message of every field."""
        return {
            field: messages[0]
            for field, messages in self.field_errors.items()
            if messages
        }


class ServerError(GatewayError):
    """Server answered with a non-2xx status and no field error map."""

    kind = FailureKind.SERVER


class NotFoundError(ServerError):
    """Requested record does not exist (HTTP 404)."""

    pass


class NetworkError(GatewayError):
    """Request was sent but no response arrived."""

    kind = FailureKind.NETWORK

    def __init__(self, message: str = NO_RESPONSE_MESSAGE) -> None:
        super().__init__(message)


class SetupError(GatewayError):
    """Request could not be built or sent."""

    kind = FailureKind.SETUP

    def __init__(self, message: str = SETUP_FAILURE_MESSAGE) -> None:
        super().__init__(message)


def user_message(exception: Exception, fallback: str) -> str:
    """Return the text to show in a global notification for an error.

    Gateway errors carry either the server-provided message or one of the
    fixed transport messages; anything else falls back to ``fallback``.

    Args:
        exception: Error raised by a data layer operation
        fallback: Message used when the error has nothing useful to say

    Returns:
        Notification message

    Example:
        >>> user_message(NetworkError(), "Failed to save patient")
        'Network error - no response received'
        >>> user_message(RuntimeError(""), "Failed to save patient")
        'Failed to save patient'
    """
    if isinstance(exception, GatewayError) and exception.message:
        return exception.message
    return str(exception) or fallback
