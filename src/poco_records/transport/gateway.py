"""Request gateway for the patients service.

Wraps a request executor, attaches the bearer token and turns every failure
into exactly one of ServerValidationError, ServerError (NotFoundError for
404), NetworkError or SetupError. Both the token source and the failure
classifier are constructor arguments.
"""

from typing import Any, Callable, Optional, Union

from poco_records.logging_audit import get_operation_logger, log_transaction
from poco_records.models.responses import ExecutorResponse
from poco_records.transport.http_client import NoResponseError, RequestExecutor
from poco_records.transport.session import TokenProvider
from poco_records.utils.exceptions import (
    GENERIC_SERVER_MESSAGE,
    VALIDATION_ERROR_CODE,
    GatewayError,
    NetworkError,
    NotFoundError,
    ServerError,
    ServerValidationError,
    SetupError,
)

logger = get_operation_logger("transport")

Failure = Union[ExecutorResponse, Exception]
ErrorClassifier = Callable[[Failure], GatewayError]


def _no_token() -> Optional[str]:
    return None


def _field_errors(body: dict[str, Any]) -> dict[str, list[str]]:
    """Extract the non-empty field error lists from an error body.

    The map is read from ``errors`` and, for older servers, ``details``.
    """
    raw = body.get("errors")
    if raw is None:
        raw = body.get("details")
    if not isinstance(raw, dict):
        return {}
    field_errors: dict[str, list[str]] = {}
    for field, messages in raw.items():
        if isinstance(messages, str):
            messages = [messages]
        messages = [str(m) for m in (messages or []) if m]
        if messages:
            field_errors[str(field)] = messages
    return field_errors


def _classify_response(response: ExecutorResponse) -> GatewayError:
    body = response.body if isinstance(response.body, dict) else {}
    message = body.get("message") or body.get("error") or GENERIC_SERVER_MESSAGE

    if body.get("code") == VALIDATION_ERROR_CODE:
        field_errors = _field_errors(body)
        if field_errors:
            return ServerValidationError(
                str(message), field_errors, status_code=response.status_code
            )

    if response.status_code == 404:
        return NotFoundError(str(message), status_code=404)
    return ServerError(str(message), status_code=response.status_code)


def classify_failure(failure: Failure) -> GatewayError:
    """Map a non-2xx response or executor exception onto the error taxonomy.

    Args:
        failure: Response with a non-2xx status, or the exception raised
            while executing the request

    Returns:
        The GatewayError the caller should see

    Example:
        >>> err = classify_failure(ExecutorResponse(
        ...     400,
        ...     {"code": "VALIDATION_ERROR", "message": "Invalid",
        ...      "errors": {"email": ["Email is required"]}},
        ... ))
        >>> type(err).__name__, err.field_errors
        ('ServerValidationError', {'email': ['Email is required']})
    """
    if isinstance(failure, ExecutorResponse):
        return _classify_response(failure)
    if isinstance(failure, GatewayError):
        return failure
    if isinstance(failure, NoResponseError):
        return NetworkError()
    return SetupError()


class RequestGateway:
    """Authenticated, classified access to the patients REST resource.

    Attributes:
        executor: Transport capability that performs the HTTP exchange
        credential_provider: Callable returning the current bearer token or None
        error_classifier: Callable mapping failures to GatewayError instances

    Example:
        >>> gateway = RequestGateway(
        ...     RequestsExecutor("http://localhost:8080/api/v1"),
        ...     get_default_session().token_provider(),
        ... )
        >>> page = gateway.get("/patients", params={"page": 1, "pageSize": 10})
    """

    def __init__(
        self,
        executor: RequestExecutor,
        credential_provider: Optional[TokenProvider] = None,
        error_classifier: ErrorClassifier = classify_failure,
    ) -> None:
        self.executor = executor
        self.credential_provider = credential_provider or _no_token
        self.error_classifier = error_classifier

    def _headers(self) -> dict[str, str]:
        token = self.credential_provider()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> Any:
        """Execute one request and return the decoded body of a 2xx response.

        Raises:
            GatewayError: One of the four classified failure kinds
        """
        try:
            response = self.executor.execute(
                method,
                path,
                params=params,
                json_body=body,
                headers=self._headers(),
            )
        except Exception as e:
            error = self.error_classifier(e)
            logger.error(
                "%s %s failed before a response arrived: %s (%s)",
                method,
                path,
                error.message,
                type(e).__name__,
            )
            log_transaction(method, path, body, None, None)
            raise error from e

        log_transaction(method, path, body, response.status_code, response.body)

        if response.ok:
            return response.body

        error = self.error_classifier(response)
        logger.warning(
            "%s %s returned HTTP %d: %s",
            method,
            path,
            response.status_code,
            error.message,
        )
        raise error

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, body: Any) -> Any:
        return self.request("POST", path, body=body)

    def put(self, path: str, body: Any) -> Any:
        return self.request("PUT", path, body=body)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)
