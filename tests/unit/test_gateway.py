"""Unit tests for the request gateway and failure classification."""

from unittest.mock import Mock

import pytest

from poco_records.models.responses import ExecutorResponse
from poco_records.transport.gateway import RequestGateway, classify_failure
from poco_records.transport.http_client import NoResponseError, RequestSetupError
from poco_records.transport.session import SessionStore
from poco_records.utils.exceptions import (
    GENERIC_SERVER_MESSAGE,
    FailureKind,
    GatewayError,
    NetworkError,
    NotFoundError,
    ServerError,
    ServerValidationError,
    SetupError,
    user_message,
)


@pytest.fixture
def executor():
    """Executor mock answering 200 with an empty object by default."""
    mock = Mock()
    mock.execute.return_value = ExecutorResponse(200, {})
    return mock


class TestClassifyFailure:
    """Tests for mapping failures onto the four error kinds."""

    def test_validation_error_with_field_map(self):
        # Arrange
        response = ExecutorResponse(
            400,
            {
                "code": "VALIDATION_ERROR",
                "message": "Validation failed",
                "errors": {"email": ["Email is required", "second"], "phone": []},
            },
        )

        # Act
        error = classify_failure(response)

        # Assert
        assert isinstance(error, ServerValidationError)
        assert error.kind == FailureKind.VALIDATION
        assert error.code == "VALIDATION_ERROR"
        assert error.field_errors == {"email": ["Email is required", "second"]}
        assert error.first_messages() == {"email": "Email is required"}

    def test_details_key_is_accepted(self):
        """Test the older 'details' field error map."""
        error = classify_failure(
            ExecutorResponse(
                400,
                {"code": "VALIDATION_ERROR", "message": "Bad", "details": {"page": ["Page must be a positive number"]}},
            )
        )
        assert isinstance(error, ServerValidationError)
        assert error.field_errors == {"page": ["Page must be a positive number"]}

    def test_validation_code_without_fields_is_server_error(self):
        """Test VALIDATION_ERROR with an empty map is a plain server error."""
        error = classify_failure(
            ExecutorResponse(400, {"code": "VALIDATION_ERROR", "message": "Invalid request body"})
        )
        assert type(error) is ServerError
        assert error.message == "Invalid request body"
        assert error.status_code == 400

    def test_server_error_message_precedence(self):
        assert classify_failure(ExecutorResponse(500, {"message": "m", "error": "e"})).message == "m"
        assert classify_failure(ExecutorResponse(500, {"error": "e"})).message == "e"
        assert classify_failure(ExecutorResponse(502, None)).message == GENERIC_SERVER_MESSAGE

    def test_not_found(self):
        error = classify_failure(ExecutorResponse(404, {"code": "NOT_FOUND", "message": "Patient not found"}))
        assert isinstance(error, NotFoundError)
        assert isinstance(error, ServerError)
        assert error.message == "Patient not found"

    def test_no_response(self):
        error = classify_failure(NoResponseError("timed out"))
        assert isinstance(error, NetworkError)
        assert error.message == "Network error - no response received"

    @pytest.mark.parametrize("failure", [RequestSetupError("bad url"), TypeError("boom")])
    def test_anything_else_is_setup_error(self, failure):
        error = classify_failure(failure)
        assert isinstance(error, SetupError)
        assert error.message == "Error setting up the request"


class TestRequestGateway:
    """Tests for RequestGateway request handling."""

    def test_returns_body_of_successful_response(self, executor):
        executor.execute.return_value = ExecutorResponse(200, {"id": "1"})
        gateway = RequestGateway(executor)
        assert gateway.get("/patients/1") == {"id": "1"}

    def test_bearer_token_attached_when_present(self, executor):
        # Arrange
        session = SessionStore("abc123")
        gateway = RequestGateway(executor, session.token_provider())

        # Act
        gateway.post("/patients", {"firstName": "Ann"})

        # Assert
        executor.execute.assert_called_once_with(
            "POST",
            "/patients",
            params=None,
            json_body={"firstName": "Ann"},
            headers={"Authorization": "Bearer abc123"},
        )

    def test_no_authorization_header_without_token(self, executor):
        gateway = RequestGateway(executor, SessionStore().token_provider())
        gateway.get("/patients", params={"page": 1})
        assert executor.execute.call_args.kwargs["headers"] == {}

    def test_token_is_read_per_request(self, executor):
        """Test a token stored after construction is picked up."""
        session = SessionStore()
        gateway = RequestGateway(executor, session.token_provider())
        session.set_token("late")
        gateway.delete("/patients/1")
        assert executor.execute.call_args.kwargs["headers"]["Authorization"] == "Bearer late"

    def test_non_2xx_raises_classified_error(self, executor):
        executor.execute.return_value = ExecutorResponse(
            400,
            {"code": "VALIDATION_ERROR", "message": "Invalid", "errors": {"email": ["Email is required"]}},
        )
        gateway = RequestGateway(executor)
        with pytest.raises(ServerValidationError):
            gateway.put("/patients/1", {})

    def test_executor_exception_is_classified(self, executor):
        # Arrange
        executor.execute.side_effect = NoResponseError("connection refused")
        gateway = RequestGateway(executor)

        # Act & Assert
        with pytest.raises(NetworkError) as exc_info:
            gateway.get("/patients")
        assert isinstance(exc_info.value.__cause__, NoResponseError)

    def test_unexpected_executor_exception_becomes_setup_error(self, executor):
        executor.execute.side_effect = ValueError("unserializable")
        with pytest.raises(SetupError):
            RequestGateway(executor).post("/patients", object())

    def test_custom_classifier_is_used(self, executor):
        """Test the classifier is injectable."""
        executor.execute.return_value = ExecutorResponse(418, {})
        classifier = Mock(return_value=ServerError("teapot"))
        gateway = RequestGateway(executor, error_classifier=classifier)

        with pytest.raises(ServerError, match="teapot"):
            gateway.get("/patients")
        classifier.assert_called_once_with(ExecutorResponse(418, {}))

    def test_gateway_never_retries(self, executor):
        executor.execute.side_effect = NoResponseError("down")
        with pytest.raises(GatewayError):
            RequestGateway(executor).get("/patients")
        assert executor.execute.call_count == 1

    def test_no_content_response_returns_none(self, executor):
        executor.execute.return_value = ExecutorResponse(204)
        assert RequestGateway(executor).delete("/patients/1") is None


class TestUserMessage:
    def test_gateway_error_message(self):
        assert user_message(ServerError("Email already registered"), "fallback") == "Email already registered"

    def test_empty_message_falls_back(self):
        assert user_message(RuntimeError(), "Failed to save patient") == "Failed to save patient"
