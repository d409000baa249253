"""Unit tests for the requests-based executor and connection pool."""

from unittest.mock import MagicMock

import pytest
import requests

from poco_records.config.schema import Config, TransportConfig
from poco_records.transport.http_client import (
    IDEMPOTENT_METHODS,
    ConnectionPool,
    ConnectionPoolConfig,
    NoResponseError,
    RequestSetupError,
    RequestsExecutor,
)


def _response(status: int, json_body=None, text: str = "") -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.content = text.encode() if text else (b"{}" if json_body is not None else b"")
    response.text = text
    if json_body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_body
    return response


class TestConnectionPoolConfig:
    """Tests for ConnectionPoolConfig validation."""

    def test_defaults(self):
        config = ConnectionPoolConfig()
        assert config.retry_count == 1
        assert config.max_connections == 10

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_connections": 0}, {"retry_count": -1}, {"backoff_factor": -0.1}, {"timeout_read": 0}],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            ConnectionPoolConfig(**kwargs)

    def test_from_config(self):
        config = Config(transport=TransportConfig(max_retries=3, max_connections=5, verify_tls=False))
        pool_config = ConnectionPoolConfig.from_config(config)
        assert pool_config.retry_count == 3
        assert pool_config.max_connections == 5
        assert pool_config.verify_tls is False


class TestConnectionPool:
    """Tests for the pooled session."""

    def test_session_is_reused(self):
        with ConnectionPool() as pool:
            assert pool.get_session() is pool.get_session()

    def test_retry_policy_covers_idempotent_methods_only(self):
        # Arrange
        pool = ConnectionPool(ConnectionPoolConfig(retry_count=1))

        # Act
        adapter = pool.get_session().get_adapter("http://localhost")
        retries = adapter.max_retries

        # Assert
        assert retries.total == 1
        assert "POST" not in retries.allowed_methods
        assert set(retries.allowed_methods) == set(IDEMPOTENT_METHODS)
        pool.close()

    def test_close_drops_session(self):
        pool = ConnectionPool()
        first = pool.get_session()
        pool.close()
        assert pool.get_session() is not first


class TestRequestsExecutor:
    """Tests for RequestsExecutor.execute."""

    def test_builds_url_and_returns_response(self, mocker):
        # Arrange
        request = mocker.patch.object(
            requests.Session, "request", return_value=_response(200, {"patients": []})
        )
        executor = RequestsExecutor("http://localhost:8080/api/v1/")

        # Act
        result = executor.execute("GET", "/patients", params={"page": 1})

        # Assert
        assert result.status_code == 200
        assert result.body == {"patients": []}
        args, kwargs = request.call_args
        assert args == ("GET", "http://localhost:8080/api/v1/patients")
        assert kwargs["params"] == {"page": 1}
        assert kwargs["timeout"] == (10, 30)

    def test_error_statuses_are_returned_not_raised(self, mocker):
        mocker.patch.object(
            requests.Session, "request", return_value=_response(500, {"message": "boom"})
        )
        result = RequestsExecutor("http://localhost").execute("GET", "/patients")
        assert result.status_code == 500
        assert result.body == {"message": "boom"}

    def test_non_json_body_is_none(self, mocker):
        mocker.patch.object(
            requests.Session, "request", return_value=_response(502, None, "<html>Bad Gateway</html>")
        )
        result = RequestsExecutor("http://localhost").execute("GET", "/patients")
        assert result.body is None
        assert "Bad Gateway" in result.text

    @pytest.mark.parametrize(
        "error", [requests.ConnectionError("refused"), requests.Timeout("slow")]
    )
    def test_no_response_errors(self, mocker, error):
        mocker.patch.object(requests.Session, "request", side_effect=error)
        with pytest.raises(NoResponseError):
            RequestsExecutor("http://localhost").execute("GET", "/patients")

    def test_setup_errors(self, mocker):
        mocker.patch.object(
            requests.Session, "request", side_effect=requests.exceptions.InvalidURL("bad")
        )
        with pytest.raises(RequestSetupError):
            RequestsExecutor("http://localhost").execute("GET", "/patients")

    def test_from_config_uses_base_url_and_timeouts(self, mocker):
        request = mocker.patch.object(requests.Session, "request", return_value=_response(204))
        config = Config(transport=TransportConfig(timeout_connect=3, timeout_read=7))
        executor = RequestsExecutor.from_config(config)

        executor.execute("DELETE", "/patients/1")

        args, kwargs = request.call_args
        assert args[1] == "http://localhost:8080/api/v1/patients/1"
        assert kwargs["timeout"] == (3, 7)
        executor.close()
