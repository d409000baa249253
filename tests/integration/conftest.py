"""Fixtures wiring the client stack to an in-process mock patients service."""

from typing import Any, Optional

import pytest
from flask.testing import FlaskClient

from poco_records.api.patients import PatientApi
from poco_records.mock_server.app import create_app
from poco_records.mock_server.config import MockServerConfig
from poco_records.models.responses import ExecutorResponse
from poco_records.query.cache import QueryCache
from poco_records.transport.gateway import RequestGateway


class FlaskClientExecutor:
    """Request executor that sends requests through a Flask test client."""

    def __init__(self, client: FlaskClient, api_prefix: str = "/api/v1") -> None:
        self.client = client
        self.api_prefix = api_prefix
        self.requests: list[tuple[str, str]] = []

    def execute(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> ExecutorResponse:
        self.requests.append((method, path))
        response = self.client.open(
            f"{self.api_prefix}{path}",
            method=method,
            query_string=params,
            json=json_body,
            headers=headers,
        )
        return ExecutorResponse(
            status_code=response.status_code,
            body=response.get_json(silent=True),
            text=response.get_data(as_text=True),
        )


@pytest.fixture
def mock_app():
    return create_app(MockServerConfig(seed_data=False))


@pytest.fixture
def flask_executor(mock_app) -> FlaskClientExecutor:
    return FlaskClientExecutor(mock_app.test_client())


@pytest.fixture
def api(flask_executor) -> PatientApi:
    return PatientApi(RequestGateway(flask_executor))


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache()
