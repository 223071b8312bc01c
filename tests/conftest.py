"""Shared pytest fixtures for the connector tests."""

from typing import Callable, List

import httpx
import pytest

from okta_connector.clients.dispatch import DispatchClient
from okta_connector.config.models import ConnectionConfig

TEST_HOST = "example.okta.com"
TEST_TOKEN = "00Tok3n"


class RecordingHandler:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, status_code: int = 200, body: str = "{}", headers=None) -> None:
        self.status_code = status_code
        self.body = body
        self.headers = headers or {}
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.body, headers=self.headers)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def connection_config():
    """Create a test connection configuration without throttling."""
    return ConnectionConfig(
        host=TEST_HOST,
        api_token=TEST_TOKEN,
        rate_limit_per_minute=None,
    )


@pytest.fixture
def handler():
    """Handler answering 200 with an empty JSON object."""
    return RecordingHandler()


@pytest.fixture
def make_client(connection_config) -> Callable[..., DispatchClient]:
    """Factory for dispatch clients wired to a mock transport."""

    def _make(handler, config: ConnectionConfig = None) -> DispatchClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return DispatchClient(config or connection_config, http_client=http_client)

    return _make


@pytest.fixture
def client(make_client, handler) -> DispatchClient:
    """Dispatch client using the default recording handler."""
    return make_client(handler)


@pytest.fixture
def recording_handler():
    """The RecordingHandler class, for tests needing custom responses."""
    return RecordingHandler
