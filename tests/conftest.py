"""
Shared fixtures: a relay app wired to a fake upstream provider.
"""
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from mr_relay.config.settings import Settings
from mr_relay.main import create_app

UPSTREAM_BASE_URL = "https://upstream.test/v1"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeUpstream:
    """Records every upstream request and answers from a route table."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Handler] = {}

    def route(
        self,
        path: str,
        status_code: int = 200,
        handler: Optional[Handler] = None,
        **response_kwargs,
    ) -> None:
        """Answer requests to ``path`` with a fresh response built from the arguments."""
        if handler is None:

            def handler(request: httpx.Request) -> httpx.Response:
                return httpx.Response(status_code, **response_kwargs)

        self.routes[path] = handler

    def calls_to(self, path: str) -> int:
        return sum(1 for request in self.requests if _relative_path(request) == path)

    def last_request(self, path: str) -> httpx.Request:
        return [request for request in self.requests if _relative_path(request) == path][-1]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(_relative_path(request))
        if handler is None:
            return httpx.Response(404, json={"error": {"message": "no such route"}})
        return handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _relative_path(request: httpx.Request) -> str:
    return request.url.path[len("/v1"):]


def make_settings(**overrides) -> Settings:
    values = {
        "openai_api_key": "sk-test",
        "openai_base_url": UPSTREAM_BASE_URL,
        "allowed_origins": "",
        "rate_limit_per_minute": 120,
        "enable_request_logging": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_client(upstream):
    """Build a TestClient; keyword arguments override settings."""

    def _make(**overrides) -> TestClient:
        app = create_app(
            settings=make_settings(**overrides),
            http_client=httpx.AsyncClient(transport=upstream.transport()),
        )
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client):
    with make_client() as test_client:
        yield test_client
