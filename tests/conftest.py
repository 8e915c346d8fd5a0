"""Pytest configuration and fixtures for gateway tests."""

import json
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from commerce_mcp.api_client import CommerceAPIClient
from commerce_mcp.config import Settings
from commerce_mcp.context import ExecutionContext
from commerce_mcp.main import create_app
from commerce_mcp.registry import ToolRegistry
from commerce_mcp.tools import build_registry

BASE_URL = "https://commerce.test/occ/v2"
TOKEN = "test-token"

Responder = Callable[[httpx.Request], httpx.Response]


class StubUpstream:
    """In-process commerce API backed by ``httpx.MockTransport``.

    Responses are keyed by ``(method, path)`` where ``path`` is relative to
    the API base URL. Unrouted requests answer 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Responder] = {}

    @property
    def calls(self) -> int:
        return len(self.requests)

    def route(self, method: str, path: str, responder: Responder) -> None:
        self._routes[(method.upper(), path)] = responder

    def json(self, method: str, path: str, data: Any, status_code: int = 200) -> None:
        self.route(method, path, lambda request: httpx.Response(status_code, json=data))

    def text(self, method: str, path: str, body: str, status_code: int = 200) -> None:
        self.route(method, path, lambda request: httpx.Response(status_code, text=body))

    def empty(self, method: str, path: str, status_code: int = 200) -> None:
        self.route(method, path, lambda request: httpx.Response(status_code))

    def last_body(self) -> Any:
        content = self.requests[-1].content
        return json.loads(content) if content else None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        raw_path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        path = raw_path.removeprefix("/occ/v2")
        responder = self._routes.get((request.method, path))
        if responder is None:
            return httpx.Response(404, text=f"no route for {request.method} {path}")
        return responder(request)


def make_api_client(handler: Responder) -> CommerceAPIClient:
    """Create an API client whose HTTP traffic goes to ``handler``."""
    return CommerceAPIClient(
        base_url=BASE_URL,
        user_agent="commerce-mcp-tests",
        http_client=httpx.AsyncClient(
            base_url=BASE_URL,
            transport=httpx.MockTransport(handler),
        ),
    )


@pytest.fixture
def upstream() -> StubUpstream:
    """Create an empty stub upstream."""
    return StubUpstream()


@pytest.fixture
def api_client(upstream: StubUpstream) -> CommerceAPIClient:
    """Create an API client wired to the stub upstream."""
    return make_api_client(upstream.handler)


@pytest.fixture
def registry(api_client: CommerceAPIClient) -> ToolRegistry:
    """Create the full commerce tool registry."""
    return build_registry(api_client)


@pytest.fixture
def context() -> ExecutionContext:
    """Create an execution context carrying a credential."""
    return ExecutionContext(credential=TOKEN, session_id="session-1")


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        commerce_api_url=BASE_URL,
        session_ttl_seconds=300.0,
        session_sweep_interval_seconds=60.0,
        log_json=False,
    )


@pytest.fixture
def client(settings: Settings, upstream: StubUpstream) -> TestClient:
    """Create a test client for the gateway app with the stub upstream."""
    app = create_app(settings=settings, api_client=make_api_client(upstream.handler))
    with TestClient(app) as test_client:
        yield test_client


def rpc(method: str, params: dict[str, Any] | None = None, request_id: Any = 1) -> dict:
    """Build a JSON-RPC request message."""
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


def tool_call(name: str, arguments: dict[str, Any], request_id: Any = 1) -> dict:
    """Build a ``tools/call`` request."""
    return rpc("tools/call", {"name": name, "arguments": arguments}, request_id)
