import asyncio
from functools import partial
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from ragalgo_mcp import client
from ragalgo_mcp.app import create_app
from ragalgo_mcp.errors import UpstreamError
from ragalgo_mcp.server import create_server
from ragalgo_mcp.tools import build_registry
from ragalgo_mcp.tools.system import NoParams


class FakeUpstream:
    """Stands in for the RagAlgo API and records every call."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []
        self.response: Any = {"success": True, "data": [{"title": "삼성전자 HBM 공급 확대"}], "meta": {"count": 1}}
        self.error: Optional[Exception] = None

    def _answer(self, method: str, endpoint: str, payload: Optional[Dict[str, Any]]) -> Any:
        self.calls.append((method, endpoint, payload))
        if self.error is not None:
            raise self.error
        return self.response

    async def call_api(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._answer("GET", endpoint, params)

    async def call_api_post(self, endpoint: str, body: Dict[str, Any]) -> Any:
        return self._answer("POST", endpoint, body)

    async def call_rest(self, table: str, params: Dict[str, Any]) -> Any:
        return self._answer("REST", table, params)


@pytest.fixture
def upstream(monkeypatch):
    fake = FakeUpstream()
    monkeypatch.setattr(client, "call_api", fake.call_api)
    monkeypatch.setattr(client, "call_api_post", fake.call_api_post)
    monkeypatch.setattr(client, "call_rest", fake.call_rest)
    monkeypatch.setenv("RAGALGO_API_KEY", "test-key")
    return fake


@pytest.fixture
def registry(upstream):
    registry = build_registry()

    @registry.tool("slow", NoParams)
    async def slow(params: NoParams) -> str:
        """Never finishes in time."""
        await asyncio.sleep(30)
        return "late"

    @registry.tool("boom", NoParams)
    async def boom(params: NoParams) -> str:
        """Always fails upstream."""
        raise UpstreamError(503, "service unavailable")

    return registry


@pytest.fixture
def server_factory(registry):
    return partial(create_server, registry)


@pytest.fixture
async def app(server_factory, registry):
    app = create_app(
        server_factory,
        tool_names=[spec.name for spec in registry.list_tools()],
        heartbeat_interval=0.05,
        poll_timeout=0.5,
        request_timeout=2.0,
    )
    yield app
    sse = app.state.sse
    for session_id in sse.store:
        sse.close_session(session_id)
    await asyncio.sleep(0)


@pytest.fixture
async def http(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
