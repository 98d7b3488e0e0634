import asyncio

import httpx
import pytest
from mcp import types

from ragalgo_mcp.app import create_app
from ragalgo_mcp.transports import PendingResponseBuffer, StatelessHttpAdapter


def call(request_id, name, arguments=None):
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments or {}},
    }


def initialize(request_id):
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "initialize",
        "params": {
            "protocolVersion": types.LATEST_PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": {"name": "probe", "version": "0.1"},
        },
    }


def text_of(body):
    return body["result"]["content"][0]["text"]


async def test_single_call_without_handshake(http):
    response = await http.post("/mcp", json=call(1, "ping"))

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == 1
    assert text_of(body) == "pong"
    assert body["result"]["isError"] is False


async def test_batch_returns_array_of_responses(http):
    response = await http.post("/mcp", json=[call(1, "ping"), call(2, "search_tags", {"q": "삼성"})])

    assert response.status_code == 200
    body = response.json()
    assert isinstance(body, list)
    assert sorted(item["id"] for item in body) == [1, 2]


async def test_shim_handshake_is_never_visible(http):
    response = await http.post("/mcp", json=[call(1, "ping"), {"jsonrpc": "2.0", "id": 2, "method": "ping"}])

    body = response.json()
    assert len(body) == 2
    for item in body:
        assert not str(item.get("id")).startswith("shim-init")
        assert "serverInfo" not in item.get("result", {})


async def test_caller_initialize_is_answered(http):
    response = await http.post("/mcp", json=[initialize(1), {"jsonrpc": "2.0", "id": 2, "method": "tools/list"}])

    body = {item["id"]: item for item in response.json()}
    assert body[1]["result"]["serverInfo"]["name"] == "RagAlgo"
    names = [tool["name"] for tool in body[2]["result"]["tools"]]
    assert "search_tags" in names
    assert "ping" in names


async def test_notification_only_returns_empty_array(http):
    response = await http.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})

    assert response.status_code == 200
    assert response.json() == []


async def test_missing_argument_is_tool_error(http):
    response = await http.post("/mcp", json=call(3, "get_trends", {"days": 3}))

    body = response.json()
    assert body["id"] == 3
    assert body["result"]["isError"] is True
    assert "tag_code" in text_of(body)


async def test_unknown_tool_is_tool_error(http):
    response = await http.post("/mcp", json=call(4, "get_weather"))

    body = response.json()
    assert body["result"]["isError"] is True
    assert "Unknown tool: get_weather" in text_of(body)


async def test_upstream_failure_keeps_status_in_text(http):
    response = await http.post("/mcp", json=call(5, "boom"))

    body = response.json()
    assert body["result"]["isError"] is True
    assert text_of(body) == "Error: API request failed with status 503: service unavailable"


async def test_slow_tool_is_flushed_without_its_response(http):
    response = await http.post("/mcp", json=[call(1, "ping"), call(2, "slow")])

    assert response.status_code == 200
    body = response.json()
    assert [item["id"] for item in body] == [1]


async def test_outer_timeout_returns_504(server_factory):
    app = create_app(server_factory, poll_timeout=0.1, request_timeout=0.2)

    async def hang(messages, is_batch):
        await asyncio.sleep(5)

    app.state.stateless.exchange = hang
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        response = await http_client.post("/mcp", json=call(1, "ping"))

    assert response.status_code == 504
    assert response.json()["error"] == {"code": -32603, "message": "Request timed out after 0.2s"}


async def test_malformed_json_is_parse_error(http):
    response = await http.post("/mcp", content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32700


async def test_invalid_message_shape_is_rejected(http):
    response = await http.post("/mcp", json={"hello": "world"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32600


async def test_unknown_method_gets_error_with_same_id(http):
    response = await http.post("/mcp", json={"jsonrpc": "2.0", "id": 7, "method": "does/not/exist"})

    body = response.json()
    assert body["id"] == 7
    assert "error" in body


def test_poll_timeout_must_be_below_request_timeout(server_factory):
    with pytest.raises(ValueError):
        StatelessHttpAdapter(server_factory, poll_timeout=30, request_timeout=30)
    with pytest.raises(ValueError):
        StatelessHttpAdapter(server_factory, poll_timeout=0, request_timeout=30)


def response(request_id, result=None):
    return types.JSONRPCMessage(types.JSONRPCResponse(jsonrpc="2.0", id=request_id, result=result or {}))


async def test_buffer_wakes_when_last_response_arrives():
    buffer = PendingResponseBuffer()
    buffer.expect(1)
    buffer.expect(2)

    buffer.record(response(1))
    assert buffer.outstanding == {2}

    asyncio.get_running_loop().call_later(0.01, buffer.record, response(2))
    assert await buffer.wait(1.0) is True
    assert buffer.outstanding == set()
    assert buffer.response_for(2).root.id == 2


async def test_buffer_reports_missing_responses_on_timeout():
    buffer = PendingResponseBuffer()
    buffer.expect("a")

    assert await buffer.wait(0.01) is False
    assert buffer.outstanding == {"a"}
    assert buffer.response_for("a") is None


async def test_buffer_drops_ignored_ids_and_keeps_notifications():
    buffer = PendingResponseBuffer()
    buffer.ignore("shim-init-1")
    notification = types.JSONRPCMessage(
        types.JSONRPCNotification(jsonrpc="2.0", method="notifications/message", params={"level": "info", "data": "x"})
    )

    buffer.record(response("shim-init-1"))
    buffer.record(notification)

    assert buffer.messages == [notification]
    assert await buffer.wait(0.01) is True
