from mcp.shared.memory import create_connected_server_and_client_session

from ragalgo_mcp.server import create_server


async def test_lists_every_registered_tool(registry):
    async with create_connected_server_and_client_session(create_server(registry)) as session:
        result = await session.list_tools()

    assert [tool.name for tool in result.tools] == [spec.name for spec in registry.list_tools()]
    assert result.tools[0].inputSchema["required"] == ["q"]


async def test_ping_tool_returns_pong(registry):
    async with create_connected_server_and_client_session(create_server(registry)) as session:
        result = await session.call_tool("ping", {})

    assert result.isError is False
    assert result.content[0].text == "pong"


async def test_failed_call_leaves_session_usable(registry, upstream):
    async with create_connected_server_and_client_session(create_server(registry)) as session:
        failed = await session.call_tool("get_research", {})
        ok = await session.call_tool("search_tags", {"q": "비트코인"})

    assert failed.isError is True
    assert "tag_code" in failed.content[0].text
    assert ok.isError is False
    assert "삼성전자" in ok.content[0].text

