from ragalgo_mcp import config


async def test_index_reports_running(http):
    response = await http.get("/")

    assert response.status_code == 200
    assert response.text == "RagAlgo MCP Server Running"


async def test_health(http):
    response = await http.get("/health")

    assert response.json() == {"status": "ok", "version": config.SERVER_VERSION}


async def test_server_card_lists_tools(http, registry):
    response = await http.get("/.well-known/mcp-server-card")

    card = response.json()
    assert card["name"] == "RagAlgo MCP Server"
    assert card["transports"]["http"] == "/mcp"
    assert card["tools"] == [spec.name for spec in registry.list_tools()]


async def test_cors_allows_any_origin(http):
    response = await http.get("/health", headers={"Origin": "https://inspector.example"})

    assert response.headers["access-control-allow-origin"] == "*"


async def test_preflight_for_stateless_endpoint(http):
    response = await http.options(
        "/mcp",
        headers={"Origin": "https://inspector.example", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200


async def test_get_on_post_only_route_is_rejected(http):
    response = await http.get("/mcp")

    assert response.status_code == 405
