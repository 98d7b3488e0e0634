import logging
import sys
from functools import partial
from typing import Any, Dict, List, Optional

import anyio
import uvicorn
from mcp import types
from mcp.server.lowlevel import Server

from ragalgo_mcp import config
from ragalgo_mcp.app import create_app
from ragalgo_mcp.registry import ToolRegistry
from ragalgo_mcp.tools import build_registry
from ragalgo_mcp.transports import run_stdio

logger = logging.getLogger(__name__)


def create_server(registry: ToolRegistry) -> Server:
    """Build a fresh protocol core whose tool calls go to ``registry``.

    Cheap enough to call once per stateless request.
    """
    server = Server(config.SERVER_NAME, version=config.SERVER_VERSION, instructions=config.SERVER_INSTRUCTIONS.strip())

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return registry.to_mcp_tools()

    # Arguments are validated by the registry so failures come back as tool results
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        result = await registry.call_tool(name, arguments)
        return result.to_call_tool_result()

    return server


def configure_logging() -> None:
    # stderr only: in stdio mode stdout is the protocol channel
    logging.basicConfig(
        level=config.LOG_LEVEL,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _crash_guard(exc_type, exc, tb) -> None:
    # The interpreter exits with status 1 after the hook returns
    logger.critical("FATAL CRASH (uncaught exception)", exc_info=(exc_type, exc, tb))


def run_http(registry: ToolRegistry) -> None:
    app = create_app(
        partial(create_server, registry),
        tool_names=[spec.name for spec in registry.list_tools()],
        heartbeat_interval=config.SSE_HEARTBEAT_INTERVAL,
        poll_timeout=config.STATELESS_POLL_TIMEOUT,
        request_timeout=config.STATELESS_REQUEST_TIMEOUT,
    )
    logger.info("RagAlgo MCP Server listening on port %d", config.PORT)
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


def main(argv: Optional[List[str]] = None) -> None:
    configure_logging()
    sys.excepthook = _crash_guard
    args = sys.argv[1:] if argv is None else argv

    try:
        logger.info("Initializing server...")
        registry = build_registry()
        logger.info("Loaded %d tools", len(registry))
        if "--stdio" in args:
            anyio.run(run_stdio, partial(create_server, registry))
        else:
            logger.info("Starting in HTTP/SSE mode")
            run_http(registry)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception:
        logger.exception("FATAL STARTUP ERROR")
        sys.exit(1)


if __name__ == "__main__":
    main()
