import logging

from mcp.server.stdio import stdio_server

from ragalgo_mcp.transports.sse import ServerFactory

logger = logging.getLogger(__name__)


async def run_stdio(server_factory: ServerFactory) -> None:
    """Serve a single session over stdin/stdout until stdin is closed.

    stdout carries newline-delimited JSON-RPC, so nothing else may print to it.
    """
    server = server_factory()
    async with stdio_server() as (read_stream, write_stream):
        logger.info("RagAlgo MCP Server started (stdio mode)")
        await server.run(read_stream, write_stream, server.create_initialization_options())
    logger.info("stdin closed, stdio session finished")
