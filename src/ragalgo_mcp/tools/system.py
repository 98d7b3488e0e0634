from pydantic import BaseModel

from ragalgo_mcp.registry import ToolRegistry


class NoParams(BaseModel):
    pass


def register_system_tools(registry: ToolRegistry):
    @registry.tool("ping", NoParams)
    async def ping(params: NoParams) -> str:
        """Connectivity check. Returns 'pong' without calling the RagAlgo API."""
        return "pong"
