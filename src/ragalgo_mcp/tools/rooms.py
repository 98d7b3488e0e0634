from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from ragalgo_mcp import client
from ragalgo_mcp.registry import ToolRegistry

ROOMS_TABLE = "available_websocket_rooms"
ROOMS_HELP = "Use these room_ids to subscribe via WebSocket. Example: socket.emit('subscribe', 'tag:STK005930')"


class RoomsParams(BaseModel):
    search: Optional[str] = Field(None, description='Search term for rooms (e.g., "Samsung", "Semiconductor")')
    type: Optional[Literal["tag", "ticker", "keyword"]] = Field(None, description="Filter by room type")
    limit: int = Field(20, ge=1, le=100, description="Result count")


def rooms_query(params: RoomsParams) -> Dict[str, Any]:
    """Build the REST filter for the rooms table."""
    query: Dict[str, Any] = {"select": "room_id,type,description"}
    if params.search:
        # Match either the description or the room id
        query["or"] = f"(description.ilike.*{params.search}*,room_id.ilike.*{params.search}*)"
    if params.type:
        query["type"] = f"eq.{params.type}"
    query["limit"] = params.limit
    return query


def register_room_tools(registry: ToolRegistry):
    @registry.tool("get_available_rooms", RoomsParams)
    async def get_available_rooms(params: RoomsParams) -> Dict[str, Any]:
        """
        📡 [REALTIME ROOMS] List the WebSocket rooms available for realtime news/price subscriptions.

        Use when user asks how to receive live updates for a stock, theme or keyword.
        Filter by: search term, room type (tag/ticker/keyword)
        Returns: room_id, type, description for each room
        """
        rows = await client.call_rest(ROOMS_TABLE, rooms_query(params))
        return {"rooms": rows, "count": len(rows), "help": ROOMS_HELP}
