from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ragalgo_mcp import client
from ragalgo_mcp.registry import ToolRegistry


class ResearchParams(BaseModel):
    tag_code: str = Field(..., description="Tag code (required). Use search_tags first.")
    source: Optional[str] = Field(None, description="Source filter (mckinsey, goldman, etc.)")
    limit: int = Field(10, ge=1, le=50, description="Result count (default: 10)")
    offset: int = Field(0, ge=0, description="Pagination offset")


def register_research_tools(registry: ToolRegistry):
    @registry.tool("get_research", ResearchParams)
    async def get_research(params: ResearchParams) -> Dict[str, Any]:
        """
        📑 [RESEARCH] Get consulting firm reports (McKinsey, BCG, etc.)

        Use for: "long-term trends", "sector outlook", "industry analysis"
        Filter by: source, tag_code

        Returns: AI summary in Korean, investment insights
        Includes tag_codes for cross-referencing with news/charts.

        ⚠️ This tool returns FULL chunked text. Analyze it to answer user questions.
        """
        return await client.call_api("research", params.model_dump(exclude_none=True))
