from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ragalgo_mcp import client
from ragalgo_mcp.registry import ToolRegistry

TagType = Literal["STOCK", "SECTOR", "THEME", "CRYPTO"]


class TagsSearchParams(BaseModel):
    q: str = Field(..., description="Search query (e.g., 삼성, Samsung, 반도체, AI, Bitcoin)")
    type: Optional[TagType] = Field(None, description="Tag type filter (optional)")
    limit: int = Field(20, ge=1, le=50, description="Result count (default: 20)")


class TagsMatchParams(BaseModel):
    text: str = Field(..., description='Text to analyze (e.g., "삼성전자 HBM 대박 소식")')
    types: Optional[List[TagType]] = Field(None, description="Tag type filter (optional)")
    limit: int = Field(10, ge=1, le=20, description="Result count (default: 10)")


def register_tag_tools(registry: ToolRegistry):
    """Register tag lookup and tag extraction tools"""

    @registry.tool("search_tags", TagsSearchParams)
    async def search_tags(params: TagsSearchParams) -> Dict[str, Any]:
        """
        🔍 [TAG LOOKUP - USE FIRST] ALWAYS use this BEFORE other RagAlgo tools when user mentions any Korean stock, coin, or theme by NAME.
        PRIMARY TOOL for converting names to tag_codes. Without correct tag_code, other tools will return inaccurate or empty results.

        ALWAYS use when you see:
        - Korean stock names: 삼성전자, SK하이닉스, 네이버, 카카오, LG에너지솔루션
        - Crypto names: 비트코인, 이더리움, 리플, 솔라나
        - Theme/sector names: 반도체, AI, 2차전지, 바이오

        Examples: "삼성전자" → STK005930, "비트코인" → CRY_BTC, "반도체" → THM_반도체

        CRITICAL: Call this first, then use the returned tag_code in other tools.
        """
        return await client.call_api("tags/search", params.model_dump(exclude_none=True))

    @registry.tool("match_tags", TagsMatchParams)
    async def match_tags(params: TagsMatchParams) -> Dict[str, Any]:
        """
        🏷️ [AUTO-TAG EXTRACTION] Extract stock/crypto/theme tags from any text.

        Use when:
        - Analyzing what stocks/themes a news title mentions
        - Auto-categorizing text content
        - Finding related tags from a sentence

        Input: any text (e.g., "삼성전자 HBM 대박 소식")
        Returns: matched tags with confidence scores
        """
        return await client.call_api_post("tags-match", params.model_dump(exclude_none=True))
