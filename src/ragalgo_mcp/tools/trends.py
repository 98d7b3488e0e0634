from typing import Any, Dict

from pydantic import BaseModel, Field

from ragalgo_mcp import client
from ragalgo_mcp.registry import ToolRegistry


class TrendsParams(BaseModel):
    tag_code: str = Field(
        ..., description="Tag code (e.g., STK005930, CRY_BTC) - REQUIRED. Use search_tags to find this first!"
    )
    days: int = Field(7, ge=1, le=30, description="Recent N days (default: 7, max: 30)")


def register_trend_tools(registry: ToolRegistry):
    @registry.tool("get_trends", TrendsParams)
    async def get_trends(params: TrendsParams) -> Dict[str, Any]:
        """
        📉 [SENTIMENT TRENDS] Get historical sentiment trend for a specific asset over time.

        Use when user asks:
        - "삼성전자 지난주 분위기" / "Samsung sentiment last week"
        - "비트코인 추세" / "Bitcoin trend"
        - "최근 7일간 뉴스 동향" / "news trend over 7 days"

        REQUIRES tag_code - use search_tags first!
        Returns: daily news_count and avg_sentiment_score over N days
        """
        return await client.call_api("trends", params.model_dump(exclude_none=True))
