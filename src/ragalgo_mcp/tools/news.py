from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from ragalgo_mcp import client
from ragalgo_mcp.registry import ToolRegistry


class NewsParams(BaseModel):
    tag: Optional[str] = Field(None, description="Tag CODE (e.g., STK005930, THM001). Use search_tags first to get this code!")
    source: Optional[str] = Field(None, description="Source filter (e.g., 한경, 매경, WSJ, Bloomberg)")
    search: Optional[str] = Field(None, description="Title search keyword")
    from_date: Optional[str] = Field(None, description="Start date (YYYY-MM-DD)")
    to_date: Optional[str] = Field(None, description="End date (YYYY-MM-DD)")
    limit: int = Field(20, ge=1, le=100, description="Result count (default: 20, max: 100)")
    offset: int = Field(0, ge=0, description="Pagination offset")


class NewsScoredParams(NewsParams):
    min_score: Optional[float] = Field(None, ge=-10, le=10, description="Min sentiment score (-10 to 10)")
    max_score: Optional[float] = Field(None, ge=-10, le=10, description="Max sentiment score (-10 to 10)")
    verdict: Optional[Literal["bullish", "bearish", "neutral"]] = Field(None, description="Sentiment verdict filter")


def register_news_tools(registry: ToolRegistry):
    """Register the news tools with the registry"""

    @registry.tool("get_news_scored", NewsScoredParams)
    async def get_news_scored(params: NewsScoredParams) -> Dict[str, Any]:
        """
        📰 [KOREAN NEWS WITH SENTIMENT] PRIMARY news tool for Korean market. Returns news WITH AI sentiment scores (-10 to +10).

        [NOTE] This tool AUTOMATICALLY filters out 0-score (Neutral/Noise) news to provide clear signals.
        If you need raw/neutral news, use 'get_news' instead.

        Use when user asks:
        - "삼성전자 뉴스" / "Samsung news"
        - "호재 뉴스 보여줘" / "show me bullish news"
        - "비트코인 악재 있어?" / "any bearish news on Bitcoin?"

        Filter by: tag, verdict (bullish/bearish/neutral), score range
        Returns: title, summary, sentiment_score, verdict, tags

        TIP: For market overview, use get_snapshots instead (more efficient).
        TIP: Use search_tags first to get exact tag code.
        """
        return await client.call_api("news-scored", params.model_dump(exclude_none=True))

    @registry.tool("get_news", NewsParams)
    async def get_news(params: NewsParams) -> Dict[str, Any]:
        """
        📰 [KOREAN NEWS - NO SCORES] Basic news without sentiment analysis. Use only when sentiment scores are not needed.

        Prefer get_news_scored over this for most use cases unless you want raw data including 0-score items.

        Filter by: tag, source, date range
        Returns: title, summary, url, tags, source
        """
        return await client.call_api("news", params.model_dump(exclude_none=True))
