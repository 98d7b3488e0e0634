from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ragalgo_mcp import client
from ragalgo_mcp.registry import ToolRegistry


class SnapshotsParams(BaseModel):
    tag_code: Optional[str] = Field(
        None, description="Tag code for specific asset (e.g., STK005930, CRY_BTC). Leave empty for market-wide overview."
    )
    date: Optional[str] = Field(None, description="Date (YYYY-MM-DD). Default: today")
    days: int = Field(7, ge=1, le=30, description="Recent N days for time-series (default: 7)")
    limit: int = Field(50, ge=1, le=100, description="Result count")
    offset: int = Field(0, ge=0, description="Pagination offset")


def register_snapshot_tools(registry: ToolRegistry):
    """Register the daily snapshot tool"""

    @registry.tool("get_snapshots", SnapshotsParams)
    async def get_snapshots(params: SnapshotsParams) -> Dict[str, Any]:
        """
        📊 [DAILY SUMMARY - MOST EFFICIENT] PRIMARY TOOL for Korean market overview. ALWAYS use this FIRST for general market questions.

        This is the ONLY tool that returns news + chart + sentiment COMBINED in one call.
        Prefer this over calling get_news + get_chart separately - much more efficient!

        ALWAYS use when user asks:
        - "오늘 시장 어때?" / "how's the market today?"
        - "시장 요약해줘" / "market summary"
        - "전체적인 분위기 어때?" / "market sentiment"

        [IMPORTANT] Snapshots are generated daily at 17:00 KST (market close).
        If you request 'today' and get no results (because it's morning in KST), you MUST:
        1. Fetch 'yesterday's snapshot for context.
        2. Call 'get_news_scored' to get REAL-TIME news for the current day.

        Returns per asset: news_count, avg_sentiment, bullish/bearish counts, chart_score, zone, price.
        """
        query = params.model_dump(exclude_none=True, exclude={"tag_code"})
        endpoint = f"snapshots/{params.tag_code}" if params.tag_code else "snapshots"
        return await client.call_api(endpoint, query)
