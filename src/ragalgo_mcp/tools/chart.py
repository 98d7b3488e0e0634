from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from ragalgo_mcp import client
from ragalgo_mcp.registry import ToolRegistry

ChartZone = Literal["STRONG_UP", "UP_ZONE", "NEUTRAL", "DOWN_ZONE", "STRONG_DOWN"]


class ChartStockParams(BaseModel):
    ticker: Optional[str] = Field(None, description="Stock ticker (e.g., 005930 for Samsung)")
    market: Optional[Literal["KOSPI", "KOSDAQ", "US", "JP", "UK"]] = Field(None, description="Market type")
    zone: Optional[ChartZone] = Field(None, description="Chart zone filter - use this to find strong/weak stocks")
    limit: int = Field(20, ge=1, le=100, description="Result count")


class ChartCoinParams(BaseModel):
    ticker: Optional[str] = Field(None, description="Coin ticker (e.g., KRW-BTC for Bitcoin)")
    zone: Optional[ChartZone] = Field(None, description="Chart zone filter")
    limit: int = Field(20, ge=1, le=100, description="Result count")


def register_chart_tools(registry: ToolRegistry):
    """Register stock and coin chart tools"""

    @registry.tool("get_chart_stock", ChartStockParams)
    async def get_chart_stock(params: ChartStockParams) -> Dict[str, Any]:
        """
        📈 [KOREAN STOCK CHARTS] PRIMARY tool for Korean stock technical analysis. Returns momentum scores and trend zones.

        [IMPORTANT] You MUST use 'search_tags' first to get the correct ticker (e.g., STK005930).

        Use when user asks:
        - "차트 강한 종목" / "stocks with strong momentum"
        - "상승 추세 종목" / "uptrending stocks"
        - "삼성전자 차트 어때?" / "how's Samsung's chart?"

        Filter by: zone (STRONG_UP/UP_ZONE/NEUTRAL/DOWN_ZONE/STRONG_DOWN), market (KOSPI/KOSDAQ)
        Returns: ticker, name, zone, oscillator_state, 5-day scores (d0-d4), last_price
        """
        return await client.call_api("chart-stock", params.model_dump(exclude_none=True))

    @registry.tool("get_chart_coin", ChartCoinParams)
    async def get_chart_coin(params: ChartCoinParams) -> Dict[str, Any]:
        """
        🪙 [CRYPTO CHARTS] PRIMARY tool for Korean crypto (Upbit) technical analysis. Returns momentum scores and trend zones.

        [IMPORTANT] You MUST use 'search_tags' first to get the correct ticker (e.g., CRY_BTC).

        Use when user asks:
        - "비트코인 차트" / "Bitcoin chart"
        - "상승 중인 코인" / "pumping coins"

        Filter by: zone (STRONG_UP/UP_ZONE/NEUTRAL/DOWN_ZONE/STRONG_DOWN)
        Returns: ticker, name, zone, oscillator_state, 10-candle scores (c0-c9, 12h intervals), last_price
        """
        return await client.call_api("chart-coin", params.model_dump(exclude_none=True))
