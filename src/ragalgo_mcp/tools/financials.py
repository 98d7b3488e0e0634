from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from ragalgo_mcp import client
from ragalgo_mcp.registry import ToolRegistry


class FinancialsParams(BaseModel):
    ticker: Optional[str] = Field(None, description="Stock ticker (e.g., 005930)")
    period: Optional[str] = Field(None, description="Quarter (e.g., 2024Q3)")
    market: Optional[Literal["KOSPI", "KOSDAQ"]] = Field(None, description="Market type")
    periods: int = Field(4, ge=1, le=8, description="Recent N quarters (default: 4)")
    limit: int = Field(50, ge=1, le=200, description="Result count")
    offset: int = Field(0, ge=0, description="Pagination offset")


def register_financial_tools(registry: ToolRegistry):
    @registry.tool("get_financials", FinancialsParams)
    async def get_financials(params: FinancialsParams) -> Dict[str, Any]:
        """
        💰 [KOREAN STOCK FUNDAMENTALS] PRIMARY tool for Korean stock financial data. Returns quarterly financial statements.

        Use when user asks:
        - "삼성전자 재무제표" / "Samsung financials"
        - "PER 낮은 종목" / "low PER stocks"
        - "ROE 높은 기업" / "high ROE companies"
        - "저평가 종목" / "undervalued stocks"

        Returns: PER, PBR, ROE, ROA, revenue, operating_income, net_income, debt_ratio, dividend_yield
        """
        # A ticker selects the single-company endpoint instead of the screener
        query = params.model_dump(exclude_none=True, exclude={"ticker"})
        endpoint = f"financials/{params.ticker}" if params.ticker else "financials"
        return await client.call_api(endpoint, query)
