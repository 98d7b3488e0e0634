from ragalgo_mcp.registry import ToolRegistry
from ragalgo_mcp.tools.chart import register_chart_tools
from ragalgo_mcp.tools.financials import register_financial_tools
from ragalgo_mcp.tools.news import register_news_tools
from ragalgo_mcp.tools.research import register_research_tools
from ragalgo_mcp.tools.rooms import register_room_tools
from ragalgo_mcp.tools.snapshots import register_snapshot_tools
from ragalgo_mcp.tools.system import register_system_tools
from ragalgo_mcp.tools.tags import register_tag_tools
from ragalgo_mcp.tools.trends import register_trend_tools


def build_registry() -> ToolRegistry:
    """Build the full tool catalog, in the order it is advertised."""
    registry = ToolRegistry()
    register_tag_tools(registry)
    register_snapshot_tools(registry)
    register_news_tools(registry)
    register_chart_tools(registry)
    register_research_tools(registry)
    register_financial_tools(registry)
    register_trend_tools(registry)
    register_room_tools(registry)
    register_system_tools(registry)
    return registry
