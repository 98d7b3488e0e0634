"""RagAlgo market data tools served over MCP (stdio, SSE and stateless HTTP)."""

__version__ = "1.0.4"
