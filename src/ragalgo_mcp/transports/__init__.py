"""
Transport bindings for the protocol core:

- stdio:      one session over stdin/stdout
- sse:        one session per GET /sse event stream, messages via POST /messages
- stateless:  one throwaway session per POST /mcp
"""

from ragalgo_mcp.transports.sse import ServerFactory, SessionState, SseSession, SseSessionManager
from ragalgo_mcp.transports.stateless import PendingResponseBuffer, StatelessHttpAdapter
from ragalgo_mcp.transports.stdio import run_stdio
from ragalgo_mcp.transports.store import InMemorySessionStore, SessionStore

__all__ = [
    "InMemorySessionStore",
    "PendingResponseBuffer",
    "ServerFactory",
    "SessionState",
    "SessionStore",
    "SseSession",
    "SseSessionManager",
    "StatelessHttpAdapter",
    "run_stdio",
]
