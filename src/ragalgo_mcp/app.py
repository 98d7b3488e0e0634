import logging
from typing import Optional, Sequence

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.types import ASGIApp, Receive, Scope, Send

from ragalgo_mcp import config
from ragalgo_mcp.transports import (
    InMemorySessionStore,
    ServerFactory,
    SessionStore,
    SseSessionManager,
    StatelessHttpAdapter,
)

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Logs one line per HTTP request.

    Plain ASGI rather than BaseHTTPMiddleware, which buffers streaming responses.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            query = scope.get("query_string", b"").decode("latin-1")
            logger.info("[%s] %s%s", scope["method"], scope["path"], f"?{query}" if query else "")
        await self.app(scope, receive, send)


async def index(request: Request):
    return PlainTextResponse(f"{config.SERVER_TITLE} Running")


async def health(request: Request):
    return JSONResponse({"status": "ok", "version": config.SERVER_VERSION})


def create_app(
    server_factory: ServerFactory,
    tool_names: Sequence[str] = (),
    session_store: Optional[SessionStore] = None,
    heartbeat_interval: float = 15.0,
    poll_timeout: float = 25.0,
    request_timeout: float = 30.0,
) -> Starlette:
    """Build the HTTP/SSE application around a protocol core factory."""
    sse = SseSessionManager(
        server_factory,
        store=session_store if session_store is not None else InMemorySessionStore(),
        endpoint="/messages",
        heartbeat_interval=heartbeat_interval,
    )
    stateless = StatelessHttpAdapter(server_factory, poll_timeout=poll_timeout, request_timeout=request_timeout)

    server_card = {
        "name": config.SERVER_TITLE,
        "description": config.SERVER_DESCRIPTION,
        "version": config.SERVER_VERSION,
        "transports": {"sse": "/sse", "messages": "/messages", "http": "/mcp"},
        "tools": list(tool_names),
    }

    async def mcp_server_card(request: Request):
        return JSONResponse(server_card)

    routes = [
        Route("/", index, methods=["GET"]),
        Route("/health", health, methods=["GET"]),
        Route("/.well-known/mcp-server-card", mcp_server_card, methods=["GET"]),
        Route("/sse", sse.handle_sse, methods=["GET"]),
        Route("/messages", sse.handle_post_message, methods=["POST"]),
        Route("/mcp", stateless.handle_post, methods=["POST"]),
    ]
    middleware = [
        Middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"]),
        Middleware(RequestLogMiddleware),
    ]

    app = Starlette(routes=routes, middleware=middleware)
    app.state.sse = sse
    app.state.stateless = stateless
    return app
