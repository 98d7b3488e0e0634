"""
SSE transport: one event stream per client, many clients per process.

    GET  /sse                      → event stream (endpoint event, then message events)
    POST /messages?sessionId=<id>  → JSON-RPC message for that session's protocol core

Each session runs its own protocol core (``Server.run``) on a pair of memory
streams. Replies are written to the event stream, never to the POST response.

Session lifecycle:

    CREATED    id generated, session stored
    CONNECTED  core bound, endpoint event + immediate ping sent, heartbeat running
    CLOSED     client went away; tasks cancelled, session removed from the store

The session store is only touched in ``open_session`` (set), ``close_session``
(delete) and ``handle_post_message`` (get).
"""

import asyncio
import enum
import logging
import uuid
from typing import Callable, List, Optional

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp import types
from mcp.server.lowlevel import Server
from mcp.shared.message import SessionMessage
from pydantic import ValidationError
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse

from ragalgo_mcp.errors import SessionNotFoundError
from ragalgo_mcp.transports.store import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)

ServerFactory = Callable[[], Server]

PING_FRAME = ": ping\n\n"
KEEPALIVE_FRAME = ": keepalive\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class SessionState(enum.Enum):
    CREATED = "created"
    CONNECTED = "connected"
    CLOSED = "closed"


def format_event(event: str, data: str) -> str:
    return f"event: {event}\ndata: {data}\n\n"


class SseSession:
    """One event stream and the protocol core feeding it."""

    def __init__(self, session_id: str, inbound: MemoryObjectSendStream):
        self.session_id = session_id
        self.state = SessionState.CREATED
        self._inbound = inbound
        self._frames: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._tasks: List[asyncio.Task] = []

    @property
    def short_id(self) -> str:
        return self.session_id[:8]

    def attach(self, task: asyncio.Task) -> None:
        self._tasks.append(task)

    def push(self, frame: str) -> None:
        """Queue a frame for the event stream. Dropped once the session is closed."""
        if self.state is SessionState.CLOSED:
            return
        self._frames.put_nowait(frame)

    async def next_frame(self) -> Optional[str]:
        """Wait for the next frame. None means the session was closed."""
        return await self._frames.get()

    async def send(self, message: types.JSONRPCMessage) -> None:
        """Feed an inbound message to this session's protocol core."""
        try:
            await self._inbound.send(SessionMessage(message))
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            raise SessionNotFoundError(self.session_id) from None

    def close(self) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        for task in self._tasks:
            task.cancel()
        self._inbound.close()
        self._frames.put_nowait(None)


class SseSessionManager:
    def __init__(
        self,
        server_factory: ServerFactory,
        store: Optional[SessionStore[SseSession]] = None,
        endpoint: str = "/messages",
        heartbeat_interval: float = 15.0,
    ):
        if heartbeat_interval <= 0:
            raise ValueError("heartbeat_interval must be positive")
        self._server_factory = server_factory
        self.store: SessionStore[SseSession] = store if store is not None else InMemorySessionStore()
        self.endpoint = endpoint
        self.heartbeat_interval = heartbeat_interval

    async def open_session(self, root_path: str = "") -> SseSession:
        # CREATED: uuid4 keeps ids unique even for back-to-back connections
        session_id = uuid.uuid4().hex
        inbound_writer, inbound_reader = anyio.create_memory_object_stream(0)
        outbound_writer, outbound_reader = anyio.create_memory_object_stream(0)
        session = SseSession(session_id, inbound_writer)
        self.store.set(session_id, session)

        # The core has to be bound before anything is written to the stream
        session.attach(asyncio.create_task(self._run_core(session, inbound_reader, outbound_writer)))
        session.attach(asyncio.create_task(self._pump(session, outbound_reader)))

        session.state = SessionState.CONNECTED
        session.push(format_event("endpoint", f"{root_path}{self.endpoint}?sessionId={session_id}"))
        session.push(PING_FRAME)
        session.attach(asyncio.create_task(self._heartbeat(session)))

        logger.info("SSE session %s... connected", session.short_id)
        return session

    def close_session(self, session_id: str) -> None:
        session = self.store.get(session_id)
        if session is None:
            return
        session.close()
        self.store.delete(session_id)
        logger.info("SSE session %s... disconnected", session.short_id)

    async def _run_core(
        self,
        session: SseSession,
        inbound: MemoryObjectReceiveStream,
        outbound: MemoryObjectSendStream,
    ) -> None:
        server = self._server_factory()
        try:
            await server.run(inbound, outbound, server.create_initialization_options())
        except Exception:
            logger.exception("Protocol core for session %s... failed", session.short_id)
            self.close_session(session.session_id)

    async def _pump(self, session: SseSession, outbound: MemoryObjectReceiveStream) -> None:
        async with outbound:
            async for session_message in outbound:
                data = session_message.message.model_dump_json(by_alias=True, exclude_none=True)
                session.push(format_event("message", data))

    async def _heartbeat(self, session: SseSession) -> None:
        # Comment frames keep proxies and load balancers from timing out an idle stream
        while session.state is SessionState.CONNECTED:
            await asyncio.sleep(self.heartbeat_interval)
            session.push(KEEPALIVE_FRAME)

    async def _event_stream(self, session: SseSession):
        try:
            while True:
                frame = await session.next_frame()
                if frame is None:
                    break
                yield frame
        finally:
            self.close_session(session.session_id)

    async def _release(self, session_id: str) -> None:
        self.close_session(session_id)

    async def handle_sse(self, request: Request) -> Response:
        """GET /sse"""
        session = await self.open_session(request.scope.get("root_path", ""))
        return StreamingResponse(
            self._event_stream(session),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
            background=BackgroundTask(self._release, session.session_id),
        )

    async def handle_post_message(self, request: Request) -> Response:
        """POST /messages?sessionId=<id>"""
        session_id = request.query_params.get("sessionId") or request.query_params.get("session_id")
        if not session_id:
            return JSONResponse({"error": "Missing sessionId query parameter"}, status_code=400)

        session = self.store.get(session_id)
        if session is None:
            logger.warning("Message for unknown session %s", session_id)
            return JSONResponse({"error": "Session not found", "sessionId": session_id}, status_code=404)

        body = await request.body()
        try:
            message = types.JSONRPCMessage.model_validate_json(body)
        except ValidationError as e:
            logger.warning("Invalid message for session %s...: %s", session.short_id, e)
            return JSONResponse({"error": "Invalid JSON-RPC message", "detail": str(e)}, status_code=400)

        try:
            await session.send(message)
        except SessionNotFoundError:
            return JSONResponse({"error": "Session not found", "sessionId": session_id}, status_code=404)
        return JSONResponse({"status": "accepted"})
