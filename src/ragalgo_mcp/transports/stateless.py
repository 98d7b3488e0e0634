"""
Stateless POST /mcp transport.

For clients that cannot hold a session open (scanners, probes, one-shot
scripts). Every request gets a brand-new protocol core, is run to completion
and thrown away:

1. parse one message or a batch (the reply mirrors the shape);
2. if the caller did not send ``initialize``, prepend a shim handshake whose
   response is filtered out;
3. mark every caller request id as pending, then feed all messages;
4. wait until every pending id has a response, or ``poll_timeout`` elapses;
5. serialize what was collected.

The whole exchange runs under ``request_timeout``, so a hung tool still ends
in a 504 rather than a dangling connection.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Set, Union

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream
from mcp import types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ragalgo_mcp.errors import ProtocolTimeoutError
from ragalgo_mcp.transports.sse import ServerFactory

logger = logging.getLogger(__name__)

RequestId = Union[int, str]

SHIM_CLIENT_INFO = {"name": "ragalgo-stateless-shim", "version": "1.0.0"}

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
INTERNAL_ERROR = -32603


def _method(message: types.JSONRPCMessage) -> Optional[str]:
    return getattr(message.root, "method", None)


def _is_request(message: types.JSONRPCMessage, method: Optional[str] = None) -> bool:
    root = message.root
    return isinstance(root, types.JSONRPCRequest) and (method is None or root.method == method)


def _dump(message: types.JSONRPCMessage) -> Dict[str, Any]:
    return message.model_dump(by_alias=True, mode="json", exclude_none=True)


def _error_body(code: int, message: str, request_id: Optional[RequestId] = None) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def initialized_notification() -> types.JSONRPCMessage:
    return types.JSONRPCMessage(types.JSONRPCNotification(jsonrpc="2.0", method="notifications/initialized"))


def shim_initialize(request_id: str) -> types.JSONRPCMessage:
    return types.JSONRPCMessage(
        types.JSONRPCRequest(
            jsonrpc="2.0",
            id=request_id,
            method="initialize",
            params={
                "protocolVersion": types.LATEST_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": SHIM_CLIENT_INFO,
            },
        )
    )


class PendingResponseBuffer:
    """Outstanding request ids plus everything the core has emitted so far.

    Each expected id gets a future that ``record`` resolves when the matching
    response arrives, so ``wait`` wakes up as soon as the last one lands.
    Responses to ignored ids (the shim handshake) are dropped on arrival.
    """

    def __init__(self) -> None:
        self.messages: List[types.JSONRPCMessage] = []
        self._pending: Dict[RequestId, asyncio.Future] = {}
        self._ignored: Set[RequestId] = set()

    def ignore(self, request_id: RequestId) -> None:
        self._ignored.add(request_id)

    def expect(self, request_id: RequestId) -> None:
        if request_id not in self._pending:
            self._pending[request_id] = asyncio.get_running_loop().create_future()

    @property
    def outstanding(self) -> Set[RequestId]:
        return {request_id for request_id, future in self._pending.items() if not future.done()}

    def record(self, message: types.JSONRPCMessage) -> None:
        root = message.root
        if isinstance(root, (types.JSONRPCResponse, types.JSONRPCError)):
            if root.id in self._ignored:
                return
            future = self._pending.get(root.id)
            if future is not None and not future.done():
                future.set_result(message)
        self.messages.append(message)

    def response_for(self, request_id: RequestId) -> Optional[types.JSONRPCMessage]:
        future = self._pending.get(request_id)
        if future is None or not future.done():
            return None
        return future.result()

    async def wait(self, timeout: float) -> bool:
        """Wait for every expected response. Returns False if some are still missing."""
        waiting = [future for future in self._pending.values() if not future.done()]
        if not waiting:
            return True
        _, still_pending = await asyncio.wait(waiting, timeout=timeout)
        return not still_pending


class StatelessHttpAdapter:
    def __init__(self, server_factory: ServerFactory, poll_timeout: float = 25.0, request_timeout: float = 30.0):
        if not 0 < poll_timeout < request_timeout:
            raise ValueError(
                f"poll_timeout ({poll_timeout}) must be positive and below request_timeout ({request_timeout})"
            )
        self._server_factory = server_factory
        self.poll_timeout = poll_timeout
        self.request_timeout = request_timeout

    async def handle_post(self, request: Request) -> Response:
        """POST /mcp"""
        try:
            body = await request.json()
        except ValueError as e:
            return JSONResponse(_error_body(PARSE_ERROR, f"Parse error: {e}"), status_code=400)

        is_batch = isinstance(body, list)
        try:
            messages = [types.JSONRPCMessage.model_validate(item) for item in (body if is_batch else [body])]
        except ValidationError as e:
            return JSONResponse(_error_body(INVALID_REQUEST, f"Invalid Request: {e}"), status_code=400)

        try:
            payload = await asyncio.wait_for(self.exchange(messages, is_batch), timeout=self.request_timeout)
        except asyncio.TimeoutError:
            error = ProtocolTimeoutError(self.request_timeout)
            logger.warning("Stateless exchange aborted: %s", error)
            return JSONResponse(_error_body(INTERNAL_ERROR, str(error)), status_code=504)
        except Exception as e:
            logger.exception("Stateless exchange failed")
            return JSONResponse({"error": "Internal server error", "detail": str(e)}, status_code=500)
        return JSONResponse(payload)

    def with_handshake(
        self, messages: Sequence[types.JSONRPCMessage], buffer: PendingResponseBuffer
    ) -> List[types.JSONRPCMessage]:
        """Return the messages to feed, adding whatever handshake the caller left out."""
        if not any(_is_request(message, "initialize") for message in messages):
            shim_id = f"shim-init-{uuid.uuid4().hex}"
            buffer.ignore(shim_id)
            return [shim_initialize(shim_id), initialized_notification(), *messages]

        if any(_method(message) == "notifications/initialized" for message in messages):
            return list(messages)

        outgoing: List[types.JSONRPCMessage] = []
        for message in messages:
            outgoing.append(message)
            if _is_request(message, "initialize"):
                outgoing.append(initialized_notification())
        return outgoing

    async def exchange(self, messages: Sequence[types.JSONRPCMessage], is_batch: bool) -> Any:
        """Run ``messages`` through a fresh protocol core and return the JSON reply body."""
        buffer = PendingResponseBuffer()
        outgoing = self.with_handshake(messages, buffer)
        for message in messages:
            if _is_request(message):
                buffer.expect(message.root.id)

        server = self._server_factory()
        inbound_writer, inbound_reader = anyio.create_memory_object_stream(len(outgoing))
        outbound_writer, outbound_reader = anyio.create_memory_object_stream(len(outgoing))
        core = asyncio.create_task(
            server.run(inbound_reader, outbound_writer, server.create_initialization_options())
        )
        collector = asyncio.create_task(self._collect(outbound_reader, buffer))
        try:
            for message in outgoing:
                await inbound_writer.send(SessionMessage(message))
            if not await buffer.wait(self.poll_timeout):
                logger.warning(
                    "Flushing stateless exchange with %d response(s) outstanding: %s",
                    len(buffer.outstanding),
                    sorted(map(str, buffer.outstanding)),
                )
        finally:
            # The input stays open until here; closing it early ends the core before handlers reply
            for task in (collector, core):
                task.cancel()
            await asyncio.gather(collector, core, return_exceptions=True)
            inbound_writer.close()

        return self.render(buffer, messages, is_batch)

    @staticmethod
    async def _collect(outbound: MemoryObjectReceiveStream, buffer: PendingResponseBuffer) -> None:
        async with outbound:
            async for session_message in outbound:
                buffer.record(session_message.message)

    @staticmethod
    def render(buffer: PendingResponseBuffer, messages: Sequence[types.JSONRPCMessage], is_batch: bool) -> Any:
        if is_batch:
            return [_dump(message) for message in buffer.messages]

        for message in messages:
            if _is_request(message):
                response = buffer.response_for(message.root.id)
                if response is not None:
                    return _dump(response)
        if buffer.messages:
            return _dump(buffer.messages[0])
        return []
