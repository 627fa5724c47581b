"""Per-session transport state.

One SessionTransport exists per session. It runs the handshake, forwards
POSTed messages to the running server in arrival order and fans
server-initiated messages out to the session's open GET streams.
"""

from __future__ import annotations

from collections.abc import Callable

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from mcp_todo.exceptions import SessionNotFoundError
from mcp_todo.server import RunningServer, SessionInfo
from mcp_todo.types import (
    INVALID_REQUEST,
    ErrorData,
    JSONRPCErrorResponse,
    JSONRPCMessage,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
)
from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)

SessionCallback = Callable[[str], None]

DEFAULT_STREAM_BUFFER = 64


class SessionTransport:
    def __init__(
        self,
        session_id: str,
        running: RunningServer,
        *,
        on_initialized: SessionCallback,
        on_close: SessionCallback,
        stream_buffer_size: int = DEFAULT_STREAM_BUFFER,
    ) -> None:
        self.session_id = session_id
        self.session_info: SessionInfo | None = None
        self._running = running
        self._on_initialized = on_initialized
        self._on_close = on_close
        self._stream_buffer_size = stream_buffer_size
        self._lock = anyio.Lock()
        self._streams: list[MemoryObjectSendStream[JSONRPCMessage]] = []
        self._terminated = False

    @property
    def is_terminated(self) -> bool:
        return self._terminated

    async def handle_initialize(self, request: JSONRPCRequest) -> JSONRPCResponse:
        """Run the handshake. The session is reported initialized only once it succeeded."""
        async with self._lock:
            response, session_info = await self._running.handle_initialize(request, session_id=self.session_id)
            if session_info is not None:
                self.session_info = session_info
                self._on_initialized(self.session_id)
            return response

    async def handle_message(self, message: JSONRPCMessage) -> JSONRPCResponse | None:
        """Forward one message. Returns the response for requests, None otherwise.

        Messages of a session are handled one at a time in arrival order.
        """
        if self._terminated:
            raise SessionNotFoundError()
        async with self._lock:
            # The session may have been closed while this message waited for the lock.
            if self._terminated:
                raise SessionNotFoundError()
            if isinstance(message, JSONRPCRequest):
                if message.method == "initialize":
                    return JSONRPCErrorResponse(
                        id=message.id,
                        error=ErrorData(code=INVALID_REQUEST, message="Session already initialized"),
                    )
                logger.debug(f"Session {self.session_id}: {message.method}")
                return await self._running.handle_request(message, session=self.session_info)
            if isinstance(message, JSONRPCNotification):
                await self._running.handle_notification(message, session=self.session_info)
                return None
            # Responses to server->client requests; this server never sends any.
            logger.debug(f"Session {self.session_id}: ignoring client response")
            return None

    def open_stream(self) -> MemoryObjectReceiveStream[JSONRPCMessage]:
        """Open a stream of server-initiated messages for a GET request."""
        if self._terminated:
            raise SessionNotFoundError()
        send, receive = anyio.create_memory_object_stream[JSONRPCMessage](self._stream_buffer_size)
        self._streams.append(send)
        return receive

    def send_message(self, message: JSONRPCMessage) -> None:
        """Push a message to every open stream of this session without waiting."""
        for stream in list(self._streams):
            try:
                stream.send_nowait(message)
            except anyio.WouldBlock:
                logger.warning(f"Session {self.session_id}: stream buffer full, dropping message")
            except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                self._streams.remove(stream)

    @property
    def open_streams(self) -> int:
        return len(self._streams)

    async def terminate(self) -> None:
        """Close the session's streams. ``on_close`` runs even if closing fails."""
        if self._terminated:
            return
        self._terminated = True
        try:
            await self._close_streams()
        finally:
            self._on_close(self.session_id)

    async def _close_streams(self) -> None:
        streams, self._streams = self._streams, []
        for stream in streams:
            await stream.aclose()
