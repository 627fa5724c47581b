"""RequestRouter - framework-agnostic Streamable HTTP session routing.

Decides, per verb and session header, whether a request opens a session,
is forwarded to an existing one, or is rejected. No Starlette dependency:
the adapter in :mod:`mcp_todo.transport.starlette` turns the results and
TransportErrors into HTTP responses.
"""

from __future__ import annotations

import contextlib
import json
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream
from pydantic import ValidationError

from mcp_todo.exceptions import InvalidRequestError, ParseError, SessionNotFoundError
from mcp_todo.server import RunningServer, ServerRunner
from mcp_todo.store import TodoStore
from mcp_todo.transport.registry import Session, SessionRegistry
from mcp_todo.transport.session_transport import SessionTransport
from mcp_todo.types import (
    InitializeRequest,
    JSONRPCMessage,
    JSONRPCMessageAdapter,
    JSONRPCResponse,
    ResourceUpdatedNotification,
    ResourceUpdatedNotificationParams,
    is_initialize_request,
)
from mcp_todo.ui.artifact import TODO_LIST_URI
from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)

MCP_SESSION_ID_HEADER = "mcp-session-id"
MCP_PROTOCOL_VERSION_HEADER = "mcp-protocol-version"


@dataclass
class AcceptedResponse:
    """Notification or client response. Just ack with 202."""


@dataclass
class JSONResult:
    """Response to a request, returned as a JSON body."""

    body: JSONRPCResponse
    session_id: str | None


PostResult = AcceptedResponse | JSONResult


class RequestRouter:
    """Routes POST/GET/DELETE requests to sessions held in a SessionRegistry.

    Important: run() can only be called once per instance. Create a new
    router if you need to restart.
    """

    def __init__(
        self,
        runner: ServerRunner,
        *,
        registry: SessionRegistry | None = None,
        session_id_generator: Callable[[], str] | None = None,
    ) -> None:
        self.runner = runner
        self.registry = registry or SessionRegistry()
        self._session_id_generator = session_id_generator or (lambda: uuid4().hex)
        self._running: RunningServer | None = None
        self._run_lock = anyio.Lock()
        self._has_started = False
        self._unsubscribers: list[Callable[[], None]] = []

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Run the router with proper lifecycle management.

        Use this in the lifespan context manager of your Starlette app.
        """
        async with self._run_lock:
            if self._has_started:
                raise RuntimeError(
                    "RequestRouter .run() can only be called once per instance. "
                    "Create a new instance if you need to run again."
                )
            self._has_started = True

        async with self.runner.run() as running:
            self._running = running
            logger.info("Request router started")
            try:
                yield
            finally:
                logger.info("Request router shutting down")
                for unsubscribe in self._unsubscribers:
                    unsubscribe()
                self._unsubscribers.clear()
                with anyio.CancelScope(shield=True):
                    await self._close_all_sessions()
                self._running = None

    @property
    def is_running(self) -> bool:
        return self._running is not None

    def watch_store(self, store: TodoStore) -> None:
        """Push a resource-updated notification to open streams after every store mutation."""
        self._unsubscribers.append(store.subscribe(lambda: self.notify_resource_updated(TODO_LIST_URI)))

    async def handle_post(self, session_id: str | None, body: bytes) -> PostResult:
        running = self._require_running()

        if session_id:
            session = self.registry.lookup(session_id)
            if session is None:
                logger.debug(f"POST for unknown session {session_id}")
                raise InvalidRequestError("Bad Request: No valid session ID provided")
            message = self._parse_message(body)
            response = await session.transport.handle_message(message)
            if response is None:
                return AcceptedResponse()
            return JSONResult(body=response, session_id=session_id)

        try:
            payload = json.loads(body)
        except ValueError:
            payload = None
        if not is_initialize_request(payload):
            logger.debug("POST without session id is not an initialize request")
            raise InvalidRequestError()
        return await self._initialize(running, InitializeRequest.model_validate(payload))

    def handle_get(self, session_id: str | None) -> MemoryObjectReceiveStream[JSONRPCMessage]:
        """Open a server-to-client stream for an active session."""
        session = self._require_session(session_id)
        return session.transport.open_stream()

    async def handle_delete(self, session_id: str | None) -> None:
        """Close the transport, then drop the session from the registry."""
        session = self._require_session(session_id)
        await session.transport.terminate()
        self.registry.remove(session.session_id)

    def broadcast(self, message: JSONRPCMessage) -> None:
        """Send a message to the open streams of every active session."""
        for session in self.registry.sessions():
            session.transport.send_message(message)

    def notify_resource_updated(self, uri: str) -> None:
        self.broadcast(ResourceUpdatedNotification(params=ResourceUpdatedNotificationParams(uri=uri)))

    async def _initialize(self, running: RunningServer, request: InitializeRequest) -> JSONResult:
        session_id = self._session_id_generator()
        transport = SessionTransport(
            session_id,
            running,
            on_initialized=self._on_session_initialized,
            on_close=self._on_session_closed,
        )
        self.registry.create(session_id, transport)
        logger.debug(f"Created transport with session ID: {session_id}")
        try:
            response = await transport.handle_initialize(request)
        except BaseException:
            self.registry.remove(session_id)
            raise
        if transport.session_info is None:
            # Handshake rejected; nothing was registered as active.
            self.registry.remove(session_id)
            return JSONResult(body=response, session_id=None)
        return JSONResult(body=response, session_id=session_id)

    def _on_session_initialized(self, session_id: str) -> None:
        self.registry.activate(session_id)

    def _on_session_closed(self, session_id: str) -> None:
        self.registry.remove(session_id)

    def _require_running(self) -> RunningServer:
        if self._running is None:
            raise RuntimeError("Router is not running. Make sure to use run().")
        return self._running

    def _require_session(self, session_id: str | None) -> Session:
        self._require_running()
        session = self.registry.lookup(session_id)
        if session is None:
            logger.debug(f"Unknown session {session_id}")
            raise SessionNotFoundError()
        return session

    @staticmethod
    def _parse_message(body: bytes) -> JSONRPCMessage:
        try:
            payload: Any = json.loads(body)
        except ValueError as e:
            raise ParseError(data=str(e)) from e
        if not isinstance(payload, dict):
            raise InvalidRequestError("Invalid Request: expected a single JSON-RPC message")
        try:
            return JSONRPCMessageAdapter.validate_python(payload)
        except ValidationError as e:
            raise InvalidRequestError(data=str(e)) from e

    async def _close_all_sessions(self) -> None:
        for session in self.registry.all_sessions():
            try:
                await session.transport.terminate()
            except Exception:
                logger.exception(f"Failed to close session {session.session_id}")
        self.registry.clear()
