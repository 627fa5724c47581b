"""ServerRunner and RunningServer.

The runner bridges the LowLevelServer (pure dispatch) with transports.
It manages lifecycle (lifespan), handles the init handshake, and dispatches
messages to the server.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

from pydantic import ValidationError

from mcp_todo.server.lowlevel import LowLevelServer, RequestContext, SessionInfo
from mcp_todo.types import (
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    Implementation,
    InitializeRequestParams,
    InitializeResult,
)
from mcp_todo.types.json_rpc import (
    INVALID_PARAMS,
    ErrorData,
    JSONRPCErrorResponse,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
)
from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)

Lifespan = Callable[[LowLevelServer], AbstractAsyncContextManager[Any]]


@asynccontextmanager
async def _default_lifespan(server: LowLevelServer) -> AsyncIterator[dict[str, Any]]:
    yield {}


def negotiate_protocol_version(requested: str) -> str:
    """Echo the client's version when supported, otherwise offer the latest."""
    if requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return LATEST_PROTOCOL_VERSION


class ServerRunner:
    """Manages lifecycle and produces a RunningServer.

    Usage:
        runner = ServerRunner(server, lifespan=my_lifespan)
        async with runner.run() as running:
            # Hand running to a transport
            ...
    """

    def __init__(self, server: LowLevelServer, *, lifespan: Lifespan | None = None) -> None:
        self.server = server
        self._lifespan = lifespan or _default_lifespan

    @asynccontextmanager
    async def run(self) -> AsyncIterator[RunningServer]:
        """Enter server lifespan once, yield a running server."""
        async with self._lifespan(self.server) as server_state:
            yield RunningServer(self.server, server_state)


class RunningServer:
    """A server with active lifespan, ready to handle requests.

    Handles the init handshake internally: the LowLevelServer never sees
    'initialize' as a request.
    """

    def __init__(self, server: LowLevelServer, server_state: Any) -> None:
        self._server = server
        self._server_state = server_state

    async def handle_initialize(
        self, request: JSONRPCRequest, *, session_id: str | None = None
    ) -> tuple[JSONRPCResponse, SessionInfo | None]:
        """Run the handshake. Returns the response and, on success, the new SessionInfo."""
        try:
            params = InitializeRequestParams.model_validate(request.params or {})
        except ValidationError as e:
            error = ErrorData(code=INVALID_PARAMS, message="Invalid initialize params", data=str(e))
            return JSONRPCErrorResponse(id=request.id, error=error), None

        protocol_version = negotiate_protocol_version(params.protocol_version)
        result = InitializeResult(
            protocol_version=protocol_version,
            capabilities=self._server.get_capabilities(),
            server_info=Implementation(name=self._server.name, version=self._server.version),
            instructions=self._server.instructions,
        )
        response = JSONRPCResultResponse(
            id=request.id,
            result=result.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

        info_kwargs: dict[str, Any] = {}
        if session_id is not None:
            info_kwargs["session_id"] = session_id
        session_info = SessionInfo(
            client_info=params.client_info,
            client_capabilities=params.capabilities,
            protocol_version=protocol_version,
            **info_kwargs,
        )
        logger.debug(f"Negotiated protocol {protocol_version} with {params.client_info.name}")
        return response, session_info

    async def handle_request(self, request: JSONRPCRequest, *, session: SessionInfo | None = None) -> JSONRPCResponse:
        ctx = RequestContext(server_state=self._server_state, session=session, request_id=request.id)
        return await self._server.dispatch_request(ctx, request)

    async def handle_notification(
        self, notification: JSONRPCNotification, *, session: SessionInfo | None = None
    ) -> None:
        if notification.method == "notifications/initialized":
            # Ack the initialized notification; no-op
            return
        ctx = RequestContext(server_state=self._server_state, session=session, request_id=None)
        await self._server.dispatch_notification(ctx, notification)
