"""LowLevelServer - pure handler registry and dispatch.

No I/O, no lifecycle, no transport knowledge. The runner owns the handshake
and the transport owns sessions; this module only maps methods to handlers.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from mcp_todo.exceptions import McpError
from mcp_todo.types import ClientCapabilities, Implementation, ServerCapabilities
from mcp_todo.types.json_rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    ErrorData,
    JSONRPCErrorResponse,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
    RequestId,
)
from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionInfo:
    """Immutable protocol-level session state, created during the init handshake."""

    client_info: Implementation
    client_capabilities: ClientCapabilities
    protocol_version: str
    session_id: str = field(default_factory=lambda: uuid4().hex)


@dataclass
class RequestContext:
    """What handlers receive."""

    server_state: Any
    session: SessionInfo | None
    request_id: RequestId | None


RequestHandler = Callable[[RequestContext, JSONRPCRequest], Awaitable[Any]]
NotificationHandler = Callable[[RequestContext, JSONRPCNotification], Awaitable[None]]


class LowLevelServer:
    """Pure handler registry + dispatch. No run loop, no transport, no lifecycle.

    Usage:
        server = LowLevelServer(name="my-server", version="1.0")

        @server.request_handler("tools/list")
        async def list_tools(ctx: RequestContext, request: JSONRPCRequest):
            return ListToolsResult(tools=[...])
    """

    def __init__(self, *, name: str, version: str, instructions: str | None = None) -> None:
        self.name = name
        self.version = version
        self.instructions = instructions
        self._request_handlers: dict[str, RequestHandler] = {}
        self._notification_handlers: dict[str, NotificationHandler] = {}

    def request_handler(self, method: str) -> Callable[[RequestHandler], RequestHandler]:
        """Decorator to register a request handler for a given method."""

        def decorator(fn: RequestHandler) -> RequestHandler:
            self._request_handlers[method] = fn
            return fn

        return decorator

    def notification_handler(self, method: str) -> Callable[[NotificationHandler], NotificationHandler]:
        """Decorator to register a notification handler for a given method."""

        def decorator(fn: NotificationHandler) -> NotificationHandler:
            self._notification_handlers[method] = fn
            return fn

        return decorator

    async def dispatch_request(self, ctx: RequestContext, request: JSONRPCRequest) -> JSONRPCResponse:
        """Dispatch a request to the appropriate handler."""
        handler = self._request_handlers.get(request.method)
        if not handler:
            return JSONRPCErrorResponse(
                id=request.id,
                error=ErrorData(code=METHOD_NOT_FOUND, message=f"Method not found: {request.method}"),
            )
        try:
            result = await handler(ctx, request)
        except McpError as e:
            return JSONRPCErrorResponse(id=request.id, error=e.error)
        except ValidationError as e:
            logger.debug(f"Invalid params for {request.method}: {e}")
            return JSONRPCErrorResponse(
                id=request.id,
                error=ErrorData(code=INVALID_PARAMS, message=f"Invalid params for {request.method}", data=str(e)),
            )
        except Exception:
            logger.exception("Handler error for %s", request.method)
            return JSONRPCErrorResponse(
                id=request.id,
                error=ErrorData(code=INTERNAL_ERROR, message="Internal error"),
            )

        # Handler can return a BaseModel (serialized) or a raw dict
        if isinstance(result, BaseModel):
            result_data = result.model_dump(mode="json", by_alias=True, exclude_none=True)
        elif isinstance(result, dict):
            result_data = result
        else:
            result_data = {}
        return JSONRPCResultResponse(id=request.id, result=result_data)

    async def dispatch_notification(self, ctx: RequestContext, notification: JSONRPCNotification) -> None:
        """Dispatch a notification to the appropriate handler."""
        handler = self._notification_handlers.get(notification.method)
        if handler:
            try:
                await handler(ctx, notification)
            except Exception:
                logger.exception("Notification handler error for %s", notification.method)

    def get_capabilities(self) -> ServerCapabilities:
        """Derive capabilities from registered handlers."""
        caps = ServerCapabilities()
        if "tools/list" in self._request_handlers or "tools/call" in self._request_handlers:
            caps.tools = {"listChanged": False}
        if "resources/list" in self._request_handlers or "resources/read" in self._request_handlers:
            caps.resources = {"subscribe": False, "listChanged": False}
        return caps
