from __future__ import annotations

import itertools
from collections.abc import AsyncIterator
from typing import Any, TypeVar

from pydantic import BaseModel

from mcp_todo.client.http import StreamableHTTPClient
from mcp_todo.exceptions import McpError, TransportError
from mcp_todo.types import (
    LATEST_PROTOCOL_VERSION,
    CallToolResult,
    ClientCapabilities,
    Implementation,
    InitializeResult,
    JSONRPCErrorResponse,
    JSONRPCMessage,
    JSONRPCNotification,
    JSONRPCRequest,
    ListResourcesResult,
    ListToolsResult,
    ReadResourceResult,
)
from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)

ResultT = TypeVar("ResultT", bound=BaseModel)

DEFAULT_CLIENT_INFO = Implementation(name="mcp-todo-host", version="1.0.0")


class ClientSession:
    """Request/response calls over a StreamableHTTPClient.

    Usage:
        async with StreamableHTTPClient("http://127.0.0.1:3000/mcp") as transport:
            session = ClientSession(transport)
            await session.initialize()
            result = await session.call_tool("todo_list")
    """

    def __init__(
        self,
        transport: StreamableHTTPClient,
        *,
        client_info: Implementation | None = None,
        protocol_version: str = LATEST_PROTOCOL_VERSION,
    ) -> None:
        self.transport = transport
        self.client_info = client_info or DEFAULT_CLIENT_INFO
        self.protocol_version = protocol_version
        self.server_info: Implementation | None = None
        self._request_ids = itertools.count(1)

    async def send_request(self, method: str, params: dict[str, Any] | None, result_type: type[ResultT]) -> ResultT:
        request = JSONRPCRequest(id=next(self._request_ids), method=method, params=params)
        response = await self.transport.post(request)
        if response is None:
            raise TransportError(f"No response to {method}")
        if isinstance(response, JSONRPCErrorResponse):
            raise McpError(response.error)
        return result_type.model_validate(response.result)

    async def send_notification(self, method: str, params: dict[str, Any] | None = None) -> None:
        await self.transport.post(JSONRPCNotification(method=method, params=params))

    async def initialize(self) -> InitializeResult:
        result = await self.send_request(
            "initialize",
            {
                "protocolVersion": self.protocol_version,
                "capabilities": ClientCapabilities().model_dump(by_alias=True, exclude_none=True),
                "clientInfo": self.client_info.model_dump(by_alias=True, exclude_none=True),
            },
            InitializeResult,
        )
        self.server_info = result.server_info
        await self.send_notification("notifications/initialized")
        return result

    async def ping(self) -> None:
        await self.send_request("ping", None, _EmptyResult)

    async def list_tools(self) -> ListToolsResult:
        return await self.send_request("tools/list", None, ListToolsResult)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> CallToolResult:
        return await self.send_request("tools/call", {"name": name, "arguments": arguments or {}}, CallToolResult)

    async def list_resources(self) -> ListResourcesResult:
        return await self.send_request("resources/list", None, ListResourcesResult)

    async def read_resource(self, uri: str) -> ReadResourceResult:
        return await self.send_request("resources/read", {"uri": uri}, ReadResourceResult)

    def listen(self) -> AsyncIterator[JSONRPCMessage]:
        """Server-initiated messages for this session."""
        return self.transport.events()

    async def terminate(self) -> None:
        await self.transport.terminate()


class _EmptyResult(BaseModel):
    pass
