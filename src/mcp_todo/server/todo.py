"""Protocol handlers for the todo server."""

from __future__ import annotations

from mcp_todo.exceptions import McpError
from mcp_todo.server.lowlevel import LowLevelServer, RequestContext
from mcp_todo.tools import ToolDispatcher
from mcp_todo.types import (
    RESOURCE_NOT_FOUND,
    CallToolRequestParams,
    CallToolResult,
    ErrorData,
    JSONRPCRequest,
    ListResourcesResult,
    ListToolsResult,
    ReadResourceRequestParams,
    ReadResourceResult,
)
from mcp_todo.ui.artifact import TODO_LIST_URI, build_todo_artifact, todo_list_resource

INSTRUCTIONS = (
    "Manage a shared todo list. Every successful tool call returns the refreshed list "
    f"as an interactive HTML resource at {TODO_LIST_URI}."
)


def create_todo_server(dispatcher: ToolDispatcher, *, name: str, version: str) -> LowLevelServer:
    """Build a LowLevelServer whose tools and resources are backed by the dispatcher."""
    server = LowLevelServer(name=name, version=version, instructions=INSTRUCTIONS)

    @server.request_handler("ping")
    async def ping(ctx: RequestContext, request: JSONRPCRequest) -> dict[str, object]:
        return {}

    @server.request_handler("tools/list")
    async def list_tools(ctx: RequestContext, request: JSONRPCRequest) -> ListToolsResult:
        return ListToolsResult(tools=[tool.to_definition() for tool in dispatcher.list_tools()])

    @server.request_handler("tools/call")
    async def call_tool(ctx: RequestContext, request: JSONRPCRequest) -> CallToolResult:
        params = CallToolRequestParams.model_validate(request.params or {})
        return await dispatcher.call_tool(params.name, params.arguments)

    @server.request_handler("resources/list")
    async def list_resources(ctx: RequestContext, request: JSONRPCRequest) -> ListResourcesResult:
        return ListResourcesResult(resources=[todo_list_resource()])

    @server.request_handler("resources/read")
    async def read_resource(ctx: RequestContext, request: JSONRPCRequest) -> ReadResourceResult:
        params = ReadResourceRequestParams.model_validate(request.params or {})
        if params.uri != TODO_LIST_URI:
            raise McpError(ErrorData(code=RESOURCE_NOT_FOUND, message=f"Unknown resource: {params.uri}"))
        artifact = build_todo_artifact(dispatcher.store.snapshot(), encoding=dispatcher.artifact_encoding)
        return ReadResourceResult(contents=[artifact.to_resource_contents()])

    return server
