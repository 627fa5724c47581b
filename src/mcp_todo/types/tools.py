"""Types for tool listing and invocation."""

from typing import Annotated, Any

from pydantic import Field

from mcp_todo.types.base import MCPModel, RequestParams, Result
from mcp_todo.types.content import ContentBlock


class ToolAnnotations(MCPModel):
    """Additional properties describing a Tool to clients."""

    destructive_hint: Annotated[bool | None, Field(alias="destructiveHint")] = None
    idempotent_hint: Annotated[bool | None, Field(alias="idempotentHint")] = None
    read_only_hint: Annotated[bool | None, Field(alias="readOnlyHint")] = None
    title: str | None = None


class Tool(MCPModel):
    """Definition of a tool the server provides."""

    name: str
    input_schema: Annotated[dict[str, Any], Field(alias="inputSchema")]
    title: str | None = None
    description: str | None = None
    annotations: ToolAnnotations | None = None


class ListToolsResult(Result):
    """Server's response to a tools/list request."""

    tools: list[Tool]


class CallToolRequestParams(RequestParams):
    """Parameters for tools/call request."""

    name: str
    arguments: dict[str, Any] | None = None


class CallToolResult(Result):
    """Server's response to a tools/call request."""

    content: list[ContentBlock]
    structured_content: Annotated[dict[str, Any] | None, Field(alias="structuredContent")] = None
    is_error: Annotated[bool, Field(alias="isError")] = False
