"""Content block types used in tool results."""

from typing import Annotated, Literal

from pydantic import Field

from mcp_todo.types.base import MCPModel
from mcp_todo.types.resources import BlobResourceContents, TextResourceContents


class TextContent(MCPModel):
    """Plain text content."""

    type: Literal["text"] = "text"
    text: str
    meta: Annotated[dict[str, object] | None, Field(alias="_meta")] = None


class EmbeddedResource(MCPModel):
    """The contents of a resource, embedded into a tool call result."""

    type: Literal["resource"] = "resource"
    resource: TextResourceContents | BlobResourceContents
    meta: Annotated[dict[str, object] | None, Field(alias="_meta")] = None


ContentBlock = Annotated[TextContent | EmbeddedResource, Field(discriminator="type")]
