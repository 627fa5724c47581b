"""Types for resources and resource reads."""

from typing import Annotated, Literal

from pydantic import Field

from mcp_todo.types.base import MCPModel, NotificationParams, RequestParams, Result
from mcp_todo.types.json_rpc import JSONRPCNotification


class ResourceContents(MCPModel):
    """The contents of a specific resource or sub-resource."""

    uri: str
    mime_type: Annotated[str | None, Field(alias="mimeType")] = None
    meta: Annotated[dict[str, object] | None, Field(alias="_meta")] = None


class TextResourceContents(ResourceContents):
    """Text contents of a resource."""

    text: str


class BlobResourceContents(ResourceContents):
    """Binary contents of a resource (base64 encoded)."""

    blob: str


class Resource(MCPModel):
    """A known resource that the server is capable of reading."""

    uri: str
    name: str
    title: str | None = None
    description: str | None = None
    mime_type: Annotated[str | None, Field(alias="mimeType")] = None


class ListResourcesResult(Result):
    """Server's response to a resources/list request."""

    resources: list[Resource]


class ReadResourceRequestParams(RequestParams):
    """Parameters for resources/read."""

    uri: str


class ReadResourceResult(Result):
    """Server's response to a resources/read request."""

    contents: list[TextResourceContents | BlobResourceContents]


class ResourceUpdatedNotificationParams(NotificationParams):
    uri: str


class ResourceUpdatedNotification(JSONRPCNotification):
    """Pushed to open streams when the contents behind a resource URI changed."""

    method: Literal["notifications/resources/updated"] = "notifications/resources/updated"
    params: ResourceUpdatedNotificationParams  # type: ignore[assignment]
