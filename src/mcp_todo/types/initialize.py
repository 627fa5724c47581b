"""Types for the initialize handshake."""

from typing import Annotated, Any, Literal

from pydantic import Field, ValidationError

from mcp_todo.types.base import RequestParams, Result
from mcp_todo.types.common import ClientCapabilities, Implementation, ServerCapabilities
from mcp_todo.types.json_rpc import JSONRPCRequest


class InitializeRequestParams(RequestParams):
    """Parameters for the initialize request."""

    protocol_version: Annotated[str, Field(alias="protocolVersion")]
    capabilities: ClientCapabilities
    client_info: Annotated[Implementation, Field(alias="clientInfo")]


class InitializeRequest(JSONRPCRequest):
    """Sent from client to server when first connecting."""

    method: Literal["initialize"] = "initialize"
    params: InitializeRequestParams  # type: ignore[assignment]


class InitializeResult(Result):
    """Server's response to an initialize request."""

    protocol_version: Annotated[str, Field(alias="protocolVersion")]
    capabilities: ServerCapabilities
    server_info: Annotated[Implementation, Field(alias="serverInfo")]
    instructions: str | None = None


def is_initialize_request(value: Any) -> bool:
    """Return True if a decoded request body is a well-formed initialize request."""
    if not isinstance(value, dict) or value.get("method") != "initialize":
        return False
    try:
        InitializeRequest.model_validate(value)
    except ValidationError:
        return False
    return True
