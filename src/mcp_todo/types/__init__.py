from mcp_todo.types.base import LATEST_PROTOCOL_VERSION, SUPPORTED_PROTOCOL_VERSIONS, MCPModel, Result
from mcp_todo.types.common import ClientCapabilities, Implementation, ServerCapabilities
from mcp_todo.types.content import ContentBlock, EmbeddedResource, TextContent
from mcp_todo.types.initialize import (
    InitializeRequest,
    InitializeRequestParams,
    InitializeResult,
    is_initialize_request,
)
from mcp_todo.types.json_rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    RESOURCE_NOT_FOUND,
    SESSION_NOT_FOUND,
    ErrorData,
    JSONRPCErrorResponse,
    JSONRPCMessage,
    JSONRPCMessageAdapter,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
    RequestId,
    error_envelope,
)
from mcp_todo.types.resources import (
    BlobResourceContents,
    ListResourcesResult,
    ReadResourceRequestParams,
    ReadResourceResult,
    Resource,
    ResourceUpdatedNotification,
    ResourceUpdatedNotificationParams,
    TextResourceContents,
)
from mcp_todo.types.tools import CallToolRequestParams, CallToolResult, ListToolsResult, Tool, ToolAnnotations

__all__ = [
    "BlobResourceContents",
    "CallToolRequestParams",
    "CallToolResult",
    "ClientCapabilities",
    "ContentBlock",
    "EmbeddedResource",
    "ErrorData",
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "Implementation",
    "InitializeRequest",
    "InitializeRequestParams",
    "InitializeResult",
    "JSONRPCErrorResponse",
    "JSONRPCMessage",
    "JSONRPCMessageAdapter",
    "JSONRPCNotification",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCResultResponse",
    "JSONRPC_VERSION",
    "LATEST_PROTOCOL_VERSION",
    "ListResourcesResult",
    "ListToolsResult",
    "MCPModel",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "RESOURCE_NOT_FOUND",
    "ReadResourceRequestParams",
    "ReadResourceResult",
    "RequestId",
    "Resource",
    "ResourceUpdatedNotification",
    "ResourceUpdatedNotificationParams",
    "Result",
    "SESSION_NOT_FOUND",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "ServerCapabilities",
    "TextContent",
    "TextResourceContents",
    "Tool",
    "ToolAnnotations",
    "error_envelope",
    "is_initialize_request",
]
