"""Custom exceptions for the todo server, its transport and its client."""

from http import HTTPStatus
from typing import Any

from mcp_todo.types.json_rpc import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    PARSE_ERROR,
    SESSION_NOT_FOUND,
    ErrorData,
)


class McpTodoError(Exception):
    """Base error for the package."""


class TransportError(McpTodoError):
    """Transport/session tier failure, answered with an error envelope and a non-2xx status."""

    code: int = INTERNAL_ERROR
    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, data: Any | None = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    @property
    def error(self) -> ErrorData:
        return ErrorData(code=self.code, message=self.message, data=self.data)


class InvalidRequestError(TransportError):
    """The request cannot be routed: no usable session and not an initialize request."""

    code = INVALID_REQUEST
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Invalid Request"


class ParseError(TransportError):
    """The request body is not valid JSON."""

    code = PARSE_ERROR
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Parse error"


class SessionNotFoundError(TransportError):
    """The referenced session is not registered."""

    code = SESSION_NOT_FOUND
    status_code = HTTPStatus.NOT_FOUND
    default_message = "Session not found"


_TRANSPORT_ERRORS: dict[int, type[TransportError]] = {
    cls.code: cls for cls in (InvalidRequestError, ParseError, SessionNotFoundError)
}


def transport_error_from_envelope(error: ErrorData) -> TransportError:
    """Rebuild the matching TransportError from a decoded error envelope."""
    cls = _TRANSPORT_ERRORS.get(error.code, TransportError)
    exc = cls(error.message, data=error.data)
    exc.code = error.code
    return exc


class McpError(McpTodoError):
    """Protocol error reported for a specific request id."""

    error: ErrorData

    def __init__(self, error: ErrorData):
        super().__init__(error.message)
        self.error = error


class ToolError(McpTodoError):
    """Error in tool registration or lookup."""
