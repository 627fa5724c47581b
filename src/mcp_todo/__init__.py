from .config import Settings
from .exceptions import InvalidRequestError, McpError, McpTodoError, SessionNotFoundError, ToolError, TransportError
from .store import Todo, TodoStore

__all__ = [
    "InvalidRequestError",
    "McpError",
    "McpTodoError",
    "SessionNotFoundError",
    "Settings",
    "Todo",
    "TodoStore",
    "ToolError",
    "TransportError",
]
