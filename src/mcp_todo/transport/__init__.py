from .registry import Session, SessionRegistry, SessionState
from .router import MCP_SESSION_ID_HEADER, AcceptedResponse, JSONResult, RequestRouter
from .session_transport import SessionTransport
from .starlette import build_app, create_app

__all__ = [
    "MCP_SESSION_ID_HEADER",
    "AcceptedResponse",
    "JSONResult",
    "RequestRouter",
    "Session",
    "SessionRegistry",
    "SessionState",
    "SessionTransport",
    "build_app",
    "create_app",
]
