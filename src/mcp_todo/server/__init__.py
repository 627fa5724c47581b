from .lowlevel import LowLevelServer, RequestContext, SessionInfo
from .runner import RunningServer, ServerRunner
from .todo import create_todo_server

__all__ = ["LowLevelServer", "RequestContext", "RunningServer", "ServerRunner", "SessionInfo", "create_todo_server"]
