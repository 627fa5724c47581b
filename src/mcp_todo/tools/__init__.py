from .base import Tool, ToolArguments, ToolOutcome
from .manager import ToolDispatcher
from .todo import register_todo_tools

__all__ = ["Tool", "ToolArguments", "ToolDispatcher", "ToolOutcome", "register_todo_tools"]
