"""The four todo operations exposed as tools."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, StrictBool, StrictInt

from mcp_todo.store import TodoStore
from mcp_todo.tools.base import ToolArguments, ToolOutcome
from mcp_todo.tools.manager import ToolDispatcher
from mcp_todo.types import ToolAnnotations
from mcp_todo.ui.artifact import DEFAULT_TITLE


class CreateTodoArguments(ToolArguments):
    text: Annotated[str, Field(min_length=1, description="The todo text/description")]


class ListTodoArguments(ToolArguments):
    pass


class UpdateTodoArguments(ToolArguments):
    id: Annotated[StrictInt, Field(description="The ID of the todo to update")]
    text: Annotated[str | None, Field(description="New text for the todo")] = None
    completed: Annotated[StrictBool | None, Field(description="New completion status")] = None


class DeleteTodoArguments(ToolArguments):
    id: Annotated[StrictInt, Field(description="The ID of the todo to delete")]


def _not_found(todo_id: int) -> ToolOutcome:
    return ToolOutcome.failure(f"Todo with ID {todo_id} not found")


def create_todo(store: TodoStore, args: CreateTodoArguments) -> ToolOutcome:
    """Create a new todo item"""
    todo = store.create(args.text)
    return ToolOutcome.ok(todo.model_dump(mode="json", by_alias=True), f"Created todo {todo.id}")


def list_todos(store: TodoStore, args: ListTodoArguments) -> ToolOutcome:
    """List all todos"""
    todos = [todo.model_dump(mode="json", by_alias=True) for todo in store.list()]
    return ToolOutcome.ok(todos)


def update_todo(store: TodoStore, args: UpdateTodoArguments) -> ToolOutcome:
    """Update an existing todo's text or completion status by ID"""
    todo = store.update(args.id, text=args.text, completed=args.completed)
    if todo is None:
        return _not_found(args.id)
    return ToolOutcome.ok(todo.model_dump(mode="json", by_alias=True), f"Updated todo {todo.id}")


def delete_todo(store: TodoStore, args: DeleteTodoArguments) -> ToolOutcome:
    """Delete a todo item by ID"""
    todo = store.delete(args.id)
    if todo is None:
        return _not_found(args.id)
    return ToolOutcome.ok(todo.model_dump(mode="json", by_alias=True), f"Deleted todo {todo.id}")


def register_todo_tools(dispatcher: ToolDispatcher) -> None:
    """Register todo_create, todo_list, todo_update and todo_delete, then seal the dispatcher."""
    dispatcher.add_tool(
        create_todo,
        CreateTodoArguments,
        name="todo_create",
        title=DEFAULT_TITLE,
        artifact_description="Your updated todo list",
    )
    dispatcher.add_tool(
        list_todos,
        ListTodoArguments,
        name="todo_list",
        title=DEFAULT_TITLE,
        annotations=ToolAnnotations(read_only_hint=True),
        artifact_description="All your todos in one place",
    )
    dispatcher.add_tool(
        update_todo,
        UpdateTodoArguments,
        name="todo_update",
        title=DEFAULT_TITLE,
        annotations=ToolAnnotations(idempotent_hint=True),
        artifact_description="Updated todo list",
    )
    dispatcher.add_tool(
        delete_todo,
        DeleteTodoArguments,
        name="todo_delete",
        title=DEFAULT_TITLE,
        annotations=ToolAnnotations(destructive_hint=True),
        artifact_description="Updated todo list after deletion",
    )
    dispatcher.seal()
