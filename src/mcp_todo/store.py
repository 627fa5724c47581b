"""Process-wide todo store shared by every session."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)

StoreListener = Callable[[], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Todo(BaseModel):
    """A single todo item. Instances are immutable; updates produce a new copy."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    text: str
    completed: bool = False
    created_at: Annotated[datetime, Field(alias="createdAt")] = Field(default_factory=_utcnow)


class TodoStore:
    """In-memory todo list with a monotonically increasing id counter.

    Every mutation runs to completion under one lock, so ids stay unique and
    strictly increasing and insertion order always matches id order, whatever
    order callers arrive in. Ids are never reused, even after deletion.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._todos: list[Todo] = []
        self._next_id = 1
        self._lock = threading.Lock()
        self._clock = clock
        self._listeners: list[StoreListener] = []

    def create(self, text: str) -> Todo:
        with self._lock:
            todo = Todo(id=self._next_id, text=text, created_at=self._clock())
            self._next_id += 1
            self._todos.append(todo)
        logger.debug(f"Created todo {todo.id}")
        self._notify()
        return todo

    def list(self) -> list[Todo]:
        """Return all todos in creation order."""
        with self._lock:
            return list(self._todos)

    def snapshot(self) -> tuple[Todo, ...]:
        with self._lock:
            return tuple(self._todos)

    def get(self, todo_id: int) -> Todo | None:
        with self._lock:
            index = self._index_of(todo_id)
            return None if index is None else self._todos[index]

    def update(self, todo_id: int, *, text: str | None = None, completed: bool | None = None) -> Todo | None:
        """Apply only the provided fields. Returns None if the id is unknown."""
        changes: dict[str, object] = {}
        if text is not None:
            changes["text"] = text
        if completed is not None:
            changes["completed"] = completed

        with self._lock:
            index = self._index_of(todo_id)
            if index is None:
                return None
            todo = self._todos[index].model_copy(update=changes)
            self._todos[index] = todo
        logger.debug(f"Updated todo {todo_id}: {sorted(changes)}")
        self._notify()
        return todo

    def delete(self, todo_id: int) -> Todo | None:
        """Remove exactly one todo and return it. Returns None if the id is unknown."""
        with self._lock:
            index = self._index_of(todo_id)
            if index is None:
                return None
            todo = self._todos.pop(index)
        logger.debug(f"Deleted todo {todo_id}")
        self._notify()
        return todo

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a callback invoked after every successful mutation.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __len__(self) -> int:
        with self._lock:
            return len(self._todos)

    def _index_of(self, todo_id: int) -> int | None:
        for index, todo in enumerate(self._todos):
            if todo.id == todo_id:
                return index
        return None

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Store listener failed")
