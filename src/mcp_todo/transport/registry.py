"""Session registry for the Streamable HTTP transport."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from mcp_todo.utilities.logging import get_logger

if TYPE_CHECKING:
    from mcp_todo.transport.session_transport import SessionTransport

logger = get_logger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass
class Session:
    session_id: str
    transport: SessionTransport
    state: SessionState = SessionState.UNINITIALIZED
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionRegistry:
    """Owns every session from handshake to closure.

    A session being handshaken is held apart from the active map, so
    :meth:`lookup` only ever answers with an active session. All operations
    are plain map mutations run on the event loop; no lock is taken.
    """

    def __init__(self) -> None:
        self._pending: dict[str, Session] = {}
        self._active: dict[str, Session] = {}

    def create(self, session_id: str, transport: SessionTransport) -> Session:
        """Register a new, uninitialized session."""
        if session_id in self._pending or session_id in self._active:
            raise ValueError(f"Session {session_id} already exists")
        session = Session(session_id=session_id, transport=transport)
        self._pending[session_id] = session
        return session

    def activate(self, session_id: str) -> Session:
        """Move a session from uninitialized to active once its handshake completed."""
        session = self._pending.pop(session_id, None)
        if session is None:
            raise KeyError(session_id)
        session.state = SessionState.ACTIVE
        self._active[session_id] = session
        logger.info(f"Session {session_id} initialized")
        return session

    def lookup(self, session_id: str | None) -> Session | None:
        """Return the active session for this id, or None."""
        if session_id is None:
            return None
        return self._active.get(session_id)

    def remove(self, session_id: str) -> Session | None:
        """Forget a session. Removing an unknown or already removed id is a no-op."""
        session = self._active.pop(session_id, None) or self._pending.pop(session_id, None)
        if session is None:
            return None
        session.state = SessionState.CLOSED
        logger.info(f"Session {session_id} closed")
        return session

    def sessions(self) -> list[Session]:
        """Active sessions, oldest first."""
        return list(self._active.values())

    def all_sessions(self) -> list[Session]:
        """Pending and active sessions."""
        return [*self._pending.values(), *self._active.values()]

    def clear(self) -> None:
        for session in self.all_sessions():
            session.state = SessionState.CLOSED
        self._pending.clear()
        self._active.clear()

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._active

    def __len__(self) -> int:
        return len(self._active)
