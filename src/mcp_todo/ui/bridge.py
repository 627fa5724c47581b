"""Host side of the one-way action channel from the rendered artifact.

The artifact posts ``{type, messageId, payload}`` objects to its embedding
host and never waits for a reply. Anything lacking a ``messageId`` is not ours
and is dropped before it reaches the host orchestrator.
"""

from __future__ import annotations

import itertools
import secrets
import time
from collections.abc import AsyncIterator
from typing import Annotated, Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, ValidationError

from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)

_counter = itertools.count(1)


def new_message_id() -> str:
    """Return a message id that is not reused within the process."""
    return f"msg-{int(time.time() * 1000)}-{next(_counter)}-{secrets.token_hex(4)}"


class ActionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    operation_name: Annotated[
        str,
        Field(
            min_length=1,
            validation_alias=AliasChoices("operationName", "toolName", "operation_name"),
            serialization_alias="operationName",
        ),
    ]
    id: int | None = None
    text: str | None = None
    completed: StrictBool | None = None

    def to_arguments(self) -> dict[str, Any]:
        """Tool arguments carried by this payload, without unset fields."""
        return self.model_dump(include={"id", "text", "completed"}, exclude_none=True)


class ActionMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = "tool"
    message_id: Annotated[
        str,
        Field(
            min_length=1,
            validation_alias=AliasChoices("messageId", "message_id"),
            serialization_alias="messageId",
        ),
    ]
    payload: ActionPayload

    @classmethod
    def create(cls, operation_name: str, **arguments: Any) -> ActionMessage:
        return cls(
            message_id=new_message_id(),
            payload=ActionPayload(operation_name=operation_name, **arguments),
        )


def parse_action_message(raw: Any) -> ActionMessage | None:
    """Validate an inbound message, returning None when it must be discarded."""
    if not isinstance(raw, dict):
        logger.debug("Discarding non-object bridge message")
        return None
    message_id = raw.get("messageId")
    if not isinstance(message_id, str) or not message_id:
        logger.debug("Discarding bridge message without messageId")
        return None
    try:
        return ActionMessage.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Discarding malformed bridge message {message_id}: {e.error_count()} error(s)")
        return None


class ActionBridge:
    """In-process channel the host listens on.

    Posting never blocks for a result: the sender gets no acknowledgement,
    only the next rendered artifact.
    """

    def __init__(self, max_buffer_size: float = 100) -> None:
        self._send: MemoryObjectSendStream[Any]
        self._receive: MemoryObjectReceiveStream[Any]
        self._send, self._receive = anyio.create_memory_object_stream[Any](max_buffer_size)

    async def post(self, raw: Any) -> None:
        await self._send.send(raw)

    def post_nowait(self, raw: Any) -> None:
        self._send.send_nowait(raw)

    async def close(self) -> None:
        await self._send.aclose()

    async def messages(self) -> AsyncIterator[ActionMessage]:
        """Yield valid messages until the bridge is closed."""
        async with self._receive:
            async for raw in self._receive:
                message = parse_action_message(raw)
                if message is not None:
                    yield message

    def __aiter__(self) -> AsyncIterator[ActionMessage]:
        return self.messages()
