"""The embedding side of the todo UI.

The host owns one client session and listens on one ActionBridge. Every
bridge message is dispatched as a tool call, after which the list is always
fetched again and rendered from scratch. Nothing is correlated back to the
message that caused it.
"""

from __future__ import annotations

import json
from typing import Any, Final

import httpx

from mcp_todo.client import ClientSession
from mcp_todo.exceptions import McpError, TransportError
from mcp_todo.host.renderer import Renderer
from mcp_todo.types import CallToolResult, JSONRPCMessage, JSONRPCNotification, TextContent
from mcp_todo.ui.artifact import TODO_LIST_URI, ResourceArtifact, artifact_from_content
from mcp_todo.ui.bridge import ActionBridge, ActionMessage, parse_action_message
from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)

LIST_OPERATION: Final[str] = "todo_list"
RESOURCE_UPDATED: Final[str] = "notifications/resources/updated"
DISPATCHABLE_OPERATIONS: Final[frozenset[str]] = frozenset({"todo_create", "todo_list", "todo_update", "todo_delete"})


def failure_message(result: CallToolResult) -> str:
    """Best human-readable message for a failed tool result."""
    if result.structured_content and result.structured_content.get("message"):
        return str(result.structured_content["message"])
    for block in result.content:
        if isinstance(block, TextContent):
            try:
                decoded = json.loads(block.text)
            except ValueError:
                return block.text
            if isinstance(decoded, dict) and decoded.get("message"):
                return str(decoded["message"])
            return block.text
    return "Operation failed"


def _is_list_update(message: JSONRPCMessage) -> bool:
    if not isinstance(message, JSONRPCNotification) or message.method != RESOURCE_UPDATED:
        return False
    return (message.params or {}).get("uri") == TODO_LIST_URI


class HostOrchestrator:
    def __init__(self, session: ClientSession, renderer: Renderer, bridge: ActionBridge | None = None) -> None:
        self.session = session
        self.renderer = renderer
        self.bridge = bridge or ActionBridge()
        self.artifact: ResourceArtifact | None = None

    async def start(self) -> ResourceArtifact | None:
        """Handshake, then render the current list."""
        result = await self.session.initialize()
        logger.info(f"Connected to {result.server_info.name} {result.server_info.version}")
        return await self.refresh()

    async def refresh(self) -> ResourceArtifact | None:
        """Fetch the whole list again and render it."""
        result = await self.session.call_tool(LIST_OPERATION)
        artifact = artifact_from_content(result.content)
        if artifact is None:
            logger.warning("List result carried no artifact")
            return None
        self.artifact = artifact
        self.renderer.render(artifact)
        return artifact

    async def handle_message(self, raw: Any) -> bool:
        """Dispatch one bridge message. Returns False if it was discarded.

        Business failures and server-side errors are shown through the
        renderer; transport failures propagate. The list is refreshed after
        every dispatched message, which is also how todo_list is served.
        """
        message = raw if isinstance(raw, ActionMessage) else parse_action_message(raw)
        if message is None:
            return False

        operation = message.payload.operation_name
        if operation not in DISPATCHABLE_OPERATIONS:
            logger.warning(f"Discarding message {message.message_id} for unknown operation {operation!r}")
            return False

        logger.debug(f"Dispatching {operation} for message {message.message_id}")
        if operation != LIST_OPERATION:
            try:
                result = await self.session.call_tool(operation, message.payload.to_arguments())
            except McpError as e:
                logger.warning(f"{operation} failed on the server: {e.error.message}")
                self.renderer.show_error(f"{operation} failed: {e.error.message}")
            else:
                if result.is_error:
                    self.renderer.show_error(failure_message(result))
        await self.refresh()
        return True

    async def run(self) -> None:
        """Consume bridge messages until the bridge is closed."""
        async for message in self.bridge:
            await self.handle_message(message)

    async def watch(self) -> None:
        """Re-render whenever the server reports that the todo list changed.

        Update notifications are a hint only. If the stream is lost the watch
        ends and bridge dispatch carries on.
        """
        try:
            async for message in self.session.listen():
                if _is_list_update(message):
                    logger.debug("Todo list changed on the server")
                    await self.refresh()
        except (httpx.HTTPError, TransportError) as e:
            logger.warning(f"Update stream ended: {e}")
        else:
            logger.debug("Update stream closed by the server")

    async def close(self) -> None:
        await self.session.terminate()
