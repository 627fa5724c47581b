from __future__ import annotations as _annotations

import json
from typing import Any

from mcp_todo.exceptions import ToolError
from mcp_todo.store import TodoStore
from mcp_todo.tools.base import Tool, ToolArguments, ToolHandler, ToolOutcome
from mcp_todo.types import CallToolResult, TextContent, ToolAnnotations
from mcp_todo.ui.artifact import ArtifactEncoding, build_todo_artifact
from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)


class ToolDispatcher:
    """Static set of tools operating on one shared store.

    Tools are registered while the server is being built and the set is
    sealed before the first call; it never changes at runtime.
    """

    def __init__(
        self,
        store: TodoStore,
        *,
        artifact_encoding: ArtifactEncoding = "text",
        warn_on_duplicate_tools: bool = True,
    ):
        self.store = store
        self.artifact_encoding: ArtifactEncoding = artifact_encoding
        self.warn_on_duplicate_tools = warn_on_duplicate_tools
        self._tools: dict[str, Tool] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        self._sealed = True

    def get_tool(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_tools(self) -> list[Tool]:
        return list(self._tools.values())

    def add_tool(
        self,
        fn: ToolHandler,
        arguments_model: type[ToolArguments],
        name: str | None = None,
        title: str | None = None,
        description: str | None = None,
        annotations: ToolAnnotations | None = None,
        artifact_description: str | None = None,
    ) -> Tool:
        """Add a tool to the dispatcher."""
        if self._sealed:
            raise ToolError("Cannot add tools after the dispatcher has been sealed")
        tool = Tool.from_function(
            fn,
            arguments_model,
            name=name,
            title=title,
            description=description,
            annotations=annotations,
            artifact_description=artifact_description,
        )
        existing = self._tools.get(tool.name)
        if existing:
            if self.warn_on_duplicate_tools:
                logger.warning(f"Tool already exists: {tool.name}")
            return existing
        self._tools[tool.name] = tool
        return tool

    def tool(
        self,
        arguments_model: type[ToolArguments],
        name: str | None = None,
        title: str | None = None,
        description: str | None = None,
        annotations: ToolAnnotations | None = None,
        artifact_description: str | None = None,
    ):
        """Decorator to register a handler as a tool."""

        def decorator(fn: ToolHandler) -> ToolHandler:
            self.add_tool(
                fn,
                arguments_model,
                name=name,
                title=title,
                description=description,
                annotations=annotations,
                artifact_description=artifact_description,
            )
            return fn

        return decorator

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> CallToolResult:
        """Call a tool by name.

        Unknown tools and invalid arguments come back as failed results, not
        exceptions. A handler crash is raised as ToolError.
        """
        tool = self.get_tool(name)
        if tool is None:
            logger.info(f"Call to unknown tool {name!r}")
            return self._to_result(None, ToolOutcome.failure(f"Unknown tool: {name}"))

        logger.debug(f"Calling tool {name}")
        outcome = tool.run(self.store, arguments)
        if not outcome.success:
            logger.info(f"Tool {name} failed: {outcome.message}")
        return self._to_result(tool, outcome)

    def _to_result(self, tool: Tool | None, outcome: ToolOutcome) -> CallToolResult:
        structured = outcome.to_structured()
        content: list[Any] = [TextContent(text=json.dumps(structured, ensure_ascii=False))]
        if not outcome.success or tool is None:
            return CallToolResult(content=content, structured_content=structured, is_error=True)

        kwargs: dict[str, Any] = {"encoding": self.artifact_encoding}
        if tool.artifact_description:
            kwargs["description"] = tool.artifact_description
        artifact = build_todo_artifact(self.store.snapshot(), **kwargs)
        content.append(artifact.to_embedded_resource())
        return CallToolResult(content=content, structured_content=structured)
