from __future__ import annotations as _annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mcp_todo.exceptions import ToolError
from mcp_todo.store import TodoStore
from mcp_todo.types import ToolAnnotations
from mcp_todo.types import Tool as ToolDefinition


class ToolArguments(BaseModel):
    """Base for the typed argument contract of a tool. Unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")


class ToolOutcome(BaseModel):
    """Result of a tool handler, before it is wrapped into a tool call result."""

    success: bool
    data: Any | None = None
    message: str | None = None

    @classmethod
    def ok(cls, data: Any | None = None, message: str | None = None) -> ToolOutcome:
        return cls(success=True, data=data, message=message)

    @classmethod
    def failure(cls, message: str) -> ToolOutcome:
        return cls(success=False, message=message)

    def to_structured(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


ToolHandler = Callable[[TodoStore, Any], ToolOutcome]


class Tool(BaseModel):
    """Internal tool registration info."""

    fn: ToolHandler = Field(exclude=True)
    name: str = Field(description="Name of the tool")
    title: str | None = Field(None, description="Human-readable title of the tool")
    description: str = Field(description="Description of what the tool does")
    arguments_model: type[ToolArguments] = Field(exclude=True)
    parameters: dict[str, Any] = Field(description="JSON schema for tool parameters")
    annotations: ToolAnnotations | None = Field(None, description="Optional annotations for the tool")
    artifact_description: str | None = Field(
        None, description="Description attached to the artifact returned on success"
    )

    @classmethod
    def from_function(
        cls,
        fn: ToolHandler,
        arguments_model: type[ToolArguments],
        name: str | None = None,
        title: str | None = None,
        description: str | None = None,
        annotations: ToolAnnotations | None = None,
        artifact_description: str | None = None,
    ) -> Tool:
        """Create a Tool from a handler and its argument model."""
        func_name = name or fn.__name__

        if func_name == "<lambda>":
            raise ValueError("You must provide a name for lambda functions")

        func_doc = description or fn.__doc__ or ""
        parameters = arguments_model.model_json_schema(by_alias=True)

        return cls(
            fn=fn,
            name=func_name,
            title=title,
            description=func_doc.strip(),
            arguments_model=arguments_model,
            parameters=parameters,
            annotations=annotations,
            artifact_description=artifact_description,
        )

    def validate_arguments(self, arguments: dict[str, Any] | None) -> ToolArguments:
        return self.arguments_model.model_validate(arguments or {})

    def run(self, store: TodoStore, arguments: dict[str, Any] | None) -> ToolOutcome:
        """Validate the arguments, then run the handler against the store.

        A shape violation is reported as a failed outcome and never reaches
        the store. Any other exception is raised as a ToolError.
        """
        try:
            validated = self.validate_arguments(arguments)
        except ValidationError as e:
            return ToolOutcome.failure(f"Invalid arguments for {self.name}: {_describe_errors(e)}")

        try:
            return self.fn(store, validated)
        except Exception as e:
            raise ToolError(f"Error executing tool {self.name}: {e}") from e

    def to_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            title=self.title,
            description=self.description,
            input_schema=self.parameters,
            annotations=self.annotations,
        )


def _describe_errors(error: ValidationError) -> str:
    parts = []
    for item in error.errors(include_url=False):
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
