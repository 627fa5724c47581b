"""Build the self-contained HTML artifact for the todo list.

The builder is a pure function of the todo snapshot: the same list always
produces the same document, apart from the "rendered at" footer and the
display dates. Pass ``now`` to pin the footer.
"""

from __future__ import annotations

import base64
import html
import json
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Annotated, Any, Final, Literal

from pydantic import Field

from mcp_todo.store import Todo
from mcp_todo.types.base import MCPModel
from mcp_todo.types.content import EmbeddedResource
from mcp_todo.types.resources import BlobResourceContents, Resource, TextResourceContents
from mcp_todo.ui import templates

TODO_LIST_URI: Final[str] = "ui://todo/list"
HTML_MIME_TYPE: Final[str] = "text/html"
DEFAULT_TITLE: Final[str] = "📝 Todo List"
DEFAULT_DESCRIPTION: Final[str] = "All your todos in one place"

ArtifactEncoding = Literal["text", "blob"]


class ArtifactMetadata(MCPModel):
    """Display hints for the embedding host."""

    title: str = DEFAULT_TITLE
    description: str = DEFAULT_DESCRIPTION
    preferred_render_context: Annotated[str, Field(alias="preferredRenderContext")] = "main-panel"


class ResourceArtifact(MCPModel):
    """A full, independent rendering of the todo list."""

    uri: str = TODO_LIST_URI
    mime_type: Annotated[str, Field(alias="mimeType")] = HTML_MIME_TYPE
    encoding: ArtifactEncoding = "text"
    content: str
    metadata: ArtifactMetadata = Field(default_factory=ArtifactMetadata)

    @property
    def html(self) -> str:
        """The decoded markup, whatever the encoding."""
        if self.encoding == "blob":
            return base64.b64decode(self.content).decode("utf-8")
        return self.content

    def to_resource_contents(self) -> TextResourceContents | BlobResourceContents:
        meta = self.metadata.model_dump(by_alias=True)
        if self.encoding == "blob":
            return BlobResourceContents(uri=self.uri, mime_type=self.mime_type, blob=self.content, meta=meta)
        return TextResourceContents(uri=self.uri, mime_type=self.mime_type, text=self.content, meta=meta)

    def to_embedded_resource(self) -> EmbeddedResource:
        return EmbeddedResource(resource=self.to_resource_contents())

    @classmethod
    def from_resource_contents(cls, contents: TextResourceContents | BlobResourceContents) -> ResourceArtifact:
        """Rebuild an artifact from an embedded resource received over the wire."""
        metadata = ArtifactMetadata.model_validate(contents.meta or {})
        if isinstance(contents, BlobResourceContents):
            encoding: ArtifactEncoding = "blob"
            content = contents.blob
        else:
            encoding = "text"
            content = contents.text
        return cls(
            uri=contents.uri,
            mime_type=contents.mime_type or HTML_MIME_TYPE,
            encoding=encoding,
            content=content,
            metadata=metadata,
        )


def todo_list_resource() -> Resource:
    """Listing entry for the artifact when exposed as a readable resource."""
    return Resource(
        uri=TODO_LIST_URI,
        name="todo-list",
        title=DEFAULT_TITLE,
        description=DEFAULT_DESCRIPTION,
        mime_type=HTML_MIME_TYPE,
    )


def _format_date(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%d/%m/%Y %H:%M UTC")


_SCRIPT_SAFE = str.maketrans({"<": "\\u003c", ">": "\\u003e", "&": "\\u0026"})


def _embedded_json(todos: Sequence[Todo]) -> str:
    data = [todo.model_dump(mode="json", by_alias=True) for todo in todos]
    # Markup characters are unicode-escaped so the payload cannot end the <script> element.
    return json.dumps(data, ensure_ascii=False).translate(_SCRIPT_SAFE)


def _render_item(todo: Todo) -> str:
    return templates.ITEM.substitute(
        id=todo.id,
        text=html.escape(todo.text, quote=True),
        created=_format_date(todo.created_at),
        completed_class=" completed" if todo.completed else "",
        toggle_label="Undo" if todo.completed else "Done",
    )


def render_todo_html(
    todos: Sequence[Todo],
    *,
    title: str = DEFAULT_TITLE,
    description: str = DEFAULT_DESCRIPTION,
    now: datetime | None = None,
) -> str:
    if todos:
        items = "\n".join(_render_item(todo) for todo in todos)
    else:
        items = templates.EMPTY_STATE
    rendered_at = now or datetime.now(timezone.utc)
    return templates.PAGE.substitute(
        title=html.escape(title),
        description=html.escape(description),
        total=len(todos),
        completed=sum(1 for todo in todos if todo.completed),
        items=items,
        rendered_at=_format_date(rendered_at),
        todos_json=_embedded_json(todos),
        script=templates.SCRIPT,
    )


def build_todo_artifact(
    todos: Sequence[Todo],
    *,
    description: str = DEFAULT_DESCRIPTION,
    title: str = DEFAULT_TITLE,
    encoding: ArtifactEncoding = "text",
    now: datetime | None = None,
) -> ResourceArtifact:
    """Render a snapshot of the todo list into a new artifact."""
    markup = render_todo_html(todos, title=title, description=description, now=now)
    content = base64.b64encode(markup.encode("utf-8")).decode("ascii") if encoding == "blob" else markup
    return ResourceArtifact(
        encoding=encoding,
        content=content,
        metadata=ArtifactMetadata(title=title, description=description),
    )


def artifact_from_content(content: Sequence[Any]) -> ResourceArtifact | None:
    """Return the first todo-list artifact embedded in a tool result, if any."""
    for block in content:
        if isinstance(block, EmbeddedResource) and block.resource.uri == TODO_LIST_URI:
            return ResourceArtifact.from_resource_contents(block.resource)
    return None
