"""Rendered todo artifact and the action channel back to its host."""

from .artifact import (
    TODO_LIST_URI,
    ArtifactMetadata,
    ResourceArtifact,
    artifact_from_content,
    build_todo_artifact,
    render_todo_html,
    todo_list_resource,
)
from .bridge import ActionBridge, ActionMessage, ActionPayload, new_message_id, parse_action_message

__all__ = [
    "TODO_LIST_URI",
    "ActionBridge",
    "ActionMessage",
    "ActionPayload",
    "ArtifactMetadata",
    "ResourceArtifact",
    "artifact_from_content",
    "build_todo_artifact",
    "new_message_id",
    "parse_action_message",
    "render_todo_html",
    "todo_list_resource",
]
