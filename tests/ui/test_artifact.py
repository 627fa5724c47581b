import base64
import json
import re
from datetime import datetime, timedelta, timezone

from mcp_todo.store import Todo
from mcp_todo.types import BlobResourceContents, TextResourceContents
from mcp_todo.ui import ResourceArtifact, build_todo_artifact
from tests.helpers import FIXED_NOW


def _todos() -> list[Todo]:
    return [
        Todo(id=1, text="buy milk", completed=True, created_at=FIXED_NOW),
        Todo(id=2, text="pay rent", created_at=FIXED_NOW),
    ]


def _embedded_data(html: str) -> list[dict]:
    match = re.search(r"const TODOS_DATA = (.*);\n", html)
    assert match is not None
    return json.loads(match.group(1))


def test_same_list_gives_same_document():
    first = build_todo_artifact(_todos(), now=FIXED_NOW)
    second = build_todo_artifact(_todos(), now=FIXED_NOW)

    assert first == second


def test_only_render_time_differs_between_snapshots():
    first = build_todo_artifact(_todos(), now=FIXED_NOW).html
    second = build_todo_artifact(_todos(), now=FIXED_NOW + timedelta(hours=1)).html

    assert first != second
    strip_footer = re.compile(r"Rendered [^<]*")
    assert strip_footer.sub("", first) == strip_footer.sub("", second)


def test_every_todo_has_its_own_regions():
    html = build_todo_artifact(_todos(), now=FIXED_NOW).html

    for todo_id in (1, 2):
        for prefix in ("todo-", "view-mode-", "edit-mode-", "edit-input-", "view-actions-", "edit-actions-"):
            assert f'id="{prefix}{todo_id}"' in html


def test_embeds_the_serialized_list():
    html = build_todo_artifact(_todos(), now=FIXED_NOW).html

    data = _embedded_data(html)

    assert [item["id"] for item in data] == [1, 2]
    assert data[0] == {"id": 1, "text": "buy milk", "completed": True, "createdAt": "2025-01-02T03:04:05Z"}


def test_stats_and_completed_state():
    html = build_todo_artifact(_todos(), now=FIXED_NOW).html

    assert '<div class="stat-number" id="stat-total">2</div>' in html
    assert '<div class="stat-number" id="stat-completed">1</div>' in html
    assert 'class="todo-item completed" id="todo-1"' in html
    assert 'class="todo-item" id="todo-2"' in html


def test_empty_list_renders_empty_state():
    html = build_todo_artifact([], now=FIXED_NOW).html

    assert "No Todos Yet" in html
    assert _embedded_data(html) == []


def test_text_is_escaped_in_markup_and_script():
    todo = Todo(id=1, text='<script>alert("x")</script>', created_at=FIXED_NOW)

    html = build_todo_artifact([todo], now=FIXED_NOW).html

    assert "<script>alert" not in html
    assert "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;" in html
    assert html.count("</script>") == 1
    assert _embedded_data(html)[0]["text"] == todo.text


def test_dates_are_shown_in_utc():
    local = datetime(2025, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
    todo = Todo(id=1, text="a", created_at=local)

    html = build_todo_artifact([todo], now=FIXED_NOW).html

    assert "02/01/2025 03:04 UTC" in html


def test_metadata_and_resource_contents():
    artifact = build_todo_artifact(_todos(), description="Updated todo list", now=FIXED_NOW)

    contents = artifact.to_resource_contents()

    assert isinstance(contents, TextResourceContents)
    assert contents.uri == "ui://todo/list"
    assert contents.mime_type == "text/html"
    assert contents.meta == {
        "title": "📝 Todo List",
        "description": "Updated todo list",
        "preferredRenderContext": "main-panel",
    }
    dumped = artifact.to_embedded_resource().model_dump(by_alias=True, exclude_none=True)
    assert dumped["type"] == "resource"
    assert dumped["resource"]["mimeType"] == "text/html"


def test_blob_encoding():
    text = build_todo_artifact(_todos(), now=FIXED_NOW)
    blob = build_todo_artifact(_todos(), encoding="blob", now=FIXED_NOW)

    contents = blob.to_resource_contents()

    assert isinstance(contents, BlobResourceContents)
    assert base64.b64decode(contents.blob).decode("utf-8") == text.html
    assert ResourceArtifact.from_resource_contents(contents).html == text.html


def test_script_posts_messages_with_fresh_ids():
    html = build_todo_artifact(_todos(), now=FIXED_NOW).html

    assert "window.parent.postMessage({ type: type, messageId: messageId, payload: payload }, '*')" in html
    assert "operationName: 'todo_update'" in html
    assert "operationName: 'todo_delete'" in html
