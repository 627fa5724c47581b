from typing import Any

import pytest
from click.testing import CliRunner
from starlette.applications import Starlette

from mcp_todo.cli import main


@pytest.fixture
def uvicorn_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_run(app: Any, **kwargs: Any) -> None:
        calls.append({"app": app, **kwargs})

    monkeypatch.setattr("uvicorn.run", fake_run)
    monkeypatch.setattr("mcp_todo.cli.configure_logging", lambda level: None)
    return calls


def test_help_lists_commands():
    result = CliRunner().invoke(main, ["--help"])

    assert result.exit_code == 0
    assert "serve" in result.output
    assert "host" in result.output


def test_serve_uses_settings_defaults(uvicorn_calls: list[dict[str, Any]]):
    result = CliRunner().invoke(main, ["serve"])

    assert result.exit_code == 0, result.output
    (call,) = uvicorn_calls
    assert isinstance(call["app"], Starlette)
    assert call["host"] == "127.0.0.1"
    assert call["port"] == 3000


def test_serve_options_override_settings(uvicorn_calls: list[dict[str, Any]]):
    result = CliRunner().invoke(
        main, ["serve", "--host", "0.0.0.0", "--port", "8123", "--log-level", "debug", "--artifact-encoding", "blob"]
    )

    assert result.exit_code == 0, result.output
    (call,) = uvicorn_calls
    assert call["host"] == "0.0.0.0"
    assert call["port"] == 8123
    assert call["log_level"] == "debug"
    assert call["app"].state.dispatcher.artifact_encoding == "blob"


def test_serve_rejects_unknown_encoding(uvicorn_calls: list[dict[str, Any]]):
    result = CliRunner().invoke(main, ["serve", "--artifact-encoding", "gzip"])

    assert result.exit_code != 0
    assert uvicorn_calls == []
