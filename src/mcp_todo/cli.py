"""Command line entry points: ``mcp-todo serve`` and ``mcp-todo host``."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import anyio
import click

from mcp_todo.client import ClientSession, StreamableHTTPClient
from mcp_todo.config import Settings
from mcp_todo.host import FileRenderer, HostOrchestrator
from mcp_todo.ui.bridge import ActionBridge
from mcp_todo.utilities.logging import configure_logging, get_logger

logger = get_logger(__name__)

LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False)


@click.group()
def main() -> None:
    """Todo server with an interactive HTML artifact."""


@main.command()
@click.option("--host", default=None, help="Interface to bind (default: MCP_TODO_HOST or 127.0.0.1)")
@click.option("--port", type=int, default=None, help="Port to listen on (default: MCP_TODO_PORT or 3000)")
@click.option("--log-level", type=LOG_LEVELS, default=None, help="Logging level")
@click.option(
    "--artifact-encoding",
    type=click.Choice(["text", "blob"]),
    default=None,
    help="Embed the HTML artifact as text or base64 blob",
)
def serve(host: str | None, port: int | None, log_level: str | None, artifact_encoding: str | None) -> None:
    """Run the Streamable HTTP server."""
    import uvicorn

    from mcp_todo.transport import create_app

    overrides = {
        key: value
        for key, value in {
            "host": host,
            "port": port,
            "log_level": log_level.upper() if log_level else None,
            "artifact_encoding": artifact_encoding,
        }.items()
        if value is not None
    }
    settings = Settings(**overrides)
    configure_logging(settings.log_level)

    app = create_app(settings)
    logger.info(f"Todo server listening at http://{settings.host}:{settings.port}{settings.streamable_http_path}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


@main.command("host")
@click.option("--url", default=None, help="Server URL (default: derived from settings)")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("todo.html"),
    show_default=True,
    help="File the rendered artifact is written to",
)
@click.option("--log-level", type=LOG_LEVELS, default="INFO", show_default=True, help="Logging level")
def host_command(url: str | None, output: Path, log_level: str) -> None:
    """Render the todo list to a file and read bridge messages as JSON lines from stdin."""
    configure_logging(log_level.upper())  # type: ignore[arg-type]
    settings = Settings()
    url = url or f"http://{settings.host}:{settings.port}{settings.streamable_http_path}"
    anyio.run(run_host, url, output)


async def run_host(url: str, output: Path) -> None:
    bridge = ActionBridge()
    async with StreamableHTTPClient(url) as transport:
        orchestrator = HostOrchestrator(ClientSession(transport), FileRenderer(output), bridge)
        await orchestrator.start()
        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(orchestrator.watch)
                async with anyio.create_task_group() as actions:
                    actions.start_soon(orchestrator.run)
                    await _pump_stdin(bridge)
                tg.cancel_scope.cancel()
        finally:
            with anyio.CancelScope(shield=True):
                await orchestrator.close()


async def _pump_stdin(bridge: ActionBridge) -> None:
    async with anyio.wrap_file(sys.stdin) as stdin:
        async for line in stdin:
            line = line.strip()
            if not line:
                continue
            try:
                raw = json.loads(line)
            except ValueError:
                logger.warning(f"Ignoring line that is not JSON: {line!r}")
                continue
            await bridge.post(raw)
    await bridge.close()
