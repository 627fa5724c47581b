"""Display surfaces the host renders artifacts to."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from rich.console import Console

from mcp_todo.ui.artifact import ResourceArtifact


@runtime_checkable
class Renderer(Protocol):
    """Where the host puts each freshly built artifact and any failure it must surface."""

    def render(self, artifact: ResourceArtifact) -> None: ...

    def show_error(self, message: str) -> None: ...


class FileRenderer:
    """Writes every artifact to an HTML file, replacing the previous rendering."""

    def __init__(self, path: Path | str, *, console: Console | None = None) -> None:
        self.path = Path(path)
        self.console = console or Console(stderr=True)
        self.renders = 0

    def render(self, artifact: ResourceArtifact) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(artifact.html, encoding="utf-8")
        self.renders += 1
        metadata = artifact.metadata
        self.console.print(f"[green]Rendered[/green] {metadata.title}: {metadata.description} -> {self.path}")

    def show_error(self, message: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {message}")
