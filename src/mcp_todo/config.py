"""Settings for the todo server and host."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server settings.

    All settings can be configured via environment variables with the prefix MCP_TODO_.
    For example, MCP_TODO_PORT=8080 will set port=8080.
    """

    model_config = SettingsConfigDict(
        env_prefix="MCP_TODO_",
        env_file=".env",
        extra="ignore",
    )

    # Server settings
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    server_name: str = "minimal-todo-server"
    server_version: str = "1.0.0"

    # HTTP settings
    host: str = "127.0.0.1"
    port: int = 3000
    streamable_http_path: str = "/mcp"
    cors_allow_origins: list[str] = ["*"]

    sse_ping_interval: float = 15.0
    """Seconds between keep-alive comments on GET streams."""

    # Artifact settings
    artifact_encoding: Literal["text", "blob"] = "text"
