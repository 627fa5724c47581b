"""Starlette adapter - thin wrapper around RequestRouter.

This is the only module with a Starlette dependency. It converts HTTP
requests and responses to and from the framework-agnostic RequestRouter.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import wraps
from http import HTTPStatus

from sse_starlette import EventSourceResponse
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from mcp_todo.config import Settings
from mcp_todo.exceptions import TransportError
from mcp_todo.server import ServerRunner, create_todo_server
from mcp_todo.store import TodoStore
from mcp_todo.tools import ToolDispatcher, register_todo_tools
from mcp_todo.transport.router import (
    MCP_PROTOCOL_VERSION_HEADER,
    MCP_SESSION_ID_HEADER,
    AcceptedResponse,
    JSONResult,
    RequestRouter,
)
from mcp_todo.types import INTERNAL_ERROR, error_envelope
from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)

Endpoint = Callable[[Request], Awaitable[Response]]


def error_response(error: TransportError) -> JSONResponse:
    return JSONResponse(
        error_envelope(error.code, error.message, error.data),
        status_code=error.status_code,
    )


def _guard(endpoint: Endpoint) -> Endpoint:
    """Turn TransportErrors and uncaught exceptions into error envelopes."""

    @wraps(endpoint)
    async def wrapper(request: Request) -> Response:
        try:
            return await endpoint(request)
        except TransportError as e:
            logger.info(f"{request.method} {request.url.path} rejected: {e.code} {e.message}")
            return error_response(e)
        except Exception as e:
            logger.exception(f"Error handling {request.method} {request.url.path}")
            return JSONResponse(
                error_envelope(INTERNAL_ERROR, "Internal server error", str(e)),
                status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            )

    return wrapper


class StreamableHTTPEndpoints:
    """POST, GET and DELETE handlers for the single Streamable HTTP path."""

    def __init__(self, router: RequestRouter, *, ping_interval: float | None = None) -> None:
        self.router = router
        self.ping_interval = ping_interval

    async def post(self, request: Request) -> Response:
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        logger.debug(f"POST session={session_id or 'NEW'}")
        body = await request.body()

        result = await self.router.handle_post(session_id, body)

        match result:
            case AcceptedResponse():
                return Response(status_code=HTTPStatus.ACCEPTED)

            case JSONResult(body=response_body, session_id=sid):
                headers = {MCP_SESSION_ID_HEADER: sid} if sid else None
                return JSONResponse(
                    content=response_body.model_dump(mode="json", by_alias=True, exclude_none=True),
                    headers=headers,
                )

        return Response(status_code=HTTPStatus.INTERNAL_SERVER_ERROR)  # unreachable but satisfies type checker

    async def get(self, request: Request) -> Response:
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        logger.debug(f"GET session={session_id}")
        stream = self.router.handle_get(session_id)

        async def events() -> AsyncIterator[dict[str, str]]:
            async with stream:
                async for message in stream:
                    yield {"event": "message", "data": message.model_dump_json(by_alias=True, exclude_none=True)}

        return EventSourceResponse(
            events(),
            ping=self.ping_interval,
            headers={MCP_SESSION_ID_HEADER: session_id or ""},
        )

    async def delete(self, request: Request) -> Response:
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        logger.debug(f"DELETE session={session_id}")
        await self.router.handle_delete(session_id)
        return Response(status_code=HTTPStatus.OK)

    def routes(self, path: str) -> list[Route]:
        return [
            Route(path, _guard(self.post), methods=["POST"]),
            Route(path, _guard(self.get), methods=["GET"]),
            Route(path, _guard(self.delete), methods=["DELETE"]),
        ]


def build_app(router: RequestRouter, settings: Settings) -> Starlette:
    """Create a Starlette ASGI app serving the router on ``settings.streamable_http_path``."""

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with router.run():
            yield

    endpoints = StreamableHTTPEndpoints(router, ping_interval=settings.sse_ping_interval)
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["Content-Type", MCP_SESSION_ID_HEADER, MCP_PROTOCOL_VERSION_HEADER],
            expose_headers=[MCP_SESSION_ID_HEADER],
            allow_credentials=True,
        )
    ]
    app = Starlette(
        debug=settings.debug,
        routes=endpoints.routes(settings.streamable_http_path),
        middleware=middleware,
        lifespan=lifespan,
    )
    app.state.router = router
    return app


def create_app(settings: Settings | None = None, *, store: TodoStore | None = None) -> Starlette:
    """Wire store, tools, server, router and HTTP app together.

    Usage:
        app = create_app(Settings(port=8080))
        uvicorn.run(app, host="127.0.0.1", port=8080)
    """
    settings = settings or Settings()
    store = store if store is not None else TodoStore()

    dispatcher = ToolDispatcher(store, artifact_encoding=settings.artifact_encoding)
    register_todo_tools(dispatcher)
    server = create_todo_server(dispatcher, name=settings.server_name, version=settings.server_version)

    router = RequestRouter(ServerRunner(server))
    router.watch_store(store)

    app = build_app(router, settings)
    app.state.store = store
    app.state.dispatcher = dispatcher
    return app
