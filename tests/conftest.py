from collections.abc import AsyncIterator

import httpx
import pytest
from starlette.applications import Starlette

from mcp_todo.config import Settings
from mcp_todo.store import TodoStore
from mcp_todo.tools import ToolDispatcher, register_todo_tools
from mcp_todo.transport import RequestRouter, create_app
from tests.helpers import FIXED_NOW


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store() -> TodoStore:
    return TodoStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def dispatcher(store: TodoStore) -> ToolDispatcher:
    dispatcher = ToolDispatcher(store)
    register_todo_tools(dispatcher)
    return dispatcher


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def app(settings: Settings, store: TodoStore) -> Starlette:
    return create_app(settings, store=store)


@pytest.fixture
async def http_client(app: Starlette) -> AsyncIterator[httpx.AsyncClient]:
    """httpx client bound to the app, with the router lifespan entered manually.

    httpx.ASGITransport does not run lifespan events.
    """
    router: RequestRouter = app.state.router
    async with router.run():
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            yield client

