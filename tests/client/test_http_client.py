from collections.abc import AsyncIterator

import httpx
import pytest

from mcp_todo.client import ClientSession, StreamableHTTPClient, create_http_client
from mcp_todo.exceptions import InvalidRequestError, McpError, SessionNotFoundError
from mcp_todo.types import LATEST_PROTOCOL_VERSION, JSONRPCNotification, JSONRPCRequest

pytestmark = pytest.mark.anyio


@pytest.fixture
async def transport(http_client: httpx.AsyncClient) -> AsyncIterator[StreamableHTTPClient]:
    async with StreamableHTTPClient("http://test/mcp", http_client=http_client) as transport:
        yield transport


def test_create_http_client_defaults():
    client = create_http_client()

    assert client.follow_redirects is True
    assert client.timeout == httpx.Timeout(30.0)


def test_create_http_client_overrides():
    client = create_http_client(timeout=httpx.Timeout(5.0), headers={"x-test": "1"})

    assert client.timeout == httpx.Timeout(5.0)
    assert client.headers["x-test"] == "1"


async def test_initialize_stores_session_and_protocol_version(transport: StreamableHTTPClient):
    session = ClientSession(transport)

    result = await session.initialize()

    assert result.server_info.name == "minimal-todo-server"
    assert transport.session_id is not None
    assert transport.protocol_version == LATEST_PROTOCOL_VERSION


async def test_request_before_initialize_raises_invalid_request(transport: StreamableHTTPClient):
    with pytest.raises(InvalidRequestError) as exc_info:
        await transport.post(JSONRPCRequest(id=1, method="tools/list"))

    assert exc_info.value.status_code == 400


async def test_session_calls(transport: StreamableHTTPClient):
    session = ClientSession(transport)
    await session.initialize()

    await session.ping()
    tools = await session.list_tools()
    created = await session.call_tool("todo_create", {"text": "buy milk"})
    resources = await session.list_resources()
    read = await session.read_resource("ui://todo/list")

    assert {tool.name for tool in tools.tools} == {"todo_create", "todo_list", "todo_update", "todo_delete"}
    assert created.is_error is False
    assert created.structured_content is not None
    assert created.structured_content["data"]["text"] == "buy milk"
    assert [resource.uri for resource in resources.resources] == ["ui://todo/list"]
    assert "buy milk" in read.contents[0].text  # type: ignore[union-attr]


async def test_jsonrpc_errors_raise_mcp_error(transport: StreamableHTTPClient):
    session = ClientSession(transport)
    await session.initialize()

    with pytest.raises(McpError) as exc_info:
        await session.read_resource("ui://todo/missing")

    assert exc_info.value.error.code == -32002


async def test_terminate_forgets_session(transport: StreamableHTTPClient):
    session = ClientSession(transport)
    await session.initialize()
    session_id = transport.session_id

    await session.terminate()

    assert transport.session_id is None
    transport.session_id = session_id
    with pytest.raises(InvalidRequestError):
        await transport.post(JSONRPCRequest(id=5, method="ping"))
    with pytest.raises(SessionNotFoundError) as exc_info:
        await transport.terminate()
    assert exc_info.value.status_code == 404
    assert transport.session_id is None


_SSE_BODY = (
    ": ping\n\n"
    'event: message\ndata: {"jsonrpc": "2.0", "method": "notifications/resources/updated", '
    '"params": {"uri": "ui://todo/list"}}\n\n'
    "event: message\ndata: not json\n\n"
    'event: other\ndata: {"jsonrpc": "2.0", "method": "ignored"}\n\n'
)


async def test_events_yield_server_messages_from_the_stream():
    seen_headers: list[httpx.Headers] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_headers.append(request.headers)
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=_SSE_BODY.encode())

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        transport = StreamableHTTPClient("http://test/mcp", http_client=http_client)
        transport.session_id = "s1"

        messages = [message async for message in ClientSession(transport).listen()]

    assert seen_headers[0]["mcp-session-id"] == "s1"
    assert len(messages) == 1
    assert isinstance(messages[0], JSONRPCNotification)
    assert messages[0].method == "notifications/resources/updated"
    assert messages[0].params == {"uri": "ui://todo/list"}


async def test_events_for_unknown_session_raise_not_found():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404, json={"jsonrpc": "2.0", "error": {"code": -32001, "message": "Session not found"}, "id": None}
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        transport = StreamableHTTPClient("http://test/mcp", http_client=http_client)
        transport.session_id = "gone"

        with pytest.raises(SessionNotFoundError):
            async for _ in transport.events():
                pass
