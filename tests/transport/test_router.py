"""Router state machine tests, without any HTTP framework in between."""

import json
from collections.abc import AsyncIterator
from typing import Any

import anyio
import pytest

from mcp_todo.exceptions import InvalidRequestError, ParseError, SessionNotFoundError
from mcp_todo.server import ServerRunner, create_todo_server
from mcp_todo.store import TodoStore
from mcp_todo.tools import ToolDispatcher
from mcp_todo.transport import AcceptedResponse, JSONResult, RequestRouter
from mcp_todo.types import (
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    JSONRPCErrorResponse,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResultResponse,
)
from tests.helpers import init_request, initialized_notification, tool_call

pytestmark = pytest.mark.anyio


def _body(payload: Any) -> bytes:
    return json.dumps(payload).encode()


def _make_router(dispatcher: ToolDispatcher) -> RequestRouter:
    server = create_todo_server(dispatcher, name="test-server", version="0.1.0")
    counter = iter(range(1, 1000))
    return RequestRouter(ServerRunner(server), session_id_generator=lambda: f"s{next(counter)}")


@pytest.fixture
async def router(dispatcher: ToolDispatcher, store: TodoStore) -> AsyncIterator[RequestRouter]:
    router = _make_router(dispatcher)
    router.watch_store(store)
    async with router.run():
        yield router


async def _open_session(router: RequestRouter) -> str:
    result = await router.handle_post(None, _body(init_request()))
    assert isinstance(result, JSONResult)
    assert result.session_id is not None
    accepted = await router.handle_post(result.session_id, _body(initialized_notification()))
    assert isinstance(accepted, AcceptedResponse)
    return result.session_id


async def _call(router: RequestRouter, session_id: str, request_id: int, name: str, **arguments: Any) -> dict:
    result = await router.handle_post(session_id, _body(tool_call(request_id, name, arguments)))
    assert isinstance(result, JSONResult)
    assert isinstance(result.body, JSONRPCResultResponse)
    return result.body.result


async def test_initialize_creates_an_active_session(router: RequestRouter):
    result = await router.handle_post(None, _body(init_request()))

    assert isinstance(result, JSONResult)
    assert result.session_id == "s1"
    assert isinstance(result.body, JSONRPCResultResponse)
    assert result.body.result["serverInfo"] == {"name": "test-server", "version": "0.1.0"}
    assert set(result.body.result["capabilities"]) >= {"tools", "resources"}
    assert router.registry.lookup("s1") is not None


@pytest.mark.parametrize(
    "requested, negotiated",
    [("2025-03-26", "2025-03-26"), ("1999-01-01", LATEST_PROTOCOL_VERSION)],
)
async def test_protocol_version_negotiation(router: RequestRouter, requested: str, negotiated: str):
    result = await router.handle_post(None, _body(init_request(protocol_version=requested)))

    assert isinstance(result, JSONResult)
    assert isinstance(result.body, JSONRPCResultResponse)
    assert result.body.result["protocolVersion"] == negotiated


async def test_session_is_registered_only_after_handshake_completes(dispatcher: ToolDispatcher):
    router = _make_router(dispatcher)
    seen_before_activation: list[Any] = []
    activate = router.registry.activate

    def observing_activate(session_id: str):
        seen_before_activation.append(router.registry.lookup(session_id))
        with pytest.raises(SessionNotFoundError):
            router.handle_get(session_id)
        return activate(session_id)

    router.registry.activate = observing_activate  # type: ignore[method-assign]

    async with router.run():
        result = await router.handle_post(None, _body(init_request()))

        assert isinstance(result, JSONResult)
        assert seen_before_activation == [None]
        assert router.registry.lookup("s1") is not None


@pytest.mark.parametrize(
    "body",
    [
        _body(tool_call(1, "todo_list")),
        _body({"jsonrpc": "2.0", "method": "notifications/initialized"}),
        _body([init_request()]),
        _body({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}),
        b"{not json",
        b"",
    ],
)
async def test_post_without_session_and_not_initialize_is_invalid(router: RequestRouter, body: bytes):
    with pytest.raises(InvalidRequestError):
        await router.handle_post(None, body)

    assert len(router.registry) == 0
    assert router.registry.all_sessions() == []


async def test_post_with_unregistered_session_is_invalid(router: RequestRouter):
    with pytest.raises(InvalidRequestError):
        await router.handle_post("nope", _body(tool_call(1, "todo_list")))


async def test_post_with_init_body_and_unknown_session_never_creates_one(router: RequestRouter):
    with pytest.raises(InvalidRequestError):
        await router.handle_post("nope", _body(init_request()))

    assert router.registry.all_sessions() == []


async def test_malformed_bodies_on_active_session(router: RequestRouter):
    session_id = await _open_session(router)

    with pytest.raises(ParseError):
        await router.handle_post(session_id, b"{not json")
    with pytest.raises(InvalidRequestError):
        await router.handle_post(session_id, _body([tool_call(1, "todo_list")]))
    with pytest.raises(InvalidRequestError):
        await router.handle_post(session_id, _body({"jsonrpc": "2.0", "id": 1}))


async def test_second_initialize_on_session_is_rejected(router: RequestRouter):
    session_id = await _open_session(router)

    result = await router.handle_post(session_id, _body(init_request(request_id=2)))

    assert isinstance(result, JSONResult)
    assert isinstance(result.body, JSONRPCErrorResponse)
    assert result.body.error.code == INVALID_REQUEST


async def test_unknown_method_is_a_jsonrpc_error(router: RequestRouter):
    session_id = await _open_session(router)

    result = await router.handle_post(session_id, _body({"jsonrpc": "2.0", "id": 9, "method": "prompts/list"}))

    assert isinstance(result, JSONResult)
    assert isinstance(result.body, JSONRPCErrorResponse)
    assert result.body.id == 9
    assert result.body.error.code == -32601


@pytest.mark.parametrize("session_id", [None, "nope"])
async def test_get_with_unknown_session_is_not_found(router: RequestRouter, session_id: str | None):
    with pytest.raises(SessionNotFoundError):
        router.handle_get(session_id)

    assert router.registry.all_sessions() == []


@pytest.mark.parametrize("session_id", [None, "nope"])
async def test_delete_with_unknown_session_is_not_found(router: RequestRouter, session_id: str | None):
    with pytest.raises(SessionNotFoundError):
        await router.handle_delete(session_id)

    assert router.registry.all_sessions() == []


async def test_delete_removes_session_and_never_resurrects_it(router: RequestRouter):
    session_id = await _open_session(router)

    await router.handle_delete(session_id)

    assert router.registry.lookup(session_id) is None
    with pytest.raises(SessionNotFoundError):
        router.handle_get(session_id)
    with pytest.raises(SessionNotFoundError):
        await router.handle_delete(session_id)
    with pytest.raises(InvalidRequestError):
        await router.handle_post(session_id, _body(tool_call(1, "todo_list")))


async def test_transport_closure_removes_session_without_delete(router: RequestRouter):
    session_id = await _open_session(router)
    session = router.registry.lookup(session_id)
    assert session is not None

    await session.transport.terminate()

    assert router.registry.lookup(session_id) is None


async def test_delete_then_closure_event_is_a_noop(router: RequestRouter):
    session_id = await _open_session(router)
    session = router.registry.lookup(session_id)
    assert session is not None

    await router.handle_delete(session_id)
    await session.transport.terminate()
    router.registry.remove(session_id)

    assert router.registry.lookup(session_id) is None
    assert len(router.registry) == 0


async def test_session_is_removed_even_if_closing_the_transport_fails(router: RequestRouter):
    session_id = await _open_session(router)
    session = router.registry.lookup(session_id)
    assert session is not None

    async def failing_close() -> None:
        raise RuntimeError("stream close failed")

    session.transport._close_streams = failing_close  # type: ignore[method-assign]

    with pytest.raises(RuntimeError):
        await router.handle_delete(session_id)

    assert router.registry.lookup(session_id) is None


async def test_sessions_share_one_store(router: RequestRouter, store: TodoStore):
    first = await _open_session(router)
    second = await _open_session(router)

    await _call(router, first, 2, "todo_create", text="from first")
    result = await _call(router, second, 2, "todo_list")

    assert [todo["text"] for todo in result["structuredContent"]["data"]] == ["from first"]


async def test_concurrent_sessions_keep_ids_unique(router: RequestRouter, store: TodoStore):
    sessions = [await _open_session(router) for _ in range(3)]

    async def create_many(session_id: str) -> None:
        for i in range(10):
            await _call(router, session_id, 100 + i, "todo_create", text=f"{session_id}-{i}")

    async with anyio.create_task_group() as tg:
        for session_id in sessions:
            tg.start_soon(create_many, session_id)

    assert [todo.id for todo in store.list()] == list(range(1, 31))


async def test_requests_of_one_session_apply_in_order(router: RequestRouter, store: TodoStore):
    session_id = await _open_session(router)

    for i in range(5):
        await _call(router, session_id, 10 + i, "todo_create", text=f"todo {i}")
    await _call(router, session_id, 20, "todo_update", id=3, completed=True)
    await _call(router, session_id, 21, "todo_delete", id=3)

    assert [todo.text for todo in store.list()] == ["todo 0", "todo 1", "todo 3", "todo 4"]


async def test_get_stream_receives_resource_updates(router: RequestRouter):
    session_id = await _open_session(router)
    stream = router.handle_get(session_id)

    await _call(router, session_id, 2, "todo_create", text="buy milk")

    with anyio.fail_after(1):
        message = await stream.receive()
    assert isinstance(message, JSONRPCNotification)
    assert message.method == "notifications/resources/updated"
    assert message.model_dump(by_alias=True, exclude_none=True)["params"] == {"uri": "ui://todo/list"}


async def test_delete_ends_open_streams(router: RequestRouter):
    session_id = await _open_session(router)
    stream = router.handle_get(session_id)

    await router.handle_delete(session_id)

    with anyio.fail_after(1), pytest.raises(anyio.EndOfStream):
        await stream.receive()


async def test_run_can_only_be_called_once(dispatcher: ToolDispatcher):
    router = _make_router(dispatcher)
    async with router.run():
        pass

    with pytest.raises(RuntimeError):
        async with router.run():
            pass


async def test_shutdown_closes_all_sessions(dispatcher: ToolDispatcher):
    router = _make_router(dispatcher)
    async with router.run():
        await _open_session(router)
        await _open_session(router)
        assert len(router.registry) == 2

    assert router.registry.all_sessions() == []
    assert not router.is_running


async def test_requests_before_run_are_refused(dispatcher: ToolDispatcher):
    router = _make_router(dispatcher)

    with pytest.raises(RuntimeError):
        await router.handle_post(None, _body(init_request()))


async def test_empty_session_header_counts_as_absent(router: RequestRouter):
    result = await router.handle_post("", _body(init_request()))

    assert isinstance(result, JSONResult)
    assert result.session_id is not None
    assert router.registry.lookup(result.session_id) is not None


async def test_message_waiting_for_the_session_lock_is_refused_after_close(router: RequestRouter):
    session_id = await _open_session(router)
    session = router.registry.lookup(session_id)
    assert session is not None
    transport = session.transport
    outcome: list[str] = []

    async def send_ping() -> None:
        try:
            await transport.handle_message(JSONRPCRequest(id=7, method="ping"))
        except SessionNotFoundError:
            outcome.append("refused")
        else:
            outcome.append("handled")

    async with anyio.create_task_group() as tg:
        async with transport._lock:
            tg.start_soon(send_ping)
            await anyio.wait_all_tasks_blocked()
            await router.handle_delete(session_id)

    assert outcome == ["refused"]
