"""Streamable HTTP client transport built on httpx and httpx-sse."""

from __future__ import annotations

from collections.abc import AsyncIterator
from types import TracebackType
from typing import Any

import httpx
from httpx_sse import aconnect_sse
from pydantic import ValidationError

from mcp_todo.exceptions import TransportError, transport_error_from_envelope
from mcp_todo.transport.router import MCP_PROTOCOL_VERSION_HEADER, MCP_SESSION_ID_HEADER
from mcp_todo.types import (
    ErrorData,
    InitializeResult,
    JSONRPCMessage,
    JSONRPCMessageAdapter,
    JSONRPCResponse,
    JSONRPCResultResponse,
)
from mcp_todo.utilities.logging import get_logger

logger = get_logger(__name__)

CONTENT_TYPE = "content-type"
ACCEPT = "accept"
JSON = "application/json"
SSE = "text/event-stream"


def create_http_client(**kwargs: Any) -> httpx.AsyncClient:
    """Create an httpx AsyncClient with the client defaults.

    - follow_redirects=True (always enabled)
    - Default timeout of 30 seconds if not specified

    Any keyword argument accepted by httpx.AsyncClient overrides the defaults.
    The returned client must be closed by the caller.
    """
    default_kwargs: dict[str, Any] = {
        "follow_redirects": True,
        "timeout": httpx.Timeout(30.0),
    }
    default_kwargs.update(kwargs)
    return httpx.AsyncClient(**default_kwargs)


class StreamableHTTPClient:
    """Sends JSON-RPC messages to a Streamable HTTP endpoint.

    Tracks the session id handed out during the handshake and sends it with
    every later request. Error envelopes are raised as the matching
    TransportError; no request is ever retried.
    """

    def __init__(
        self,
        url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
        sse_read_timeout: float = 300.0,
    ) -> None:
        self.url = url
        self.headers = headers or {}
        self.sse_read_timeout = sse_read_timeout
        self.session_id: str | None = None
        self.protocol_version: str | None = None
        self._owns_client = http_client is None
        self._client = http_client or create_http_client()

    async def __aenter__(self) -> StreamableHTTPClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _prepare_request_headers(self) -> dict[str, str]:
        headers = {**self.headers, ACCEPT: f"{JSON}, {SSE}"}
        if self.session_id:
            headers[MCP_SESSION_ID_HEADER] = self.session_id
        if self.protocol_version:
            headers[MCP_PROTOCOL_VERSION_HEADER] = self.protocol_version
        return headers

    async def post(self, message: JSONRPCMessage) -> JSONRPCResponse | None:
        """POST one message. Returns the response, or None when the server answered 202."""
        headers = {**self._prepare_request_headers(), CONTENT_TYPE: JSON}
        response = await self._client.post(
            self.url,
            content=message.model_dump_json(by_alias=True, exclude_none=True),
            headers=headers,
        )
        if response.status_code == httpx.codes.ACCEPTED:
            return None
        await self._raise_for_error(response)

        new_session_id = response.headers.get(MCP_SESSION_ID_HEADER)
        if new_session_id and new_session_id != self.session_id:
            self.session_id = new_session_id
            logger.info(f"Received session ID: {self.session_id}")

        parsed = JSONRPCMessageAdapter.validate_json(response.content)
        if not isinstance(parsed, JSONRPCResponse):
            raise TransportError(f"Unexpected message in response body: {type(parsed).__name__}")
        self._maybe_extract_protocol_version(parsed)
        return parsed

    async def events(self) -> AsyncIterator[JSONRPCMessage]:
        """Open the session's GET stream and yield server-initiated messages."""
        async with aconnect_sse(
            self._client,
            "GET",
            self.url,
            headers=self._prepare_request_headers(),
            timeout=httpx.Timeout(30.0, read=self.sse_read_timeout),
        ) as event_source:
            await self._raise_for_error(event_source.response)
            logger.debug("GET SSE connection established")
            async for sse in event_source.aiter_sse():
                if sse.event != "message" or not sse.data:
                    continue
                try:
                    yield JSONRPCMessageAdapter.validate_json(sse.data)
                except ValidationError:
                    logger.warning(f"Ignoring malformed SSE message: {sse.data!r}")

    async def terminate(self) -> None:
        """DELETE the session. The session id is forgotten even if the server rejects it."""
        if not self.session_id:
            return
        try:
            response = await self._client.delete(self.url, headers=self._prepare_request_headers())
            await self._raise_for_error(response)
        finally:
            self.session_id = None

    def _maybe_extract_protocol_version(self, message: JSONRPCResponse) -> None:
        if not isinstance(message, JSONRPCResultResponse) or "protocolVersion" not in message.result:
            return
        try:
            init_result = InitializeResult.model_validate(message.result)
        except ValidationError:
            return
        self.protocol_version = init_result.protocol_version
        logger.info(f"Negotiated protocol version: {self.protocol_version}")

    @staticmethod
    async def _raise_for_error(response: httpx.Response) -> None:
        if response.is_success:
            return
        await response.aread()
        try:
            body = response.json()
            error = ErrorData.model_validate(body["error"])
        except (ValueError, KeyError, TypeError, ValidationError):
            response.raise_for_status()
            return
        exc = transport_error_from_envelope(error)
        exc.status_code = response.status_code
        raise exc
