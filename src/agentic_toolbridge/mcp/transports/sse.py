"""Event-stream transport: long-lived GET plus side-channel POST."""

import asyncio
import contextlib
import json
from typing import Any

import httpx

from agentic_toolbridge.config.servers import TransportKind
from agentic_toolbridge.core.exceptions import MCPConnectionError
from agentic_toolbridge.mcp.sse import SSEDecoder, SSEEvent
from agentic_toolbridge.mcp.transports.base import Transport
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)

ENDPOINT_EVENT = "endpoint"
ENVELOPE_EVENTS = frozenset({"message", "mcp", "data"})


def resolve_endpoint(payload: str, base_url: str) -> str:
    """
    Resolve an ``endpoint`` event payload against the stream URL.

    The payload is either a raw (possibly relative) URL or a JSON object
    with an ``endpoint`` field.
    """
    endpoint = payload.strip()
    try:
        parsed = json.loads(payload)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict) and isinstance(parsed.get("endpoint"), str):
        endpoint = parsed["endpoint"]
    return str(httpx.URL(base_url).join(endpoint))


class SSETransport(Transport):
    """
    MCP transport over Server-Sent Events.

    ``connect()`` opens the stream, starts the background pump and waits for
    the server to announce the POST endpoint. Replies to POSTed envelopes
    arrive as events on the stream.
    """

    kind = TransportKind.SSE

    def __init__(
        self,
        url: str,
        http_client: httpx.AsyncClient | None = None,
        endpoint_timeout: float = 10.0,
        request_timeout: float = 30.0,
    ):
        super().__init__(url.strip())
        self._client = http_client
        self._owns_client = http_client is None
        self._endpoint_timeout = endpoint_timeout
        self._request_timeout = request_timeout
        self._response: httpx.Response | None = None
        self._pump_task: asyncio.Task[None] | None = None
        self._endpoint: asyncio.Future[str] | None = None
        self.post_url: str | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._request_timeout))
        return self._client

    @property
    def is_open(self) -> bool:
        return self.post_url is not None and not self._closing

    async def connect(self) -> None:
        if not self.url:
            raise MCPConnectionError("Invalid MCP SSE URL")

        client = self._get_client()
        self._endpoint = asyncio.get_running_loop().create_future()

        logger.info("Connecting to MCP server via SSE", url=self.url)
        request = client.build_request(
            "GET",
            self.url,
            headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
            timeout=httpx.Timeout(self._request_timeout, read=None),
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise MCPConnectionError(f"MCP SSE connect failed: {e}") from e

        if response.is_error:
            await response.aclose()
            raise MCPConnectionError(
                f"MCP SSE connect failed ({response.status_code}): {response.reason_phrase}"
            )

        self._response = response
        self._pump_task = asyncio.create_task(self._pump(response))

        try:
            self.post_url = await asyncio.wait_for(self._endpoint, timeout=self._endpoint_timeout)
        except asyncio.TimeoutError:
            await self.close()
            raise MCPConnectionError("MCP SSE endpoint handshake timeout") from None
        except MCPConnectionError:
            await self.close()
            raise

        logger.debug("SSE endpoint announced", url=self.url, post_url=self.post_url)

    async def _pump(self, response: httpx.Response) -> None:
        """Read the stream until it ends, dispatching decoded events."""
        decoder = SSEDecoder()
        error: Exception = MCPConnectionError("MCP SSE stream closed")
        try:
            async for chunk in response.aiter_text():
                for event in decoder.feed(chunk):
                    self._handle_event(event)
        except httpx.HTTPError as e:
            error = MCPConnectionError(f"MCP SSE stream failed: {e}")
        finally:
            if self._endpoint is not None and not self._endpoint.done():
                self._endpoint.set_exception(error)
            self.post_url = None
            self._notify_closed(error)

    def _handle_event(self, event: SSEEvent) -> None:
        if event.event == ENDPOINT_EVENT:
            url = resolve_endpoint(event.data, self.url)
            if self._endpoint is not None and not self._endpoint.done():
                self._endpoint.set_result(url)
            return

        if event.event in ENVELOPE_EVENTS:
            self._deliver_text(event.data)

    async def send_envelope(self, envelope: dict[str, Any]) -> None:
        if not self.post_url:
            raise MCPConnectionError("MCP SSE not connected")

        client = self._get_client()
        try:
            response = await client.post(self.post_url, json=envelope)
        except httpx.HTTPError as e:
            raise MCPConnectionError(f"MCP POST failed: {e}") from e

        if response.is_error:
            raise MCPConnectionError(
                f"MCP POST failed ({response.status_code}): {response.text or response.reason_phrase}"
            )

    async def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        self.post_url = None

        if self._pump_task and not self._pump_task.done():
            self._pump_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._pump_task
        self._pump_task = None

        if self._response is not None:
            await self._response.aclose()
            self._response = None

        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
