"""Integration tests for the event-stream transport against an in-memory server."""

import asyncio
import json
from typing import AsyncIterator

import httpx
import pytest

from agentic_toolbridge.config.servers import MCPServerConfig
from agentic_toolbridge.core.exceptions import MCPConnectionError
from agentic_toolbridge.mcp.catalog import ToolCatalogService
from agentic_toolbridge.mcp.client import MCPClient
from agentic_toolbridge.mcp.mock import MockMCPServer, MockTool
from agentic_toolbridge.mcp.models import ToolSource
from agentic_toolbridge.mcp.registry import ConnectionRegistry
from agentic_toolbridge.mcp.transports import DefaultTransportFactory, SSETransport, resolve_endpoint
from agentic_toolbridge.tools.router import ToolRouter


class FakeSSEServer:
    """
    Serves an MCP server over SSE through httpx.MockTransport.

    GET opens the stream and announces the POST endpoint; each POSTed
    envelope is answered on the stream, split across two chunks.
    """

    def __init__(
        self,
        server: MockMCPServer,
        endpoint_payload: str | None = "/messages?sessionId=abc",
    ):
        self.server = server
        self.endpoint_payload = endpoint_payload
        self.queue: asyncio.Queue[str | None] = asyncio.Queue()
        self.post_urls: list[str] = []

    async def _stream(self) -> AsyncIterator[bytes]:
        yield b": connected\n\n"
        if self.endpoint_payload is not None:
            yield f"event: endpoint\ndata: {self.endpoint_payload}\n\n".encode()
        while True:
            chunk = await self.queue.get()
            if chunk is None:
                return
            yield chunk.encode()

    async def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=self._stream(),
            )

        self.post_urls.append(str(request.url))
        reply = await self.server.handle(json.loads(request.content))
        if reply is not None:
            frame = f"event: message\ndata: {json.dumps(reply)}\n\n"
            middle = len(frame) // 2
            self.queue.put_nowait(frame[:middle])
            self.queue.put_nowait(frame[middle:])
        return httpx.Response(202)

    def end_stream(self) -> None:
        self.queue.put_nowait(None)


def _http(fake: FakeSSEServer) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake.handler))


class TestResolveEndpoint:
    def test_relative_path(self) -> None:
        assert (
            resolve_endpoint("/messages?sessionId=1", "http://mcp.test/sse")
            == "http://mcp.test/messages?sessionId=1"
        )

    def test_structured_payload(self) -> None:
        assert (
            resolve_endpoint('{"endpoint": "/post"}', "http://mcp.test/sse")
            == "http://mcp.test/post"
        )

    def test_absolute_url(self) -> None:
        assert resolve_endpoint("http://other.test/rpc", "http://mcp.test/sse") == "http://other.test/rpc"


class TestSSETransport:
    """Tests for SSETransport."""

    @pytest.mark.asyncio
    async def test_weather_scenario(self) -> None:
        async def sunny(args: dict) -> dict:
            return {"content": [{"type": "text", "text": "Sunny"}]}

        fake = FakeSSEServer(MockMCPServer("s1", tools=[MockTool("search", "Search", sunny)]))
        async with _http(fake) as http:
            client = MCPClient(handshake_backoff=0.0, request_timeout=2.0)
            registry = ConnectionRegistry(
                client, transport_factory=DefaultTransportFactory(http_client=http)
            )
            router = ToolRouter(ToolCatalogService(registry, client), registry, client)
            server = MCPServerConfig(id="s1", url="http://mcp.test/sse", transport="event-stream")

            execution = await router.execute_if_present(
                '```json\n{"tool": "search", "args": {"query": "weather"}}\n```', [server]
            )
            await registry.close()

        assert execution is not None
        assert execution.output == "Sunny"
        assert execution.files == []
        assert execution.source == ToolSource.REMOTE
        assert set(fake.post_urls) == {"http://mcp.test/messages?sessionId=abc"}
        assert fake.server.methods_received() == [
            "initialize",
            "notifications/initialized",
            "tools/call",
        ]

    @pytest.mark.asyncio
    async def test_endpoint_timeout(self) -> None:
        fake = FakeSSEServer(MockMCPServer(), endpoint_payload=None)
        async with _http(fake) as http:
            transport = SSETransport("http://mcp.test/sse", http_client=http, endpoint_timeout=0.05)

            with pytest.raises(MCPConnectionError, match="endpoint handshake timeout"):
                await transport.connect()

            assert not transport.is_open

    @pytest.mark.asyncio
    async def test_stream_end_fails_pending_requests(self) -> None:
        server = MockMCPServer(silent_methods={"tools/list"})
        fake = FakeSSEServer(server)
        async with _http(fake) as http:
            client = MCPClient(handshake_backoff=0.0, request_timeout=5.0)
            registry = ConnectionRegistry(
                client, transport_factory=DefaultTransportFactory(http_client=http)
            )
            connection = await registry.connection_for("s1", "sse", "http://mcp.test/sse")

            request = asyncio.create_task(client.request(connection, "tools/list"))
            await asyncio.sleep(0.01)
            fake.end_stream()

            with pytest.raises(MCPConnectionError):
                await request
            assert connection.pending == {}
            assert not connection.initialized

            await asyncio.sleep(0.01)
            assert registry.get("s1") is None
            await registry.close()

    @pytest.mark.asyncio
    async def test_connect_error_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            transport = SSETransport("http://mcp.test/sse", http_client=http)

            with pytest.raises(MCPConnectionError, match="404"):
                await transport.connect()
