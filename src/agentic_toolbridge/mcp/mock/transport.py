"""In-memory transport wired to MockMCPServer instances."""

import asyncio
from typing import Any

from agentic_toolbridge.config.servers import TransportKind
from agentic_toolbridge.core.exceptions import MCPConnectionError
from agentic_toolbridge.mcp.mock.server import MockMCPServer
from agentic_toolbridge.mcp.transports.base import Transport


class FakeTransport(Transport):
    """
    Transport that hands envelopes to a MockMCPServer.

    Replies are delivered from a separate task, the way a socket would
    deliver them, so callers always observe a pending request first.
    """

    def __init__(
        self,
        url: str,
        server: MockMCPServer,
        kind: TransportKind = TransportKind.WEBSOCKET,
        fail_connect: bool = False,
    ):
        super().__init__(url)
        self.kind = kind
        self.server = server
        self.fail_connect = fail_connect
        self.sent: list[dict[str, Any]] = []
        self._open = False
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def is_open(self) -> bool:
        return self._open and not self._closing

    async def connect(self) -> None:
        if self.fail_connect:
            raise MCPConnectionError(f"Failed to connect to mock server: {self.url}")
        self._open = True

    async def send_envelope(self, envelope: dict[str, Any]) -> None:
        if not self.is_open:
            raise MCPConnectionError("Mock transport not connected")
        self.sent.append(envelope)
        self.server.record(envelope)
        task = asyncio.get_running_loop().create_task(self._respond(envelope))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _respond(self, envelope: dict[str, Any]) -> None:
        reply = await self.server.respond(envelope)
        if reply is not None and self.is_open:
            self._deliver(reply)

    def inject(self, envelope: Any) -> None:
        """Deliver an unsolicited envelope as if it arrived on the wire."""
        self._deliver(envelope)

    def drop(self, reason: str = "Mock transport dropped") -> None:
        """Simulate the remote end closing the connection."""
        self._open = False
        self._notify_closed(MCPConnectionError(reason))

    async def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        self._open = False
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


class MockTransportFactory:
    """
    Transport factory serving mock servers by URL.

    Every transport it builds is kept in ``created`` so tests can inspect
    reconnects and sent envelopes.
    """

    def __init__(
        self,
        servers: dict[str, MockMCPServer],
        unreachable: set[str] | None = None,
    ):
        self.servers = servers
        self.unreachable = set(unreachable or ())
        self.created: list[FakeTransport] = []

    def __call__(self, kind: TransportKind, url: str) -> Transport:
        server = self.servers.get(url)
        if server is None:
            server = MockMCPServer(server_id=url)
            self.servers[url] = server
        transport = FakeTransport(
            url,
            server,
            kind=kind,
            fail_connect=url in self.unreachable,
        )
        self.created.append(transport)
        return transport

    def for_url(self, url: str) -> list[FakeTransport]:
        return [transport for transport in self.created if transport.url == url]
