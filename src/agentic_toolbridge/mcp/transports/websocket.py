"""Persistent duplex-socket transport (WebSocket)."""

import asyncio
import contextlib
import json
from typing import Any

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from agentic_toolbridge.config.servers import TransportKind
from agentic_toolbridge.core.exceptions import MCPConnectionError
from agentic_toolbridge.mcp.transports.base import Transport
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)


def as_ws_url(url: str) -> str:
    """Rewrite http(s) URLs to ws(s); other URLs pass through trimmed."""
    trimmed = (url or "").strip()
    if trimmed.startswith("http://"):
        return "ws://" + trimmed[len("http://") :]
    if trimmed.startswith("https://"):
        return "wss://" + trimmed[len("https://") :]
    return trimmed


class WebSocketTransport(Transport):
    """
    MCP transport over one persistent WebSocket.

    Each text frame is one JSON envelope. A background receive loop runs
    for the life of the socket; when it ends without ``close()`` having been
    called, the close handler is told the connection was lost.
    """

    kind = TransportKind.WEBSOCKET

    def __init__(
        self,
        url: str,
        open_timeout: float = 10.0,
        max_size: int = 2**22,
    ):
        super().__init__(as_ws_url(url))
        self._open_timeout = open_timeout
        self._max_size = max_size
        self._ws: ClientConnection | None = None
        self._receive_task: asyncio.Task[None] | None = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._closing

    async def connect(self) -> None:
        if not self.url:
            raise MCPConnectionError("Invalid MCP server URL")

        logger.info("Connecting to MCP server via WebSocket", url=self.url)
        try:
            self._ws = await connect(
                self.url,
                open_timeout=self._open_timeout,
                max_size=self._max_size,
                ping_interval=None,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise MCPConnectionError(f"Failed to connect to MCP WebSocket: {self.url}") from e

        self._receive_task = asyncio.create_task(self._receive_loop(self._ws))

    async def _receive_loop(self, ws: ClientConnection) -> None:
        error: Exception = MCPConnectionError(f"MCP WebSocket closed: {self.url}")
        try:
            async for message in ws:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                self._deliver_text(message)
        except ConnectionClosed as e:
            error = MCPConnectionError(f"MCP WebSocket closed: {self.url} ({e})")
        finally:
            self._ws = None
            self._notify_closed(error)

    async def send_envelope(self, envelope: dict[str, Any]) -> None:
        if self._ws is None:
            raise MCPConnectionError("MCP WebSocket not connected")
        try:
            await self._ws.send(json.dumps(envelope))
        except ConnectionClosed as e:
            raise MCPConnectionError(f"MCP WebSocket closed: {self.url}") from e

    async def close(self) -> None:
        if self._closing:
            return
        self._closing = True

        ws, self._ws = self._ws, None
        if ws is not None:
            with contextlib.suppress(WebSocketException, OSError):
                await ws.close()

        if self._receive_task and not self._receive_task.done():
            self._receive_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._receive_task
        self._receive_task = None
