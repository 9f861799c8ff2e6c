"""Per-server connection state: pending requests, timers and tool cache."""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from agentic_toolbridge.config.servers import TransportKind
from agentic_toolbridge.core.exceptions import (
    MCPConnectionError,
    RemoteToolError,
    RequestTimeoutError,
)
from agentic_toolbridge.mcp.models import JsonRpcReply, MCPTool
from agentic_toolbridge.mcp.transports.base import Transport
from agentic_toolbridge.mcp.transports.factory import config_key
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)

ConnectionCallback = Callable[["Connection"], None]


class ConnectionStatus(str, Enum):
    """Lifecycle of a connection."""

    CONNECTING = "connecting"
    READY = "ready"
    CLOSED = "closed"


@dataclass
class PendingRequest:
    """A sent request awaiting exactly one of: reply, deadline, teardown."""

    method: str
    future: asyncio.Future[Any]
    deadline: asyncio.TimerHandle | None = None

    def settle(self) -> bool:
        """Cancel the deadline; True if the future can still be resolved."""
        if self.deadline is not None:
            self.deadline.cancel()
            self.deadline = None
        return not self.future.done()


@dataclass
class ToolCache:
    """Tools listed from a server and when (monotonic seconds)."""

    tools: list[MCPTool]
    cached_at: float


class Connection:
    """
    State owned for one remote server.

    Holds the single live transport, the pending-request correlation table,
    the handshake flag, the tool cache and the idle-close timer. Inbound
    envelopes are demultiplexed here: a reply whose id matches a pending
    entry settles it; anything else is dropped.
    """

    def __init__(
        self,
        server_id: str,
        transport_kind: TransportKind,
        url: str,
        transport: Transport,
    ):
        self.server_id = server_id
        self.transport_kind = transport_kind
        self.url = url
        self.config_key: str | None = config_key(transport_kind, url)
        self.transport = transport
        self.pending: dict[int | str, PendingRequest] = {}
        self.initialized = False
        self.protocol_version: str | None = None
        self.server_info: dict[str, Any] = {}
        self.tool_cache: ToolCache | None = None

        self._closed = False
        self._idle_handle: asyncio.TimerHandle | None = None
        self._idle_timeout: float | None = None
        self._on_idle: ConnectionCallback | None = None
        self._on_lost: ConnectionCallback | None = None

        transport.on_envelope(self._handle_envelope)
        transport.on_close(self._handle_transport_closed)

    @property
    def status(self) -> ConnectionStatus:
        if self._closed:
            return ConnectionStatus.CLOSED
        return ConnectionStatus.READY if self.initialized else ConnectionStatus.CONNECTING

    @property
    def is_live(self) -> bool:
        """Open transport and completed handshake."""
        return self.status == ConnectionStatus.READY and self.transport.is_open

    # -------------------------------------------------------------------------
    # Pending requests
    # -------------------------------------------------------------------------

    def register(self, request_id: int, method: str, timeout: float) -> asyncio.Future[Any]:
        """Add a pending entry whose deadline rejects it with RequestTimeoutError."""
        if self._closed:
            raise MCPConnectionError("MCP connection closed", server_id=self.server_id, method=method)

        loop = asyncio.get_running_loop()
        entry = PendingRequest(method=method, future=loop.create_future())
        entry.deadline = loop.call_later(timeout, self._expire, request_id, timeout)
        self.pending[request_id] = entry
        return entry.future

    def discard(self, request_id: int) -> None:
        """Drop a pending entry without settling it (send failed or caller cancelled)."""
        entry = self.pending.pop(request_id, None)
        if entry is not None and entry.settle():
            entry.future.cancel()

    def _expire(self, request_id: int, timeout: float) -> None:
        entry = self.pending.pop(request_id, None)
        if entry is None:
            return
        entry.deadline = None
        if not entry.future.done():
            logger.warning(
                "MCP request timed out",
                server_id=self.server_id,
                method=entry.method,
                request_id=request_id,
            )
            entry.future.set_exception(
                RequestTimeoutError(
                    f"MCP request timeout: {entry.method}",
                    server_id=self.server_id,
                    method=entry.method,
                    timeout=timeout,
                )
            )

    def fail_pending(self, error: Exception) -> None:
        """Reject every outstanding request."""
        pending, self.pending = self.pending, {}
        for entry in pending.values():
            if entry.settle():
                entry.future.set_exception(error)

    def _handle_envelope(self, envelope: Any) -> None:
        reply = JsonRpcReply.from_envelope(envelope)
        if reply is None:
            return

        entry = self.pending.pop(reply.id, None)
        if entry is None or not entry.settle():
            return

        if reply.error is not None:
            entry.future.set_exception(
                RemoteToolError(
                    reply.error.message,
                    code=reply.error.code,
                    data=reply.error.data,
                    server_id=self.server_id,
                    method=entry.method,
                )
            )
        else:
            entry.future.set_result(reply.result)

    # -------------------------------------------------------------------------
    # Idle close
    # -------------------------------------------------------------------------

    def set_idle_policy(self, timeout: float, on_idle: ConnectionCallback) -> None:
        self._idle_timeout = timeout
        self._on_idle = on_idle

    def on_lost(self, callback: ConnectionCallback) -> None:
        """Register the callback fired when the transport drops on its own."""
        self._on_lost = callback

    def touch(self) -> None:
        """Re-arm the idle-close timer after activity."""
        self.clear_idle_timer()
        if self._closed or self._idle_timeout is None or self._on_idle is None:
            return
        loop = asyncio.get_running_loop()
        self._idle_handle = loop.call_later(self._idle_timeout, self._fire_idle)

    def clear_idle_timer(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    def _fire_idle(self) -> None:
        self._idle_handle = None
        if self._on_idle is not None and not self._closed:
            self._on_idle(self)

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def _handle_transport_closed(self, error: Exception) -> None:
        if self._closed:
            return
        self.fail_pending(error)
        self.initialized = False
        self.config_key = None
        self.tool_cache = None
        self.clear_idle_timer()
        if self._on_lost is not None:
            self._on_lost(self)

    async def close(self) -> None:
        """Reject pending requests, clear timers and caches, close the transport."""
        if self._closed:
            return
        self._closed = True
        self.clear_idle_timer()
        self.fail_pending(
            MCPConnectionError("MCP connection closed", server_id=self.server_id)
        )
        self.tool_cache = None
        self.initialized = False
        self.config_key = None
        await self.transport.close()
