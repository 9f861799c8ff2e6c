"""MCP client: JSON-RPC request/notify and the initialize handshake.

The client is stateless apart from its request-id counter. All per-server
state (transport, pending table, timers) lives on the Connection it is
given, so one client serves every server.
"""

import asyncio
import itertools
from typing import Any

from agentic_toolbridge.config.settings import DEFAULT_PROTOCOL_VERSIONS
from agentic_toolbridge.core.exceptions import (
    HandshakeError,
    MCPConnectionError,
    MCPError,
)
from agentic_toolbridge.mcp.connection import Connection
from agentic_toolbridge.mcp.models import (
    JsonRpcRequest,
    MCPTool,
    ToolResult,
    normalize_tool_result,
)
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)


class MCPClient:
    """
    JSON-RPC 2.0 client over a Connection's transport.

    Features:
    - Monotonic request ids shared across all connections
    - Per-request deadline (rejects and removes the pending entry)
    - Protocol version negotiation with fixed backoff between attempts
    """

    def __init__(
        self,
        client_name: str = "agentic-toolbridge",
        client_version: str = "0.1.0",
        protocol_versions: list[str] | None = None,
        handshake_backoff: float = 0.15,
        request_timeout: float = 30.0,
    ):
        self._client_name = client_name
        self._client_version = client_version
        self._protocol_versions = list(protocol_versions or DEFAULT_PROTOCOL_VERSIONS)
        self._handshake_backoff = handshake_backoff
        self._request_timeout = request_timeout
        self._ids = itertools.count(1)

    def next_id(self) -> int:
        return next(self._ids)

    async def request(
        self,
        connection: Connection,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Send a call and wait for its correlated reply.

        Args:
            connection: Target connection
            method: JSON-RPC method
            params: Call parameters
            timeout: Deadline in seconds (defaults to the client's)

        Returns:
            The reply's ``result`` member

        Raises:
            RequestTimeoutError: No reply before the deadline
            RemoteToolError: The server replied with an error
            MCPConnectionError: The send failed or the connection dropped
        """
        request = JsonRpcRequest(method=method, params=params or {}, id=self.next_id())
        future = connection.register(
            request.id, method, timeout if timeout is not None else self._request_timeout
        )

        try:
            await connection.transport.send_envelope(request.to_envelope())
        except MCPError as e:
            connection.discard(request.id)
            e.server_id = e.server_id or connection.server_id
            e.method = e.method or method
            raise

        try:
            result = await future
        except asyncio.CancelledError:
            connection.discard(request.id)
            raise

        connection.touch()
        return result

    async def notify(
        self,
        connection: Connection,
        method: str,
        params: dict[str, Any] | None = None,
    ) -> None:
        """Send a notification. Delivery failures are logged, not raised."""
        request = JsonRpcRequest(method=method, params=params or {})
        try:
            await connection.transport.send_envelope(request.to_envelope())
        except MCPConnectionError as e:
            logger.warning(
                "MCP notification failed",
                server_id=connection.server_id,
                method=method,
                error=str(e),
            )

    async def initialize(self, connection: Connection) -> dict[str, Any]:
        """
        Run the initialize handshake, trying each protocol version in order.

        On success sends ``notifications/initialized`` and marks the
        connection initialized.

        Raises:
            HandshakeError: Every version failed (chained to the last error)
        """
        last_error: MCPError | None = None

        for attempt, version in enumerate(self._protocol_versions):
            if attempt:
                await asyncio.sleep(self._handshake_backoff)

            params = {
                "protocolVersion": version,
                "capabilities": {},
                "clientInfo": {"name": self._client_name, "version": self._client_version},
            }
            try:
                result = await self.request(connection, "initialize", params)
            except MCPError as e:
                last_error = e
                logger.warning(
                    "MCP initialize attempt failed",
                    server_id=connection.server_id,
                    protocol_version=version,
                    error=str(e),
                )
                continue

            await self.notify(connection, "notifications/initialized", {})

            info = result if isinstance(result, dict) else {}
            connection.initialized = True
            connection.protocol_version = info.get("protocolVersion") or version
            connection.server_info = info.get("serverInfo") or {}
            logger.info(
                "MCP connection initialized",
                server_id=connection.server_id,
                protocol_version=connection.protocol_version,
                transport=connection.transport_kind.value,
            )
            return info

        raise HandshakeError(
            f"MCP initialize failed: {last_error}",
            server_id=connection.server_id,
            method="initialize",
        ) from last_error

    async def list_tools(self, connection: Connection) -> list[MCPTool]:
        """Fetch the server's tool list (untagged)."""
        result = await self.request(connection, "tools/list", {})
        raw_tools = result.get("tools") if isinstance(result, dict) else None
        if raw_tools is None:
            return []
        if not isinstance(raw_tools, list):
            logger.warning(
                "Ignoring non-list tools member",
                server_id=connection.server_id,
                tools_type=type(raw_tools).__name__,
            )
            return []

        tools = []
        for entry in raw_tools:
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                logger.debug("Skipping malformed tool entry", server_id=connection.server_id)
                continue
            tools.append(MCPTool.from_wire(entry))
        return tools

    async def call_tool(
        self,
        connection: Connection,
        name: str,
        arguments: dict[str, Any] | None = None,
    ) -> ToolResult:
        """Invoke a tool and normalize its result."""
        logger.info("Calling MCP tool", server_id=connection.server_id, tool=name)
        result = await self.request(
            connection, "tools/call", {"name": name, "arguments": arguments or {}}
        )
        return normalize_tool_result(result)
