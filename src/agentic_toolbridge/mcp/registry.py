"""Connection registry: one live, initialized connection per server."""

import asyncio

from agentic_toolbridge.config.servers import TransportKind
from agentic_toolbridge.core.exceptions import MCPConnectionError
from agentic_toolbridge.mcp.client import MCPClient
from agentic_toolbridge.mcp.connection import Connection
from agentic_toolbridge.mcp.transports.factory import (
    DefaultTransportFactory,
    TransportFactory,
    config_key,
    parse_kind,
)
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)


class ConnectionRegistry:
    """
    Owns the per-server connections.

    Design Pattern: Registry keyed by server id

    ``connection_for`` returns the live connection when its transport and
    URL still match the requested ones, and otherwise tears it down and
    builds a new one. Setup for one server is serialized by a per-server
    lock, so concurrent callers share a single handshake. Connections idle
    for ``idle_timeout`` seconds are closed and rebuilt on next use.
    """

    def __init__(
        self,
        client: MCPClient,
        transport_factory: TransportFactory | None = None,
        idle_timeout: float = 120.0,
    ):
        self._client = client
        self._factory: TransportFactory = transport_factory or DefaultTransportFactory()
        self._idle_timeout = idle_timeout
        self._connections: dict[str, Connection] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._background: set[asyncio.Task[None]] = set()

    def get(self, server_id: str) -> Connection | None:
        """Current connection for a server, live or not."""
        return self._connections.get(server_id)

    @property
    def server_ids(self) -> list[str]:
        return list(self._connections)

    def _lock_for(self, server_id: str) -> asyncio.Lock:
        return self._locks.setdefault(server_id, asyncio.Lock())

    async def connection_for(
        self,
        server_id: str,
        transport: "str | TransportKind | None",
        url: str,
    ) -> Connection:
        """
        Get (or build) the initialized connection for a server.

        Args:
            server_id: Server identifier
            transport: Transport name or kind
            url: Server URL

        Returns:
            A connection whose handshake has completed

        Raises:
            MCPConnectionError: Unknown transport, blank URL or failed connect
            HandshakeError: Every protocol version was rejected
        """
        kind = parse_kind(transport)
        key = config_key(kind, url)

        async with self._lock_for(server_id):
            existing = self._connections.get(server_id)
            if existing is not None:
                if existing.is_live and existing.config_key == key:
                    existing.touch()
                    return existing
                logger.info(
                    "Replacing MCP connection",
                    server_id=server_id,
                    reason="config changed" if existing.config_key not in (None, key) else "stale",
                )
                del self._connections[server_id]
                await existing.close()

            if not (url or "").strip():
                raise MCPConnectionError("Invalid MCP server URL", server_id=server_id)

            connection = Connection(server_id, kind, url, self._factory(kind, url))
            connection.set_idle_policy(self._idle_timeout, self._on_idle)
            connection.on_lost(self._on_lost)

            try:
                await connection.transport.connect()
                await self._client.initialize(connection)
            except MCPConnectionError as e:
                e.server_id = e.server_id or server_id
                await connection.close()
                raise
            except BaseException:
                await connection.close()
                raise

            self._connections[server_id] = connection
            connection.touch()
            return connection

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def _on_idle(self, connection: Connection) -> None:
        logger.info("Closing idle MCP connection", server_id=connection.server_id)
        self._schedule_release(connection)

    def _on_lost(self, connection: Connection) -> None:
        logger.warning("MCP connection lost", server_id=connection.server_id)
        self._schedule_release(connection)

    def _schedule_release(self, connection: Connection) -> None:
        task = asyncio.get_running_loop().create_task(self._release(connection))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _release(self, connection: Connection) -> None:
        async with self._lock_for(connection.server_id):
            if self._connections.get(connection.server_id) is connection:
                del self._connections[connection.server_id]
            await connection.close()

    async def disconnect(self, server_id: str | None = None) -> None:
        """Close one server's connection, or every connection when no id is given."""
        server_ids = [server_id] if server_id is not None else list(self._connections)
        for sid in server_ids:
            async with self._lock_for(sid):
                connection = self._connections.pop(sid, None)
                if connection is not None:
                    await connection.close()
                    logger.info("MCP connection closed", server_id=sid)

    async def close(self) -> None:
        """Close all connections and wait for pending releases."""
        await self.disconnect()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
