"""Tests for the connection registry."""

import asyncio

import pytest

from agentic_toolbridge.core.exceptions import HandshakeError, MCPConnectionError
from agentic_toolbridge.mcp.client import MCPClient
from agentic_toolbridge.mcp.mock import MockMCPServer, MockTransportFactory
from agentic_toolbridge.mcp.registry import ConnectionRegistry


class TestConnectionFor:
    """Tests for ConnectionRegistry.connection_for."""

    @pytest.mark.asyncio
    async def test_reuses_live_connection(
        self, registry: ConnectionRegistry, transport_factory: MockTransportFactory
    ) -> None:
        first = await registry.connection_for("s1", "ws", "mock://s1")
        second = await registry.connection_for("s1", "duplex-socket", "mock://s1")

        assert first is second
        assert first.initialized
        assert len(transport_factory.created) == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_handshake(
        self,
        registry: ConnectionRegistry,
        transport_factory: MockTransportFactory,
        mock_mcp_server: MockMCPServer,
    ) -> None:
        connections = await asyncio.gather(
            *(registry.connection_for("s1", "ws", "mock://s1") for _ in range(4))
        )

        assert all(c is connections[0] for c in connections)
        assert len(transport_factory.created) == 1
        assert mock_mcp_server.count("initialize") == 1

    @pytest.mark.asyncio
    async def test_config_drift_replaces_connection(
        self, registry: ConnectionRegistry, transport_factory: MockTransportFactory
    ) -> None:
        old = await registry.connection_for("s1", "ws", "mock://s1")
        new = await registry.connection_for("s1", "ws", "mock://s2")

        assert new is not old
        assert not old.transport.is_open
        assert registry.get("s1") is new
        assert [t.url for t in transport_factory.created] == ["mock://s1", "mock://s2"]

    @pytest.mark.asyncio
    async def test_transport_change_is_drift(
        self, registry: ConnectionRegistry, transport_factory: MockTransportFactory
    ) -> None:
        old = await registry.connection_for("s1", "ws", "mock://s1")
        new = await registry.connection_for("s1", "sse", "mock://s1")

        assert new is not old
        assert len(transport_factory.created) == 2

    @pytest.mark.asyncio
    async def test_blank_url(self, registry: ConnectionRegistry) -> None:
        with pytest.raises(MCPConnectionError, match="Invalid MCP server URL"):
            await registry.connection_for("s1", "ws", "  ")

    @pytest.mark.asyncio
    async def test_unknown_transport(self, registry: ConnectionRegistry) -> None:
        with pytest.raises(MCPConnectionError, match="Unsupported MCP transport"):
            await registry.connection_for("s1", "pigeon", "mock://s1")

    @pytest.mark.asyncio
    async def test_unreachable_server_is_not_registered(self, mcp_client: MCPClient) -> None:
        factory = MockTransportFactory({}, unreachable={"mock://down"})
        registry = ConnectionRegistry(mcp_client, transport_factory=factory)

        with pytest.raises(MCPConnectionError) as exc_info:
            await registry.connection_for("down", "ws", "mock://down")

        assert exc_info.value.server_id == "down"
        assert registry.get("down") is None

    @pytest.mark.asyncio
    async def test_failed_handshake_closes_transport(self, mcp_client: MCPClient) -> None:
        server = MockMCPServer(rejected_versions={"2024-11-05", "2024-10-07", "2024-06-20"})
        factory = MockTransportFactory({"mock://old": server})
        registry = ConnectionRegistry(mcp_client, transport_factory=factory)

        with pytest.raises(HandshakeError):
            await registry.connection_for("old", "ws", "mock://old")

        assert registry.get("old") is None
        assert not factory.created[0].is_open


class TestLifecycle:
    """Tests for idle close, connection loss and disconnect."""

    @pytest.mark.asyncio
    async def test_idle_connection_is_closed_and_rebuilt(
        self, mcp_client: MCPClient, transport_factory: MockTransportFactory
    ) -> None:
        registry = ConnectionRegistry(mcp_client, transport_factory=transport_factory, idle_timeout=0.05)
        first = await registry.connection_for("s1", "ws", "mock://s1")

        await asyncio.sleep(0.15)

        assert registry.get("s1") is None
        assert not first.transport.is_open

        second = await registry.connection_for("s1", "ws", "mock://s1")
        result = await mcp_client.request(second, "tools/list")
        assert result["tools"]
        assert len(transport_factory.created) == 2
        await registry.close()

    @pytest.mark.asyncio
    async def test_activity_keeps_connection_alive(
        self, mcp_client: MCPClient, transport_factory: MockTransportFactory
    ) -> None:
        registry = ConnectionRegistry(mcp_client, transport_factory=transport_factory, idle_timeout=0.2)
        connection = await registry.connection_for("s1", "ws", "mock://s1")

        for _ in range(4):
            await asyncio.sleep(0.08)
            await mcp_client.request(connection, "tools/list")

        assert registry.get("s1") is connection
        await registry.close()

    @pytest.mark.asyncio
    async def test_lost_connection_reconnects(
        self, registry: ConnectionRegistry, transport_factory: MockTransportFactory
    ) -> None:
        first = await registry.connection_for("s1", "ws", "mock://s1")

        first.transport.drop()
        await asyncio.sleep(0)
        second = await registry.connection_for("s1", "ws", "mock://s1")

        assert second is not first
        assert second.initialized
        assert len(transport_factory.created) == 2

    @pytest.mark.asyncio
    async def test_disconnect_one_and_all(self, registry: ConnectionRegistry) -> None:
        await registry.connection_for("s1", "ws", "mock://s1")
        await registry.connection_for("s2", "ws", "mock://s2")

        await registry.disconnect("s1")
        assert registry.server_ids == ["s2"]

        await registry.disconnect()
        assert registry.server_ids == []
