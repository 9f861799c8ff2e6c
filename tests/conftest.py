"""Pytest fixtures for testing."""

from typing import Any, AsyncIterator, Callable

import pytest
import pytest_asyncio

from agentic_toolbridge.config.servers import MCPServerConfig
from agentic_toolbridge.config.settings import Settings
from agentic_toolbridge.mcp.catalog import ToolCatalogService
from agentic_toolbridge.mcp.client import MCPClient
from agentic_toolbridge.mcp.mock import MockMCPServer, MockTransportFactory
from agentic_toolbridge.mcp.registry import ConnectionRegistry


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        log_level="DEBUG",
        mcp_handshake_backoff_seconds=0.0,
        mcp_request_timeout_seconds=1.0,
        mcp_servers=[],
    )


@pytest.fixture
def mock_mcp_server() -> MockMCPServer:
    """Create mock MCP server for testing."""
    return MockMCPServer(server_id="test_server")


@pytest.fixture
def mock_servers(mock_mcp_server: MockMCPServer) -> dict[str, MockMCPServer]:
    """Mock servers keyed by URL."""
    return {
        "mock://s1": mock_mcp_server,
        "mock://s2": MockMCPServer(server_id="second_server"),
    }


@pytest.fixture
def transport_factory(mock_servers: dict[str, MockMCPServer]) -> MockTransportFactory:
    return MockTransportFactory(mock_servers)


@pytest.fixture
def mcp_client() -> MCPClient:
    """Client with no handshake backoff and a short request deadline."""
    return MCPClient(handshake_backoff=0.0, request_timeout=1.0)


@pytest_asyncio.fixture
async def registry(
    mcp_client: MCPClient, transport_factory: MockTransportFactory
) -> AsyncIterator[ConnectionRegistry]:
    registry = ConnectionRegistry(mcp_client, transport_factory=transport_factory)
    yield registry
    await registry.close()


@pytest.fixture
def catalog(registry: ConnectionRegistry, mcp_client: MCPClient) -> ToolCatalogService:
    return ToolCatalogService(registry, mcp_client)


@pytest.fixture
def make_server() -> Callable[..., MCPServerConfig]:
    """Factory for server configs pointing at mock URLs."""

    def _make(server_id: str, url: str | None = None, **kwargs: Any) -> MCPServerConfig:
        return MCPServerConfig(
            id=server_id,
            name=kwargs.pop("name", f"Server {server_id}"),
            url=url if url is not None else f"mock://{server_id}",
            transport=kwargs.pop("transport", "ws"),
            **kwargs,
        )

    return _make
