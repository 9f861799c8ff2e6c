"""Tool catalog: cached per-server tool lists and the model-facing preamble."""

import asyncio
import time

from agentic_toolbridge.config.prompts import EXTERNAL_TOOLS_HEADER
from agentic_toolbridge.config.servers import MCPServerConfig
from agentic_toolbridge.mcp.client import MCPClient
from agentic_toolbridge.mcp.connection import ToolCache
from agentic_toolbridge.mcp.models import MCPTool
from agentic_toolbridge.mcp.registry import ConnectionRegistry
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)


class ToolCatalogService:
    """
    Discovers tools on configured servers.

    Tool lists are cached on each connection for ``cache_ttl`` seconds; the
    cache is dropped with the connection. Fan-out across servers tolerates
    individual failures.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        client: MCPClient,
        cache_ttl: float = 300.0,
    ):
        self._registry = registry
        self._client = client
        self._cache_ttl = cache_ttl

    @classmethod
    def active_servers(cls, servers: list[MCPServerConfig]) -> list[MCPServerConfig]:
        return [server for server in servers if cls.is_server_active(server)]

    @staticmethod
    def is_server_active(server: MCPServerConfig | None) -> bool:
        return server is not None and server.is_active

    @staticmethod
    def is_tool_allowed(server: MCPServerConfig, tool_name: str) -> bool:
        return server.allows_tool(tool_name)

    async def list_tools(self, server: MCPServerConfig) -> list[MCPTool]:
        """
        List a server's tools, tagged with its id and display name.

        Args:
            server: Server configuration

        Returns:
            Cached tools if younger than the TTL, otherwise a fresh listing
        """
        connection = await self._registry.connection_for(server.id, server.transport, server.url)

        now = time.monotonic()
        cache = connection.tool_cache
        if cache is not None and now - cache.cached_at < self._cache_ttl:
            return cache.tools

        tools = [
            tool.tagged(server.id, server.display_name)
            for tool in await self._client.list_tools(connection)
        ]
        connection.tool_cache = ToolCache(tools=tools, cached_at=now)
        logger.debug("Listed MCP tools", server_id=server.id, count=len(tools))
        return tools

    async def list_all_active_tools(self, servers: list[MCPServerConfig]) -> list[MCPTool]:
        """
        List tools on every active server concurrently.

        Servers that fail are logged and omitted; the result keeps server
        order, then each server's own tool order.
        """
        active = self.active_servers(servers)
        if not active:
            return []

        results = await asyncio.gather(
            *(self.list_tools(server) for server in active),
            return_exceptions=True,
        )

        tools: list[MCPTool] = []
        for server, result in zip(active, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Failed to list MCP tools",
                    server_id=server.id,
                    error=str(result),
                )
                continue
            tools.extend(result)
        return tools

    async def find_tool(self, servers: list[MCPServerConfig], tool_name: str) -> list[MCPTool]:
        """All tools on active servers whose plain name matches, in server order."""
        tools = await self.list_all_active_tools(servers)
        return [tool for tool in tools if tool.name == tool_name]

    async def build_tools_preamble(self, servers: list[MCPServerConfig]) -> str:
        """
        Render the external tools section of the prompt.

        Only tools allowed by their server's tool mode are listed. Composite
        ids are shown when several servers are active, plain names otherwise.
        Returns an empty string when nothing is listed.
        """
        active = {server.id: server for server in self.active_servers(servers)}
        tools = [
            tool
            for tool in await self.list_all_active_tools(servers)
            if tool.server_id in active and self.is_tool_allowed(active[tool.server_id], tool.name)
        ]
        if not tools:
            return ""

        multi_server = len(active) > 1
        lines = [EXTERNAL_TOOLS_HEADER]
        for tool in tools:
            name = tool.tool_id if multi_server else tool.name
            description = f": {tool.description}" if tool.description else ""
            lines.append(f"- {name}{description} args: {tool.args_summary}")
        lines.append("")
        return "\n".join(lines)
