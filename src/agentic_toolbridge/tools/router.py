"""Tool router: dispatch a parsed tool call to a local or remote tool."""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Literal

from agentic_toolbridge.config.prompts import TOOL_ERROR_OUTPUT
from agentic_toolbridge.config.servers import MCPServerConfig
from agentic_toolbridge.core.exceptions import (
    AmbiguousToolError,
    CapabilityUnavailableError,
    ToolDisabledError,
    ToolNotFoundError,
)
from agentic_toolbridge.mcp.catalog import ToolCatalogService
from agentic_toolbridge.mcp.client import MCPClient
from agentic_toolbridge.mcp.models import (
    ToolCallCommand,
    ToolFile,
    ToolResult,
    ToolSource,
    split_tool_id,
)
from agentic_toolbridge.mcp.registry import ConnectionRegistry
from agentic_toolbridge.tools.base import LocalToolProvider, normalize_local_output
from agentic_toolbridge.tools.browser import BROWSER_TOOL_NAMES
from agentic_toolbridge.tools.parser import parse_tool_command
from agentic_toolbridge.utils.logging import get_logger, preview


logger = get_logger(__name__)

# (partial text, thoughts)
UpdateCallback = Callable[[str, str | None], None]

AmbiguousToolPolicy = Literal["first_match", "error"]


@dataclass
class ToolExecution:
    """Outcome of one routed tool call. Errors are reported as output text."""

    tool_name: str
    output: str
    files: list[ToolFile] = field(default_factory=list)
    source: ToolSource = ToolSource.REMOTE
    error: bool = False


class ToolRouter:
    """
    Routes tool calls found in model output.

    Design Pattern: Strategy (local provider vs. remote server)

    Local names (browser primitives, or anything the local provider claims)
    run in-process. Everything else goes to a configured MCP server:

    - composite ``serverId__tool`` naming an active server goes straight there
    - a plain name with one active server goes to that server
    - a plain name with several active servers is looked up in the catalog

    No call is retried; every failure becomes ``Error executing tool: ...``.
    """

    def __init__(
        self,
        catalog: ToolCatalogService,
        registry: ConnectionRegistry,
        client: MCPClient,
        local_provider: LocalToolProvider | None = None,
        local_tool_names: Iterable[str] | None = None,
        ambiguous_policy: AmbiguousToolPolicy = "first_match",
    ):
        self._catalog = catalog
        self._registry = registry
        self._client = client
        self._local = local_provider
        self._local_names = frozenset(
            local_tool_names if local_tool_names is not None else BROWSER_TOOL_NAMES
        )
        self._ambiguous_policy = ambiguous_policy

    def classify(self, name: str) -> ToolSource:
        if name in self._local_names:
            return ToolSource.LOCAL
        if self._local is not None and self._local.is_local_tool(name):
            return ToolSource.LOCAL
        return ToolSource.REMOTE

    async def execute_if_present(
        self,
        text: str,
        servers: list[MCPServerConfig],
        on_update: UpdateCallback | None = None,
    ) -> ToolExecution | None:
        """
        Parse model output and run the tool call it carries, if any.

        Returns:
            None when the text has no tool call, otherwise the execution
        """
        command = parse_tool_command(text)
        if command is None:
            return None
        return await self.execute(command, servers, on_update)

    async def execute(
        self,
        command: ToolCallCommand,
        servers: list[MCPServerConfig],
        on_update: UpdateCallback | None = None,
    ) -> ToolExecution:
        if on_update is not None:
            on_update(f"Executing tool: {command.name}...", "Processing tool execution...")

        source = self.classify(command.name)
        logger.info("Executing tool", tool=command.name, source=source.value)

        try:
            if source == ToolSource.LOCAL:
                result = await self._execute_local(command)
            else:
                result = await self._execute_remote(command, servers)
        except Exception as e:
            logger.warning(
                "Tool execution failed",
                tool=command.name,
                source=source.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            return ToolExecution(
                tool_name=command.name,
                output=TOOL_ERROR_OUTPUT.format(error=e),
                source=source,
                error=True,
            )

        logger.debug("Tool output", tool=command.name, output=preview(result.text))
        return ToolExecution(
            tool_name=command.name,
            output=result.text,
            files=result.files,
            source=result.source,
        )

    async def _execute_local(self, command: ToolCallCommand) -> ToolResult:
        if self._local is None:
            raise CapabilityUnavailableError("Browser control is unavailable.", tool_name=command.name)
        output = await self._local.execute(command.name, command.args)
        return normalize_local_output(output)

    async def _execute_remote(
        self,
        command: ToolCallCommand,
        servers: list[MCPServerConfig],
    ) -> ToolResult:
        server, tool_name = await self._resolve_remote(command.name, servers)

        if not self._catalog.is_tool_allowed(server, tool_name):
            raise ToolDisabledError(
                f"External MCP tool '{tool_name}' is disabled (not in selected tools).",
                tool_name=tool_name,
            )

        connection = await self._registry.connection_for(server.id, server.transport, server.url)
        return await self._client.call_tool(connection, tool_name, command.args)

    async def _resolve_remote(
        self,
        name: str,
        servers: list[MCPServerConfig],
    ) -> tuple[MCPServerConfig, str]:
        """Pick the server and server-local tool name for a remote call."""
        active = self._catalog.active_servers(servers)
        if not active:
            raise ToolNotFoundError(
                f"Unknown tool '{name}'. (External MCP tools are disabled)", tool_name=name
            )
        by_id = {server.id: server for server in active}

        composite = split_tool_id(name, by_id)
        if composite is not None:
            return by_id[composite[0]], composite[1]

        if len(active) == 1:
            return active[0], name

        matches = await self._catalog.find_tool(active, name)
        if not matches:
            raise ToolNotFoundError(
                f"Tool '{name}' not found in any enabled MCP server.", tool_name=name
            )

        if len(matches) > 1:
            candidates = [match.tool_id for match in matches]
            if self._ambiguous_policy == "error":
                raise AmbiguousToolError(
                    f"Tool '{name}' is exposed by several MCP servers: {', '.join(candidates)}",
                    tool_name=name,
                    candidates=candidates,
                )
            logger.warning(
                "Ambiguous tool name, using first match",
                tool=name,
                candidates=candidates,
            )

        return by_id[matches[0].server_id], name
