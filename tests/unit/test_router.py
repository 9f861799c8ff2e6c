"""Tests for the tool router."""

from typing import Any, Callable

import pytest

from agentic_toolbridge.config.servers import MCPServerConfig
from agentic_toolbridge.mcp.catalog import ToolCatalogService
from agentic_toolbridge.mcp.client import MCPClient
from agentic_toolbridge.mcp.mock import MockMCPServer, MockTool, MockTransportFactory, text_result
from agentic_toolbridge.mcp.models import ToolCallCommand, ToolSource
from agentic_toolbridge.mcp.registry import ConnectionRegistry
from agentic_toolbridge.tools.registry import LocalToolRegistry
from agentic_toolbridge.tools.browser import BrowserControlTool, create_browser_registry
from agentic_toolbridge.tools.router import ToolRouter


class RecordingBackend:
    """Browser backend that records calls and returns canned output."""

    def __init__(self, output: Any = "ok"):
        self.output = output
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def execute(self, name: str, args: dict[str, Any]) -> Any:
        self.calls.append((name, args))
        return self.output


def _fetch_tool(label: str) -> MockTool:
    async def handler(args: dict[str, Any]) -> dict[str, Any]:
        return text_result(f"fetched by {label}")

    return MockTool("fetch", "Fetch a URL", handler)


@pytest.fixture
def two_fetch_servers() -> dict[str, MockMCPServer]:
    return {
        "mock://s1": MockMCPServer("s1", tools=[_fetch_tool("s1")]),
        "mock://s2": MockMCPServer("s2", tools=[_fetch_tool("s2")]),
    }


def _router(
    factory: MockTransportFactory,
    client: MCPClient,
    **kwargs: Any,
) -> tuple[ToolRouter, ConnectionRegistry]:
    registry = ConnectionRegistry(client, transport_factory=factory)
    catalog = ToolCatalogService(registry, client)
    return ToolRouter(catalog, registry, client, **kwargs), registry


class TestLocalTools:
    """Tests for local dispatch."""

    @pytest.mark.asyncio
    async def test_local_tool_runs_in_process(
        self, catalog: ToolCatalogService, registry: ConnectionRegistry, mcp_client: MCPClient
    ) -> None:
        backend = RecordingBackend("Clicked")
        router = ToolRouter(
            catalog, registry, mcp_client, local_provider=create_browser_registry(backend)
        )

        execution = await router.execute_if_present(
            '```json\n{"tool": "click", "args": {"uid": "4"}}\n```', []
        )

        assert execution is not None
        assert execution.output == "Clicked"
        assert execution.source == ToolSource.LOCAL
        assert backend.calls == [("click", {"uid": "4"})]

    @pytest.mark.asyncio
    async def test_alias_dispatches_to_canonical_tool(
        self, catalog: ToolCatalogService, registry: ConnectionRegistry, mcp_client: MCPClient
    ) -> None:
        backend = RecordingBackend()
        router = ToolRouter(
            catalog, registry, mcp_client, local_provider=create_browser_registry(backend)
        )

        await router.execute(ToolCallCommand(name="run_script", args={}), [])

        assert backend.calls == [("run_javascript", {})]

    @pytest.mark.asyncio
    async def test_image_output_becomes_screenshot_file(
        self, catalog: ToolCatalogService, registry: ConnectionRegistry, mcp_client: MCPClient
    ) -> None:
        backend = RecordingBackend({"text": "Screenshot taken", "image": "data:image/png;base64,AAAA"})
        router = ToolRouter(
            catalog, registry, mcp_client, local_provider=create_browser_registry(backend)
        )

        execution = await router.execute(ToolCallCommand(name="take_screenshot"), [])

        assert execution.output == "Screenshot taken"
        assert [(f.name, f.mime_type) for f in execution.files] == [("screenshot.png", "image/png")]

    @pytest.mark.asyncio
    async def test_missing_provider(
        self, catalog: ToolCatalogService, registry: ConnectionRegistry, mcp_client: MCPClient
    ) -> None:
        router = ToolRouter(catalog, registry, mcp_client)

        execution = await router.execute(ToolCallCommand(name="click"), [])

        assert execution.error
        assert execution.output == "Error executing tool: Browser control is unavailable."

    @pytest.mark.asyncio
    async def test_custom_local_registry(
        self, catalog: ToolCatalogService, registry: ConnectionRegistry, mcp_client: MCPClient
    ) -> None:
        backend = RecordingBackend("42")
        local = LocalToolRegistry([BrowserControlTool(backend, "answer", "The answer")])
        router = ToolRouter(catalog, registry, mcp_client, local_provider=local, local_tool_names=())

        execution = await router.execute(ToolCallCommand(name="answer"), [])

        assert execution.output == "42"
        assert execution.source == ToolSource.LOCAL


class TestRemoteTools:
    """Tests for remote dispatch."""

    @pytest.mark.asyncio
    async def test_single_server_plain_name(
        self, mcp_client: MCPClient, make_server: Callable[..., MCPServerConfig]
    ) -> None:
        async def sunny(args: dict[str, Any]) -> dict[str, Any]:
            return {"content": [{"type": "text", "text": "Sunny"}]}

        server = MockMCPServer("s1", tools=[MockTool("search", "Search", sunny)])
        router, registry = _router(MockTransportFactory({"mock://s1": server}), mcp_client)

        execution = await router.execute_if_present(
            '{"tool": "search", "args": {"query": "weather"}}', [make_server("s1")]
        )

        assert execution is not None
        assert execution.output == "Sunny"
        assert execution.files == []
        assert execution.source == ToolSource.REMOTE
        assert server.count("tools/list") == 0
        await registry.close()

    @pytest.mark.asyncio
    async def test_composite_id_goes_only_to_named_server(
        self,
        mcp_client: MCPClient,
        two_fetch_servers: dict[str, MockMCPServer],
        make_server: Callable[..., MCPServerConfig],
    ) -> None:
        factory = MockTransportFactory(two_fetch_servers)
        router, registry = _router(factory, mcp_client)

        execution = await router.execute(
            ToolCallCommand(name="s1__fetch", args={"url": "https://x.test"}),
            [make_server("s1"), make_server("s2")],
        )

        assert execution.output == "fetched by s1"
        s1, s2 = two_fetch_servers["mock://s1"], two_fetch_servers["mock://s2"]
        assert s1.received[-1]["params"] == {"name": "fetch", "arguments": {"url": "https://x.test"}}
        assert s2.received == []
        assert factory.for_url("mock://s2") == []
        await registry.close()

    @pytest.mark.asyncio
    async def test_composite_id_with_trailing_underscore_server(
        self, mcp_client: MCPClient, make_server: Callable[..., MCPServerConfig]
    ) -> None:
        servers = {
            "mock://s_": MockMCPServer("s_", tools=[_fetch_tool("s_")]),
            "mock://t": MockMCPServer("t", tools=[_fetch_tool("t")]),
        }
        registry = ConnectionRegistry(mcp_client, transport_factory=MockTransportFactory(servers))
        catalog = ToolCatalogService(registry, mcp_client)
        router = ToolRouter(catalog, registry, mcp_client)
        configs = [make_server("s_"), make_server("t")]

        preamble = await catalog.build_tools_preamble(configs)
        execution = await router.execute_if_present('{"tool": "s___fetch"}', configs)

        assert "- s___fetch" in preamble
        assert execution is not None
        assert execution.output == "fetched by s_"
        assert servers["mock://t"].count("tools/call") == 0
        await registry.close()

    @pytest.mark.asyncio
    async def test_plain_name_collision_takes_first_match(
        self,
        mcp_client: MCPClient,
        two_fetch_servers: dict[str, MockMCPServer],
        make_server: Callable[..., MCPServerConfig],
    ) -> None:
        router, registry = _router(MockTransportFactory(two_fetch_servers), mcp_client)

        execution = await router.execute(
            ToolCallCommand(name="fetch"), [make_server("s1"), make_server("s2")]
        )

        assert execution.output == "fetched by s1"
        await registry.close()

    @pytest.mark.asyncio
    async def test_plain_name_collision_error_policy(
        self,
        mcp_client: MCPClient,
        two_fetch_servers: dict[str, MockMCPServer],
        make_server: Callable[..., MCPServerConfig],
    ) -> None:
        router, registry = _router(
            MockTransportFactory(two_fetch_servers), mcp_client, ambiguous_policy="error"
        )

        execution = await router.execute(
            ToolCallCommand(name="fetch"), [make_server("s1"), make_server("s2")]
        )

        assert execution.error
        assert "s1__fetch, s2__fetch" in execution.output
        assert two_fetch_servers["mock://s1"].count("tools/call") == 0
        await registry.close()

    @pytest.mark.asyncio
    async def test_unknown_tool_across_servers(
        self, router_env: tuple[ToolRouter, list[MCPServerConfig]]
    ) -> None:
        router, servers = router_env

        execution = await router.execute(ToolCallCommand(name="teleport"), servers)

        assert execution.output == (
            "Error executing tool: Tool 'teleport' not found in any enabled MCP server."
        )

    @pytest.mark.asyncio
    async def test_no_active_servers(
        self, catalog: ToolCatalogService, registry: ConnectionRegistry, mcp_client: MCPClient
    ) -> None:
        router = ToolRouter(catalog, registry, mcp_client)

        execution = await router.execute(ToolCallCommand(name="fetch"), [])

        assert execution.output == (
            "Error executing tool: Unknown tool 'fetch'. (External MCP tools are disabled)"
        )

    @pytest.mark.asyncio
    async def test_selected_mode_blocks_tool(
        self,
        catalog: ToolCatalogService,
        registry: ConnectionRegistry,
        mcp_client: MCPClient,
        mock_mcp_server: MockMCPServer,
        make_server: Callable[..., MCPServerConfig],
    ) -> None:
        router = ToolRouter(catalog, registry, mcp_client)
        server = make_server("s1", tool_mode="selected", enabled_tools=["weather"])

        execution = await router.execute(ToolCallCommand(name="s1__search"), [server])

        assert execution.error
        assert "is disabled (not in selected tools)" in execution.output
        assert mock_mcp_server.count("tools/call") == 0

    @pytest.mark.asyncio
    async def test_remote_error_becomes_feedback(
        self,
        catalog: ToolCatalogService,
        registry: ConnectionRegistry,
        mcp_client: MCPClient,
        make_server: Callable[..., MCPServerConfig],
    ) -> None:
        router = ToolRouter(catalog, registry, mcp_client)

        execution = await router.execute(ToolCallCommand(name="nope"), [make_server("s1")])

        assert execution.error
        assert execution.output == "Error executing tool: Tool 'nope' not found"

    @pytest.mark.asyncio
    async def test_status_update_is_reported(
        self,
        catalog: ToolCatalogService,
        registry: ConnectionRegistry,
        mcp_client: MCPClient,
        make_server: Callable[..., MCPServerConfig],
    ) -> None:
        updates: list[tuple[str, str | None]] = []
        router = ToolRouter(catalog, registry, mcp_client)

        await router.execute(
            ToolCallCommand(name="weather", args={"city": "Paris"}),
            [make_server("s1")],
            on_update=lambda text, thoughts: updates.append((text, thoughts)),
        )

        assert updates == [("Executing tool: weather...", "Processing tool execution...")]

    @pytest.mark.asyncio
    async def test_no_tool_call(
        self, catalog: ToolCatalogService, registry: ConnectionRegistry, mcp_client: MCPClient
    ) -> None:
        router = ToolRouter(catalog, registry, mcp_client)

        assert await router.execute_if_present("The answer is 4.", []) is None


@pytest.fixture
def router_env(
    catalog: ToolCatalogService,
    registry: ConnectionRegistry,
    mcp_client: MCPClient,
    make_server: Callable[..., MCPServerConfig],
) -> tuple[ToolRouter, list[MCPServerConfig]]:
    return ToolRouter(catalog, registry, mcp_client), [make_server("s1"), make_server("s2")]
