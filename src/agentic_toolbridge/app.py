"""Application class with startup/shutdown lifecycle."""

import asyncio
import uuid

import httpx

from agentic_toolbridge.agent.interfaces import (
    EnvironmentContextProvider,
    HistoryRecorder,
    ModelClient,
    TurnRequest,
)
from agentic_toolbridge.agent.loop import AgentLoop, ReplyCallback
from agentic_toolbridge.agent.prompt import PromptBuilder
from agentic_toolbridge.agent.state import TurnOutcome
from agentic_toolbridge.config.settings import Settings, get_settings
from agentic_toolbridge.core.exceptions import ToolBridgeError
from agentic_toolbridge.mcp.catalog import ToolCatalogService
from agentic_toolbridge.mcp.client import MCPClient
from agentic_toolbridge.mcp.registry import ConnectionRegistry
from agentic_toolbridge.mcp.transports.factory import DefaultTransportFactory, TransportFactory
from agentic_toolbridge.tools.base import LocalToolProvider
from agentic_toolbridge.tools.registry import LocalToolRegistry
from agentic_toolbridge.tools.router import ToolRouter, UpdateCallback
from agentic_toolbridge.utils.logging import get_logger, setup_logging


logger = get_logger(__name__)


class ToolBridgeApp:
    """
    Wires the tool bridge together and owns its lifecycle.

    Handles:
    - One connection registry shared by every turn
    - Default MCP servers from settings when a turn names none
    - Draining in-flight turns on shutdown
    - Closing connections and the shared HTTP client

    Usage:
        async with ToolBridgeApp(model_client=client) as app:
            outcome = await app.run_turn(TurnRequest(text="hi"))
    """

    def __init__(
        self,
        model_client: ModelClient,
        settings: Settings | None = None,
        local_tools: LocalToolProvider | None = None,
        history: HistoryRecorder | None = None,
        environment: EnvironmentContextProvider | None = None,
        transport_factory: TransportFactory | None = None,
    ):
        self.settings = settings or get_settings()
        self._model_client = model_client
        self._local_tools = local_tools
        self._history = history
        self._environment = environment
        self._transport_factory = transport_factory

        self.http_client: httpx.AsyncClient | None = None
        self.client: MCPClient | None = None
        self.registry: ConnectionRegistry | None = None
        self.catalog: ToolCatalogService | None = None
        self.router: ToolRouter | None = None
        self.prompt_builder: PromptBuilder | None = None

        self._active_turns: dict[str, AgentLoop] = {}
        self._started = False
        self._is_shutting_down = False

    async def startup(self) -> None:
        """Initialize resources on startup."""
        if self._started:
            return
        settings = self.settings
        setup_logging(settings.log_level)
        logger.info("Starting tool bridge...", servers=len(settings.mcp_servers))

        factory = self._transport_factory
        if factory is None:
            self.http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.mcp_request_timeout_seconds)
            )
            factory = DefaultTransportFactory(
                request_timeout=settings.mcp_request_timeout_seconds,
                endpoint_timeout=settings.mcp_sse_endpoint_timeout_seconds,
                http_client=self.http_client,
            )

        self.client = MCPClient(
            client_name=settings.client_name,
            client_version=settings.client_version,
            protocol_versions=settings.mcp_protocol_versions,
            handshake_backoff=settings.mcp_handshake_backoff_seconds,
            request_timeout=settings.mcp_request_timeout_seconds,
        )
        self.registry = ConnectionRegistry(
            self.client,
            transport_factory=factory,
            idle_timeout=settings.mcp_idle_timeout_seconds,
        )
        self.catalog = ToolCatalogService(
            self.registry,
            self.client,
            cache_ttl=settings.mcp_tools_cache_ttl_seconds,
        )
        self.router = ToolRouter(
            self.catalog,
            self.registry,
            self.client,
            local_provider=self._local_tools,
            ambiguous_policy=settings.mcp_ambiguous_tool_policy,
        )
        self.prompt_builder = PromptBuilder(
            catalog=self.catalog,
            local_tools=self._local_tools if isinstance(self._local_tools, LocalToolRegistry) else None,
            environment=self._environment,
        )

        self._started = True
        logger.info("Tool bridge started")

    async def run_turn(
        self,
        request: TurnRequest,
        on_update: UpdateCallback | None = None,
        on_reply: ReplyCallback | None = None,
    ) -> TurnOutcome:
        """Run one user turn through its own agent loop."""
        if self._is_shutting_down:
            raise ToolBridgeError("Tool bridge is shutting down", recoverable=False)
        if not self._started:
            await self.startup()

        if not request.mcp_servers and self.settings.mcp_servers:
            request = request.model_copy(update={"mcp_servers": list(self.settings.mcp_servers)})

        loop = AgentLoop(
            self._model_client,
            self.router,
            prompt_builder=self.prompt_builder,
            history=self._history,
            max_iterations=self.settings.agent_max_iterations,
        )
        turn_id = str(uuid.uuid4())
        self._active_turns[turn_id] = loop
        try:
            return await loop.run(request, on_update=on_update, on_reply=on_reply)
        finally:
            self._active_turns.pop(turn_id, None)

    def cancel_all(self) -> None:
        """Ask every running turn to stop at its next iteration boundary."""
        for loop in self._active_turns.values():
            loop.cancel()

    async def shutdown(self, timeout: float = 30.0) -> None:
        """
        Graceful shutdown with timeout.

        1. Stop accepting new turns
        2. Wait for in-flight turns (cancelling them on timeout)
        3. Close MCP connections and the HTTP client

        Args:
            timeout: Maximum time to wait for turns to complete
        """
        logger.info("Shutdown initiated...")
        self._is_shutting_down = True

        if self._active_turns:
            logger.info("Waiting for turns to finish", count=len(self._active_turns))
            try:
                await asyncio.wait_for(self._wait_for_turns(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("Timeout waiting for turns, cancelling")
                self.cancel_all()

        if self.registry is not None:
            await self.registry.close()

        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None

        self._started = False
        logger.info("Shutdown complete")

    async def _wait_for_turns(self) -> None:
        """Wait until all turns complete."""
        while self._active_turns:
            await asyncio.sleep(0.1)

    async def __aenter__(self) -> "ToolBridgeApp":
        await self.startup()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()
