"""Mock MCP server for local testing."""

from typing import Any

from agentic_toolbridge.mcp.mock.tools import MockTool, create_default_mock_tools
from agentic_toolbridge.mcp.models import JSONRPC_VERSION
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class MockMCPServer:
    """
    In-process MCP server answering JSON-RPC envelopes.

    Supports ``initialize``, ``tools/list`` and ``tools/call``. Behaviour
    for failure scenarios is configurable: protocol versions to reject,
    methods to leave unanswered, and raw replies to send instead of the
    computed one.
    """

    def __init__(
        self,
        server_id: str = "mock_server",
        tools: list[MockTool] | None = None,
        rejected_versions: set[str] | None = None,
        silent_methods: set[str] | None = None,
    ):
        """
        Initialize mock server.

        Args:
            server_id: Server identifier
            tools: List of mock tools (uses defaults if not provided)
            rejected_versions: Protocol versions answered with an error
            silent_methods: Methods that never get a reply
        """
        self.server_id = server_id
        self._tools: dict[str, MockTool] = {}
        self.rejected_versions = set(rejected_versions or ())
        self.silent_methods = set(silent_methods or ())
        self.received: list[dict[str, Any]] = []
        self.overrides: dict[str, Any] = {}

        for tool in tools or create_default_mock_tools():
            self._tools[tool.name] = tool

    @property
    def tool_names(self) -> list[str]:
        """Get list of tool names."""
        return list(self._tools.keys())

    def add_tool(self, tool: MockTool) -> None:
        self._tools[tool.name] = tool

    def methods_received(self) -> list[str]:
        return [envelope.get("method", "") for envelope in self.received]

    def count(self, method: str) -> int:
        return self.methods_received().count(method)

    async def handle(self, envelope: dict[str, Any]) -> dict[str, Any] | None:
        """
        Handle one inbound envelope.

        Returns:
            The reply envelope, or None for notifications and silent methods
        """
        self.record(envelope)
        return await self.respond(envelope)

    def record(self, envelope: dict[str, Any]) -> None:
        self.received.append(envelope)

    async def respond(self, envelope: dict[str, Any]) -> dict[str, Any] | None:
        """Compute the reply without recording the envelope."""
        method = envelope.get("method", "")
        request_id = envelope.get("id")
        if request_id is None or method in self.silent_methods:
            return None

        if method in self.overrides:
            override = self.overrides[method]
            return {"jsonrpc": JSONRPC_VERSION, "id": request_id, **override}

        params = envelope.get("params") or {}
        try:
            result = await self._dispatch(method, params)
        except _RpcFailure as e:
            return {
                "jsonrpc": JSONRPC_VERSION,
                "id": request_id,
                "error": {"code": e.code, "message": e.message},
            }
        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}

    async def _dispatch(self, method: str, params: dict[str, Any]) -> Any:
        if method == "initialize":
            version = params.get("protocolVersion")
            if version in self.rejected_versions:
                raise _RpcFailure(INVALID_PARAMS, f"Unsupported protocol version: {version}")
            return {
                "protocolVersion": version,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": self.server_id, "version": "1.0.0"},
            }

        if method == "tools/list":
            return {"tools": [tool.to_wire() for tool in self._tools.values()]}

        if method == "tools/call":
            name = params.get("name")
            tool = self._tools.get(name)
            if tool is None:
                raise _RpcFailure(INVALID_PARAMS, f"Tool '{name}' not found")
            logger.debug("Mock executing tool", tool_name=name, params=params)
            return await tool.handler(params.get("arguments") or {})

        raise _RpcFailure(METHOD_NOT_FOUND, f"Method not found: {method}")


class _RpcFailure(Exception):
    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message
