"""Remote MCP server configuration."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransportKind(str, Enum):
    """Wire transports a remote server can be reached over."""

    WEBSOCKET = "ws"  # Persistent duplex socket
    SSE = "sse"  # Long-lived event stream + side-channel POST
    STREAMABLE_HTTP = "streamable-http"  # Stateless request/reply over HTTP

    @classmethod
    def parse(cls, value: "str | TransportKind | None") -> "TransportKind":
        """Resolve a transport name or alias; unknown names raise ValueError."""
        if isinstance(value, TransportKind):
            return value
        key = (value or cls.SSE.value).strip().lower()
        try:
            return _TRANSPORT_ALIASES[key]
        except KeyError:
            raise ValueError(f"Unsupported MCP transport: {value}") from None


_TRANSPORT_ALIASES: dict[str, TransportKind] = {
    "ws": TransportKind.WEBSOCKET,
    "websocket": TransportKind.WEBSOCKET,
    "duplex-socket": TransportKind.WEBSOCKET,
    "sse": TransportKind.SSE,
    "event-stream": TransportKind.SSE,
    "streamable-http": TransportKind.STREAMABLE_HTTP,
    "streamablehttp": TransportKind.STREAMABLE_HTTP,
    "stateless-http": TransportKind.STREAMABLE_HTTP,
}


class ToolMode(str, Enum):
    """Which of a server's tools may be dispatched."""

    ALL = "all"
    SELECTED = "selected"


class MCPServerConfig(BaseModel):
    """
    Configuration for one remote MCP server.

    Accepts both snake_case and camelCase keys so settings exported by a
    browser UI (``toolMode``, ``enabledTools``) load unchanged.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique server identifier")
    name: str = Field("", description="Human-readable server name")
    url: str = Field("", description="Server URL (ws://, http:// or https://)")
    transport: TransportKind = Field(TransportKind.SSE, description="Wire transport")
    enabled: bool = Field(True, description="Whether the server participates in tool calls")
    tool_mode: ToolMode = Field(ToolMode.ALL, alias="toolMode")
    enabled_tools: list[str] = Field(default_factory=list, alias="enabledTools")

    @field_validator("transport", mode="before")
    @classmethod
    def _parse_transport(cls, value: object) -> TransportKind:
        return TransportKind.parse(value)  # type: ignore[arg-type]

    @property
    def display_name(self) -> str:
        return self.name or self.url

    @property
    def is_active(self) -> bool:
        """Url present and not explicitly disabled."""
        return self.enabled and bool(self.url and self.url.strip())

    def allows_tool(self, tool_name: str) -> bool:
        """Apply the server's tool-mode policy to a plain tool name."""
        if self.tool_mode == ToolMode.SELECTED:
            return tool_name in set(self.enabled_tools)
        return True
