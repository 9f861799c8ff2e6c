"""Domain exceptions for the tool bridge."""


class ToolBridgeError(Exception):
    """Base exception for all tool bridge errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


# =============================================================================
# PROTOCOL / TRANSPORT ERRORS
# =============================================================================


class MCPError(ToolBridgeError):
    """Error communicating with an MCP server."""

    def __init__(
        self,
        message: str,
        server_id: str | None = None,
        method: str | None = None,
        recoverable: bool = True,
    ):
        super().__init__(message, recoverable)
        self.server_id = server_id
        self.method = method


class MCPConnectionError(MCPError):
    """Transport could not be opened, or was closed under a pending request."""


class HandshakeError(MCPError):
    """Every protocol version was rejected during ``initialize``."""


class RequestTimeoutError(MCPError, TimeoutError):
    """No reply arrived before the request deadline."""

    def __init__(
        self,
        message: str,
        server_id: str | None = None,
        method: str | None = None,
        timeout: float | None = None,
    ):
        super().__init__(message, server_id=server_id, method=method)
        self.timeout = timeout


class RemoteToolError(MCPError):
    """Server replied with a JSON-RPC error payload."""

    def __init__(
        self,
        message: str,
        code: int | None = None,
        data: object = None,
        server_id: str | None = None,
        method: str | None = None,
    ):
        super().__init__(message, server_id=server_id, method=method)
        self.code = code
        self.data = data


class MalformedResponseError(MCPError):
    """Reply body could not be parsed.

    Never raised: transports degrade bad bodies to opaque text and a bad
    tools listing reads as no tools.
    """


# =============================================================================
# TOOL ROUTING ERRORS
# =============================================================================


class ToolError(ToolBridgeError):
    """Error resolving or dispatching a tool call."""

    def __init__(self, message: str, tool_name: str | None = None, recoverable: bool = True):
        super().__init__(message, recoverable)
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    """No active server exposes the requested tool."""


class AmbiguousToolError(ToolError):
    """A plain tool name matches tools on more than one server."""

    def __init__(self, message: str, tool_name: str | None = None, candidates: list[str] | None = None):
        super().__init__(message, tool_name)
        self.candidates = candidates or []


class ToolDisabledError(ToolError):
    """Tool is absent from its server's selected-tools allow-list."""


class CapabilityUnavailableError(ToolError):
    """A local tool was requested but no local provider is attached."""
