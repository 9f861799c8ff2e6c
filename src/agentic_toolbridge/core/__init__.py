"""Core exceptions shared across the tool bridge."""

from agentic_toolbridge.core.exceptions import (
    ToolBridgeError,
    MCPError,
    MCPConnectionError,
    HandshakeError,
    RequestTimeoutError,
    RemoteToolError,
    MalformedResponseError,
    ToolError,
    ToolNotFoundError,
    AmbiguousToolError,
    ToolDisabledError,
    CapabilityUnavailableError,
)

__all__ = [
    "ToolBridgeError",
    "MCPError",
    "MCPConnectionError",
    "HandshakeError",
    "RequestTimeoutError",
    "RemoteToolError",
    "MalformedResponseError",
    "ToolError",
    "ToolNotFoundError",
    "AmbiguousToolError",
    "ToolDisabledError",
    "CapabilityUnavailableError",
]
