"""MCP (Model Context Protocol) integration."""

from agentic_toolbridge.mcp.models import (
    JsonRpcRequest,
    JsonRpcReply,
    JsonRpcError,
    MCPTool,
    ToolCallCommand,
    ToolFile,
    ToolResult,
    ToolSource,
    make_tool_id,
    split_tool_id,
    normalize_tool_result,
)
from agentic_toolbridge.mcp.sse import SSEDecoder, SSEEvent
from agentic_toolbridge.mcp.connection import Connection, ConnectionStatus, ToolCache
from agentic_toolbridge.mcp.client import MCPClient
from agentic_toolbridge.mcp.registry import ConnectionRegistry
from agentic_toolbridge.mcp.catalog import ToolCatalogService

__all__ = [
    # Models
    "JsonRpcRequest",
    "JsonRpcReply",
    "JsonRpcError",
    "MCPTool",
    "ToolCallCommand",
    "ToolFile",
    "ToolResult",
    "ToolSource",
    "make_tool_id",
    "split_tool_id",
    "normalize_tool_result",
    # Event stream
    "SSEDecoder",
    "SSEEvent",
    # Connections
    "Connection",
    "ConnectionStatus",
    "ToolCache",
    # Client
    "MCPClient",
    # Registry
    "ConnectionRegistry",
    # Catalog
    "ToolCatalogService",
]
