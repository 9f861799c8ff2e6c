"""Configuration: settings, server definitions and prompt templates."""

from agentic_toolbridge.config.servers import MCPServerConfig, ToolMode, TransportKind
from agentic_toolbridge.config.settings import Settings, get_settings

__all__ = [
    "MCPServerConfig",
    "Settings",
    "ToolMode",
    "TransportKind",
    "get_settings",
]
