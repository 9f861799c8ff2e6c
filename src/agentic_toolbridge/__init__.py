"""Agentic tool bridge: MCP client, tool routing and agent loop."""

__version__ = "0.1.0"

from agentic_toolbridge.app import ToolBridgeApp

__all__ = ["ToolBridgeApp", "__version__"]
