"""Local tools, tool-call parsing and routing."""

from agentic_toolbridge.tools.base import (
    LocalTool,
    LocalToolOutput,
    LocalToolProvider,
    normalize_local_output,
)
from agentic_toolbridge.tools.registry import LocalToolRegistry
from agentic_toolbridge.tools.browser import (
    BROWSER_TOOL_NAMES,
    BROWSER_TOOLS,
    BrowserBackend,
    BrowserControlTool,
    create_browser_registry,
)
from agentic_toolbridge.tools.parser import parse_tool_command
from agentic_toolbridge.tools.router import ToolExecution, ToolRouter, UpdateCallback

__all__ = [
    # Base
    "LocalTool",
    "LocalToolOutput",
    "LocalToolProvider",
    "normalize_local_output",
    # Registry
    "LocalToolRegistry",
    # Browser control
    "BROWSER_TOOL_NAMES",
    "BROWSER_TOOLS",
    "BrowserBackend",
    "BrowserControlTool",
    "create_browser_registry",
    # Routing
    "parse_tool_command",
    "ToolExecution",
    "ToolRouter",
    "UpdateCallback",
]
