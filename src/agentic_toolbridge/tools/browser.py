"""Browser-control tool catalog.

The primitives themselves (page automation, snapshots, input emulation)
live in an external backend. This module names them, so the router can
tell a local call from a remote one, and adapts a backend into a
LocalToolRegistry.
"""

from typing import Any, Protocol

from agentic_toolbridge.tools.base import LocalTool, LocalToolOutput
from agentic_toolbridge.tools.registry import LocalToolRegistry


class BrowserBackend(Protocol):
    """Executes one browser-control primitive by its canonical name."""

    async def execute(self, name: str, args: dict[str, Any]) -> LocalToolOutput: ...


# (name, description, aliases)
BROWSER_TOOLS: list[tuple[str, str, tuple[str, ...]]] = [
    ("navigate_page", "Navigate the current page to a URL", ()),
    ("new_page", "Open a new page", ()),
    ("close_page", "Close a page", ()),
    ("list_pages", "List open pages", ()),
    ("select_page", "Switch to a page", ()),
    ("take_snapshot", "Capture the accessibility tree of the page", ()),
    ("take_screenshot", "Capture a screenshot of the page", ()),
    ("click", "Click an element by uid", ()),
    ("drag_element", "Drag an element onto another", ()),
    ("hover", "Hover over an element", ()),
    ("fill", "Type a value into an input", ()),
    ("fill_form", "Fill several inputs at once", ()),
    ("press_key", "Press a key or key combination", ()),
    ("handle_dialog", "Accept or dismiss a browser dialog", ()),
    ("wait_for", "Wait until text appears on the page", ()),
    ("evaluate_script", "Evaluate a JavaScript function in the page", ()),
    ("run_javascript", "Run a JavaScript snippet in the page", ("run_script",)),
    ("attach_file", "Upload a file through a file input", ()),
    ("emulate", "Emulate network or CPU conditions", ()),
    ("resize_page", "Resize the page viewport", ()),
    ("performance_start_trace", "Start a performance trace", ("start_trace",)),
    ("performance_stop_trace", "Stop the performance trace", ("stop_trace",)),
    ("performance_analyze_insight", "Analyze a trace insight", ()),
    ("get_logs", "Read console logs", ()),
    ("get_network_activity", "Summarize recent network activity", ()),
    ("list_network_requests", "List network requests", ()),
    ("get_network_request", "Show one network request", ()),
]

BROWSER_TOOL_NAMES: frozenset[str] = frozenset(
    key for name, _, aliases in BROWSER_TOOLS for key in (name, *aliases)
)


class BrowserControlTool(LocalTool):
    """A browser primitive forwarded to the backend under its canonical name."""

    def __init__(
        self,
        backend: BrowserBackend,
        name: str,
        description: str = "",
        aliases: tuple[str, ...] = (),
    ):
        self._backend = backend
        self.name = name
        self.description = description
        self.aliases = aliases

    async def execute(self, args: dict[str, Any]) -> LocalToolOutput:
        return await self._backend.execute(self.name, args)


def create_browser_registry(backend: BrowserBackend) -> LocalToolRegistry:
    """Registry exposing every browser primitive through ``backend``."""
    return LocalToolRegistry(
        BrowserControlTool(backend, name, description, aliases)
        for name, description, aliases in BROWSER_TOOLS
    )
