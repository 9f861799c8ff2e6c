"""Base types for local tools.

Local tools run in-process (typically browser-control primitives) and are
dispatched by plain name. Their raw output is either a string or a mapping
with ``text`` and an optional base64 ``image``; the router normalizes both
into the same ToolResult shape remote tools produce.
"""

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from agentic_toolbridge.mcp.models import ToolFile, ToolResult, ToolSource

LocalToolOutput = str | dict[str, Any] | None


@runtime_checkable
class LocalToolProvider(Protocol):
    """Executes local tools by name."""

    def is_local_tool(self, name: str) -> bool: ...

    async def execute(self, name: str, args: dict[str, Any]) -> LocalToolOutput: ...


class LocalTool(ABC):
    """
    Base class for local tools.

    Example:
        class ListPagesTool(LocalTool):
            name = "list_pages"
            description = "List open pages"

            async def execute(self, args: dict[str, Any]) -> LocalToolOutput:
                return "\\n".join(await browser.page_titles())
    """

    # Metadata - must be set by subclasses
    name: str
    description: str = ""

    # Alternative names dispatched to this tool
    aliases: tuple[str, ...] = ()

    # Input schema for the tool (JSON Schema format)
    input_schema: dict[str, Any] = {}

    @abstractmethod
    async def execute(self, args: dict[str, Any]) -> LocalToolOutput:
        """
        Execute the tool.

        Args:
            args: Tool arguments from the model's tool call

        Returns:
            Text, or a mapping with ``text`` and optional base64 ``image``
        """


def normalize_local_output(output: LocalToolOutput) -> ToolResult:
    """Convert raw local tool output to a ToolResult (images become screenshot.png)."""
    if output is None:
        return ToolResult(text="", source=ToolSource.LOCAL)
    if isinstance(output, str):
        return ToolResult(text=output, source=ToolSource.LOCAL)

    if isinstance(output, dict):
        text = output.get("text")
        text = text if isinstance(text, str) else ""
        image = output.get("image")
        if image:
            return ToolResult(
                text=text,
                files=[ToolFile(data=image, mime_type="image/png", name="screenshot.png")],
                source=ToolSource.LOCAL,
            )
        if "text" in output:
            return ToolResult(text=text, source=ToolSource.LOCAL)

    return ToolResult(text=str(output), source=ToolSource.LOCAL)
