"""Registry for local tools."""

from typing import Any, Iterable

from agentic_toolbridge.tools.base import LocalTool, LocalToolOutput
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)


class LocalToolRegistry:
    """
    Dispatch table of local tools keyed by name and alias.

    Design Pattern: Registry

    Implements LocalToolProvider, so a registry can be handed straight to
    the tool router.

    Usage:
        registry = LocalToolRegistry([ListPagesTool(), ClickTool()])
        output = await registry.execute("list_pages", {})
    """

    def __init__(self, tools: Iterable[LocalTool] = ()):
        self._tools: dict[str, LocalTool] = {}
        self._dispatch: dict[str, LocalTool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: LocalTool) -> LocalTool:
        """Register a tool under its name and aliases."""
        if tool.name in self._tools:
            logger.warning("Overwriting existing local tool", tool=tool.name)
        self._tools[tool.name] = tool
        for key in (tool.name, *tool.aliases):
            self._dispatch[key] = tool
        logger.debug("Registered local tool", tool=tool.name, aliases=list(tool.aliases))
        return tool

    def get(self, name: str) -> LocalTool | None:
        return self._dispatch.get(name)

    @property
    def names(self) -> frozenset[str]:
        """Every dispatchable name, aliases included."""
        return frozenset(self._dispatch)

    def __len__(self) -> int:
        return len(self._tools)

    def is_local_tool(self, name: str) -> bool:
        return name in self._dispatch

    async def execute(self, name: str, args: dict[str, Any]) -> LocalToolOutput:
        tool = self._dispatch.get(name)
        if tool is None:
            return f"Error: Unknown tool '{name}'"
        logger.debug("Executing local tool", tool=tool.name, requested=name)
        return await tool.execute(args)

    def get_tools_text(self) -> str:
        """One ``- name: description`` line per tool, for the tools preamble."""
        lines = []
        for tool in self._tools.values():
            line = f"- {tool.name}"
            if tool.description:
                line += f": {tool.description}"
            lines.append(line)
        return "\n".join(lines)
