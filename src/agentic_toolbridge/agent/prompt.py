"""First-iteration prompt assembly."""

from agentic_toolbridge.agent.interfaces import EnvironmentContextProvider, TurnRequest
from agentic_toolbridge.config.prompts import (
    LOCAL_TOOLS_PREAMBLE,
    PAGE_CONTEXT_BLOCK,
    QUESTION_PREFIX,
    SNAPSHOT_BLOCK,
    SNAPSHOT_UNAVAILABLE,
)
from agentic_toolbridge.mcp.catalog import ToolCatalogService
from agentic_toolbridge.tools.browser import BROWSER_TOOLS
from agentic_toolbridge.tools.registry import LocalToolRegistry
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)


def _default_tool_lines() -> str:
    return "\n".join(f"- {name}: {description}" for name, description, _ in BROWSER_TOOLS)


class PromptBuilder:
    """
    Builds the prompt for the first model call of a turn.

    Order: page context, local tools preamble and snapshot (tools enabled),
    external tools preamble (tools enabled, servers configured), then
    ``Question: <text>``. With no preamble the user text is sent as is.
    Context that cannot be gathered is skipped with a warning.
    """

    def __init__(
        self,
        catalog: ToolCatalogService | None = None,
        local_tools: LocalToolRegistry | None = None,
        environment: EnvironmentContextProvider | None = None,
    ):
        self._catalog = catalog
        self._local_tools = local_tools
        self._environment = environment

    async def build(self, request: TurnRequest) -> str:
        preamble = ""

        if request.include_page_context:
            page = await self._page_context(request)
            if page:
                preamble += PAGE_CONTEXT_BLOCK.format(page_context=page)

        if request.enable_tools:
            preamble += self._local_preamble()
            preamble += await self._snapshot()
            preamble += await self._external_preamble(request)

        if not preamble:
            return request.text
        return preamble + QUESTION_PREFIX + request.text

    async def _page_context(self, request: TurnRequest) -> str | None:
        if request.page_context:
            return request.page_context
        if self._environment is None:
            return None
        try:
            return await self._environment.get_page_content()
        except Exception as e:
            logger.warning("Page context unavailable", error=str(e))
            return None

    def _local_preamble(self) -> str:
        tool_lines = (
            self._local_tools.get_tools_text()
            if self._local_tools is not None and len(self._local_tools)
            else _default_tool_lines()
        )
        return LOCAL_TOOLS_PREAMBLE.format(tool_lines=tool_lines)

    async def _snapshot(self) -> str:
        if self._environment is None:
            return ""
        try:
            snapshot = await self._environment.get_snapshot()
        except Exception as e:
            logger.warning("Auto-snapshot injection failed", error=str(e))
            return ""
        if snapshot:
            return SNAPSHOT_BLOCK.format(snapshot=snapshot)
        return SNAPSHOT_UNAVAILABLE

    async def _external_preamble(self, request: TurnRequest) -> str:
        if self._catalog is None or not request.mcp_servers:
            return ""
        try:
            external = await self._catalog.build_tools_preamble(request.mcp_servers)
        except Exception as e:
            logger.warning("External tools preamble unavailable", error=str(e))
            return ""
        return f"\n{external}\n" if external else ""
