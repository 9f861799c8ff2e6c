"""Collaborator interfaces and request/reply models for the agent loop."""

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from agentic_toolbridge.config.servers import MCPServerConfig
from agentic_toolbridge.mcp.models import ToolFile
from agentic_toolbridge.tools.router import UpdateCallback


# =============================================================================
# REQUEST / REPLY MODELS
# =============================================================================


class TurnRequest(BaseModel):
    """One user turn handed to the agent loop."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., description="User prompt")
    files: list[ToolFile] = Field(default_factory=list, description="Attached files")
    session_id: str | None = Field(None, alias="sessionId")
    model: str | None = Field(None, description="Model identifier passed to the model client")
    enable_tools: bool = Field(
        False,
        alias="enableBrowserControl",
        description="Whether tool calls in replies are executed",
    )
    include_page_context: bool = Field(False, alias="includePageContext")
    page_context: str | None = Field(None, description="Page text; fetched from the environment when absent")
    mcp_servers: list[MCPServerConfig] = Field(default_factory=list, alias="mcpServers")


class ModelRequest(BaseModel):
    """What the model client receives for one iteration."""

    text: str
    files: list[ToolFile] = Field(default_factory=list)
    session_id: str | None = None
    model: str | None = None


class ModelReply(BaseModel):
    """Model client reply. Extra fields from the client are preserved."""

    model_config = ConfigDict(extra="allow")

    status: str = "success"
    text: str = ""
    thoughts: str | None = None
    images: list[Any] = Field(default_factory=list)
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @classmethod
    def failure(cls, message: str) -> "ModelReply":
        return cls(status="error", text=message, message=message)


# =============================================================================
# COLLABORATORS
# =============================================================================


@runtime_checkable
class ModelClient(Protocol):
    """Sends one prompt to the language model."""

    async def send_prompt(
        self,
        request: ModelRequest,
        on_update: UpdateCallback,
    ) -> ModelReply | None: ...


@runtime_checkable
class HistoryRecorder(Protocol):
    """Persists conversation turns for a session."""

    async def record_assistant_turn(self, session_id: str, reply: ModelReply) -> None: ...

    async def record_user_turn(
        self,
        session_id: str,
        text: str,
        images: list[str] | None = None,
    ) -> None: ...


@runtime_checkable
class EnvironmentContextProvider(Protocol):
    """Supplies page content and the accessibility snapshot."""

    async def get_page_content(self) -> str | None: ...

    async def get_snapshot(self) -> str | None: ...
