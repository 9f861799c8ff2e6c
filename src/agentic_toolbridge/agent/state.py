"""Agent loop state and turn outcome."""

from dataclasses import dataclass, field
from enum import Enum

from agentic_toolbridge.agent.interfaces import ModelReply
from agentic_toolbridge.mcp.models import ToolFile
from agentic_toolbridge.tools.router import ToolExecution
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)


class LoopStatus(str, Enum):
    """Where a turn is in the prompt / tool feedback cycle."""

    START = "start"
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOL = "executing_tool"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (LoopStatus.DONE, LoopStatus.FAILED, LoopStatus.CANCELLED)


@dataclass
class AgentLoopState:
    """Mutable state of one turn. Files are replaced each iteration, never accumulated."""

    prompt_text: str
    files: list[ToolFile] = field(default_factory=list)
    iteration_count: int = 0
    max_iterations: int = 10
    status: LoopStatus = LoopStatus.START

    @property
    def running(self) -> bool:
        return not self.status.is_terminal

    @property
    def exhausted(self) -> bool:
        return self.iteration_count >= self.max_iterations

    def transition(self, status: LoopStatus) -> None:
        if self.status.is_terminal:
            raise RuntimeError(f"Loop already finished ({self.status.value})")
        logger.debug(
            "Loop transition",
            from_status=self.status.value,
            to_status=status.value,
            iteration=self.iteration_count,
        )
        self.status = status


@dataclass
class TurnOutcome:
    """Result of ``AgentLoop.run``."""

    status: LoopStatus
    reply: ModelReply | None = None
    iterations: int = 0
    executions: list[ToolExecution] = field(default_factory=list)
    error: str | None = None

    @property
    def text(self) -> str:
        """Final model text, or the error message on failure."""
        if self.status == LoopStatus.FAILED:
            return self.error or ""
        return self.reply.text if self.reply is not None else ""
