"""Agent loop and its collaborators."""

from agentic_toolbridge.agent.interfaces import (
    EnvironmentContextProvider,
    HistoryRecorder,
    ModelClient,
    ModelReply,
    ModelRequest,
    TurnRequest,
)
from agentic_toolbridge.agent.state import AgentLoopState, LoopStatus, TurnOutcome
from agentic_toolbridge.agent.prompt import PromptBuilder
from agentic_toolbridge.agent.loop import AgentLoop

__all__ = [
    "EnvironmentContextProvider",
    "HistoryRecorder",
    "ModelClient",
    "ModelReply",
    "ModelRequest",
    "TurnRequest",
    "AgentLoopState",
    "LoopStatus",
    "TurnOutcome",
    "PromptBuilder",
    "AgentLoop",
]
