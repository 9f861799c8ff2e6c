"""Agent loop: prompt the model, run the tool it asks for, feed the output back."""

import asyncio
from typing import Any, Awaitable, Callable

from agentic_toolbridge.agent.interfaces import (
    HistoryRecorder,
    ModelClient,
    ModelReply,
    ModelRequest,
    TurnRequest,
)
from agentic_toolbridge.agent.prompt import PromptBuilder
from agentic_toolbridge.agent.state import AgentLoopState, LoopStatus, TurnOutcome
from agentic_toolbridge.config.prompts import TOOL_OUTPUT_HISTORY, TOOL_OUTPUT_PROMPT
from agentic_toolbridge.tools.router import ToolExecution, ToolRouter, UpdateCallback
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)

ReplyCallback = Callable[[ModelReply], None]


def _ignore_update(text: str, thoughts: str | None) -> None:
    return None


class AgentLoop:
    """
    Runs one turn as a bounded prompt / tool feedback cycle.

    Each iteration makes exactly one model call. If the reply carries a tool
    call (and tools are enabled for the turn) the tool runs and its output
    becomes the next prompt; otherwise the turn is done. At most
    ``max_iterations`` tool calls run per turn.

    History writes are awaited but never fail the turn.
    """

    def __init__(
        self,
        model_client: ModelClient,
        router: ToolRouter,
        prompt_builder: PromptBuilder | None = None,
        history: HistoryRecorder | None = None,
        max_iterations: int = 10,
    ):
        if history is not None and not isinstance(history, HistoryRecorder):
            raise TypeError(
                f"{type(history).__name__} does not implement record_assistant_turn / record_user_turn"
            )
        self._model = model_client
        self._router = router
        self._builder = prompt_builder or PromptBuilder()
        self._history = history
        self._max_iterations = max_iterations
        self._cancelled = asyncio.Event()

    def cancel(self) -> None:
        """Stop the running turn at the next iteration boundary."""
        self._cancelled.set()

    async def run(
        self,
        request: TurnRequest,
        on_update: UpdateCallback | None = None,
        on_reply: ReplyCallback | None = None,
    ) -> TurnOutcome:
        """
        Run a turn to completion.

        Args:
            request: The user turn
            on_update: Streaming / status callback ``(text, thoughts)``
            on_reply: Called with each successful model reply

        Returns:
            TurnOutcome with the terminal status and last reply
        """
        self._cancelled.clear()
        on_update = on_update or _ignore_update

        state = AgentLoopState(
            prompt_text=await self._builder.build(request),
            files=list(request.files),
            max_iterations=self._max_iterations,
        )
        outcome = TurnOutcome(status=LoopStatus.START)

        while state.running:
            if self._cancelled.is_set():
                logger.info("Turn cancelled", iteration=state.iteration_count)
                state.transition(LoopStatus.CANCELLED)
                break

            state.transition(LoopStatus.AWAITING_MODEL)
            reply = await self._send(request, state, on_update)
            if reply is None or not reply.is_success:
                outcome.reply = reply
                outcome.error = (reply.message or reply.text) if reply is not None else None
                state.transition(LoopStatus.FAILED)
                break

            outcome.reply = reply
            await self._record(self._record_reply, request, reply)
            if on_reply is not None:
                on_reply(reply)

            if not request.enable_tools:
                state.transition(LoopStatus.DONE)
                break

            state.transition(LoopStatus.EXECUTING_TOOL)
            execution = await self._router.execute_if_present(
                reply.text, request.mcp_servers, on_update
            )
            if execution is None:
                state.transition(LoopStatus.DONE)
                break

            outcome.executions.append(execution)
            state.iteration_count += 1
            state.files = list(execution.files)
            state.prompt_text = TOOL_OUTPUT_PROMPT.format(
                tool_name=execution.tool_name, output=execution.output
            )
            await self._record(self._record_tool_output, request, execution, state.iteration_count)
            on_update(
                "Thinking...",
                f"Observed output from tool. Planning next step "
                f"({state.iteration_count}/{state.max_iterations})...",
            )

            if state.exhausted:
                logger.warning("Tool iteration limit reached", limit=state.max_iterations)
                state.transition(LoopStatus.DONE)

        outcome.status = state.status
        outcome.iterations = state.iteration_count
        logger.info(
            "Turn finished",
            status=outcome.status.value,
            iterations=outcome.iterations,
            session_id=request.session_id,
        )
        return outcome

    async def _send(
        self,
        request: TurnRequest,
        state: AgentLoopState,
        on_update: UpdateCallback,
    ) -> ModelReply | None:
        model_request = ModelRequest(
            text=state.prompt_text,
            files=state.files,
            session_id=request.session_id,
            model=request.model,
        )
        try:
            return await self._model.send_prompt(model_request, on_update)
        except Exception as e:
            logger.error("Model call failed", error_type=type(e).__name__, error=str(e))
            return ModelReply.failure(f"Error: {e}")

    async def _record(
        self,
        write: Callable[..., Awaitable[None]],
        request: TurnRequest,
        *args: Any,
    ) -> None:
        if self._history is None or not request.session_id:
            return
        try:
            await write(request.session_id, *args)
        except Exception as e:
            logger.warning("History write failed", session_id=request.session_id, error=str(e))

    async def _record_reply(self, session_id: str, reply: ModelReply) -> None:
        await self._history.record_assistant_turn(session_id, reply)

    async def _record_tool_output(
        self,
        session_id: str,
        execution: ToolExecution,
        iteration: int,
    ) -> None:
        text = TOOL_OUTPUT_HISTORY.format(output=execution.output, next_step=iteration + 1)
        images = [file.data for file in execution.files] or None
        await self._history.record_user_turn(session_id, text, images)
