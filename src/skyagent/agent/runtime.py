"""The agent run loop: state machine, step budget and timeout.

``AgentRuntime.run`` drives ``step()`` until a step produces an answer,
the step budget runs out, the wall-clock budget runs out, or a step
raises. Whatever happens, the caller gets a user-facing string back and
the agent is IDLE again afterwards.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from skyagent.agent.agent import AgentDefinition
from skyagent.agent.prompts import (
    DEFAULT_STREAM_TIMEOUT_MS,
    ERROR_AGENT_BUSY,
    ERROR_GENERAL,
    ERROR_MAX_STEPS_EXCEEDED,
    ERROR_TIMEOUT,
    SUCCESS_TASK_COMPLETED,
)
from skyagent.agent.state import AgentState
from skyagent.llm.message import Message
from skyagent.llm.provider import ChatProvider
from skyagent.session.wire import EventType, TextStream, Wire, WireEvent
from skyagent.tool.base import ToolResult

logger = logging.getLogger(__name__)


class RunOutcome(enum.Enum):
    """Why did the run end?"""

    COMPLETE = "complete"  # A step produced the answer
    MAX_STEPS = "max_steps"  # Step budget used up
    TIMEOUT = "timeout"  # Wall-clock budget used up
    ERROR = "error"  # A step raised
    REJECTED = "rejected"  # Another run was in progress


@dataclass
class RunContext:
    """Everything that belongs to a single run and dies with it."""

    conversation_id: str | None = None
    start_time: float = field(default_factory=time.monotonic)
    current_step: int = 0
    history: list[Message] = field(default_factory=list)
    tool_call_count: int = 0
    last_tool_result: ToolResult | None = None

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.start_time) * 1000)


@dataclass(frozen=True)
class RunResult:
    text: str
    outcome: RunOutcome
    state: AgentState
    steps: int


class AgentRuntime(ABC):
    """Base class for step-driven agents.

    Subclasses implement :meth:`step`, returning the final answer or
    ``None`` to keep looping. One instance serves one conversation and
    runs at most one request at a time; a second concurrent ``run`` is
    turned away with a busy message instead of sharing the history.
    """

    def __init__(
        self,
        definition: AgentDefinition,
        provider: ChatProvider,
        *,
        max_steps: int | None = None,
        timeout_ms: int | None = None,
        stream_timeout_ms: int = DEFAULT_STREAM_TIMEOUT_MS,
        wire: Wire | None = None,
    ) -> None:
        self.agent_id = str(uuid.uuid4())
        self.definition = definition
        self.name = definition.name
        self.system_prompt = definition.system_prompt
        self.next_step_prompt = definition.next_step_prompt
        self.max_steps = max_steps if max_steps is not None else definition.max_steps
        self.timeout_ms = timeout_ms if timeout_ms is not None else definition.timeout_ms
        self.stream_timeout_ms = stream_timeout_ms
        self.provider = provider
        self.wire = wire

        self._state = AgentState.IDLE
        self.last_state = AgentState.IDLE
        self._context: RunContext | None = None
        self._busy = False
        self._entry_lock = threading.Lock()
        self._background: set[asyncio.Task[None]] = set()

        logger.info("Agent %s initialized, id %s", self.name, self.agent_id)

    # --- State ---

    @property
    def state(self) -> AgentState:
        return self._state

    def _set_state(self, state: AgentState) -> None:
        if state is not self._state:
            logger.debug("Agent %s: %s -> %s", self.name, self._state, state)
        self._state = state

    @property
    def busy(self) -> bool:
        """True while a run holds this agent."""
        return self._busy or self._state.is_active

    @property
    def context(self) -> RunContext:
        """The context of the run in progress."""
        if self._context is None:
            raise RuntimeError(f"Agent {self.name} has no run in progress")
        return self._context

    @property
    def current_step(self) -> int:
        return self._context.current_step if self._context else 0

    @property
    def conversation_id(self) -> str | None:
        return self._context.conversation_id if self._context else None

    @property
    def message_history(self) -> list[Message]:
        """Copy of the current run's history, empty between runs."""
        return list(self._context.history) if self._context else []

    def add_user_message(self, text: str) -> None:
        self.context.history.append(Message.user(text))
        logger.debug("Added user message: %s", text)

    def add_assistant_message(self, text: str) -> None:
        self.context.history.append(Message.assistant(text))
        logger.debug("Added assistant message: %s", text)

    # --- Hooks ---

    @abstractmethod
    async def step(self) -> str | None:
        """Run one reason/act step. Return the answer, or None to continue."""
        ...

    def initialize(self) -> None:
        """Called after the run context is created, before the first step."""
        logger.debug("Agent %s: initialize", self.name)

    def cleanup(self) -> None:
        """Called on every exit path of a run."""
        if self._context is not None:
            self._context.history.clear()
            self._context.current_step = 0
        logger.debug("Agent %s: cleanup done", self.name)

    # --- Running ---

    async def run(self, user_input: str, conversation_id: str | None = None) -> str:
        """Process one user message. Never raises."""
        result = await self.run_detailed(user_input, conversation_id)
        return result.text

    async def run_detailed(
        self, user_input: str, conversation_id: str | None = None
    ) -> RunResult:
        """Like :meth:`run`, but also report how the run ended."""
        if not self._try_enter():
            logger.warning("Agent %s is busy, rejecting new input", self.name)
            return RunResult(ERROR_AGENT_BUSY, RunOutcome.REJECTED, self._state, 0)

        ctx = RunContext(conversation_id=conversation_id)
        self._context = ctx
        logger.info("Agent %s starting run, input: %s", self.name, user_input)
        self._emit(EventType.TURN_BEGIN, user_input=user_input, conversation_id=conversation_id)

        try:
            self.initialize()
            result = await self._loop(ctx, user_input)
        except Exception as e:
            logger.error("Agent %s: run failed: %s", self.name, e, exc_info=True)
            self._set_state(AgentState.ERROR)
            result = RunResult(ERROR_GENERAL, RunOutcome.ERROR, AgentState.ERROR, ctx.current_step)
        finally:
            self.last_state = self._state
            self.cleanup()
            self._context = None
            self._set_state(AgentState.IDLE)
            self._leave()

        if result.outcome is RunOutcome.COMPLETE:
            self._emit(EventType.TEXT, text=result.text)
        else:
            self._emit(EventType.ERROR, error=result.text)
        self._emit(EventType.TURN_END, outcome=result.outcome.value, steps=result.steps)
        return result

    async def _loop(self, ctx: RunContext, user_input: str) -> RunResult:
        self.add_user_message(user_input)

        while ctx.current_step < self.max_steps and not self._state.is_terminal:
            if ctx.elapsed_ms() > self.timeout_ms:
                self._set_state(AgentState.TIMEOUT)
                logger.warning(
                    "Agent %s timed out after %dms at step %d",
                    self.name,
                    ctx.elapsed_ms(),
                    ctx.current_step,
                )
                return self._result(ERROR_TIMEOUT, RunOutcome.TIMEOUT, ctx)

            ctx.current_step += 1
            logger.debug("Agent %s: step %d/%d", self.name, ctx.current_step, self.max_steps)
            self._emit(EventType.STEP_BEGIN, step=ctx.current_step, max_steps=self.max_steps)

            try:
                answer = await self.step()
            except Exception as e:
                logger.error(
                    "Agent %s: step %d failed: %s",
                    self.name,
                    ctx.current_step,
                    e,
                    exc_info=True,
                )
                self._set_state(AgentState.ERROR)
                return self._result(ERROR_GENERAL, RunOutcome.ERROR, ctx)

            if answer is not None:
                self._set_state(AgentState.COMPLETED)
                logger.info(
                    "Agent %s completed after %d steps", self.name, ctx.current_step
                )
                return self._result(answer, RunOutcome.COMPLETE, ctx)

        if self._state.is_terminal:
            # A step ended the run itself without producing text.
            outcome = RunOutcome.COMPLETE if self._state is AgentState.COMPLETED else RunOutcome.ERROR
            return self._result(SUCCESS_TASK_COMPLETED, outcome, ctx)

        self._set_state(AgentState.ERROR)
        logger.warning("Agent %s hit max steps (%d)", self.name, self.max_steps)
        return self._result(ERROR_MAX_STEPS_EXCEEDED, RunOutcome.MAX_STEPS, ctx)

    def _result(self, text: str, outcome: RunOutcome, ctx: RunContext) -> RunResult:
        return RunResult(text=text, outcome=outcome, state=self._state, steps=ctx.current_step)

    def _try_enter(self) -> bool:
        with self._entry_lock:
            if self._busy or self._state.is_active:
                return False
            self._busy = True
            self._set_state(AgentState.RUNNING)
            return True

    def _leave(self) -> None:
        with self._entry_lock:
            self._busy = False

    def run_sync(self, user_input: str, conversation_id: str | None = None) -> str:
        """Blocking variant of :meth:`run` for callers without an event loop."""
        return asyncio.run(self.run(user_input, conversation_id))

    def run_stream(self, user_input: str, conversation_id: str | None = None) -> TextStream:
        """Start a run in the background and return a stream of its answer.

        Must be called from inside a running event loop. The stream yields
        the final text once, then ends.
        """
        channel = Wire()
        stream = TextStream(channel, self.stream_timeout_ms)
        task = asyncio.create_task(self._stream_worker(channel, user_input, conversation_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return stream

    async def _stream_worker(
        self, channel: Wire, user_input: str, conversation_id: str | None
    ) -> None:
        try:
            text = await self.run(user_input, conversation_id)
        except Exception as e:
            logger.error("Agent %s: streaming run failed: %s", self.name, e, exc_info=True)
            text = ERROR_GENERAL
        try:
            channel.send_text(text)
        finally:
            channel.close()

    # --- Control ---

    def reset(self) -> None:
        """Force the agent back to IDLE and drop any run state."""
        if self._busy:
            logger.warning("Agent %s reset while a run is in progress", self.name)
        self._context = None
        self._set_state(AgentState.IDLE)
        self.last_state = AgentState.IDLE
        logger.info("Agent %s reset", self.name)
        self._emit(EventType.STATUS, message=f"智能体 {self.name} 已重置")

    def status_summary(self) -> str:
        return "智能体[%s] - 状态: %s, 步骤: %d/%d, ID: %s" % (
            self.name,
            self._state.description,
            self.current_step,
            self.max_steps,
            self.agent_id,
        )

    def _emit(self, event_type: EventType, **data: Any) -> None:
        if self.wire is not None:
            self.wire.send(WireEvent(type=event_type, data=data))
