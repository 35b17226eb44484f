"""ReAct step: think, then either answer directly or act."""

from __future__ import annotations

import logging
from abc import abstractmethod

from skyagent.agent.classifier import ActionClassifier, KeywordActionClassifier
from skyagent.agent.prompts import (
    ACTION_PREFIX,
    EMPTY_HISTORY,
    ERROR_EMPTY_REPLY,
    ERROR_GENERAL,
    HISTORY_HEADER,
    ROLE_LABELS,
    THINKING_PREFIX,
    THINKING_PROMPT,
)
from skyagent.agent.runtime import AgentRuntime
from skyagent.agent.state import AgentState
from skyagent.llm.message import Message
from skyagent.llm.provider import ModelCallError
from skyagent.session.wire import EventType

logger = logging.getLogger(__name__)


class StepError(Exception):
    """A think or act phase raised; the run cannot continue."""

    def __init__(self, agent_name: str, step: int, cause: Exception) -> None:
        self.agent_name = agent_name
        self.step = step
        super().__init__(f"{agent_name}: step {step} failed: {cause}")


class ReActAgent(AgentRuntime):
    """One step = think, then answer directly or act.

    ``think`` returns whether a tool is needed. ``act`` returns the final
    answer or ``None`` to go round again. Model failures inside the
    helpers here degrade to fixed replies; anything else raised from
    ``think`` or ``act`` becomes a :class:`StepError` and ends the run.
    """

    def __init__(self, *args, classifier: ActionClassifier | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.classifier = classifier or KeywordActionClassifier()

    @abstractmethod
    async def think(self) -> bool: ...

    @abstractmethod
    async def act(self) -> str | None: ...

    async def step(self) -> str | None:
        step_no = self.current_step
        try:
            self._set_state(AgentState.THINKING)
            if not await self.think():
                logger.debug("Step %d: no action needed, answering directly", step_no)
                return await self.generate_direct_response()

            self._set_state(AgentState.ACTING)
            result = await self.act()
            if result is not None and result.strip():
                return result

            logger.debug("Step %d: action produced no answer, continuing", step_no)
            return None
        except Exception as e:
            self._set_state(AgentState.ERROR)
            raise StepError(self.name, step_no, e) from e

    # --- Model helpers ---

    async def generate_direct_response(self) -> str:
        """Answer from the conversation so far, without tools."""
        try:
            content = await self.provider.complete(self.system_prompt, self.message_history)
        except ModelCallError as e:
            logger.error("Direct response failed: %s", e)
            return ERROR_GENERAL

        if not content.strip():
            logger.warning("Model returned an empty reply")
            return ERROR_EMPTY_REPLY

        self.add_assistant_message(content)
        return content

    async def send_thinking_prompt(self, context: str) -> str:
        """Ask the model to reason about the next move. Returns '' on failure."""
        prompt = THINKING_PROMPT.format(next_step_prompt=self.next_step_prompt, context=context)
        messages = [*self.message_history, Message.user(prompt)]
        try:
            thinking = await self.provider.complete(self.system_prompt, messages)
        except ModelCallError as e:
            logger.error("Thinking prompt failed: %s", e)
            return ""
        self._emit(EventType.THINKING, text=thinking)
        return thinking

    def needs_action(self, thinking: str) -> bool:
        return self.classifier.needs_action(thinking)

    def history_text(self) -> str:
        history = self.message_history
        if not history:
            return EMPTY_HISTORY
        lines = [HISTORY_HEADER]
        lines.extend(f"{ROLE_LABELS.get(m.role, m.role)}: {m.text}" for m in history)
        return "\n".join(lines) + "\n"

    def log_thinking(self, thinking: str) -> None:
        logger.info("%s[%s] %s", THINKING_PREFIX, self.name, thinking)

    def log_action(self, action: str) -> None:
        logger.info("%s[%s] %s", ACTION_PREFIX, self.name, action)
