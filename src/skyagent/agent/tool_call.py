"""ReAct agent that acts by calling registered tools."""

from __future__ import annotations

import asyncio
import logging

from skyagent.agent.parsing import ParsedToolCall, ToolCallParser, TwoStageToolCallParser
from skyagent.agent.prompts import (
    ACTION_PROMPT,
    CATALOG_HEADER,
    ERROR_TOOL_CALL_FAILED,
    FALLBACK_TOOL_FAILURE,
    FALLBACK_TOOL_SUCCESS,
    FINAL_RESPONSE_PROMPT,
    LAST_RESULT_LINE,
    TOOL_RESULT_PREFIX,
)
from skyagent.agent.react import ReActAgent
from skyagent.llm.message import Message
from skyagent.llm.provider import ModelCallError
from skyagent.tool.base import BaseTool, ToolResult
from skyagent.tool.registry import ToolRegistry, normalize_name

logger = logging.getLogger(__name__)


class ToolCallAgent(ReActAgent):
    """ReAct agent whose actions are calls into a :class:`ToolRegistry`.

    The registry is shared with every other agent in the process. If the
    agent definition lists tool names, only those tools are offered to
    the model and callable; otherwise every registered tool is.
    """

    def __init__(
        self,
        *args,
        registry: ToolRegistry,
        parser: ToolCallParser | None = None,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.registry = registry
        self.parser = parser or TwoStageToolCallParser()
        self.tool_calls_total = 0
        logger.info(
            "Tool-call agent %s ready with %d tools", self.name, len(self.available_tools())
        )

    # --- Tools ---

    def available_tools(self) -> list[BaseTool]:
        allowed = {normalize_name(n) for n in self.definition.config.tools}
        tools = self.registry.list_tools()
        if not allowed:
            return tools
        return [t for t in tools if normalize_name(t.name) in allowed]

    def tool_names(self) -> list[str]:
        return [t.name for t in self.available_tools()]

    def tool_catalog(self) -> str:
        tools = self.available_tools()
        if not tools:
            return "暂无可用工具"
        return "\n".join(f"- {t.name}: {t.description}" for t in tools)

    def tool_call_stats(self) -> str:
        return "总工具调用次数：%d，工具详细统计：%s" % (
            self.tool_calls_total,
            self.registry.call_stats(),
        )

    # --- Think ---

    async def think(self) -> bool:
        thinking = await self.send_thinking_prompt(self.thinking_context())
        self.log_thinking(thinking)
        needed = self.needs_action(thinking)
        logger.debug("Thinking result: %s", "tool call" if needed else "direct reply")
        return needed

    def thinking_context(self) -> str:
        parts = [self.history_text(), "\n", CATALOG_HEADER, "\n"]
        parts.extend(f"- {t.name}: {t.description}\n" for t in self.available_tools())

        last = self.context.last_tool_result
        if last is not None:
            parts.append(LAST_RESULT_LINE.format(result=last.formatted))
        return "".join(parts)

    # --- Act ---

    async def act(self) -> str | None:
        decision = await self.generate_action_decision()
        self.log_action(decision)

        call = self.parser.parse(decision, self.tool_names())
        if call is None:
            return await self.generate_direct_response()

        result = await self.call_tool(call)

        ctx = self.context
        ctx.last_tool_result = result
        ctx.tool_call_count += 1
        self.tool_calls_total += 1
        self.add_assistant_message(TOOL_RESULT_PREFIX + result.formatted)

        if self.current_step >= self.max_steps or not result.success:
            return await self.generate_final_response(result)
        return None

    async def generate_action_decision(self) -> str:
        """Ask the model which tool to call, if any. Returns '' on failure."""
        prompt = ACTION_PROMPT.format(catalog=self.tool_catalog())
        messages = [*self.message_history, Message.user(prompt)]
        try:
            return await self.provider.complete(self.system_prompt, messages)
        except ModelCallError as e:
            logger.error("Action decision failed: %s", e)
            return ""

    async def call_tool(self, call: ParsedToolCall) -> ToolResult:
        allowed = self.definition.config.tools
        if allowed and call.name not in {normalize_name(n) for n in allowed}:
            logger.warning("Agent %s may not call tool %s", self.name, call.name)
            return ToolResult.fail(call.name, f"工具不存在：{call.name}")

        if self.wire is not None:
            self.wire.send_tool_call(call.name, call.params)
        # Tool bodies are synchronous.
        result = await asyncio.to_thread(self.registry.dispatch, call.name, call.params)
        if self.wire is not None:
            self.wire.send_tool_result(
                result.tool_name,
                result.success,
                result.data if result.success else result.error or "",
                result.execution_time_ms,
            )
        return result

    async def generate_final_response(self, result: ToolResult) -> str:
        """Turn a tool result into the answer for the user.

        Falls back to a templated sentence when the model is unavailable.
        """
        prompt = FINAL_RESPONSE_PROMPT.format(result=result.formatted)
        messages = [*self.message_history, Message.user(prompt)]
        try:
            content = await self.provider.complete(self.system_prompt, messages)
        except ModelCallError as e:
            logger.error("Final response failed, using fallback: %s", e)
            content = ""

        if content.strip():
            self.add_assistant_message(content)
            return content

        if result.success:
            return FALLBACK_TOOL_SUCCESS.format(data=result.data)
        if result.has_error:
            return FALLBACK_TOOL_FAILURE.format(error=result.error)
        return ERROR_TOOL_CALL_FAILED
