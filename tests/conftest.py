"""Shared test doubles: a scripted chat provider and small tools."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Sequence
from typing import ClassVar, Union

import pytest

from skyagent.llm.message import Message
from skyagent.llm.provider import ProviderConfig
from skyagent.tool.base import BaseTool, ToolResult
from skyagent.tool.registry import ToolRegistry

THINK_MARKER = "请分析用户的需求并思考"
DECIDE_MARKER = "请给出你的行动决策"
FINAL_MARKER = "基于工具调用结果"


def phase_of(prompt: str) -> str:
    """Which prompt the agent sent last: think, decide, final or direct."""
    if THINK_MARKER in prompt:
        return "think"
    if DECIDE_MARKER in prompt:
        return "decide"
    if FINAL_MARKER in prompt:
        return "final"
    return "direct"


Reply = Union[str, Exception, Callable[[str], str]]


class ScriptedProvider:
    """ChatProvider double that answers according to the prompt phase.

    Each phase maps to a fixed string, an exception to raise, or a
    callable receiving the prompt text.
    """

    def __init__(
        self,
        think: Reply = "可以直接回答",
        decide: Reply = "",
        final: Reply = "",
        direct: Reply = "好的",
        delay: float = 0.0,
    ) -> None:
        self.replies = {"think": think, "decide": decide, "final": final, "direct": direct}
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.histories: list[list[Message]] = []
        self._config = ProviderConfig(model="test/scripted")

    @property
    def config(self) -> ProviderConfig:
        return self._config

    async def complete(self, system: str, messages: Sequence[Message]) -> str:
        prompt = messages[-1].text if messages else ""
        phase = phase_of(prompt)
        self.calls.append((phase, prompt))
        self.histories.append(list(messages))
        if self.delay:
            await asyncio.sleep(self.delay)

        reply = self.replies[phase]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply

    async def stream(self, system: str, messages: Sequence[Message]) -> AsyncIterator[str]:
        yield await self.complete(system, messages)

    def phases(self) -> list[str]:
        return [phase for phase, _ in self.calls]


class StaticTool(BaseTool):
    """Returns a fixed success payload; accepts any params."""

    name: ClassVar[str] = "storeStatus"
    description: ClassVar[str] = "查询店铺营业状态和基本信息"
    type: ClassVar[str] = "store"

    def __init__(self, data: str = "营业中") -> None:
        self.data = data
        self.params: list[str] = []

    def validate(self, params: str | None) -> bool:
        return True

    def execute(self, params: str) -> ToolResult:
        self.params.append(params)
        return ToolResult.ok(self.name, self.data)


class EchoTool(BaseTool):
    name: ClassVar[str] = "echo"
    description: ClassVar[str] = "Repeat the input"
    parameter_help: ClassVar[str] = "any non-blank text"

    def execute(self, params: str) -> ToolResult:
        return ToolResult.ok(self.name, params)


class BrokenTool(BaseTool):
    name: ClassVar[str] = "broken"
    description: ClassVar[str] = "Always raises"

    def validate(self, params: str | None) -> bool:
        return True

    def execute(self, params: str) -> ToolResult:
        raise RuntimeError("backend down")


class RefusingTool(BaseTool):
    """Executes fine but reports a failure result."""

    name: ClassVar[str] = "refusing"
    description: ClassVar[str] = "Always fails"

    def validate(self, params: str | None) -> bool:
        return True

    def execute(self, params: str) -> ToolResult:
        return ToolResult.fail(self.name, "暂无数据")


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def store_tool() -> StaticTool:
    return StaticTool()


@pytest.fixture
def store_registry(registry: ToolRegistry, store_tool: StaticTool) -> ToolRegistry:
    registry.register(store_tool)
    return registry
