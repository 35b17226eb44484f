"""Base tool class and the structured result every tool returns."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import ClassVar

logger = logging.getLogger(__name__)


def elapsed_ms(start: float) -> int:
    """Milliseconds since a ``time.monotonic()`` reading."""
    return int((time.monotonic() - start) * 1000)


@dataclass(frozen=True)
class ToolResult:
    """Result of one tool invocation.

    ``data`` is set on success and ``error`` on failure, never both.
    The only field touched after construction is ``execution_time_ms``,
    and only through :meth:`with_execution_time`, which returns a copy.
    """

    success: bool
    tool_name: str
    data: str | None = None
    error: str | None = None
    execution_time_ms: int = 0

    @classmethod
    def ok(cls, tool_name: str, data: str, execution_time_ms: int = 0) -> ToolResult:
        return cls(
            success=True,
            tool_name=tool_name,
            data=data,
            execution_time_ms=execution_time_ms,
        )

    @classmethod
    def fail(cls, tool_name: str, error: str, execution_time_ms: int = 0) -> ToolResult:
        return cls(
            success=False,
            tool_name=tool_name,
            error=error,
            execution_time_ms=execution_time_ms,
        )

    def with_execution_time(self, execution_time_ms: int) -> ToolResult:
        """Return a copy stamped with the dispatch-measured execution time."""
        return replace(self, execution_time_ms=execution_time_ms)

    @property
    def formatted(self) -> str:
        """One-line rendering used in conversation history and prompts."""
        if self.success:
            return f"[{self.tool_name}] 执行成功: {self.data}"
        return f"[{self.tool_name}] 执行失败: {self.error}"

    @property
    def has_data(self) -> bool:
        return bool(self.data and self.data.strip())

    @property
    def has_error(self) -> bool:
        return bool(self.error and self.error.strip())


class BaseTool(ABC):
    """Base class for all tools.

    Tools are stateless with respect to conversation data: everything a call
    needs arrives in the raw parameter string.

    Usage:
        class EchoTool(BaseTool):
            name = "echo"
            description = "Repeat the input"
            parameter_help = "any text"

            def execute(self, params: str) -> ToolResult:
                return ToolResult.ok(self.name, params)
    """

    name: ClassVar[str]
    description: ClassVar[str]
    parameter_help: ClassVar[str] = ""
    type: ClassVar[str] = "general"

    def validate(self, params: str | None) -> bool:
        """Check the raw parameter text before execution. Default: non-blank."""
        return params is not None and bool(params.strip())

    @abstractmethod
    def execute(self, params: str) -> ToolResult:
        """Run the tool with already-validated parameters."""
        ...

    @property
    def full_description(self) -> str:
        return f"{self.name} - {self.description}\n参数说明: {self.parameter_help}"
