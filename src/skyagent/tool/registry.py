"""Tool registry with per-tool call statistics."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable

from skyagent.tool.base import BaseTool, ToolResult, elapsed_ms

logger = logging.getLogger(__name__)

LOCK_STRIPES = 16


def normalize_name(name: str | None) -> str:
    """Registry keys are trimmed and case-insensitive."""
    return (name or "").strip().lower()


class ToolRegistry:
    """Registry of available tools, shared by every agent in the process.

    Tools are keyed by their normalized name; registering a name twice
    replaces the previous tool and resets its call counter.

    Writes to a key, and the lookup plus counter increment in ``dispatch``,
    hold the lock stripe that key hashes to, so callers on different threads
    never see a torn entry or lose an increment. Dispatches of different tools
    mostly land on different stripes and do not contend.
    """

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._call_stats: dict[str, int] = {}
        self._stripes = [threading.Lock() for _ in range(LOCK_STRIPES)]

    def _stripe(self, key: str) -> threading.Lock:
        return self._stripes[hash(key) % LOCK_STRIPES]

    # --- Registration ---

    def register(self, tool: BaseTool | None) -> bool:
        """Register a tool instance. Returns False for a missing or unnamed tool."""
        key = normalize_name(getattr(tool, "name", None)) if tool is not None else ""
        if not key:
            logger.warning("Refusing to register an invalid tool: %r", tool)
            return False

        with self._stripe(key):
            if key in self._tools:
                logger.warning("Tool %s already registered, overwriting", key)
            self._tools[key] = tool  # type: ignore[assignment]
            self._call_stats[key] = 0

        logger.info("Registered tool %s: %s", key, getattr(tool, "description", ""))
        return True

    def register_batch(self, tools: Iterable[BaseTool | None] | None) -> int:
        """Register several tools, skipping invalid ones. Returns the success count."""
        if not tools:
            return 0
        count = sum(1 for tool in tools if self.register(tool))
        logger.info("Batch registration finished: %d tools registered", count)
        return count

    def unregister(self, name: str | None) -> bool:
        """Remove a tool and its counter. True only if the tool existed."""
        key = normalize_name(name)
        if not key:
            return False

        with self._stripe(key):
            removed = self._tools.pop(key, None)
            self._call_stats.pop(key, None)

        if removed is None:
            logger.warning("Tried to unregister unknown tool %s", key)
            return False
        logger.info("Unregistered tool %s", key)
        return True

    # --- Lookup ---

    def get(self, name: str | None) -> BaseTool | None:
        key = normalize_name(name)
        if not key:
            return None
        return self._tools.get(key)

    def has(self, name: str | None) -> bool:
        return self.get(name) is not None

    def list_tools(self) -> list[BaseTool]:
        return list(self._tools.values())

    def list_names(self) -> list[str]:
        """Normalized names in registration order."""
        return list(self._tools.keys())

    def tool_count(self) -> int:
        return len(self._tools)

    def tools_by_type(self, tool_type: str | None) -> list[BaseTool]:
        if not tool_type or not tool_type.strip():
            return []
        wanted = tool_type.strip().lower()
        return [t for t in self.list_tools() if t.type.lower() == wanted]

    def describe(self) -> str:
        """Tool catalog as prompt text."""
        tools = self.list_tools()
        if not tools:
            return "暂无可用工具"
        lines = ["可用工具列表："]
        lines.extend(f"- {t.name}: {t.description}" for t in tools)
        return "\n".join(lines) + "\n"

    # --- Dispatch ---

    def dispatch(self, name: str | None, params: str | None) -> ToolResult:
        """Validate and invoke a tool by name.

        Never raises: a missing tool, rejected parameters, or an exception
        inside the tool all come back as a failure result. The counter of a
        found tool goes up once per call, whatever the validation outcome.
        """
        start = time.monotonic()
        key = normalize_name(name)
        params = params if params is not None else ""

        tool = self._lookup_and_count(key)
        if tool is None:
            logger.warning("Dispatch to unknown tool: %s", name)
            return ToolResult.fail(key or str(name), f"工具不存在：{name}").with_execution_time(
                elapsed_ms(start)
            )

        try:
            valid = tool.validate(params)
        except Exception as e:
            logger.error("Tool %s validation raised: %s", key, e, exc_info=True)
            valid = False
        if not valid:
            logger.warning("Tool %s rejected parameters: %r", key, params)
            return ToolResult.fail(tool.name, f"参数验证失败：{tool.name}").with_execution_time(
                elapsed_ms(start)
            )

        logger.info("Calling tool %s with params: %s", key, params)
        try:
            result = tool.execute(params)
        except Exception as e:
            elapsed = elapsed_ms(start)
            logger.error("Tool %s raised after %dms: %s", key, elapsed, e, exc_info=True)
            return ToolResult.fail(tool.name, f"工具执行异常：{e}", elapsed)

        elapsed = elapsed_ms(start)
        if result.success:
            logger.info("Tool %s succeeded in %dms", key, elapsed)
        else:
            logger.warning("Tool %s failed in %dms: %s", key, elapsed, result.error)
        return result.with_execution_time(elapsed)

    def _lookup_and_count(self, key: str) -> BaseTool | None:
        # Holds the stripe register takes: the tool counted is the tool returned.
        if not key:
            return None
        with self._stripe(key):
            tool = self._tools.get(key)
            if tool is not None:
                self._call_stats[key] += 1
            return tool

    # --- Statistics ---

    def call_stats(self) -> dict[str, int]:
        """Snapshot copy of the per-tool invocation counters."""
        return dict(self._call_stats)

    def reset_call_stats(self) -> None:
        """Zero every counter, keeping registered tools."""
        for key in list(self._call_stats):
            with self._stripe(key):
                if key in self._call_stats:
                    self._call_stats[key] = 0
        logger.info("Tool call statistics reset")

    def clear(self) -> None:
        """Remove every tool and counter."""
        for lock in self._stripes:
            lock.acquire()
        try:
            count = len(self._tools)
            self._tools.clear()
            self._call_stats.clear()
        finally:
            for lock in reversed(self._stripes):
                lock.release()
        logger.info("Cleared %d tools", count)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return self.has(name)
