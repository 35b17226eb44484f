"""Tool system: base class, result type and registry."""

from skyagent.tool.base import BaseTool, ToolResult
from skyagent.tool.registry import ToolRegistry

__all__ = [
    "BaseTool",
    "ToolResult",
    "ToolRegistry",
]
