"""Extract a tool invocation from model output."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from skyagent.tool.registry import normalize_name

logger = logging.getLogger(__name__)

# ASCII word characters only; a tool name is never CJK text.
TOOL_CALL_PATTERN = re.compile(r"(\w+)\s*\(([^)]*)\)", re.ASCII | re.IGNORECASE)


@dataclass(frozen=True)
class ParsedToolCall:
    name: str  # normalized
    params: str


@runtime_checkable
class ToolCallParser(Protocol):
    def parse(self, text: str | None, tool_names: Sequence[str]) -> ParsedToolCall | None: ...


class TwoStageToolCallParser:
    """First match wins, in two fixed stages.

    1. The first ``name(args)`` in the text. Nested parentheses are not
       supported: args end at the first ``)``.
    2. Otherwise, line by line, the first known tool name (in the order
       given) that appears in the lower-cased line, called with no params.

    Returns ``None`` when neither stage finds anything.
    """

    def parse(self, text: str | None, tool_names: Sequence[str]) -> ParsedToolCall | None:
        if text is None or not text.strip():
            return None

        call = self._parse_call_syntax(text)
        if call is not None:
            return call
        return self._parse_mention(text, tool_names)

    def _parse_call_syntax(self, text: str) -> ParsedToolCall | None:
        match = TOOL_CALL_PATTERN.search(text)
        if match is None:
            return None
        call = ParsedToolCall(name=normalize_name(match.group(1)), params=match.group(2).strip())
        logger.info("Parsed tool call %s(%s)", call.name, call.params)
        return call

    def _parse_mention(self, text: str, tool_names: Sequence[str]) -> ParsedToolCall | None:
        candidates = [normalize_name(n) for n in tool_names if n and n.strip()]
        for line in text.splitlines():
            line = line.strip().lower()
            for name in candidates:
                if name in line:
                    logger.info("Matched tool name %s in model output", name)
                    return ParsedToolCall(name=name, params="")
        return None
