"""Decide from the model's free-text reasoning whether a tool call is needed."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

ACTION_KEYWORDS = (
    "调用工具",
    "查询",
    "搜索",
    "获取",
    "工具",
    "订单",
    "菜品",
    "营业",
    "状态",
    "信息",
)

DIRECT_KEYWORDS = (
    "直接回答",
    "不需要",
    "可以回答",
    "已知",
    "直接回复",
)


@runtime_checkable
class ActionClassifier(Protocol):
    """Maps reasoning text to "needs a tool call"."""

    def needs_action(self, thinking: str) -> bool: ...


class KeywordActionClassifier:
    """Keyword scan over the lower-cased reasoning text.

    Action keywords are checked before direct-reply keywords, so text that
    contains both ("不需要再查询") counts as needing action. Text with
    neither means no action.
    """

    def __init__(
        self,
        action_keywords: Sequence[str] = ACTION_KEYWORDS,
        direct_keywords: Sequence[str] = DIRECT_KEYWORDS,
    ) -> None:
        self.action_keywords = tuple(k.lower() for k in action_keywords)
        self.direct_keywords = tuple(k.lower() for k in direct_keywords)

    def needs_action(self, thinking: str) -> bool:
        if not thinking or not thinking.strip():
            return False

        text = thinking.lower()
        for keyword in self.action_keywords:
            if keyword in text:
                logger.debug("Reasoning contains action keyword %r", keyword)
                return True

        for keyword in self.direct_keywords:
            if keyword in text:
                logger.debug("Reasoning contains direct-reply keyword %r", keyword)
                return False

        return False
