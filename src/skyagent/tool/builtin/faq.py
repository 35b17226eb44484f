"""FAQ lookup tool."""

from __future__ import annotations

import logging
import threading
import time
from typing import ClassVar, Protocol

from pydantic import BaseModel, Field

from skyagent.tool.base import BaseTool, ToolResult, elapsed_ms

logger = logging.getLogger(__name__)

MAX_RESULTS = 5
MAX_RELATED = 3
DEFAULT_CATEGORIES = ("订单问题", "支付问题", "配送问题", "退款问题", "账户问题")
HOTLINE = "400-8888-888"


class FAQItem(BaseModel):
    id: int
    question: str
    answer: str
    category: str = ""
    keywords: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    priority: int = 0


class FAQService(Protocol):
    def search(self, keyword: str) -> list[FAQItem]: ...

    def fuzzy_search(self, keyword: str) -> list[FAQItem]: ...

    def related_questions(self, keyword: str) -> list[FAQItem]: ...

    def categories(self) -> list[str]: ...


class FAQTool(BaseTool):
    """Answer common questions from the FAQ knowledge base.

    Exact search runs first, then fuzzy search. Matched items bump a
    per-question hit counter exposed through :meth:`question_stats`.
    """

    name: ClassVar[str] = "faq"
    description: ClassVar[str] = "查询和解答常见问题"
    parameter_help: ClassVar[str] = (
        "问题关键词或问题内容（必须）- 可以是具体问题、关键词或问题分类，"
        "如：'退款'、'配送时间'、'支付问题'"
    )
    type: ClassVar[str] = "faq"

    def __init__(self, service: FAQService) -> None:
        self._service = service
        self._question_stats: dict[str, int] = {}
        self._stats_lock = threading.Lock()

    def execute(self, params: str) -> ToolResult:
        start = time.monotonic()
        keyword = params.strip()
        logger.info("Searching FAQ for %r", keyword)

        try:
            items = self._service.search(keyword) or self._service.fuzzy_search(keyword)
            if items:
                text = self._format_results(items, keyword)
                self._record_hits(items)
            else:
                text = self._no_result(keyword)
        except Exception as e:
            logger.error("FAQ search failed for %r: %s", keyword, e, exc_info=True)
            return ToolResult.fail(self.name, "查询常见问题时发生错误，请稍后再试", elapsed_ms(start))

        logger.info("FAQ search for %r found %d items", keyword, len(items))
        return ToolResult.ok(self.name, text, elapsed_ms(start))

    def question_stats(self) -> dict[str, int]:
        with self._stats_lock:
            return dict(self._question_stats)

    def _record_hits(self, items: list[FAQItem]) -> None:
        with self._stats_lock:
            for item in items:
                key = str(item.id)
                self._question_stats[key] = self._question_stats.get(key, 0) + 1

    def _format_results(self, items: list[FAQItem], keyword: str) -> str:
        lines = [f'🔍 关于"{keyword}"的常见问题解答：', ""]

        shown = items[:MAX_RESULTS]
        for i, item in enumerate(shown, start=1):
            lines.append(f"**Q{i}: {item.question}**")
            lines.append(f"A{i}: {item.answer}")
            if item.actions:
                lines.append("🔧 相关操作：" + " ".join(item.actions))
            lines.append("")

        if len(items) > len(shown):
            lines.append(f"📝 还有 {len(items) - len(shown)} 条相关问题，请尝试更具体的关键词搜索。")
            lines.append("")

        related = self._service.related_questions(keyword)
        if related:
            lines.append("💡 您可能还想了解：")
            lines.extend(f"- {r.question}" for r in related[:MAX_RELATED])
            lines.append("")

        lines.extend(
            [
                "❓ 如果以上回答没有解决您的问题，您可以：",
                "- 尝试使用其他关键词重新搜索",
                f"- 联系人工客服：{HOTLINE}",
                "- 在APP内提交意见反馈",
            ]
        )
        return "\n".join(lines)

    def _no_result(self, keyword: str) -> str:
        categories = self._service.categories() or list(DEFAULT_CATEGORIES)
        lines = [f'❌ 很抱歉，没有找到关于"{keyword}"的相关问题。', "", "📚 您可以浏览以下常见问题分类："]
        lines.extend(f"- {c}" for c in categories)
        lines.extend(
            [
                "",
                "🔍 搜索建议：",
                "- 尝试使用更简单的关键词",
                "- 检查拼写是否正确",
                "- 尝试使用问题的核心词汇",
                "",
                "🤝 需要人工帮助？",
                f"- 客服热线：{HOTLINE}",
                "- 服务时间：9:00-21:00",
                "- 或者直接告诉我您遇到的具体问题，我来为您解答！",
            ]
        )
        return "\n".join(lines)
