"""The food-delivery customer-service agent."""

from __future__ import annotations

import logging
import re

from skyagent.agent.agent import AgentDefinition
from skyagent.agent.tool_call import ToolCallAgent

logger = logging.getLogger(__name__)

HOTLINE = "400-8888-888"
EMPTY_MESSAGE_TEXT = "用户发送了空消息"
POLITE_WORDS = ("请", "您好", "谢谢", "麻烦", "请问", "劳烦")
SHORT_INPUT_CHARS = 10

GREETING_PATTERN = re.compile(r".*[你您]好.*|.*hi.*|.*hello.*")

GREETING_REPLY = "您好！欢迎来到苍穹外卖，我是您的专属AI客服小苍。请问有什么可以帮助您的吗？"
HOURS_REPLY = "我们的营业时间是每天上午10:00至晚上22:00。如需查询具体门店信息，我可以帮您查询。"
CONTACT_REPLY = f"我们的客服热线是：{HOTLINE}，服务时间：9:00-21:00。我是AI客服小苍，也可以为您提供帮助哦！"
DELIVERY_RANGE_REPLY = "我们的配送覆盖市区大部分地区，具体可配送范围请提供您的详细地址，我来帮您核实。"
DELIVERY_FEE_REPLY = "配送费根据距离计算，一般在2-8元之间。满39元免配送费哦！"


def preprocess_input(text: str | None) -> str:
    """Normalize raw user text before it reaches the model.

    Blank input becomes a placeholder sentence; short input without any
    polite word is turned into a question with a "请问" prefix.
    """
    if text is None or not text.strip():
        return EMPTY_MESSAGE_TEXT

    processed = text.strip()
    if len(processed) < SHORT_INPUT_CHARS and not any(w in processed for w in POLITE_WORDS):
        processed = "请问" + processed
    return processed


def quick_reply(text: str | None) -> str | None:
    """Canned answer for the most common questions, or None."""
    if text is None or not text.strip():
        return None

    query = text.strip().lower()

    if GREETING_PATTERN.fullmatch(query):
        return GREETING_REPLY
    if "营业时间" in query or ("几点" in query and "营业" in query):
        return HOURS_REPLY
    if "电话" in query or "联系" in query or "客服" in query:
        return CONTACT_REPLY
    if "配送" in query and ("范围" in query or "地区" in query):
        return DELIVERY_RANGE_REPLY
    if "配送费" in query or ("配送" in query and "费" in query):
        return DELIVERY_FEE_REPLY
    return None


class CustomerServiceAgent(ToolCallAgent):
    """Tool-calling agent with the customer-service persona."""

    def __init__(self, *args, definition: AgentDefinition | None = None, **kwargs) -> None:
        super().__init__(definition or AgentDefinition.customer_service(), *args, **kwargs)

    def initialize(self) -> None:
        super().initialize()
        logger.debug("Customer-service agent starting conversation %s", self.conversation_id)

    def cleanup(self) -> None:
        super().cleanup()
        logger.debug("Customer-service agent finished conversation %s", self.conversation_id)

    async def handle_inquiry(self, text: str | None, user_id: str) -> str:
        logger.info("Inquiry from user %s: %s", user_id, text)
        response = await self.run(preprocess_input(text), user_id)
        logger.info("Reply to user %s: %s", user_id, response)
        return response

    def quick_reply(self, text: str | None) -> str | None:
        return quick_reply(text)

    def status_report(self) -> str:
        return (
            "=== 苍穹外卖AI客服智能体状态报告 ===\n"
            f"智能体名称：{self.name}\n"
            f"当前状态：{self.state.description}\n"
            f"可用工具数量：{len(self.available_tools())}\n"
            f"工具调用统计：{self.tool_call_stats()}\n"
            "\n"
            "我是小苍，随时为您提供优质的外卖服务！"
        )
