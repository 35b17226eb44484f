"""Tests for the customer-service agent, AgentService and the bootstrap pipeline."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conftest import ScriptedProvider
from skyagent.agent.agent import AgentDefinition
from skyagent.agent.customer_service import (
    CONTACT_REPLY,
    DELIVERY_FEE_REPLY,
    DELIVERY_RANGE_REPLY,
    EMPTY_MESSAGE_TEXT,
    GREETING_REPLY,
    HOURS_REPLY,
    CustomerServiceAgent,
    preprocess_input,
    quick_reply,
)
from skyagent.agent.prompts import CUSTOMER_SERVICE_NAME, ERROR_AGENT_BUSY
from skyagent.agent.service import SERVICE_ERROR_REPLY, AgentService
from skyagent.bootstrap import build_pipeline
from skyagent.config import AgentSettings, SkyAgentConfig
from skyagent.tool.registry import ToolRegistry

PERSONA = """\
---
name: 夜宵客服
max_steps: 4
timeout_ms: 60000
tools:
  - storeStatus
---

你是夜宵专线的客服。
"""


def make_service(provider: ScriptedProvider, registry: ToolRegistry) -> AgentService:
    return AgentService(
        lambda: CustomerServiceAgent(provider, registry=registry, max_steps=3),
        registry,
    )


# ---------------------------------------------------------------------------
# Input handling
# ---------------------------------------------------------------------------


class TestPreprocessInput:
    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_blank(self, text: str | None) -> None:
        assert preprocess_input(text) == EMPTY_MESSAGE_TEXT

    def test_short_input_becomes_question(self) -> None:
        assert preprocess_input("  推荐菜 ") == "请问推荐菜"

    def test_polite_short_input_unchanged(self) -> None:
        assert preprocess_input("请推荐菜") == "请推荐菜"
        assert preprocess_input("谢谢") == "谢谢"

    def test_long_input_unchanged(self) -> None:
        text = "我想查询一下订单202501140001的配送进度"
        assert preprocess_input(text) == text


class TestQuickReply:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("你好", GREETING_REPLY),
            ("您好，在吗", GREETING_REPLY),
            ("Hello", GREETING_REPLY),
            ("营业时间是几点", HOURS_REPLY),
            ("几点开始营业", HOURS_REPLY),
            ("客服电话多少", CONTACT_REPLY),
            ("怎么联系你们", CONTACT_REPLY),
            ("配送范围有多大", DELIVERY_RANGE_REPLY),
            ("哪些地区可以配送", DELIVERY_RANGE_REPLY),
            ("配送费多少", DELIVERY_FEE_REPLY),
            ("配送要收费吗", DELIVERY_FEE_REPLY),
        ],
    )
    def test_canned(self, text: str, expected: str) -> None:
        assert quick_reply(text) == expected

    @pytest.mark.parametrize("text", [None, "", "  ", "我的订单到哪了", "推荐几个川菜"])
    def test_no_canned_reply(self, text: str | None) -> None:
        assert quick_reply(text) is None

    def test_greeting_checked_first(self) -> None:
        assert quick_reply("你好，营业时间是几点") == GREETING_REPLY


# ---------------------------------------------------------------------------
# CustomerServiceAgent
# ---------------------------------------------------------------------------


class TestCustomerServiceAgent:
    def test_default_persona(self, store_registry: ToolRegistry) -> None:
        agent = CustomerServiceAgent(ScriptedProvider(), registry=store_registry)
        assert agent.name == CUSTOMER_SERVICE_NAME
        assert agent.system_prompt.startswith("你是苍穹外卖的专业AI客服助手")
        assert agent.max_steps == 10

    def test_custom_definition(self, store_registry: ToolRegistry) -> None:
        definition = AgentDefinition.from_dict({"name": "夜宵客服", "max_steps": 2})
        agent = CustomerServiceAgent(ScriptedProvider(), definition=definition, registry=store_registry)
        assert agent.name == "夜宵客服"
        assert agent.max_steps == 2

    async def test_handle_inquiry_preprocesses(self, store_registry: ToolRegistry) -> None:
        provider = ScriptedProvider(direct="您好，请问有什么可以帮您？")
        agent = CustomerServiceAgent(provider, registry=store_registry)

        reply = await agent.handle_inquiry("   ", "u1")

        assert reply == "您好，请问有什么可以帮您？"
        assert provider.histories[0][0].text == EMPTY_MESSAGE_TEXT

    def test_quick_reply_method(self, store_registry: ToolRegistry) -> None:
        agent = CustomerServiceAgent(ScriptedProvider(), registry=store_registry)
        assert agent.quick_reply("你好") == GREETING_REPLY

    def test_status_report(self, store_registry: ToolRegistry) -> None:
        agent = CustomerServiceAgent(ScriptedProvider(), registry=store_registry)
        report = agent.status_report()
        assert report.startswith("=== 苍穹外卖AI客服智能体状态报告 ===")
        assert "当前状态：空闲状态" in report
        assert "可用工具数量：1" in report
        assert "总工具调用次数：0" in report


# ---------------------------------------------------------------------------
# AgentDefinition loading
# ---------------------------------------------------------------------------


class TestAgentDefinition:
    def test_from_markdown(self, tmp_path: Path) -> None:
        path = tmp_path / "night.md"
        path.write_text(PERSONA, encoding="utf-8")

        definition = AgentDefinition.from_markdown(str(path))

        assert definition.name == "夜宵客服"
        assert definition.max_steps == 4
        assert definition.timeout_ms == 60_000
        assert definition.config.tools == ["storeStatus"]
        assert definition.system_prompt == "你是夜宵专线的客服。"

    def test_missing_name(self, tmp_path: Path) -> None:
        path = tmp_path / "anon.md"
        path.write_text("---\nmax_steps: 3\n---\n提示词\n", encoding="utf-8")
        with pytest.raises(ValueError, match="no 'name'"):
            AgentDefinition.from_markdown(str(path))

    def test_no_frontmatter(self, tmp_path: Path) -> None:
        path = tmp_path / "plain.md"
        path.write_text("只有正文\n", encoding="utf-8")
        with pytest.raises(ValueError):
            AgentDefinition.from_markdown(str(path))

    def test_malformed_frontmatter(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.md"
        path.write_text("---\nname: [unclosed\n---\n提示词\n", encoding="utf-8")
        with pytest.raises(ValueError):
            AgentDefinition.from_markdown(str(path))

    def test_from_dict_defaults(self) -> None:
        definition = AgentDefinition.from_dict({"name": "x"}, system_prompt="p")
        assert definition.max_steps == 10
        assert definition.timeout_ms == 300_000
        assert definition.config.tools == []
        assert definition.system_prompt == "p"


# ---------------------------------------------------------------------------
# AgentService
# ---------------------------------------------------------------------------


class TestAgentService:
    async def test_quick_reply_skips_agent(self, store_registry: ToolRegistry) -> None:
        provider = ScriptedProvider()
        service = make_service(provider, store_registry)

        assert await service.handle_message("你好", "u1") == GREETING_REPLY
        assert provider.calls == []
        assert service.conversation_count == 0

    async def test_message_goes_to_agent(self, store_registry: ToolRegistry) -> None:
        provider = ScriptedProvider(direct="为您推荐麻婆豆腐")
        service = make_service(provider, store_registry)

        assert await service.handle_message("推荐菜", "u1") == "为您推荐麻婆豆腐"
        assert provider.histories[0][0].text == "请问推荐菜"
        assert service.conversation_count == 1

    def test_one_agent_per_conversation(self, store_registry: ToolRegistry) -> None:
        service = make_service(ScriptedProvider(), store_registry)
        first = service.agent_for("u1")
        assert service.agent_for("u1") is first
        assert service.agent_for("u2") is not first
        assert service.conversation_count == 2

    async def test_conversations_run_concurrently(self, store_registry: ToolRegistry) -> None:
        service = make_service(ScriptedProvider(direct="好的", delay=0.05), store_registry)

        replies = await asyncio.gather(
            service.handle_message("推荐几个川菜", "u1"),
            service.handle_message("推荐几个川菜", "u2"),
        )

        assert replies == ["好的", "好的"]

    async def test_same_conversation_is_single_flight(self, store_registry: ToolRegistry) -> None:
        service = make_service(ScriptedProvider(direct="好的", delay=0.05), store_registry)

        replies = await asyncio.gather(
            service.handle_message("推荐几个川菜", "u1"),
            service.handle_message("推荐几个粤菜", "u1"),
        )

        assert replies == ["好的", ERROR_AGENT_BUSY]

    async def test_factory_failure(self, store_registry: ToolRegistry) -> None:
        def broken_factory() -> CustomerServiceAgent:
            raise RuntimeError("no provider")

        service = AgentService(broken_factory, store_registry)
        assert await service.handle_message("推荐几个川菜", "u1") == SERVICE_ERROR_REPLY

    async def test_stream_factory_failure(self, store_registry: ToolRegistry) -> None:
        def broken_factory() -> CustomerServiceAgent:
            raise RuntimeError("no provider")

        service = AgentService(broken_factory, store_registry)
        stream = service.handle_message_stream("推荐几个川菜", "u1")

        assert await stream.collect() == SERVICE_ERROR_REPLY

    def test_idle_conversations_evicted_oldest_first(self, store_registry: ToolRegistry) -> None:
        provider = ScriptedProvider()
        service = AgentService(
            lambda: CustomerServiceAgent(provider, registry=store_registry),
            store_registry,
            max_conversations=2,
        )
        first = service.agent_for("u1")
        service.agent_for("u2")
        assert service.agent_for("u1") is first

        service.agent_for("u3")

        assert service.conversation_count == 2
        assert service.agent_status("u2") == "会话 u2 暂无智能体"
        assert service.agent_for("u1") is first

    async def test_busy_conversation_not_evicted(self, store_registry: ToolRegistry) -> None:
        provider = ScriptedProvider(direct="好的", delay=0.05)
        service = AgentService(
            lambda: CustomerServiceAgent(provider, registry=store_registry),
            store_registry,
            max_conversations=1,
        )
        task = asyncio.create_task(service.handle_message("推荐几个川菜", "u1"))
        await asyncio.sleep(0.01)

        service.agent_for("u2")
        assert service.conversation_count == 2
        assert not service.is_agent_available("u1")

        assert await task == "好的"
        service.agent_for("u3")
        assert service.conversation_count == 1

    def test_rejects_non_positive_limit(self, store_registry: ToolRegistry) -> None:
        def factory() -> CustomerServiceAgent:
            return CustomerServiceAgent(ScriptedProvider(), registry=store_registry)

        with pytest.raises(ValueError, match="max_conversations"):
            AgentService(factory, store_registry, max_conversations=0)

    async def test_end_conversation(self, store_registry: ToolRegistry) -> None:
        service = make_service(ScriptedProvider(), store_registry)
        await service.handle_message("推荐几个川菜", "u1")

        assert service.end_conversation("u1")
        assert not service.end_conversation("u1")
        assert service.conversation_count == 0

    def test_reset_unknown_conversation(self, store_registry: ToolRegistry) -> None:
        service = make_service(ScriptedProvider(), store_registry)
        service.reset_agent("nobody")
        assert service.conversation_count == 0

    async def test_agent_status(self, store_registry: ToolRegistry) -> None:
        service = make_service(ScriptedProvider(), store_registry)

        assert service.agent_status() == "活跃会话数：0，可用工具数：1"
        assert service.agent_status("u1") == "会话 u1 暂无智能体"

        await service.handle_message("推荐几个川菜", "u1")
        assert service.agent_status("u1").startswith("=== 苍穹外卖AI客服智能体状态报告 ===")
        assert service.agent_status() == "活跃会话数：1，可用工具数：1"

    def test_tool_stats(self, store_registry: ToolRegistry) -> None:
        service = make_service(ScriptedProvider(), store_registry)
        assert service.tool_stats() == "工具统计：共1个工具，调用统计：{'storestatus': 0}"

    async def test_availability(self, store_registry: ToolRegistry) -> None:
        service = make_service(ScriptedProvider(direct="好的", delay=0.05), store_registry)
        assert service.is_agent_available()
        assert service.is_agent_available("u1")

        task = asyncio.create_task(service.handle_message("推荐几个川菜", "u1"))
        await asyncio.sleep(0.01)
        assert not service.is_agent_available("u1")
        assert service.is_agent_available("u2")

        await task
        assert service.is_agent_available("u1")

    async def test_stream_quick_reply(self, store_registry: ToolRegistry) -> None:
        provider = ScriptedProvider()
        service = make_service(provider, store_registry)

        assert await service.handle_message_stream("你好", "u1").collect() == GREETING_REPLY
        assert provider.calls == []

    async def test_stream_through_agent(self, store_registry: ToolRegistry) -> None:
        provider = ScriptedProvider(direct="为您推荐麻婆豆腐")
        service = make_service(provider, store_registry)

        stream = service.handle_message_stream("推荐菜", "u1")

        assert await stream.collect() == "为您推荐麻婆豆腐"
        assert provider.histories[0][0].text == "请问推荐菜"


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


class TestBuildPipeline:
    def test_components(self) -> None:
        config = SkyAgentConfig(agent=AgentSettings(name="小苍客服", max_steps=4, timeout_ms=5000))
        pipeline = build_pipeline(config, provider=ScriptedProvider())

        assert pipeline.tool_registry.list_names() == ["orderquery", "dishrecommend", "storestatus", "faq"]
        assert pipeline.definition.name == "小苍客服"

        agent = pipeline.new_agent()
        assert agent.max_steps == 4
        assert agent.timeout_ms == 5000
        assert agent.registry is pipeline.tool_registry

    def test_persona_file(self, tmp_path: Path) -> None:
        path = tmp_path / "night.md"
        path.write_text(PERSONA, encoding="utf-8")
        config = SkyAgentConfig(agent=AgentSettings(persona_path=str(path)))

        pipeline = build_pipeline(config, provider=ScriptedProvider())
        agent = pipeline.new_agent()

        assert agent.name == "夜宵客服"
        assert agent.system_prompt == "你是夜宵专线的客服。"
        assert agent.tool_names() == ["storeStatus"]
        # Config budgets win over the persona's.
        assert agent.max_steps == 10

    async def test_order_inquiry_end_to_end(self) -> None:
        provider = ScriptedProvider(
            think=lambda p: "可以直接回答" if "上次工具调用结果" in p else "需要查询订单",
            decide="orderQuery(202501140001)",
            direct="您的订单正在派送中，预计13:15送达",
        )
        pipeline = build_pipeline(SkyAgentConfig(), provider=provider)

        reply = await pipeline.service.handle_message("我的订单202501140001到哪了", "u1")

        assert reply == "您的订单正在派送中，预计13:15送达"
        assert pipeline.tool_registry.call_stats()["orderquery"] == 1
        tool_message = provider.histories[-1][-1].text
        assert tool_message.startswith("工具结果: [orderQuery] 执行成功: 📋 订单信息：")
        assert "138****5678" in tool_message
