"""Conversation front door: quick replies, then one agent per conversation."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable

from skyagent.agent.customer_service import (
    HOTLINE,
    CustomerServiceAgent,
    preprocess_input,
    quick_reply,
)
from skyagent.session.wire import TextStream, Wire
from skyagent.tool.registry import ToolRegistry

logger = logging.getLogger(__name__)

QUICK_REPLY_TIMEOUT_MS = 30_000
MAX_CONVERSATIONS = 1000
SERVICE_ERROR_REPLY = f"抱歉，我现在遇到了一些技术问题，请稍后再试或联系人工客服：{HOTLINE}"

AgentFactory = Callable[[], CustomerServiceAgent]


class AgentService:
    """Routes user messages to per-conversation agents.

    Each conversation id gets its own agent, created on first use, so
    concurrent conversations never share history or trip each other's
    busy check. All agents share one tool registry.

    At most ``max_conversations`` agents are kept. Creating one past the
    limit evicts the least recently used idle conversations; a conversation
    with a run in progress is never evicted.
    """

    def __init__(
        self,
        factory: AgentFactory,
        registry: ToolRegistry,
        max_conversations: int = MAX_CONVERSATIONS,
    ) -> None:
        if max_conversations < 1:
            raise ValueError(f"max_conversations must be positive, got {max_conversations}")
        self._factory = factory
        self._registry = registry
        self._max_conversations = max_conversations
        self._agents: OrderedDict[str, CustomerServiceAgent] = OrderedDict()
        self._lock = threading.Lock()

    def agent_for(self, conversation_id: str) -> CustomerServiceAgent:
        with self._lock:
            agent = self._agents.get(conversation_id)
            if agent is not None:
                self._agents.move_to_end(conversation_id)
                return agent
            agent = self._factory()
            self._agents[conversation_id] = agent
            logger.info("Created agent %s for conversation %s", agent.agent_id, conversation_id)
            self._evict_idle()
            return agent

    def _evict_idle(self) -> None:
        # Oldest first; the newest entry is the one just created.
        for conversation_id in list(self._agents)[:-1]:
            if len(self._agents) <= self._max_conversations:
                return
            if self._agents[conversation_id].busy:
                continue
            del self._agents[conversation_id]
            logger.info("Evicted idle conversation %s", conversation_id)

    @property
    def conversation_count(self) -> int:
        return len(self._agents)

    # --- Messages ---

    async def handle_message(self, message: str | None, user_id: str) -> str:
        logger.info("Message from user %s: %s", user_id, message)

        canned = quick_reply(message)
        if canned is not None:
            logger.info("Using quick reply for user %s", user_id)
            return canned

        try:
            agent = self.agent_for(user_id)
        except Exception as e:
            logger.error("Could not create an agent for user %s: %s", user_id, e, exc_info=True)
            return SERVICE_ERROR_REPLY
        return await agent.handle_inquiry(message, user_id)

    def handle_message_stream(self, message: str | None, user_id: str) -> TextStream:
        """Streaming variant of :meth:`handle_message`. Needs a running loop."""
        canned = quick_reply(message)
        if canned is not None:
            return _fixed_stream(canned)

        try:
            agent = self.agent_for(user_id)
        except Exception as e:
            logger.error("Could not create an agent for user %s: %s", user_id, e, exc_info=True)
            return _fixed_stream(SERVICE_ERROR_REPLY)
        return agent.run_stream(preprocess_input(message), user_id)

    # --- Management ---

    def reset_agent(self, user_id: str) -> None:
        agent = self._agents.get(user_id)
        if agent is None:
            return
        agent.reset()
        logger.info("Reset agent for user %s", user_id)

    def end_conversation(self, user_id: str) -> bool:
        """Drop a conversation's agent. True if there was one."""
        with self._lock:
            agent = self._agents.pop(user_id, None)
        if agent is None:
            return False
        logger.info("Ended conversation %s", user_id)
        return True

    def agent_status(self, user_id: str | None = None) -> str:
        if user_id is not None:
            agent = self._agents.get(user_id)
            if agent is None:
                return f"会话 {user_id} 暂无智能体"
            return agent.status_report()
        return f"活跃会话数：{self.conversation_count}，可用工具数：{self._registry.tool_count()}"

    def tool_stats(self) -> str:
        return "工具统计：共%d个工具，调用统计：%s" % (
            self._registry.tool_count(),
            self._registry.call_stats(),
        )

    def is_agent_available(self, user_id: str | None = None) -> bool:
        """True when a new message for this conversation would be accepted."""
        if user_id is None:
            return True
        agent = self._agents.get(user_id)
        return agent is None or not agent.state.is_active



def _fixed_stream(text: str) -> TextStream:
    """A stream that yields one prepared answer and ends."""
    channel = Wire()
    stream = TextStream(channel, QUICK_REPLY_TIMEOUT_MS)
    channel.send_text(text)
    channel.close()
    return stream
