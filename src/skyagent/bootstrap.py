"""Process bootstrap: one provider, one tool registry, an agent factory."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from skyagent.agent.agent import AgentDefinition
from skyagent.agent.customer_service import CustomerServiceAgent
from skyagent.agent.service import AgentService
from skyagent.config import SkyAgentConfig
from skyagent.llm.provider import create_provider
from skyagent.tool.builtin import demo_tools
from skyagent.tool.registry import ToolRegistry

if TYPE_CHECKING:
    from skyagent.llm.provider import ChatProvider
    from skyagent.session.wire import Wire

logger = logging.getLogger(__name__)


@dataclass
class ServicePipeline:
    """All components needed to serve conversations, shared by every CLI command."""

    config: SkyAgentConfig
    provider: ChatProvider
    tool_registry: ToolRegistry
    definition: AgentDefinition
    wire: Wire | None = None
    service: AgentService = field(init=False)

    def __post_init__(self) -> None:
        self.service = AgentService(
            self.new_agent,
            self.tool_registry,
            max_conversations=self.config.agent.max_conversations,
        )

    def new_agent(self) -> CustomerServiceAgent:
        return CustomerServiceAgent(
            self.provider,
            definition=self.definition,
            registry=self.tool_registry,
            max_steps=self.config.agent.max_steps,
            timeout_ms=self.config.agent.timeout_ms,
            stream_timeout_ms=self.config.agent.stream_timeout_ms,
            wire=self.wire,
        )


def build_pipeline(
    config: SkyAgentConfig,
    wire: Wire | None = None,
    provider: ChatProvider | None = None,
) -> ServicePipeline:
    """Set up all components. Synchronous; nothing here talks to the network."""
    if provider is None:
        provider = create_provider(
            model=config.llm.model,
            api_base=config.llm.api_base,
            temperature=config.llm.temperature,
            max_tokens=config.llm.max_tokens,
        )

    registry = ToolRegistry()
    registered = registry.register_batch(demo_tools())
    logger.info("Tool registry ready with %d tools", registered)

    if config.agent.persona_path:
        definition = AgentDefinition.from_markdown(config.agent.persona_path)
    else:
        definition = AgentDefinition.customer_service()
        definition.config.name = config.agent.name

    return ServicePipeline(
        config=config,
        provider=provider,
        tool_registry=registry,
        definition=definition,
        wire=wire,
    )
