"""Configuration: Pydantic models for skyagent settings."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from skyagent.llm.provider import DEFAULT_API_BASE, DEFAULT_MODEL

logger = logging.getLogger(__name__)


class LLMConfig(BaseModel):
    """LLM provider configuration.

    Model names use litellm's provider-prefix format:
        "openai/glm-4-air"   (with the Zhipu api_base)
        "anthropic/claude-sonnet-4-5-20250929"
        "openai/gpt-4o"      (with api_base set to None)

    API keys are read from env vars automatically by litellm
    (OPENAI_API_KEY, ANTHROPIC_API_KEY, ...).
    """

    model: str = Field(default=DEFAULT_MODEL)
    api_base: str | None = Field(
        default=DEFAULT_API_BASE,
        description="OpenAI-compatible endpoint; None uses the provider default",
    )
    temperature: float | None = Field(default=None)
    max_tokens: int | None = Field(default=None)


class AgentSettings(BaseModel):
    """Limits and identity of the customer-service agent."""

    name: str = Field(default="苍穹外卖AI客服")
    max_steps: int = Field(default=10, ge=1, description="Max reason/act steps per run")
    timeout_ms: int = Field(default=300_000, ge=1, description="Wall-clock budget per run")
    stream_timeout_ms: int = Field(
        default=300_000, ge=1, description="How long a stream consumer waits for the answer"
    )
    persona_path: str | None = Field(
        default=None, description="Markdown persona with YAML frontmatter"
    )
    max_conversations: int = Field(
        default=1000, ge=1, description="Conversations kept before idle ones are evicted"
    )


class SkyAgentConfig(BaseModel):
    """Top-level skyagent configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    agent: AgentSettings = Field(default_factory=AgentSettings)

    @classmethod
    def load(cls, config_path: str | None = None) -> SkyAgentConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            OPENAI_API_KEY        - API key for the OpenAI-compatible endpoint (read by litellm)
            SKYAGENT_MODEL        - Override model (litellm format with provider prefix)
            SKYAGENT_API_BASE     - Override endpoint; empty string means provider default
            SKYAGENT_MAX_STEPS    - Override agent step budget
            SKYAGENT_TIMEOUT_MS   - Override per-run timeout
        """
        # .env values take precedence over stale shell exports.
        load_dotenv(override=True)

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
            logger.info("Loaded config from %s", config_path)

        llm = config_data.get("llm", {})
        agent = config_data.get("agent", {})

        env_model = os.environ.get("SKYAGENT_MODEL")
        if env_model:
            llm["model"] = env_model

        env_api_base = os.environ.get("SKYAGENT_API_BASE")
        if env_api_base is not None:
            llm["api_base"] = env_api_base or None

        env_max_steps = os.environ.get("SKYAGENT_MAX_STEPS")
        if env_max_steps:
            agent["max_steps"] = int(env_max_steps)

        env_timeout = os.environ.get("SKYAGENT_TIMEOUT_MS")
        if env_timeout:
            agent["timeout_ms"] = int(env_timeout)

        if llm:
            config_data["llm"] = llm
        if agent:
            config_data["agent"] = agent

        return cls.model_validate(config_data)
