"""Agent definition, loadable from YAML frontmatter in markdown files."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from skyagent.agent.prompts import (
    CUSTOMER_SERVICE_NAME,
    CUSTOMER_SERVICE_SYSTEM_PROMPT,
    DEFAULT_MAX_STEPS,
    DEFAULT_TIMEOUT_MS,
    REACT_NEXT_STEP_PROMPT,
)

logger = logging.getLogger(__name__)


@dataclass
class AgentConfig:
    """Configuration for an agent, typically from YAML frontmatter."""

    name: str
    description: str = ""
    max_steps: int = DEFAULT_MAX_STEPS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    tools: list[str] = field(default_factory=list)  # empty means every registered tool
    next_step_prompt: str = REACT_NEXT_STEP_PROMPT


@dataclass
class AgentDefinition:
    """A configured agent persona.

    Personas are markdown files with YAML frontmatter; the body is the
    system prompt:

        ---
        name: 苍穹外卖AI客服
        max_steps: 8
        timeout_ms: 60000
        ---

        你是苍穹外卖的专业AI客服助手...
    """

    config: AgentConfig
    system_prompt: str = ""

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def max_steps(self) -> int:
        return self.config.max_steps

    @property
    def timeout_ms(self) -> int:
        return self.config.timeout_ms

    @property
    def next_step_prompt(self) -> str:
        return self.config.next_step_prompt

    @classmethod
    def from_markdown(cls, path: str) -> AgentDefinition:
        """Load an agent definition from a markdown file with YAML frontmatter."""
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()

        config_dict, prompt = _parse_frontmatter(content)
        if "name" not in config_dict:
            raise ValueError(f"Agent definition {path} has no 'name' in its frontmatter")
        logger.info("Loaded agent definition %s from %s", config_dict["name"], path)
        return cls(config=AgentConfig(**config_dict), system_prompt=prompt.strip())

    @classmethod
    def from_dict(cls, data: dict[str, Any], system_prompt: str = "") -> AgentDefinition:
        """Create an agent from a dictionary config."""
        return cls(config=AgentConfig(**data), system_prompt=system_prompt)

    @classmethod
    def customer_service(cls) -> AgentDefinition:
        """The built-in customer-service persona."""
        return cls(
            config=AgentConfig(name=CUSTOMER_SERVICE_NAME, description="苍穹外卖智能客服"),
            system_prompt=CUSTOMER_SERVICE_SYSTEM_PROMPT.strip(),
        )


def _parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML frontmatter from markdown content.

    Returns (config_dict, body_text).
    """
    import yaml  # lazy import, only needed when loading personas

    pattern = re.compile(r"^---\s*\n(.*?)\n---\s*\n(.*)", re.DOTALL)
    match = pattern.match(content)

    if not match:
        return {}, content

    frontmatter = match.group(1)
    body = match.group(2)

    try:
        config = yaml.safe_load(frontmatter) or {}
    except yaml.YAMLError as e:
        logger.warning("Ignoring malformed frontmatter: %s", e)
        config = {}

    return config, body
