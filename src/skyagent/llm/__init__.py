"""LLM abstraction layer, unified via litellm."""

from skyagent.llm.message import Message
from skyagent.llm.provider import (
    ChatProvider,
    LiteLLMProvider,
    ModelCallError,
    ProviderConfig,
    create_provider,
)

__all__ = [
    "Message",
    "ChatProvider",
    "LiteLLMProvider",
    "ModelCallError",
    "ProviderConfig",
    "create_provider",
]
