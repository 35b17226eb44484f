"""LLM provider abstraction, unified via litellm.

litellm handles provider-specific details and reads API keys from the
environment. The default model talks to Zhipu's OpenAI-compatible
endpoint; any litellm model string works.

Both calls take the system prompt separately from the message list:

    provider = create_provider("openai/glm-4-air")
    reply = await provider.complete(system_prompt, [Message.user("你好")])
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

from skyagent.llm.message import Message

if TYPE_CHECKING:
    from litellm import CustomStreamWrapper, ModelResponse

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "openai/glm-4-air"
DEFAULT_API_BASE = "https://open.bigmodel.cn/api/paas/v4"


class ModelCallError(Exception):
    """The language model could not produce a reply."""

    def __init__(self, model: str, message: str) -> None:
        self.model = model
        super().__init__(f"{model}: {message}")


@dataclass
class ProviderConfig:
    """Configuration for an LLM provider."""

    model: str
    api_base: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None


@runtime_checkable
class ChatProvider(Protocol):
    """Protocol for LLM providers.

    ``complete`` returns the whole reply; ``stream`` yields text fragments.
    Implementations raise :class:`ModelCallError` when no reply is possible.
    """

    @property
    def config(self) -> ProviderConfig: ...

    async def complete(self, system: str, messages: Sequence[Message]) -> str: ...

    def stream(self, system: str, messages: Sequence[Message]) -> AsyncIterator[str]: ...


# ---------------------------------------------------------------------------
# litellm provider
# ---------------------------------------------------------------------------


@dataclass
class LiteLLMProvider:
    """Unified LLM provider using litellm."""

    _config: ProviderConfig

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def _request(self, system: str, messages: Sequence[Message], stream: bool) -> dict[str, Any]:
        api_messages: list[dict[str, Any]] = [
            {"role": "system", "content": system},
            *(m.to_openai_dict() for m in messages),
        ]

        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": api_messages,
            "stream": stream,
        }

        if self._config.api_base:
            kwargs["api_base"] = self._config.api_base

        if self._config.temperature is not None:
            kwargs["temperature"] = self._config.temperature

        if self._config.max_tokens is not None:
            kwargs["max_tokens"] = self._config.max_tokens

        return kwargs

    async def complete(self, system: str, messages: Sequence[Message]) -> str:
        """Return the full text of one completion."""
        kwargs = self._request(system, messages, stream=False)
        try:
            response = await _acompletion_with_retry(**kwargs)
        except Exception as e:
            logger.error("Model call to %s failed: %s", self._config.model, e, exc_info=True)
            raise ModelCallError(self._config.model, str(e)) from e

        content = _response_text(response)
        logger.debug("Model %s replied with %d chars", self._config.model, len(content))
        return content

    async def stream(self, system: str, messages: Sequence[Message]) -> AsyncIterator[str]:
        """Stream from litellm, yielding non-empty text fragments."""
        kwargs = self._request(system, messages, stream=True)
        try:
            response = await _acompletion_with_retry(**kwargs)
            async for chunk in response:  # type: ignore[union-attr]
                text = _chunk_text(chunk)
                if text:
                    yield text
        except Exception as e:
            logger.error("Streaming from %s failed: %s", self._config.model, e, exc_info=True)
            raise ModelCallError(self._config.model, str(e)) from e


@retry(
    retry=retry_if_exception_type((ConnectionError, TimeoutError, OSError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=30),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def _acompletion_with_retry(**kwargs: Any) -> CustomStreamWrapper | ModelResponse:
    """Call litellm.acompletion with retry on transient errors."""
    import litellm

    return await litellm.acompletion(**kwargs)


def _response_text(response: Any) -> str:
    """Text of the first choice of a non-streaming response, or ''."""
    choices = getattr(response, "choices", None)
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None) or ""


def _chunk_text(chunk: Any) -> str:
    choices = getattr(chunk, "choices", None)
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    return getattr(delta, "content", None) or ""


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_provider(
    model: str = DEFAULT_MODEL,
    api_base: str | None = DEFAULT_API_BASE,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> ChatProvider:
    """Create a LiteLLM provider.

    Args:
        model: Model name with provider prefix (e.g. "openai/glm-4-air",
               "anthropic/claude-sonnet-4-5-20250929").
        api_base: Endpoint override; ``None`` lets litellm pick the
                  provider's default.
        temperature: Sampling temperature.
        max_tokens: Max output tokens.
    """
    config = ProviderConfig(
        model=model,
        api_base=api_base,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    return LiteLLMProvider(_config=config)
