"""Anthropic Claude provider.

Claude takes the system prompt through a side channel rather than as a
turn. LlamaIndex's Anthropic integration moves a leading system message
into that channel, so history system entries are dropped here and only
the explicit system prompt is sent.
"""

from typing import Any, Optional

from llama_index.llms.anthropic import Anthropic

from shared.config import AnthropicSettings
from shared.models import ChatMessage
from providers.base import LlamaIndexProvider

# Used when the caller gives no max_tokens; Anthropic requires one
DEFAULT_MAX_TOKENS = 1024


class ClaudeChat(Anthropic):
    """Anthropic LLM that sends temperature only when the call sets it."""

    @property
    def _model_kwargs(self) -> dict[str, Any]:
        model_kwargs = dict(super()._model_kwargs)
        model_kwargs.pop("temperature", None)
        return model_kwargs


class ClaudeProvider(LlamaIndexProvider):
    """Anthropic Claude provider using LlamaIndex."""

    name = "claude"
    label = "Claude"

    def __init__(self, settings: AnthropicSettings, timeout_ms: Optional[int] = None) -> None:
        super().__init__(settings.default_model, timeout_ms)
        self.settings = settings

    def is_available(self) -> bool:
        return bool(self.settings.api_key)

    def _unavailable_message(self) -> str:
        return "Anthropic API key not configured"

    def _create_llm(self, model: str) -> Any:
        return ClaudeChat(
            model=model,
            api_key=self.settings.api_key,
            max_tokens=DEFAULT_MAX_TOKENS,
            max_retries=0,
        )

    def _convert_messages(
        self,
        messages: list[ChatMessage],
        system_prompt: Optional[str]
    ) -> list[Any]:
        from llama_index.core.llms import ChatMessage as LlamaChatMessage, MessageRole

        result = []
        if system_prompt:
            result.append(LlamaChatMessage(role=MessageRole.SYSTEM, content=system_prompt))

        for msg in messages:
            if msg.role == "system":
                continue
            role = MessageRole.ASSISTANT if msg.role == "assistant" else MessageRole.USER
            result.append(LlamaChatMessage(role=role, content=msg.content))

        return result
