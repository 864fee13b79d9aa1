"""OpenAI provider.

OpenAI expects the system prompt as a system-role message at the head of
the sequence. It is only added when the history has no system entry yet.
"""

from typing import Any, Optional

from llama_index.llms.openai import OpenAI

from shared.config import OpenAISettings
from shared.models import ChatMessage
from providers.base import LlamaIndexProvider


class CallerTemperatureMixin:
    """
    Send temperature only when the call sets it.

    OpenAI-style LlamaIndex LLMs always put their own temperature into the
    request body.
    """

    def _get_model_kwargs(self, **kwargs: Any) -> dict[str, Any]:
        model_kwargs = super()._get_model_kwargs(**kwargs)
        if "temperature" not in kwargs:
            model_kwargs.pop("temperature", None)
        return model_kwargs


class OpenAIChat(CallerTemperatureMixin, OpenAI):
    """OpenAI LLM without an implicit temperature."""


def to_openai_messages(
    messages: list[ChatMessage],
    system_prompt: Optional[str]
) -> list[Any]:
    """Convert internal messages to LlamaIndex messages in OpenAI convention."""
    from llama_index.core.llms import ChatMessage as LlamaChatMessage, MessageRole

    role_map = {
        "user": MessageRole.USER,
        "assistant": MessageRole.ASSISTANT,
        "system": MessageRole.SYSTEM,
    }

    result = [
        LlamaChatMessage(role=role_map.get(msg.role, MessageRole.USER), content=msg.content)
        for msg in messages
    ]

    if system_prompt and not any(m.role == MessageRole.SYSTEM for m in result):
        result.insert(0, LlamaChatMessage(role=MessageRole.SYSTEM, content=system_prompt))

    return result


class OpenAIProvider(LlamaIndexProvider):
    """OpenAI provider using LlamaIndex."""

    name = "openai"
    label = "OpenAI"

    def __init__(self, settings: OpenAISettings, timeout_ms: Optional[int] = None) -> None:
        super().__init__(settings.default_model, timeout_ms)
        self.settings = settings

    def is_available(self) -> bool:
        return bool(self.settings.api_key)

    def _create_llm(self, model: str) -> Any:
        return OpenAIChat(
            model=model,
            api_key=self.settings.api_key,
            api_base=self.settings.api_base,
            max_retries=0,
        )

    def _convert_messages(
        self,
        messages: list[ChatMessage],
        system_prompt: Optional[str]
    ) -> list[Any]:
        return to_openai_messages(messages, system_prompt)
