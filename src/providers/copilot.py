"""GitHub Copilot provider through a local copilot-api proxy.

The proxy speaks the OpenAI protocol and does not check API keys. It is
reported available without probing; a proxy that is not running surfaces
as a backend error on the call itself.
"""

from typing import Any, Optional

from llama_index.llms.openai_like import OpenAILike

from shared.config import CopilotSettings
from shared.models import ChatMessage
from providers.base import LlamaIndexProvider
from providers.openai_provider import CallerTemperatureMixin, to_openai_messages


class CopilotChat(CallerTemperatureMixin, OpenAILike):
    """OpenAI-compatible proxy LLM without an implicit temperature."""


class CopilotProvider(LlamaIndexProvider):
    """Copilot proxy provider using LlamaIndex's OpenAI-compatible LLM."""

    name = "copilot"
    label = "Copilot"

    def __init__(self, settings: CopilotSettings, timeout_ms: Optional[int] = None) -> None:
        super().__init__(settings.default_model, timeout_ms)
        self.settings = settings

    def is_available(self) -> bool:
        return True

    def _create_llm(self, model: str) -> Any:
        return CopilotChat(
            model=model,
            api_base=self.settings.base_url,
            api_key="not-needed",
            is_chat_model=True,
            max_retries=0,
        )

    def _convert_messages(
        self,
        messages: list[ChatMessage],
        system_prompt: Optional[str]
    ) -> list[Any]:
        return to_openai_messages(messages, system_prompt)
