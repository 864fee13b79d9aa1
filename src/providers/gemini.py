"""Google Gemini provider.

Gemini names the assistant role "model" and takes the system prompt as a
separate system instruction.
"""

from typing import Any, Optional

from google.genai import types
from llama_index.llms.google_genai import GoogleGenAI

from shared.config import GeminiSettings
from shared.models import ChatMessage, ChatOptions
from providers.base import LlamaIndexProvider

# Model metadata for LlamaIndex. Given up front, the handle skips its
# blocking model lookup on construction.
MAX_OUTPUT_TOKENS = 65536
CONTEXT_WINDOW = 1048576


class GeminiProvider(LlamaIndexProvider):
    """Google Gemini provider using LlamaIndex."""

    name = "gemini"
    label = "Gemini"

    def __init__(self, settings: GeminiSettings, timeout_ms: Optional[int] = None) -> None:
        super().__init__(settings.default_model, timeout_ms)
        self.settings = settings

    def is_available(self) -> bool:
        return bool(self.settings.api_key)

    def _create_llm(self, model: str) -> Any:
        # An empty base config keeps sampling at the model defaults
        return GoogleGenAI(
            model=model,
            api_key=self.settings.api_key,
            max_tokens=MAX_OUTPUT_TOKENS,
            context_window=CONTEXT_WINDOW,
            generation_config=types.GenerateContentConfig(),
            max_retries=0,
        )

    def _convert_messages(
        self,
        messages: list[ChatMessage],
        system_prompt: Optional[str]
    ) -> list[Any]:
        from llama_index.core.llms import ChatMessage as LlamaChatMessage, MessageRole

        result = []
        # A leading system message becomes the system instruction
        if system_prompt:
            result.append(LlamaChatMessage(role=MessageRole.SYSTEM, content=system_prompt))

        for msg in messages:
            if msg.role == "system":
                continue
            role = MessageRole.MODEL if msg.role == "assistant" else MessageRole.USER
            result.append(LlamaChatMessage(role=role, content=msg.content))

        return result

    def _call_kwargs(self, options: ChatOptions) -> dict[str, Any]:
        generation_config: dict[str, Any] = {}
        if options.temperature is not None:
            generation_config["temperature"] = options.temperature
        if options.max_tokens is not None:
            generation_config["max_output_tokens"] = options.max_tokens

        if not generation_config:
            return {}
        return {"generation_config": generation_config}
