"""Provider abstraction over LLM backends via LlamaIndex.

Each backend adapter translates a provider-agnostic chat request into the
shape its LlamaIndex integration expects and normalizes the reply to text.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, Union

from shared.errors import (
    BackendError,
    GatewayError,
    InvalidResponseError,
    ProviderUnavailableError,
)
from shared.logging import get_logger
from shared.models import ChatMessage, ChatOptions, MessageRole
from shared.timeout import with_timeout

logger = get_logger(__name__)

ChatInput = Union[str, Sequence[ChatMessage]]


def normalize_messages(messages: ChatInput) -> list[ChatMessage]:
    """Turn a bare prompt into a single user turn."""
    if isinstance(messages, str):
        return [ChatMessage(role=MessageRole.USER, content=messages)]
    return list(messages)


class AIProvider(ABC):
    """
    Abstract base class for chat providers.

    Provider rules:
    - The name is the identity; the registry keys providers by it
    - is_available() is cheap and side-effect free
    - chat() raises typed gateway errors only
    """

    name: str
    default_model: str

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider is configured for use."""
        pass

    @abstractmethod
    async def chat(
        self,
        messages: ChatInput,
        options: Optional[ChatOptions] = None
    ) -> str:
        """
        Send a chat request and return the reply text.

        Args:
            messages: A bare prompt or an ordered message sequence
            options: Model override, system prompt and sampling options

        Returns:
            Reply text

        Raises:
            ProviderUnavailableError: If credentials are not configured
            InvalidResponseError: If the backend returned no text
            RequestTimeoutError: If the call exceeded the deadline
            BackendError: For any other backend failure
        """
        pass


class LlamaIndexProvider(AIProvider):
    """
    Common flow for providers backed by a LlamaIndex LLM.

    Subclasses supply the LLM factory, the message conversion and the
    per-call keyword arguments.
    """

    label: str = "LLM"

    def __init__(self, default_model: str, timeout_ms: Optional[int] = None) -> None:
        self.default_model = default_model
        self.timeout_ms = timeout_ms
        self._llms: dict[str, Any] = {}

    @property
    def error_code(self) -> str:
        return f"{self.name.upper()}_ERROR"

    @abstractmethod
    def _create_llm(self, model: str) -> Any:
        """Build the LlamaIndex LLM for a model."""
        pass

    @abstractmethod
    def _convert_messages(
        self,
        messages: list[ChatMessage],
        system_prompt: Optional[str]
    ) -> list[Any]:
        """Convert internal messages to LlamaIndex chat messages."""
        pass

    def _call_kwargs(self, options: ChatOptions) -> dict[str, Any]:
        """Keyword arguments forwarded to achat. Only set options are sent."""
        kwargs: dict[str, Any] = {}
        if options.temperature is not None:
            kwargs["temperature"] = options.temperature
        if options.max_tokens is not None:
            kwargs["max_tokens"] = options.max_tokens
        return kwargs

    def _unavailable_message(self) -> str:
        return f"{self.label} API key not configured"

    def _get_llm(self, model: str) -> Any:
        """Lazy initialization of the LlamaIndex LLM, cached per model."""
        llm = self._llms.get(model)
        if llm is None:
            llm = self._create_llm(model)
            self._llms[model] = llm
            logger.debug("LLM client created", provider=self.name, model=model)
        return llm

    def _extract_text(self, response: Any) -> str:
        message = getattr(response, "message", None)
        content = getattr(message, "content", None) if message is not None else None
        if not content or not content.strip():
            raise InvalidResponseError(f"No text content in {self.label} response")
        return content

    async def chat(
        self,
        messages: ChatInput,
        options: Optional[ChatOptions] = None
    ) -> str:
        options = options or ChatOptions()

        if not self.is_available():
            raise ProviderUnavailableError(self._unavailable_message())

        model = options.model or self.default_model

        try:
            llm = self._get_llm(model)
            chat_messages = self._convert_messages(
                normalize_messages(messages),
                options.system_prompt
            )
            response = await with_timeout(
                llm.achat(chat_messages, **self._call_kwargs(options)),
                self.timeout_ms
            )
            text = self._extract_text(response)

        except GatewayError as e:
            logger.error(f"{self.label} API error", error=str(e), code=e.code)
            raise
        except Exception as e:
            logger.error(f"{self.label} API error", error=str(e))
            raise BackendError(
                f"{self.label} API error: {e}",
                code=self.error_code
            ) from e

        logger.debug(f"{self.label} response received", model=model)
        return text
