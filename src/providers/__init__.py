"""Chat providers.

One adapter per backend, all interchangeable behind AIProvider and held
by a ProviderRegistry.
"""

from shared.config import Settings
from shared.logging import get_logger
from providers.base import AIProvider, LlamaIndexProvider, normalize_messages
from providers.registry import ProviderRegistry
from providers.claude import ClaudeProvider
from providers.copilot import CopilotProvider
from providers.gemini import GeminiProvider
from providers.openai_provider import OpenAIProvider

logger = get_logger(__name__)


def register_all_providers(registry: ProviderRegistry, settings: Settings) -> ProviderRegistry:
    """
    Register the canonical provider set.

    Order: gemini, claude, openai, copilot.
    """
    timeout_ms = settings.request_timeout_ms

    registry.register(GeminiProvider(settings.gemini, timeout_ms))
    registry.register(ClaudeProvider(settings.anthropic, timeout_ms))
    registry.register(OpenAIProvider(settings.openai, timeout_ms))
    registry.register(CopilotProvider(settings.copilot, timeout_ms))

    logger.info(
        "Providers registered",
        available=[p.name for p in registry.list_available()]
    )
    return registry


__all__ = [
    "AIProvider",
    "LlamaIndexProvider",
    "normalize_messages",
    "ProviderRegistry",
    "ClaudeProvider",
    "CopilotProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "register_all_providers",
]
