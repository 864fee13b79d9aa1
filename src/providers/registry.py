"""Provider registry.

Holds every adapter by name and answers availability queries.
"""

from typing import Optional

from shared.logging import get_logger
from shared.models import ProviderStatus
from providers.base import AIProvider

logger = get_logger(__name__)


class ProviderRegistry:
    """
    Central registry for chat providers.

    Responsibilities:
    - Register providers by name (last registration wins)
    - Lookup providers by name
    - List providers in registration order
    - Report which providers are configured
    """

    def __init__(self) -> None:
        self._providers: dict[str, AIProvider] = {}

    def register(self, provider: AIProvider) -> None:
        """
        Register a provider, replacing any provider with the same name.

        A replacement keeps the original position in listing order.
        """
        if provider.name in self._providers:
            logger.warning("Provider replaced", provider=provider.name)
        self._providers[provider.name] = provider

        logger.info(
            "Provider registered",
            provider=provider.name,
            default_model=provider.default_model
        )

    def get(self, name: str) -> Optional[AIProvider]:
        """Get a provider by name."""
        return self._providers.get(name)

    def list_all(self) -> list[AIProvider]:
        """List all providers in registration order."""
        return list(self._providers.values())

    def list_available(self) -> list[AIProvider]:
        """List providers whose is_available() is true."""
        return [p for p in self.list_all() if p.is_available()]

    def statuses(self) -> list[ProviderStatus]:
        """Availability and default model of every provider."""
        return [
            ProviderStatus(
                name=p.name,
                configured=p.is_available(),
                default_model=p.default_model
            )
            for p in self.list_all()
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)
