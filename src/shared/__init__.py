"""Shared utilities and base classes for the AI Factory gateway."""

from shared.models import (
    ChatMessage,
    ChatOptions,
    ProviderStatus,
    ProviderUsageSummary,
    ToolResponse,
    UsageRecord,
    UsageSummary,
)
from shared.config import Settings, get_settings
from shared.errors import GatewayError
from shared.logging import configure_logging, get_logger, setup_logging

__all__ = [
    "ChatMessage",
    "ChatOptions",
    "ProviderStatus",
    "ProviderUsageSummary",
    "ToolResponse",
    "UsageRecord",
    "UsageSummary",
    "Settings",
    "get_settings",
    "GatewayError",
    "configure_logging",
    "get_logger",
    "setup_logging",
]
