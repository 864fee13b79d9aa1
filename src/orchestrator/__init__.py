"""Orchestrator / AI Gateway.

Resolves providers, keeps conversation history, tracks usage and turns
tool calls into normalized responses.
"""

from orchestrator.conversation import ConversationStore
from orchestrator.usage import UsageTracker
from orchestrator.gateway import AIGateway, create_gateway

__all__ = [
    "ConversationStore",
    "UsageTracker",
    "AIGateway",
    "create_gateway",
]
