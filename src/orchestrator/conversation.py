"""Conversation store for the orchestrator.

Keeps chat history per (conversation id, provider) for the process
lifetime. Nothing is persisted or expired.
"""

import time
from typing import Any, Sequence

from shared.logging import get_logger
from shared.models import ChatMessage

logger = get_logger(__name__)


class ConversationStore:
    """
    In-memory per-provider message history.

    Histories are copied on the way in and out, so a list handed to a
    caller is never shared with another key or with the store itself.

    The gateway reads, appends and writes back without a lock. Two
    concurrent requests for the same (id, provider) can therefore lose
    one of the updates.
    """

    def __init__(self, max_history: int = 0) -> None:
        """
        Initialize the store.

        Args:
            max_history: Keep at most this many recent messages per key.
                0 means unbounded.
        """
        self.max_history = max_history
        self._conversations: dict[str, dict[str, list[ChatMessage]]] = {}

    def get(self, conversation_id: str, provider: str) -> list[ChatMessage]:
        """Return a copy of the history, empty if absent."""
        by_provider = self._conversations.get(conversation_id, {})
        return list(by_provider.get(provider, []))

    def set(
        self,
        conversation_id: str,
        provider: str,
        history: Sequence[ChatMessage]
    ) -> None:
        """Replace the stored history."""
        messages = list(history)
        if self.max_history and len(messages) > self.max_history:
            messages = messages[-self.max_history:]

        by_provider = self._conversations.setdefault(conversation_id, {})
        is_new = provider not in by_provider
        by_provider[provider] = messages

        if is_new:
            logger.debug(
                "Conversation started",
                conversation_id=conversation_id,
                provider=provider
            )

    @staticmethod
    def new_conversation_id() -> str:
        """Generate a time-based conversation id."""
        return f"conv-{int(time.time() * 1000)}"

    def stats(self) -> dict[str, Any]:
        """Get conversation store statistics."""
        histories = [
            history
            for by_provider in self._conversations.values()
            for history in by_provider.values()
        ]
        return {
            "total_conversations": len(self._conversations),
            "total_histories": len(histories),
            "total_messages": sum(len(h) for h in histories),
            "max_history": self.max_history,
        }
