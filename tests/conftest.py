"""Shared fixtures for gateway tests."""

import asyncio
from pathlib import Path
from typing import Any, Optional

import pytest

from shared.models import ChatOptions
from providers.base import AIProvider, ChatInput


class FakeProvider(AIProvider):
    """In-memory provider recording every call."""

    def __init__(
        self,
        name: str,
        reply: str = "ok",
        available: bool = True,
        error: Optional[Exception] = None,
        default_model: str = "fake-model",
        delay: float = 0
    ) -> None:
        self.name = name
        self.default_model = default_model
        self.reply = reply
        self.available = available
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    def is_available(self) -> bool:
        return self.available

    async def chat(self, messages: ChatInput, options: Optional[ChatOptions] = None) -> str:
        self.calls.append({
            "messages": messages if isinstance(messages, str) else list(messages),
            "options": options or ChatOptions(),
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_provider_cls():
    return FakeProvider


@pytest.fixture
def registry():
    from providers.registry import ProviderRegistry

    registry = ProviderRegistry()
    registry.register(FakeProvider("alpha", reply="alpha says hi", default_model="alpha-1"))
    registry.register(FakeProvider("beta", reply="beta says hi", default_model="beta-1"))
    registry.register(FakeProvider("offline", available=False, default_model="off-1"))
    return registry


@pytest.fixture
def brain_dir(tmp_path: Path) -> Path:
    """A brain directory with a persona, core rules and nested knowledge."""
    (tmp_path / "personas").mkdir()
    (tmp_path / "personas" / "default.md").write_text("You are a careful engineer.")
    (tmp_path / "personas" / "pirate.md").write_text("Talk like a pirate.")

    (tmp_path / "rules").mkdir()
    (tmp_path / "rules" / "core.md").write_text("Never guess. Cite sources.")

    knowledge = tmp_path / "knowledge"
    (knowledge / "python").mkdir(parents=True)
    (knowledge / "python" / "asyncio.md").write_text(
        "# Asyncio\n\nUse asyncio.gather for Fan-Out of coroutines."
    )
    (knowledge / "rust.md").write_text("# Rust\n\nOwnership and borrowing.")
    (knowledge / "notes.txt").write_text("fan-out in a text file is ignored")

    return tmp_path


@pytest.fixture
def gateway(registry):
    from orchestrator.gateway import AIGateway

    return AIGateway(registry=registry)
