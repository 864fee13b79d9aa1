"""Tests for orchestrator components."""

import asyncio
import json

import pytest

from shared.errors import BackendError, RequestTimeoutError
from shared.models import ChatMessage, MessageRole, UsageRecord


class TestConversationStore:
    """Tests for ConversationStore."""

    def test_missing_history_is_empty(self):
        """Test that an unknown key yields an empty history."""
        from orchestrator.conversation import ConversationStore

        store = ConversationStore()

        assert store.get("conv-1", "claude") == []

    def test_get_returns_copy(self):
        """Test that mutating a returned history does not touch the store."""
        from orchestrator.conversation import ConversationStore

        store = ConversationStore()
        store.set("conv-1", "claude", [ChatMessage(role=MessageRole.USER, content="Hello")])

        history = store.get("conv-1", "claude")
        history.append(ChatMessage(role=MessageRole.ASSISTANT, content="Hi"))

        assert len(store.get("conv-1", "claude")) == 1

    def test_set_copies_input(self):
        """Test that the caller's list is not aliased after set."""
        from orchestrator.conversation import ConversationStore

        store = ConversationStore()
        history = [ChatMessage(role=MessageRole.USER, content="Hello")]
        store.set("conv-1", "claude", history)

        history.clear()

        assert len(store.get("conv-1", "claude")) == 1

    def test_providers_are_independent(self):
        """Test that histories under one id are kept per provider."""
        from orchestrator.conversation import ConversationStore

        store = ConversationStore()
        store.set("conv-1", "claude", [ChatMessage(role=MessageRole.USER, content="A")])
        store.set("conv-1", "gemini", [
            ChatMessage(role=MessageRole.USER, content="B"),
            ChatMessage(role=MessageRole.ASSISTANT, content="C"),
        ])

        assert [m.content for m in store.get("conv-1", "claude")] == ["A"]
        assert [m.content for m in store.get("conv-1", "gemini")] == ["B", "C"]
        assert store.get("conv-1", "openai") == []

    def test_max_history_keeps_most_recent(self):
        """Test that a bounded store keeps only the last messages."""
        from orchestrator.conversation import ConversationStore

        store = ConversationStore(max_history=2)
        store.set("conv-1", "claude", [
            ChatMessage(role=MessageRole.USER, content=str(i)) for i in range(5)
        ])

        assert [m.content for m in store.get("conv-1", "claude")] == ["3", "4"]

    def test_new_conversation_id(self):
        """Test the time-based id format."""
        from orchestrator.conversation import ConversationStore

        conversation_id = ConversationStore.new_conversation_id()

        assert conversation_id.startswith("conv-")
        assert conversation_id[len("conv-"):].isdigit()

    def test_stats(self):
        """Test store statistics."""
        from orchestrator.conversation import ConversationStore

        store = ConversationStore()
        store.set("conv-1", "claude", [ChatMessage(role=MessageRole.USER, content="A")])
        store.set("conv-1", "gemini", [ChatMessage(role=MessageRole.USER, content="B")])
        store.set("conv-2", "claude", [])

        stats = store.stats()

        assert stats["total_conversations"] == 2
        assert stats["total_histories"] == 3
        assert stats["total_messages"] == 2


class TestUsageTracker:
    """Tests for UsageTracker."""

    @staticmethod
    def _record(provider="claude", duration_ms=100, success=True, error=None, timestamp=1):
        return UsageRecord(
            provider=provider,
            model="m",
            tool="ai_chat",
            timestamp=timestamp,
            duration_ms=duration_ms,
            success=success,
            error=error,
        )

    @pytest.mark.asyncio
    async def test_track_success(self):
        """Test that a successful call records one success."""
        from orchestrator.usage import UsageTracker

        tracker = UsageTracker()

        async def operation():
            return "done"

        result = await tracker.track("claude", "claude-x", "ai_chat", operation)

        records = tracker.get_records()
        assert result == "done"
        assert len(records) == 1
        assert records[0].success is True
        assert records[0].error is None
        assert records[0].provider == "claude"
        assert records[0].model == "claude-x"
        assert records[0].tool == "ai_chat"
        assert records[0].duration_ms >= 0

    @pytest.mark.asyncio
    async def test_track_failure_reraises_original(self):
        """Test that a failure is recorded and re-raised unchanged."""
        from orchestrator.usage import UsageTracker

        tracker = UsageTracker()
        error = BackendError("Claude API error: boom", code="CLAUDE_ERROR")

        async def operation():
            raise error

        with pytest.raises(BackendError) as exc_info:
            await tracker.track("claude", "claude-x", "ai_chat", operation)

        records = tracker.get_records()
        assert exc_info.value is error
        assert len(records) == 1
        assert records[0].success is False
        assert records[0].error == "Claude API error: boom"

    @pytest.mark.asyncio
    async def test_track_cancelled_call_recorded(self):
        """Test that a cancelled call still leaves one failure record."""
        from orchestrator.usage import UsageTracker

        tracker = UsageTracker()
        started = asyncio.Event()

        async def operation():
            started.set()
            await asyncio.Event().wait()

        task = asyncio.create_task(tracker.track("gemini", "gemini-x", "ai_compare", operation))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        records = tracker.get_records()
        assert len(records) == 1
        assert records[0].success is False
        assert records[0].error == "CancelledError"
        assert tracker.get_summary().total_requests == 1

    def test_summary_average_duration(self):
        """Test that the average is computed over all records of a provider."""
        from orchestrator.usage import UsageTracker

        tracker = UsageTracker()
        tracker.record(self._record(duration_ms=100, success=True))
        tracker.record(self._record(duration_ms=300, success=False, error="x"))

        summary = tracker.get_summary()
        claude = summary.providers[0]

        assert summary.total_requests == 2
        assert claude.avg_duration_ms == 200
        assert claude.success_count == 1
        assert claude.error_count == 1
        assert claude.models == {"m": 2}

    def test_summary_average_rounds_half_up(self):
        """Test that a mean ending in .5 rounds up."""
        from orchestrator.usage import UsageTracker

        tracker = UsageTracker()
        tracker.record(self._record(duration_ms=100))
        tracker.record(self._record(duration_ms=101))

        assert tracker.get_summary().providers[0].avg_duration_ms == 101

    def test_summary_counts_add_up(self):
        """Test that success and error counts sum to the total per provider."""
        from orchestrator.usage import UsageTracker

        tracker = UsageTracker()
        for i in range(7):
            tracker.record(self._record(provider="gemini", success=i % 3 != 0, error="e"))
        tracker.record(self._record(provider="openai"))

        summary = tracker.get_summary()

        assert [p.provider for p in summary.providers] == ["gemini", "openai"]
        assert summary.total_requests == sum(p.total_requests for p in summary.providers)
        for p in summary.providers:
            assert p.success_count + p.error_count == p.total_requests

    def test_summary_last_used(self):
        """Test that last_used is the timestamp of the provider's last record."""
        from orchestrator.usage import UsageTracker

        tracker = UsageTracker()
        tracker.record(self._record(timestamp=10))
        tracker.record(self._record(timestamp=25))

        assert tracker.get_summary().providers[0].last_used == 25

    def test_recent_errors_capped(self):
        """Test that only the ten most recent failures are reported, in order."""
        from orchestrator.usage import UsageTracker

        tracker = UsageTracker()
        for i in range(50):
            tracker.record(self._record(success=False, error=f"e{i}"))

        summary = tracker.get_summary()

        assert summary.total_requests == 50
        assert [r.error for r in summary.recent_errors] == [f"e{i}" for i in range(40, 50)]

    def test_empty_summary(self):
        """Test the summary of a fresh tracker."""
        from orchestrator.usage import UsageTracker

        summary = UsageTracker().get_summary()

        assert summary.total_requests == 0
        assert summary.providers == []
        assert summary.recent_errors == []
        assert summary.uptime_ms >= 0


class TestAIGatewayChat:
    """Tests for the ai_chat tool."""

    @pytest.mark.asyncio
    async def test_chat_appends_to_history(self, gateway, registry):
        """Test that a successful chat stores the user and assistant turns."""
        response = await gateway.call_tool("ai_chat", {
            "provider": "alpha",
            "prompt": "Hello",
            "conversation_id": "conv-42",
        })

        history = gateway.conversations.get("conv-42", "alpha")
        assert response.is_error is False
        assert response.first_text == "alpha says hi"
        assert response.meta == {
            "conversation_id": "conv-42",
            "provider": "alpha",
            "model": "alpha-1",
        }
        assert [(m.role, m.content) for m in history] == [
            ("user", "Hello"),
            ("assistant", "alpha says hi"),
        ]

    @pytest.mark.asyncio
    async def test_chat_sends_prior_turns(self, gateway, registry):
        """Test that the second turn carries the first exchange."""
        await gateway.call_tool("ai_chat", {"provider": "alpha", "prompt": "One", "conversation_id": "c"})
        await gateway.call_tool("ai_chat", {"provider": "alpha", "prompt": "Two", "conversation_id": "c"})

        sent = registry.get("alpha").calls[-1]["messages"]
        assert [m.content for m in sent] == ["One", "alpha says hi", "Two"]
        assert len(gateway.conversations.get("c", "alpha")) == 4

    @pytest.mark.asyncio
    async def test_chat_generates_conversation_id(self, gateway):
        """Test that an id is generated when none is supplied."""
        response = await gateway.call_tool("ai_chat", {"provider": "alpha", "prompt": "Hi"})

        conversation_id = response.meta["conversation_id"]
        assert conversation_id.startswith("conv-")
        assert len(gateway.conversations.get(conversation_id, "alpha")) == 2

    @pytest.mark.asyncio
    async def test_chat_forwards_options(self, gateway, registry):
        """Test that model, system prompt and sampling options reach the provider."""
        response = await gateway.call_tool("ai_chat", {
            "provider": "alpha",
            "prompt": "Hi",
            "model": "alpha-2",
            "system_prompt": "Be brief.",
            "temperature": 0.2,
            "max_tokens": 64,
        })

        options = registry.get("alpha").calls[0]["options"]
        assert options.model == "alpha-2"
        assert options.system_prompt == "Be brief."
        assert options.temperature == 0.2
        assert options.max_tokens == 64
        assert response.meta["model"] == "alpha-2"

    @pytest.mark.asyncio
    async def test_chat_unknown_provider(self, gateway):
        """Test the error response for an unregistered provider."""
        response = await gateway.call_tool("ai_chat", {"provider": "nope", "prompt": "Hi"})

        assert response.is_error is True
        assert response.first_text == 'Provider "nope" not found'
        assert gateway.usage.get_records() == []

    @pytest.mark.asyncio
    async def test_chat_unconfigured_provider(self, gateway):
        """Test the error response for a provider without credentials."""
        response = await gateway.call_tool("ai_chat", {"provider": "offline", "prompt": "Hi"})

        assert response.is_error is True
        assert response.first_text == 'Provider "offline" is not configured'

    @pytest.mark.asyncio
    async def test_chat_failure_leaves_history(self, gateway, registry, fake_provider_cls):
        """Test that a failed call is reported and does not change history."""
        registry.register(fake_provider_cls(
            "alpha", error=RequestTimeoutError("Request timeout"), default_model="alpha-1"
        ))

        response = await gateway.call_tool("ai_chat", {
            "provider": "alpha",
            "prompt": "Hi",
            "conversation_id": "conv-1",
        })

        records = gateway.usage.get_records()
        assert response.is_error is True
        assert response.first_text == "Error: Request timeout"
        assert gateway.conversations.get("conv-1", "alpha") == []
        assert len(records) == 1
        assert records[0].success is False
        assert records[0].error == "Request timeout"

    @pytest.mark.asyncio
    async def test_chat_injects_brain_context(self, registry, brain_dir):
        """Test that the brain persona and rules become the default system prompt."""
        from brain import BrainLoader
        from orchestrator.gateway import AIGateway

        gateway = AIGateway(registry=registry, brain=BrainLoader(brain_dir))

        await gateway.call_tool("ai_chat", {"provider": "alpha", "prompt": "Hi"})

        system_prompt = registry.get("alpha").calls[0]["options"].system_prompt
        assert "## Persona\nYou are a careful engineer." in system_prompt
        assert "## Rules\nNever guess. Cite sources." in system_prompt

    @pytest.mark.asyncio
    async def test_chat_explicit_system_prompt_wins(self, registry, brain_dir):
        """Test that an explicit system prompt suppresses brain injection."""
        from brain import BrainLoader
        from orchestrator.gateway import AIGateway

        gateway = AIGateway(registry=registry, brain=BrainLoader(brain_dir))

        await gateway.call_tool("ai_chat", {
            "provider": "alpha",
            "prompt": "Hi",
            "system_prompt": "Only this.",
        })

        assert registry.get("alpha").calls[0]["options"].system_prompt == "Only this."


class TestAIGatewayCompare:
    """Tests for the ai_compare tool."""

    @pytest.mark.asyncio
    async def test_compare_partial_failure(self, gateway, registry, fake_provider_cls):
        """Test that one failing provider yields an inline error section."""
        registry.register(fake_provider_cls(
            "gamma", error=BackendError("Gamma API error: down"), default_model="gamma-1"
        ))

        response = await gateway.call_tool("ai_compare", {
            "prompt": "Compare me",
            "providers": ["alpha", "gamma", "beta"],
        })

        text = response.first_text
        sections = text.split("\n\n---\n\n")
        assert response.is_error is False
        assert sections == [
            "## alpha\n\nalpha says hi",
            "## gamma\n\n**Error:** Gamma API error: down",
            "## beta\n\nbeta says hi",
        ]
        assert len(gateway.usage.get_records()) == 3

    @pytest.mark.asyncio
    async def test_compare_defaults_to_available(self, gateway, registry):
        """Test that all available providers are used when none are named."""
        response = await gateway.call_tool("ai_compare", {"prompt": "Hi"})

        text = response.first_text
        assert "## alpha" in text
        assert "## beta" in text
        assert "## offline" not in text
        assert registry.get("offline").calls == []

    @pytest.mark.asyncio
    async def test_compare_sends_bare_prompt(self, gateway, registry):
        """Test that compare sends the prompt without conversation history."""
        await gateway.call_tool("ai_compare", {
            "prompt": "Hi",
            "providers": ["alpha"],
            "system_prompt": "Be brief.",
        })

        call = registry.get("alpha").calls[0]
        assert call["messages"] == "Hi"
        assert call["options"].system_prompt == "Be brief."
        assert gateway.usage.get_records()[0].tool == "ai_compare"

    @pytest.mark.asyncio
    async def test_compare_unknown_provider_inline(self, gateway):
        """Test that an unknown provider name renders as an error section."""
        response = await gateway.call_tool("ai_compare", {
            "prompt": "Hi",
            "providers": ["alpha", "nope"],
        })

        assert response.is_error is False
        assert '## nope\n\n**Error:** Provider "nope" not found' in response.first_text

    @pytest.mark.asyncio
    async def test_compare_no_available_providers(self, fake_provider_cls):
        """Test the error response when nothing is configured."""
        from orchestrator.gateway import AIGateway
        from providers.registry import ProviderRegistry

        registry = ProviderRegistry()
        registry.register(fake_provider_cls("offline", available=False))
        gateway = AIGateway(registry=registry)

        response = await gateway.call_tool("ai_compare", {"prompt": "Hi"})

        assert response.is_error is True
        assert response.first_text == "No available providers found"

    @pytest.mark.asyncio
    async def test_compare_runs_concurrently(self, fake_provider_cls):
        """Test that provider calls overlap in time."""
        from orchestrator.gateway import AIGateway
        from providers.registry import ProviderRegistry

        started = asyncio.Event()

        class Waiter(fake_provider_cls):
            async def chat(self, messages, options=None):
                await started.wait()
                return "waited"

        class Starter(fake_provider_cls):
            async def chat(self, messages, options=None):
                started.set()
                return "started"

        registry = ProviderRegistry()
        registry.register(Waiter("first"))
        registry.register(Starter("second"))
        gateway = AIGateway(registry=registry)

        response = await asyncio.wait_for(gateway.call_tool("ai_compare", {"prompt": "Hi"}), 2)

        assert "## first\n\nwaited" in response.first_text
        assert "## second\n\nstarted" in response.first_text


class TestAIGatewayReview:
    """Tests for the ai_review tool."""

    @pytest.mark.asyncio
    async def test_review_security_focus(self, gateway, registry):
        """Test that the security focus clause is used."""
        response = await gateway.call_tool("ai_review", {
            "provider": "alpha",
            "code": "eval(input())",
            "language": "python",
            "focus": "security",
        })

        prompt = registry.get("alpha").calls[0]["messages"]
        assert "security vulnerabilities" in prompt
        assert "comprehensive review" not in prompt
        assert "(python)" in prompt
        assert "```\neval(input())\n```" in prompt
        assert response.meta == {"provider": "alpha", "focus": "security"}

    @pytest.mark.asyncio
    async def test_review_default_focus(self, gateway, registry):
        """Test that the review covers everything by default."""
        response = await gateway.call_tool("ai_review", {"provider": "alpha", "code": "x = 1"})

        prompt = registry.get("alpha").calls[0]["messages"]
        assert "comprehensive review" in prompt
        assert response.meta["focus"] == "all"

    @pytest.mark.asyncio
    async def test_review_rejects_unknown_focus(self, gateway):
        """Test that an out-of-range focus fails validation."""
        response = await gateway.call_tool("ai_review", {
            "provider": "alpha",
            "code": "x = 1",
            "focus": "vibes",
        })

        assert response.is_error is True
        assert response.first_text.startswith("Invalid arguments for ai_review")


class TestAIGatewayBrainChat:
    """Tests for the ai_brain_chat tool."""

    @pytest.mark.asyncio
    async def test_brain_unavailable(self, gateway):
        """Test the error response when no brain is configured."""
        response = await gateway.call_tool("ai_brain_chat", {"provider": "alpha", "prompt": "Hi"})

        assert response.is_error is True
        assert response.first_text == (
            "AI Brain is not available. Please set AI_BRAIN_PATH environment variable."
        )

    @pytest.mark.asyncio
    async def test_brain_chat_with_knowledge(self, registry, brain_dir):
        """Test that requested modules form the system prompt."""
        from brain import BrainLoader
        from orchestrator.gateway import AIGateway

        gateway = AIGateway(registry=registry, brain=BrainLoader(brain_dir))

        response = await gateway.call_tool("ai_brain_chat", {
            "provider": "alpha",
            "prompt": "How do I fan out?",
            "persona": "pirate",
            "brain_modules": ["persona", "knowledge"],
            "knowledge_query": "fan-out",
        })

        system_prompt = registry.get("alpha").calls[0]["options"].system_prompt
        assert response.is_error is False
        assert "Talk like a pirate." in system_prompt
        assert "## Rules" not in system_prompt
        assert "### python/asyncio.md" in system_prompt
        assert response.meta == {
            "provider": "alpha",
            "model": "alpha-1",
            "brain_modules": ["persona", "knowledge"],
        }
        assert gateway.usage.get_records()[0].tool == "ai_brain_chat"

    @pytest.mark.asyncio
    async def test_brain_chat_keeps_no_history(self, registry, brain_dir):
        """Test that brain chat is single-turn."""
        from brain import BrainLoader
        from orchestrator.gateway import AIGateway

        gateway = AIGateway(registry=registry, brain=BrainLoader(brain_dir))

        await gateway.call_tool("ai_brain_chat", {"provider": "alpha", "prompt": "Hi"})

        assert registry.get("alpha").calls[0]["messages"] == "Hi"
        assert gateway.conversations.stats()["total_histories"] == 0


class TestAIGatewayDispatch:
    """Tests for listing, resources and request dispatch."""

    @pytest.mark.asyncio
    async def test_ai_list_table(self, gateway):
        """Test the provider table."""
        response = await gateway.call_tool("ai_list", {})

        lines = response.first_text.splitlines()
        assert lines[0] == "| Provider | Configured | Default Model |"
        assert lines[2:] == [
            "| alpha | ✓ | alpha-1 |",
            "| beta | ✓ | beta-1 |",
            "| offline | ✗ | off-1 |",
        ]

    @pytest.mark.asyncio
    async def test_tools_list_hides_brain_chat(self, gateway):
        """Test that ai_brain_chat is only listed with a brain."""
        result = await gateway.handle({"method": "tools/list"})

        names = [t["name"] for t in result["tools"]]
        assert names == ["ai_chat", "ai_compare", "ai_review", "ai_list"]
        assert "inputSchema" in result["tools"][0]

    @pytest.mark.asyncio
    async def test_tools_list_with_brain(self, registry, brain_dir):
        """Test that ai_brain_chat is listed with a brain."""
        from brain import BrainLoader
        from orchestrator.gateway import AIGateway

        gateway = AIGateway(registry=registry, brain=BrainLoader(brain_dir))

        result = await gateway.handle({"method": "tools/list"})

        assert "ai_brain_chat" in [t["name"] for t in result["tools"]]

    @pytest.mark.asyncio
    async def test_tools_call_wire_format(self, gateway):
        """Test the wire shape of a tools/call result."""
        result = await gateway.handle({
            "method": "tools/call",
            "params": {"name": "ai_chat", "arguments": {"provider": "alpha", "prompt": "Hi"}},
        })

        assert result["content"] == [{"type": "text", "text": "alpha says hi"}]
        assert result["isError"] is False
        assert result["meta"]["provider"] == "alpha"

    @pytest.mark.asyncio
    async def test_missing_required_argument(self, gateway):
        """Test that a missing prompt is a validation error."""
        response = await gateway.call_tool("ai_chat", {"provider": "alpha"})

        assert response.is_error is True
        assert "Invalid arguments for ai_chat" in response.first_text
        assert "prompt" in response.first_text

    @pytest.mark.asyncio
    async def test_unknown_tool(self, gateway):
        """Test the error response for an unknown tool."""
        response = await gateway.call_tool("ai_paint", {})

        assert response.is_error is True
        assert response.first_text == "Unknown tool: ai_paint"

    @pytest.mark.asyncio
    async def test_unknown_method(self, gateway):
        """Test the error response for an unknown request method."""
        result = await gateway.handle({"method": "prompts/list"})

        assert result["isError"] is True
        assert result["content"][0]["text"] == "Unknown request: prompts/list"

    @pytest.mark.asyncio
    async def test_read_usage_resource(self, gateway):
        """Test that the usage resource reflects tracked calls."""
        await gateway.call_tool("ai_chat", {"provider": "alpha", "prompt": "Hi"})

        result = await gateway.handle({
            "method": "resources/read",
            "params": {"uri": "usage://summary"},
        })

        data = json.loads(result["contents"][0]["text"])
        assert data["total_requests"] == 1
        assert data["providers"][0]["provider"] == "alpha"

    @pytest.mark.asyncio
    async def test_read_providers_resource(self, gateway):
        """Test the provider status resource."""
        result = await gateway.handle({
            "method": "resources/read",
            "params": {"uri": "providers://status"},
        })

        data = json.loads(result["contents"][0]["text"])
        assert [p["name"] for p in data] == ["alpha", "beta", "offline"]
        assert data[2]["configured"] is False

    @pytest.mark.asyncio
    async def test_list_resources(self, gateway):
        """Test the advertised resources."""
        result = await gateway.handle({"method": "resources/list"})

        assert [r["uri"] for r in result["resources"]] == ["providers://status", "usage://summary"]


class TestCreateGateway:
    """Tests for the gateway factory."""

    def test_canonical_providers(self, brain_dir):
        """Test that the four providers are registered in order."""
        from orchestrator.gateway import create_gateway
        from shared.config import (
            AnthropicSettings,
            GeminiSettings,
            OpenAISettings,
            Settings,
        )

        settings = Settings(
            gemini=GeminiSettings(api_key="g-key"),
            anthropic=AnthropicSettings(api_key=None),
            openai=OpenAISettings(api_key=None),
            ai_brain_path=str(brain_dir),
            max_conversation_history=6,
        )

        gateway = create_gateway(settings)

        assert [p.name for p in gateway.registry.list_all()] == [
            "gemini", "claude", "openai", "copilot"
        ]
        assert [p.name for p in gateway.registry.list_available()] == ["gemini", "copilot"]
        assert gateway.brain.is_available() is True
        assert gateway.conversations.max_history == 6
