"""AI Gateway - Core orchestration logic.

The gateway coordinates:
- Provider resolution through the registry
- Conversation history per (conversation id, provider)
- Tracked, time-limited backend calls
- Response normalization into tool responses
"""

import asyncio
import json
import uuid
from typing import Any, Optional

from pydantic import BaseModel

from shared.config import Settings
from shared.errors import (
    GatewayError,
    ProviderNotFoundError,
    ProviderUnavailableError,
    ToolValidationError,
    error_message,
)
from shared.logging import bind_context, clear_context, get_logger
from shared.models import ChatMessage, ChatOptions, MessageRole, ToolResponse
from shared.schema import check_tool_arguments
from shared.timeout import pending_detached
from brain import BrainLoader, build_brain_system_prompt
from brain.context import DEFAULT_MODULES, SECTION_SEPARATOR
from providers import AIProvider, ProviderRegistry, register_all_providers
from orchestrator.conversation import ConversationStore
from orchestrator.prompts import build_review_prompt
from orchestrator.tools import (
    TOOLS,
    AIBrainChatArgs,
    AIChatArgs,
    AICompareArgs,
    AIReviewArgs,
)
from orchestrator.usage import UsageTracker

logger = get_logger(__name__)

SERVER_NAME = "ai-factory"
SERVER_VERSION = "1.0.0"

PROVIDERS_RESOURCE = "providers://status"
USAGE_RESOURCE = "usage://summary"

BRAIN_UNAVAILABLE_MESSAGE = (
    "AI Brain is not available. Please set AI_BRAIN_PATH environment variable."
)


class AIGateway:
    """
    AI Gateway - Dispatches tool calls to chat providers.

    State is owned by the injected collaborators; the gateway itself
    holds no globals:
    1. Provider registry
    2. Conversation store
    3. Usage tracker
    4. Brain loader
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        conversations: Optional[ConversationStore] = None,
        usage: Optional[UsageTracker] = None,
        brain: Optional[BrainLoader] = None
    ) -> None:
        """
        Initialize AI Gateway.

        Args:
            registry: Registered chat providers
            conversations: Conversation store, a fresh one by default
            usage: Usage tracker, a fresh one by default
            brain: Brain loader, an unconfigured one by default
        """
        self.registry = registry
        self.conversations = conversations or ConversationStore()
        self.usage = usage or UsageTracker()
        self.brain = brain or BrainLoader()

    async def handle(self, request: dict[str, Any]) -> dict[str, Any]:
        """
        Handle a normalized {method, params} request from a transport.

        Supports tools/list, tools/call, resources/list and resources/read.
        """
        method = request.get("method")
        params = request.get("params") or {}

        if method == "tools/list":
            return {"tools": self.list_tools()}

        if method == "tools/call":
            response = await self.call_tool(params.get("name", ""), params.get("arguments"))
            return response.to_wire()

        if method == "resources/list":
            return {"resources": self.list_resources()}

        if method == "resources/read":
            return {"contents": self.read_resource(params.get("uri", ""))}

        return ToolResponse.error(f"Unknown request: {method}").to_wire()

    def list_tools(self) -> list[dict[str, Any]]:
        """Tool definitions; ai_brain_chat only when the brain is available."""
        brain_available = self.brain.is_available()
        return [
            tool.to_wire()
            for tool in TOOLS.values()
            if brain_available or not tool.requires_brain
        ]

    async def call_tool(
        self,
        name: str,
        arguments: Optional[dict[str, Any]] = None
    ) -> ToolResponse:
        """
        Execute a tool call.

        Never raises: every failure becomes an error response.
        """
        arguments = arguments or {}

        bind_context(request_id=str(uuid.uuid4()), tool=name)
        logger.info("Tool call")

        try:
            if name == "ai_chat":
                return await self.ai_chat(self._parse(name, arguments, AIChatArgs))

            if name == "ai_compare":
                return await self.ai_compare(self._parse(name, arguments, AICompareArgs))

            if name == "ai_review":
                return await self.ai_review(self._parse(name, arguments, AIReviewArgs))

            if name == "ai_brain_chat":
                if not self.brain.is_available():
                    return ToolResponse.error(BRAIN_UNAVAILABLE_MESSAGE)
                return await self.ai_brain_chat(self._parse(name, arguments, AIBrainChatArgs))

            if name == "ai_list":
                return self.ai_list()

            return ToolResponse.error(f"Unknown tool: {name}")

        except (ProviderNotFoundError, ProviderUnavailableError, ToolValidationError) as e:
            return ToolResponse.error(e.message)
        except Exception as e:
            logger.error(
                "Tool call error",
                error=error_message(e),
                exc_info=not isinstance(e, GatewayError)
            )
            return ToolResponse.error(f"Error: {error_message(e)}")
        finally:
            clear_context()

    def _parse(self, name: str, arguments: dict[str, Any], model: type[BaseModel]) -> Any:
        """Validate arguments against the tool's input schema."""
        check_tool_arguments(name, arguments, TOOLS[name].input_schema)
        return model.model_validate(arguments)

    def _resolve_provider(self, name: str) -> AIProvider:
        provider = self.registry.get(name)
        if provider is None:
            raise ProviderNotFoundError(f'Provider "{name}" not found')
        if not provider.is_available():
            raise ProviderUnavailableError(f'Provider "{name}" is not configured')
        return provider

    async def ai_chat(self, args: AIChatArgs) -> ToolResponse:
        """Chat with one provider, keeping per-provider conversation history."""
        provider = self._resolve_provider(args.provider)

        conversation_id = args.conversation_id or self.conversations.new_conversation_id()
        history = self.conversations.get(conversation_id, provider.name)
        history.append(ChatMessage(role=MessageRole.USER, content=args.prompt))

        system_prompt = args.system_prompt
        if not system_prompt and self.brain.is_available():
            context = await build_brain_system_prompt(self.brain, modules=DEFAULT_MODULES)
            if context.system_prompt:
                system_prompt = context.system_prompt
                logger.debug("Auto-injected brain context into ai_chat")

        model = args.model or provider.default_model
        response = await self.usage.track(
            provider.name,
            model,
            "ai_chat",
            lambda: provider.chat(history, ChatOptions(
                model=args.model,
                system_prompt=system_prompt,
                temperature=args.temperature,
                max_tokens=args.max_tokens,
            ))
        )

        history.append(ChatMessage(role=MessageRole.ASSISTANT, content=response))
        self.conversations.set(conversation_id, provider.name, history)

        return ToolResponse.text(
            response,
            conversation_id=conversation_id,
            provider=provider.name,
            model=model,
        )

    async def ai_compare(self, args: AICompareArgs) -> ToolResponse:
        """
        Send one prompt to several providers concurrently.

        Every provider settles independently; failures are rendered inline
        in their own section.
        """
        if args.providers is not None:
            targets = list(args.providers)
        else:
            targets = [p.name for p in self.registry.list_available()]

        if not targets:
            return ToolResponse.error("No available providers found")

        options = ChatOptions(
            system_prompt=args.system_prompt,
            temperature=args.temperature,
            max_tokens=args.max_tokens,
        )

        results = await asyncio.gather(
            *(self._compare_one(name, args.prompt, options) for name in targets),
            return_exceptions=True
        )

        sections = []
        for name, result in zip(targets, results):
            if isinstance(result, BaseException):
                sections.append(f"## {name}\n\n**Error:** {error_message(result)}")
            else:
                sections.append(f"## {name}\n\n{result}")

        return ToolResponse.text(SECTION_SEPARATOR.join(sections))

    async def _compare_one(self, name: str, prompt: str, options: ChatOptions) -> str:
        provider = self.registry.get(name)
        if provider is None:
            raise ProviderNotFoundError(f'Provider "{name}" not found')

        return await self.usage.track(
            provider.name,
            provider.default_model,
            "ai_compare",
            lambda: provider.chat(prompt, options)
        )

    async def ai_review(self, args: AIReviewArgs) -> ToolResponse:
        """Review code with one provider."""
        provider = self._resolve_provider(args.provider)
        review_prompt = build_review_prompt(args.code, args.language, args.focus)

        response = await self.usage.track(
            provider.name,
            provider.default_model,
            "ai_review",
            lambda: provider.chat(review_prompt, ChatOptions(
                temperature=args.temperature,
                max_tokens=args.max_tokens,
            ))
        )

        return ToolResponse.text(
            response,
            provider=provider.name,
            focus=args.focus or "all",
        )

    async def ai_brain_chat(self, args: AIBrainChatArgs) -> ToolResponse:
        """Chat with one provider using brain context as the system prompt."""
        if not self.brain.is_available():
            return ToolResponse.error(BRAIN_UNAVAILABLE_MESSAGE)

        provider = self._resolve_provider(args.provider)

        context = await build_brain_system_prompt(
            self.brain,
            persona=args.persona,
            modules=args.brain_modules,
            knowledge_query=args.knowledge_query,
        )

        model = args.model or provider.default_model
        response = await self.usage.track(
            provider.name,
            model,
            "ai_brain_chat",
            lambda: provider.chat(args.prompt, ChatOptions(
                model=args.model,
                system_prompt=context.system_prompt or None,
                temperature=args.temperature,
                max_tokens=args.max_tokens,
            ))
        )

        return ToolResponse.text(
            response,
            provider=provider.name,
            model=model,
            brain_modules=context.modules,
        )

    def ai_list(self) -> ToolResponse:
        """Markdown table of every registered provider."""
        rows = "\n".join(
            f"| {s.name} | {'✓' if s.configured else '✗'} | {s.default_model} |"
            for s in self.registry.statuses()
        )
        table = (
            "| Provider | Configured | Default Model |\n"
            "|----------|------------|---------------|\n"
            f"{rows}"
        )
        return ToolResponse.text(table)

    def list_resources(self) -> list[dict[str, Any]]:
        return [
            {
                "uri": PROVIDERS_RESOURCE,
                "name": "AI Provider Status",
                "mimeType": "application/json",
                "description": "Current status of all configured AI providers",
            },
            {
                "uri": USAGE_RESOURCE,
                "name": "AI Usage Summary",
                "mimeType": "application/json",
                "description": "Request counts, errors and latency per provider",
            },
        ]

    def read_resource(self, uri: str) -> list[dict[str, Any]]:
        if uri == PROVIDERS_RESOURCE:
            data: Any = [s.model_dump() for s in self.registry.statuses()]
        elif uri == USAGE_RESOURCE:
            data = self.usage.get_summary().model_dump()
        else:
            return []

        return [{
            "uri": uri,
            "mimeType": "application/json",
            "text": json.dumps(data, indent=2),
        }]

    def health(self) -> dict[str, Any]:
        """Gateway status for the health endpoint."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "providers": [p.name for p in self.registry.list_available()],
            "brain": self.brain.is_available(),
            "conversations": self.conversations.stats(),
            "detached_calls": pending_detached(),
        }


def create_gateway(settings: Settings) -> AIGateway:
    """
    Build a gateway with the canonical providers and fresh process state.

    Args:
        settings: Application settings

    Returns:
        Configured gateway
    """
    registry = register_all_providers(ProviderRegistry(), settings)

    gateway = AIGateway(
        registry=registry,
        conversations=ConversationStore(max_history=settings.max_conversation_history),
        usage=UsageTracker(),
        brain=BrainLoader(settings.ai_brain_path or None),
    )

    logger.info(
        "Gateway created",
        providers=[p.name for p in registry.list_all()],
        brain=gateway.brain.is_available()
    )
    return gateway
