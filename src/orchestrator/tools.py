"""Tool definitions exposed by the gateway.

Each tool has a pydantic argument model; its JSON Schema is advertised in
tools/list and used to validate incoming arguments.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from orchestrator.prompts import ReviewFocus

BrainModule = Literal["persona", "rules", "knowledge"]


class AIChatArgs(BaseModel):
    """Arguments of ai_chat."""
    provider: str = Field(..., description="Provider name: gemini, claude, openai, or copilot")
    prompt: str = Field(..., description="The user prompt to send to the provider")
    model: Optional[str] = Field(default=None, description="Optional model override")
    system_prompt: Optional[str] = Field(default=None, description="Optional system prompt")
    conversation_id: Optional[str] = Field(
        default=None, description="Conversation ID for multi-turn chat"
    )
    temperature: Optional[float] = Field(default=None, description="Temperature for creativity (0-1)")
    max_tokens: Optional[int] = Field(default=None, description="Maximum tokens in response")


class AICompareArgs(BaseModel):
    """Arguments of ai_compare."""
    prompt: str = Field(..., description="The prompt to send to all providers")
    providers: Optional[list[str]] = Field(
        default=None, description="Provider names to compare (defaults to all available)"
    )
    system_prompt: Optional[str] = Field(default=None, description="Optional system prompt")
    temperature: Optional[float] = Field(default=None, description="Temperature for creativity (0-1)")
    max_tokens: Optional[int] = Field(default=None, description="Maximum tokens in response")


class AIReviewArgs(BaseModel):
    """Arguments of ai_review."""
    provider: str = Field(..., description="Provider name for code review")
    code: str = Field(..., description="Code snippet to review")
    language: Optional[str] = Field(default=None, description="Programming language")
    focus: Optional[ReviewFocus] = Field(default=None, description="Review focus area")
    temperature: Optional[float] = Field(default=None, description="Temperature for creativity (0-1)")
    max_tokens: Optional[int] = Field(default=None, description="Maximum tokens in response")


class AIBrainChatArgs(BaseModel):
    """Arguments of ai_brain_chat."""
    provider: str = Field(..., description="Provider name: gemini, claude, openai, or copilot")
    prompt: str = Field(..., description="The user prompt to send to the provider")
    model: Optional[str] = Field(default=None, description="Optional model override")
    persona: Optional[str] = Field(
        default=None, description="Persona name to load (defaults to 'default')"
    )
    brain_modules: Optional[list[BrainModule]] = Field(
        default=None, description="Brain modules to include: persona, rules, knowledge"
    )
    knowledge_query: Optional[str] = Field(default=None, description="Query for knowledge search")
    temperature: Optional[float] = Field(default=None, description="Temperature for creativity (0-1)")
    max_tokens: Optional[int] = Field(default=None, description="Maximum tokens in response")


class AIListArgs(BaseModel):
    """ai_list takes no arguments."""


class ToolDefinition(BaseModel):
    """
    Definition of a gateway tool.

    The argument model is the single source of the input schema.
    """
    name: str
    description: str
    args_model: type[BaseModel]
    requires_brain: bool = False

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.args_model.model_json_schema()

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


TOOLS: dict[str, ToolDefinition] = {
    tool.name: tool
    for tool in [
        ToolDefinition(
            name="ai_chat",
            description="Send a prompt to a specific AI provider with optional conversation history",
            args_model=AIChatArgs,
        ),
        ToolDefinition(
            name="ai_compare",
            description="Send a prompt to multiple providers and compare responses",
            args_model=AICompareArgs,
        ),
        ToolDefinition(
            name="ai_review",
            description="Review code using a selected AI provider",
            args_model=AIReviewArgs,
        ),
        ToolDefinition(
            name="ai_list",
            description="List configured AI providers and their status",
            args_model=AIListArgs,
        ),
        ToolDefinition(
            name="ai_brain_chat",
            description="Send a prompt to a provider with AI Brain context (persona, rules, knowledge)",
            args_model=AIBrainChatArgs,
            requires_brain=True,
        ),
    ]
}
