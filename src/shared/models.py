"""Core data models for the AI Factory gateway.

This module defines the shared data structures passed between providers,
the orchestration layer and the transports.
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Roles accepted in a provider-agnostic chat sequence."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single chat turn. Immutable once created."""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: MessageRole
    content: str


class ChatOptions(BaseModel):
    """Per-call options. Unset fields fall back to adapter defaults."""
    model: Optional[str] = None
    system_prompt: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None


class ProviderStatus(BaseModel):
    """Availability snapshot of one registered provider."""
    name: str
    configured: bool
    default_model: str


class UsageRecord(BaseModel):
    """
    One dispatched backend call.

    Append-only: records are frozen and kept in emission order.
    """
    model_config = ConfigDict(frozen=True)

    provider: str
    model: str
    tool: str
    timestamp: int = Field(..., description="Epoch milliseconds at call start")
    duration_ms: int
    success: bool
    error: Optional[str] = None


class ProviderUsageSummary(BaseModel):
    """Aggregate of every usage record for one provider."""
    provider: str
    total_requests: int = 0
    success_count: int = 0
    error_count: int = 0
    avg_duration_ms: int = 0
    last_used: Optional[int] = None
    models: dict[str, int] = Field(default_factory=dict)


class UsageSummary(BaseModel):
    """Live usage view computed from all records."""
    uptime_ms: int
    total_requests: int
    providers: list[ProviderUsageSummary] = Field(default_factory=list)
    recent_errors: list[UsageRecord] = Field(default_factory=list)


class TextContent(BaseModel):
    """Text block of a tool response."""
    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    """
    Normalized result of a tool call.

    Every tool call yields one of these, either a normal payload or an
    explicit error payload with a message.
    """
    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")
    meta: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def text(cls, text: str, **meta: Any) -> "ToolResponse":
        """Create a successful response with a single text block."""
        return cls(content=[TextContent(text=text)], meta=meta)

    @classmethod
    def error(cls, message: str) -> "ToolResponse":
        """Create an error response."""
        return cls(content=[TextContent(text=message)], is_error=True)

    @property
    def first_text(self) -> str:
        """Text of the first content block, or an empty string."""
        return self.content[0].text if self.content else ""

    def to_wire(self) -> dict[str, Any]:
        """Serialize using wire field names, omitting empty meta."""
        data = self.model_dump(by_alias=True)
        if not data["meta"]:
            data.pop("meta")
        return data


class KnowledgeHit(BaseModel):
    """A knowledge file matching a brain search."""
    file: str
    preview: str
