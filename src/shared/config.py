"""Configuration management for the AI Factory gateway.

Supports YAML configuration files and environment variable overrides.
Configuration is loaded once at startup and cached; there is no hot reload.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Google Gemini provider configuration."""
    api_key: Optional[str] = Field(default=None, description="Gemini API key")
    default_model: str = Field(default="gemini-2.5-pro")

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        extra="ignore"
    )


class AnthropicSettings(BaseSettings):
    """Anthropic Claude provider configuration."""
    api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    default_model: str = Field(default="claude-sonnet-4-20250514")

    model_config = SettingsConfigDict(
        env_prefix="ANTHROPIC_",
        env_file=".env",
        extra="ignore"
    )


class OpenAISettings(BaseSettings):
    """OpenAI provider configuration."""
    api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    api_base: Optional[str] = Field(default=None, description="Optional API base URL")
    default_model: str = Field(default="gpt-4o")

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        env_file=".env",
        extra="ignore"
    )


class CopilotSettings(BaseSettings):
    """Local Copilot proxy configuration (OpenAI-compatible endpoint)."""
    api_host: str = Field(default="localhost")
    api_port: int = Field(default=4141)
    default_model: str = Field(default="gpt-4")

    model_config = SettingsConfigDict(
        env_prefix="COPILOT_",
        env_file=".env",
        extra="ignore"
    )

    @property
    def base_url(self) -> str:
        return f"http://{self.api_host}:{self.api_port}"


class HTTPSettings(BaseSettings):
    """HTTP transport configuration."""
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    model_config = SettingsConfigDict(
        env_prefix="HTTP_",
        env_file=".env",
        extra="ignore"
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    log_level: str = Field(default="info")
    transport: str = Field(default="stdio", description="Transport: stdio or http")

    request_timeout_ms: int = Field(default=30000, gt=0)
    ai_brain_path: str = Field(default="", description="Root directory of the AI brain")
    auth_token: str = Field(default="", description="Bearer token for the HTTP transport")

    # 0 keeps conversation history unbounded
    max_conversation_history: int = Field(default=0, ge=0)

    # Component settings
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    anthropic: AnthropicSettings = Field(default_factory=AnthropicSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    copilot: CopilotSettings = Field(default_factory=CopilotSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("AI_FACTORY_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
