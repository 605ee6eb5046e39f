"""Provider-neutral request/response types for LLM chat calls."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ProviderType = Literal["openai", "anthropic", "gemini"]

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    role: Role
    content: str


class ChatOptions(BaseModel):
    """Per-call overrides. Unset fields fall back to the provider's defaults."""

    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    model: str | None = None
    timeout: float | None = Field(default=None, gt=0, description="Seconds")


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    content: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str
    provider: str


class ProviderConfig(BaseModel):
    """Configuration for a single provider entry."""

    api_key: str
    base_url: str | None = None
    default_model: str | None = None
    default_options: ChatOptions = Field(default_factory=ChatOptions)


class MultiLLMConfig(BaseModel):
    """Dispatch configuration: a primary provider plus ordered fallbacks.

    Provider types are registry keys, so custom adapters registered on a
    :class:`~hitl_orchestrator.llm.registry.ProviderRegistry` can be used
    alongside the built-in ``ProviderType`` values.
    """

    primary_provider: str
    fallback_providers: list[str] = Field(default_factory=list)
    providers: dict[str, ProviderConfig] = Field(default_factory=dict)


def as_messages(messages: list[ChatMessage] | list[dict[str, str]]) -> list[ChatMessage]:
    """Accept either ``ChatMessage`` objects or plain role/content dicts."""

    return [m if isinstance(m, ChatMessage) else ChatMessage.model_validate(m) for m in messages]
