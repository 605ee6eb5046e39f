"""LLM package initialization."""

from hitl_orchestrator.llm.manager import LLMManager
from hitl_orchestrator.llm.provider import LLMProvider
from hitl_orchestrator.llm.registry import ProviderRegistry
from hitl_orchestrator.llm.types import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    MultiLLMConfig,
    ProviderConfig,
    TokenUsage,
)

__all__ = [
    "ChatMessage",
    "ChatOptions",
    "ChatResponse",
    "LLMManager",
    "LLMProvider",
    "MultiLLMConfig",
    "ProviderConfig",
    "ProviderRegistry",
    "TokenUsage",
]
