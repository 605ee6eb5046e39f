"""Registry of LLM provider classes and their availability."""

from __future__ import annotations

import logging

from hitl_orchestrator.errors import ProviderUnavailableError
from hitl_orchestrator.llm.anthropic_provider import AnthropicProvider
from hitl_orchestrator.llm.gemini_provider import GeminiProvider
from hitl_orchestrator.llm.openai_provider import OpenAIProvider
from hitl_orchestrator.llm.provider import LLMProvider
from hitl_orchestrator.llm.types import ProviderConfig

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Maps provider types to adapter classes.

    Availability of each type is checked once and cached for the lifetime of the
    registry. Registries are plain objects: build one per process (or per
    test) and hand it to :class:`~hitl_orchestrator.llm.manager.LLMManager`.
    """

    def __init__(self, providers: dict[str, type[LLMProvider]] | None = None) -> None:
        self._providers: dict[str, type[LLMProvider]] = dict(providers or {})
        self._availability: dict[str, bool] = {}

    @classmethod
    def default(cls) -> ProviderRegistry:
        """Registry with the built-in OpenAI, Anthropic and Gemini adapters."""
        return cls(
            {
                "openai": OpenAIProvider,
                "anthropic": AnthropicProvider,
                "gemini": GeminiProvider,
            }
        )

    def register(self, provider_type: str, provider_class: type[LLMProvider]) -> None:
        self._providers[provider_type] = provider_class
        self._availability.pop(provider_type, None)

    def registered_types(self) -> list[str]:
        return list(self._providers)

    def is_available(self, provider_type: str) -> bool:
        if provider_type in self._availability:
            return self._availability[provider_type]

        provider_class = self._providers.get(provider_type)
        available = provider_class is not None and provider_class.is_available()
        if not available:
            logger.info(f"{provider_type} provider unavailable (SDK not installed)")
        self._availability[provider_type] = available
        return available

    def available_types(self) -> list[str]:
        return [t for t in self._providers if self.is_available(t)]

    def create(self, provider_type: str, config: ProviderConfig) -> LLMProvider:
        """Create a provider instance.

        Raises:
            ProviderUnavailableError: If the type is unknown or its SDK is missing.
        """
        provider_class = self._providers.get(provider_type)
        if provider_class is None:
            raise ProviderUnavailableError(provider_type, "is not registered")
        if not self.is_available(provider_type):
            raise ProviderUnavailableError(provider_type, "SDK is not installed")

        logger.info(f"Creating LLM provider: {provider_type}")
        return provider_class(config)
