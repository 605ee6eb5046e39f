"""Multi-provider chat dispatch with fallback ordering."""

from __future__ import annotations

import asyncio
import logging

from hitl_orchestrator.errors import (
    AllProvidersFailedError,
    NoProvidersAvailableError,
    ProviderUnavailableError,
)
from hitl_orchestrator.llm.provider import LLMProvider
from hitl_orchestrator.llm.registry import ProviderRegistry
from hitl_orchestrator.llm.types import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    MultiLLMConfig,
    as_messages,
)

logger = logging.getLogger(__name__)


class LLMManager:
    """Sends chat requests to the primary provider, falling back in order.

    Only providers that are both configured and reported available by the
    registry are constructed. Use :meth:`create` to build and initialize in one
    step.
    """

    def __init__(self, config: MultiLLMConfig, registry: ProviderRegistry | None = None) -> None:
        self._registry = registry or ProviderRegistry.default()
        self._providers: dict[str, LLMProvider] = {}
        self._primary: str = config.primary_provider
        self._fallbacks: list[str] = list(config.fallback_providers)

    @classmethod
    async def create(
        cls, config: MultiLLMConfig, registry: ProviderRegistry | None = None
    ) -> LLMManager:
        manager = cls(config, registry)
        await manager.initialize(config)
        return manager

    async def initialize(self, config: MultiLLMConfig) -> None:
        """Construct the usable providers.

        Raises:
            NoProvidersAvailableError: If no configured provider could be constructed.
        """
        self._primary = config.primary_provider
        self._fallbacks = list(config.fallback_providers)

        for provider_type, provider_config in config.providers.items():
            if not self._registry.is_available(provider_type):
                logger.info(f"{provider_type} provider skipped (SDK not installed)")
                continue
            try:
                self._providers[provider_type] = self._registry.create(
                    provider_type, provider_config
                )
            except Exception as e:
                logger.warning(f"Failed to initialize {provider_type} provider: {e}")
                continue
            logger.info(f"Initialized {provider_type} provider")

        if not self._providers:
            raise NoProvidersAvailableError(
                "No LLM providers available. Install at least one SDK "
                "(openai, anthropic, google-genai) and configure its API key."
            )

        if self._primary not in self._providers:
            substitute = self.available_providers()[0]
            logger.warning(
                f"Primary provider {self._primary} not available. Using {substitute} instead."
            )
            self._primary = substitute

    @property
    def primary_provider(self) -> str:
        return self._primary

    def available_providers(self) -> list[str]:
        return list(self._providers)

    def _try_order(self) -> list[str]:
        order = [self._primary]
        for provider_type in self._fallbacks:
            if provider_type in self._providers and provider_type not in order:
                order.append(provider_type)
        return order

    async def chat(
        self,
        messages: list[ChatMessage] | list[dict[str, str]],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        """Send a chat request, trying the primary then each fallback.

        Raises:
            AllProvidersFailedError: If every provider in the try order failed.
            NoProvidersAvailableError: If the manager was never initialized.
        """
        if not self._providers:
            raise NoProvidersAvailableError("No LLM providers available")

        chat_messages = as_messages(messages)
        order = self._try_order()
        for provider_type in order:
            provider = self._providers[provider_type]
            context = {"provider": provider_type}
            try:
                logger.info(f"Attempting LLM call with {provider_type}", extra=context)
                response = await provider.chat(chat_messages, options)
            except Exception as e:
                logger.warning(f"LLM call failed with {provider_type}: {e}", extra=context)
                if provider_type == order[-1]:
                    raise AllProvidersFailedError(e) from e
                continue
            logger.info(f"LLM call successful with {provider_type}", extra=context)
            return response

        raise NoProvidersAvailableError("No LLM providers available")

    async def prompt(self, prompt: str, options: ChatOptions | None = None) -> ChatResponse:
        return await self.chat([ChatMessage(role="user", content=prompt)], options)

    async def check_health(self) -> dict[str, bool]:
        """Health-check every constructed provider; failures count as unhealthy."""
        types = list(self._providers)
        results = await asyncio.gather(
            *(self._providers[t].is_healthy() for t in types), return_exceptions=True
        )
        return {t: result is True for t, result in zip(types, results)}

    def switch_primary(self, provider_type: str) -> None:
        """Make ``provider_type`` the primary provider.

        Raises:
            ProviderUnavailableError: If the provider was not constructed.
        """
        if provider_type not in self._providers:
            raise ProviderUnavailableError(provider_type)
        self._primary = provider_type
        logger.info(f"Primary LLM provider switched to {provider_type}")
