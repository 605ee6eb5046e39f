"""Abstract base class for LLM providers."""

import importlib.util
import logging
from abc import ABC, abstractmethod
from typing import ClassVar

from hitl_orchestrator.llm.types import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ProviderConfig,
)

logger = logging.getLogger(__name__)

FALLBACK_TEMPERATURE = 0.1
FALLBACK_MAX_TOKENS = 1000


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    This interface allows pluggable LLM backends (OpenAI, Anthropic, Gemini).
    Subclasses construct their SDK client lazily, on the first call that
    needs it.
    """

    name: ClassVar[str]
    supported_models: ClassVar[tuple[str, ...]]
    default_model: ClassVar[str | None] = None

    # Top-level module that must be importable for the provider to be usable.
    sdk_module: ClassVar[str]

    def __init__(self, config: ProviderConfig) -> None:
        """Initialize the provider.

        Args:
            config: Provider configuration (credentials, defaults).
        """
        self.config = config

    @classmethod
    def is_available(cls) -> bool:
        """Report whether the provider's SDK is installed.

        This only inspects the import machinery; it does not import the SDK.
        """
        try:
            return importlib.util.find_spec(cls.sdk_module) is not None
        except ModuleNotFoundError:
            # Parent package of a dotted module name is missing.
            return False

    @abstractmethod
    async def chat(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        """Generate a chat completion from messages.

        Args:
            messages: Role-tagged conversation.
            options: Per-call overrides.

        Returns:
            Normalized chat response.

        Raises:
            ProviderError: If the underlying SDK call fails.
        """

    async def prompt(self, prompt: str, options: ChatOptions | None = None) -> ChatResponse:
        """Send a single user message."""
        return await self.chat([ChatMessage(role="user", content=prompt)], options)

    async def is_healthy(self) -> bool:
        """Check the backend with a minimal request.

        Returns:
            True if the request succeeded, False on any error.
        """
        try:
            await self.prompt("Hello", ChatOptions(max_tokens=5, temperature=0))
        except Exception as e:
            logger.debug(f"Health check failed for {self.name}: {e}")
            return False
        return True

    def resolve_model(self, options: ChatOptions | None) -> str:
        if options is not None and options.model:
            return options.model
        return self.config.default_model or self.default_model or self.supported_models[0]

    def resolve_temperature(self, options: ChatOptions | None) -> float:
        if options is not None and options.temperature is not None:
            return options.temperature
        if self.config.default_options.temperature is not None:
            return self.config.default_options.temperature
        return FALLBACK_TEMPERATURE

    def resolve_max_tokens(self, options: ChatOptions | None) -> int:
        if options is not None and options.max_tokens is not None:
            return options.max_tokens
        if self.config.default_options.max_tokens is not None:
            return self.config.default_options.max_tokens
        return FALLBACK_MAX_TOKENS

    def resolve_timeout(self, options: ChatOptions | None) -> float | None:
        if options is not None and options.timeout is not None:
            return options.timeout
        return self.config.default_options.timeout
