"""OpenAI LLM provider implementation."""

import logging
from typing import Any

from hitl_orchestrator.errors import ProviderError
from hitl_orchestrator.llm.provider import LLMProvider
from hitl_orchestrator.llm.types import ChatMessage, ChatOptions, ChatResponse, TokenUsage

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI API provider implementation.

    Requires the ``openai`` package.
    """

    name = "openai"
    supported_models = (
        "gpt-4o",
        "gpt-4o-mini",
        "gpt-4-turbo",
        "gpt-4",
        "gpt-3.5-turbo",
    )
    default_model = "gpt-4o"
    sdk_module = "openai"

    _client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.config.api_key, base_url=self.config.base_url)
            logger.info(f"OpenAI client initialized (base_url={self.config.base_url or 'default'})")
        return self._client

    async def chat(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        """Generate chat completion using the OpenAI API.

        Messages are sent as-is; OpenAI understands all three roles.
        """
        model = self.resolve_model(options)
        logger.debug(f"Generating chat completion with {len(messages)} messages using {model}")

        request: dict[str, Any] = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": self.resolve_temperature(options),
            "max_tokens": self.resolve_max_tokens(options),
        }
        # Passing timeout=None would switch off the client's own default.
        timeout = self.resolve_timeout(options)
        if timeout is not None:
            request["timeout"] = timeout

        try:
            response = await self._get_client().chat.completions.create(**request)
        except Exception as e:
            raise ProviderError(self.name, str(e)) from e

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        usage = response.usage
        logger.debug(f"Generated {len(content)} characters")

        return ChatResponse(
            content=content,
            usage=TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                total_tokens=getattr(usage, "total_tokens", 0) or 0,
            ),
            model=response.model or model,
            provider=self.name,
        )
