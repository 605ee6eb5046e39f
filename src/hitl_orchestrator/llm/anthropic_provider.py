"""Anthropic LLM provider implementation."""

import logging
from typing import Any

from hitl_orchestrator.errors import ProviderError
from hitl_orchestrator.llm.provider import LLMProvider
from hitl_orchestrator.llm.types import ChatMessage, ChatOptions, ChatResponse, TokenUsage

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API provider implementation.

    Requires the ``anthropic`` package. System messages are lifted out of the
    conversation into the request's ``system`` parameter.
    """

    name = "anthropic"
    supported_models = (
        "claude-3-5-sonnet-latest",
        "claude-3-5-haiku-latest",
        "claude-3-opus-latest",
    )
    default_model = "claude-3-5-sonnet-latest"
    sdk_module = "anthropic"

    _client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from anthropic import AsyncAnthropic

            self._client = AsyncAnthropic(
                api_key=self.config.api_key, base_url=self.config.base_url
            )
            logger.info("Anthropic client initialized")
        return self._client

    async def chat(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        model = self.resolve_model(options)

        system_parts = [m.content for m in messages if m.role == "system"]
        request: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": m.role, "content": m.content} for m in messages if m.role != "system"
            ],
            "temperature": self.resolve_temperature(options),
            "max_tokens": self.resolve_max_tokens(options),
        }
        if system_parts:
            request["system"] = "\n\n".join(system_parts)
        timeout = self.resolve_timeout(options)
        if timeout is not None:
            request["timeout"] = timeout

        logger.debug(f"Generating chat completion with {len(messages)} messages using {model}")

        try:
            response = await self._get_client().messages.create(**request)
        except Exception as e:
            raise ProviderError(self.name, str(e)) from e

        content = "".join(getattr(block, "text", "") for block in response.content or [])
        usage = response.usage
        prompt_tokens = getattr(usage, "input_tokens", 0) or 0
        completion_tokens = getattr(usage, "output_tokens", 0) or 0

        return ChatResponse(
            content=content,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            model=response.model or model,
            provider=self.name,
        )
