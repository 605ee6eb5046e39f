"""Google Gemini LLM provider implementation."""

import logging
from typing import Any

from hitl_orchestrator.errors import ProviderError
from hitl_orchestrator.llm.provider import LLMProvider
from hitl_orchestrator.llm.types import ChatMessage, ChatOptions, ChatResponse, TokenUsage

logger = logging.getLogger(__name__)


def to_gemini_contents(messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """Translate role-tagged messages into Gemini ``contents``.

    Gemini has no system role. System messages are folded, in order, into the
    text of the first user turn as leading context; if there is no user turn a
    user turn holding only that context is placed first. Assistant turns map to
    the ``model`` role.
    """

    system_text = "\n\n".join(m.content for m in messages if m.role == "system")

    contents: list[dict[str, Any]] = []
    folded = not system_text
    for message in messages:
        if message.role == "system":
            continue
        text = message.content
        if message.role == "user" and not folded:
            text = f"{system_text}\n\n{text}"
            folded = True
        role = "model" if message.role == "assistant" else "user"
        contents.append({"role": role, "parts": [{"text": text}]})

    if not folded:
        contents.insert(0, {"role": "user", "parts": [{"text": system_text}]})
    return contents


class GeminiProvider(LLMProvider):
    """Gemini provider implementation.

    Requires the ``google-genai`` package.
    """

    name = "gemini"
    supported_models = (
        "gemini-1.5-pro",
        "gemini-1.5-flash",
        "gemini-2.0-flash",
    )
    default_model = "gemini-1.5-pro"
    sdk_module = "google.genai"

    _client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from google import genai

            http_options = {"base_url": self.config.base_url} if self.config.base_url else None
            self._client = genai.Client(api_key=self.config.api_key, http_options=http_options)
            logger.info("Gemini client initialized")
        return self._client

    async def chat(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        model = self.resolve_model(options)
        config: dict[str, Any] = {
            "temperature": self.resolve_temperature(options),
            "max_output_tokens": self.resolve_max_tokens(options),
        }
        timeout = self.resolve_timeout(options)
        if timeout is not None:
            # google-genai expects milliseconds.
            config["http_options"] = {"timeout": int(timeout * 1000)}

        logger.debug(f"Generating chat completion with {len(messages)} messages using {model}")

        try:
            response = await self._get_client().aio.models.generate_content(
                model=model,
                contents=to_gemini_contents(messages),
                config=config,
            )
            content = response.text or ""
        except Exception as e:
            raise ProviderError(self.name, str(e)) from e

        usage = response.usage_metadata
        return ChatResponse(
            content=content,
            usage=TokenUsage(
                prompt_tokens=getattr(usage, "prompt_token_count", 0) or 0,
                completion_tokens=getattr(usage, "candidates_token_count", 0) or 0,
                total_tokens=getattr(usage, "total_token_count", 0) or 0,
            ),
            model=model,
            provider=self.name,
        )
