"""Core configuration for the orchestrator.

Configuration is loaded from environment variables and a local `.env` file (if
present). Provider credentials use the vendors' conventional variable names, so
an existing shell setup works unchanged.
"""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from hitl_orchestrator.llm.types import ChatOptions, MultiLLMConfig, ProviderConfig, ProviderType
from hitl_orchestrator.logging import configure_logging


class LLMSettings(BaseSettings):
    """Configuration for LLM providers."""

    primary_provider: ProviderType = Field(
        default="openai",
        validation_alias="LLM_PRIMARY_PROVIDER",
        description="Provider tried first",
    )
    fallback_providers: str = Field(
        default="",
        validation_alias="LLM_FALLBACK_PROVIDERS",
        description="Comma-separated providers tried, in order, after the primary",
    )

    # OpenAI settings
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_model: str | None = Field(default=None, validation_alias="OPENAI_MODEL")
    openai_base_url: str | None = Field(default=None, validation_alias="OPENAI_BASE_URL")

    # Anthropic settings
    anthropic_api_key: str | None = Field(default=None, validation_alias="ANTHROPIC_API_KEY")
    anthropic_model: str | None = Field(default=None, validation_alias="ANTHROPIC_MODEL")

    # Gemini settings
    gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
    gemini_model: str | None = Field(default=None, validation_alias="GEMINI_MODEL")

    temperature: float | None = Field(
        default=None,
        ge=0.0,
        le=2.0,
        validation_alias="LLM_TEMPERATURE",
        description="Default sampling temperature",
    )
    max_tokens: int | None = Field(
        default=None,
        gt=0,
        validation_alias="LLM_MAX_TOKENS",
        description="Default completion token limit",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        validation_alias="LLM_TIMEOUT",
        description="Per-call timeout in seconds (none by default)",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    def parsed_fallback_providers(self) -> list[str]:
        return [p.strip() for p in self.fallback_providers.split(",") if p.strip()]

    def to_multi_llm_config(self) -> MultiLLMConfig:
        """Build the dispatch configuration; providers without a key are left out."""
        defaults = ChatOptions(
            temperature=self.temperature, max_tokens=self.max_tokens, timeout=self.timeout
        )
        candidates: dict[str, tuple[str | None, str | None, str | None]] = {
            "openai": (self.openai_api_key, self.openai_model, self.openai_base_url),
            "anthropic": (self.anthropic_api_key, self.anthropic_model, None),
            "gemini": (self.gemini_api_key, self.gemini_model, None),
        }
        providers = {
            name: ProviderConfig(
                api_key=key,
                default_model=model,
                base_url=base_url,
                default_options=defaults,
            )
            for name, (key, model, base_url) in candidates.items()
            if key
        }
        return MultiLLMConfig(
            primary_provider=self.primary_provider,
            fallback_providers=self.parsed_fallback_providers(),
            providers=providers,
        )


class OrchestratorConfig(BaseSettings):
    """Main configuration for the orchestrator."""

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level",
    )
    log_json: bool = Field(
        default=True,
        validation_alias="LOG_JSON",
        description="Emit structured JSON log lines",
    )
    debug: bool = Field(
        default=False,
        validation_alias="ORCHESTRATOR_DEBUG",
        description="Enable debug mode",
    )

    llm: LLMSettings = Field(
        default_factory=LLMSettings,
        description="LLM configuration",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        configure_logging(self.log_level, json_output=self.log_json)
        if self.debug:
            logging.getLogger("hitl_orchestrator").setLevel(logging.DEBUG)
