"""Configuration for the REST server.

The server starts without any LLM credentials; ``agent`` steps then use the
placeholder behavior and `/api/v1/llm/health` reports no providers.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Settings for the REST API."""

    workflows_path: Path | None = Field(
        default=None,
        validation_alias="ORCHESTRATOR_WORKFLOWS_PATH",
        description="Directory of workflow definition JSON files registered at startup.",
    )

    enable_llm: bool = Field(
        default=True,
        validation_alias="ORCHESTRATOR_ENABLE_LLM",
        description="Initialize the LLM dispatch manager from LLM settings at startup.",
    )

    # Dev-friendly CORS. Override via ORCHESTRATOR_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="ORCHESTRATOR_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", extra="ignore", populate_by_name=True
    )

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def workflow_files(self) -> list[Path]:
        if self.workflows_path is None or not self.workflows_path.is_dir():
            return []
        return sorted(self.workflows_path.glob("*.json"))
