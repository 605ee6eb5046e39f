"""Core package initialization."""

from hitl_orchestrator.core.config import LLMSettings, OrchestratorConfig
from hitl_orchestrator.core.framework import HITLFramework

__all__ = [
    "HITLFramework",
    "LLMSettings",
    "OrchestratorConfig",
]
