"""HITL Orchestrator.

Runs multi-step workflows that pause for human input, and dispatches chat
requests across LLM providers with ordered fallback.
"""

__version__ = "0.1.0"

from hitl_orchestrator.core.config import OrchestratorConfig
from hitl_orchestrator.core.framework import HITLFramework
from hitl_orchestrator.llm.manager import LLMManager
from hitl_orchestrator.workflow.engine import WorkflowEngine
from hitl_orchestrator.workflow.models import WorkflowDefinition, WorkflowStep

__all__ = [
    "__version__",
    "HITLFramework",
    "LLMManager",
    "OrchestratorConfig",
    "WorkflowDefinition",
    "WorkflowEngine",
    "WorkflowStep",
]
