"""Workflow domain: definitions, instance state, events and the execution engine.

Control flow is deterministic: steps run one at a time in declared order,
gated by their dependencies, and an instance suspends only when a human step
asks for input.
"""

from hitl_orchestrator.workflow.engine import WorkflowEngine, find_next_step
from hitl_orchestrator.workflow.events import EventBus
from hitl_orchestrator.workflow.models import (
    HumanInputRequest,
    StepType,
    WorkflowDefinition,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowStep,
)

__all__ = [
    "EventBus",
    "HumanInputRequest",
    "StepType",
    "WorkflowDefinition",
    "WorkflowEngine",
    "WorkflowInstance",
    "WorkflowStatus",
    "WorkflowStep",
    "find_next_step",
]
