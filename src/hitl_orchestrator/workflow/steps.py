from __future__ import annotations

from typing import Any, Protocol

from hitl_orchestrator.errors import UnknownStepTypeError
from hitl_orchestrator.workflow.models import (
    HumanInputRequest,
    StepResult,
    StepType,
    WorkflowInstance,
    WorkflowStep,
)


class AgentRunner(Protocol):
    """Executes ``agent`` steps.

    Runners receive a snapshot of the instance; they produce step data and do
    not decide workflow transitions. Raising fails the workflow.
    """

    async def run(self, step: WorkflowStep, state: WorkflowInstance) -> Any: ...


def human_input_request(step: WorkflowStep) -> HumanInputRequest:
    config = step.config
    return HumanInputRequest(
        step_id=step.id,
        prompt=config.get("prompt") or f"Input required for step: {step.name}",
        input_type=config.get("input_type") or config.get("inputType") or "text",
        options=config.get("options"),
        metadata=config.get("metadata"),
    )


async def execute_step(
    step: WorkflowStep,
    state: WorkflowInstance,
    agent_runner: AgentRunner | None = None,
) -> StepResult:
    """Run one step according to its type tag.

    Unknown tags yield an unsuccessful result rather than raising.
    """

    if step.type == StepType.HUMAN.value:
        return StepResult(step_id=step.id, success=True, requires_human=human_input_request(step))

    if step.type == StepType.SYSTEM.value:
        return StepResult(
            step_id=step.id,
            success=True,
            data={"message": f"System step {step.name} completed"},
        )

    if step.type == StepType.AGENT.value:
        if agent_runner is not None:
            data = await agent_runner.run(step, state.snapshot())
            return StepResult(step_id=step.id, success=True, data=data)
        return StepResult(
            step_id=step.id,
            success=True,
            data={"message": f"Agent step {step.name} completed"},
        )

    return StepResult(step_id=step.id, success=False, error=str(UnknownStepTypeError(step.type)))
