"""Workflow execution engine with human-in-the-loop suspension."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from hitl_orchestrator.errors import InvalidStateError, WorkflowNotFoundError
from hitl_orchestrator.workflow.definitions import WorkflowDefinitionStore
from hitl_orchestrator.workflow.events import (
    EventBus,
    HumanInputRequired,
    StepCompleted,
    StepStarted,
    WorkflowCompleted,
    WorkflowFailed,
)
from hitl_orchestrator.workflow.models import (
    HUMAN_INPUT_KEY,
    HumanInputRequest,
    StepResult,
    WorkflowDefinition,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowStep,
)
from hitl_orchestrator.workflow.steps import AgentRunner, execute_step

logger = logging.getLogger(__name__)


def find_next_step(
    definition: WorkflowDefinition, instance: WorkflowInstance
) -> WorkflowStep | None:
    """Pick the first step, in declared order, that is ready to run.

    A step is ready when it has not completed and all of its dependencies have.
    """
    completed = set(instance.completed_steps)
    for step in definition.steps:
        if step.id in completed:
            continue
        if all(dep in completed for dep in step.dependencies):
            return step
    return None


def _merge_step_data(existing: Any, data: Any) -> Any:
    if isinstance(existing, Mapping) and isinstance(data, Mapping):
        return {**existing, **data}
    return data


def _log_context(instance: WorkflowInstance, step_id: str | None = None) -> dict[str, str]:
    context = {"workflow_id": instance.workflow_id, "instance_id": instance.id}
    if step_id is not None:
        context["step_id"] = step_id
    return context


def _with_human_input(existing: Any, answer: Any) -> dict[str, Any]:
    if existing is None:
        return {HUMAN_INPUT_KEY: answer}
    if isinstance(existing, Mapping):
        return {**existing, HUMAN_INPUT_KEY: answer}
    # Non-mapping data already stored under the step id is kept alongside the answer.
    return {"data": existing, HUMAN_INPUT_KEY: answer}


class WorkflowEngine:
    """Drives workflow instances through their steps.

    Steps run one at a time, in the order chosen by :func:`find_next_step`.
    Execution stops when a human step requests input and resumes through
    :meth:`provide_human_input`. Each instance has its own lock, so at most one
    continuation runs per instance.
    """

    def __init__(
        self,
        events: EventBus | None = None,
        definitions: WorkflowDefinitionStore | None = None,
        agent_runner: AgentRunner | None = None,
    ) -> None:
        self.events = events or EventBus()
        self.definitions = definitions or WorkflowDefinitionStore()
        self.agent_runner = agent_runner
        self._instances: dict[str, WorkflowInstance] = {}
        self._pending: dict[str, HumanInputRequest] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def register(self, definition: WorkflowDefinition) -> None:
        self.definitions.register(definition)
        logger.info(f"Registered workflow {definition.id} ({len(definition.steps)} steps)")

    async def start(self, workflow_id: str, initial_data: Mapping[str, Any] | None = None) -> str:
        """Create an instance and run it until it pauses, completes or fails.

        Raises:
            WorkflowNotFoundError: If no definition is registered under ``workflow_id``.
        """
        if self.definitions.get(workflow_id) is None:
            raise WorkflowNotFoundError(workflow_id)

        instance = WorkflowInstance(workflow_id=workflow_id, step_data=dict(initial_data or {}))
        self._instances[instance.id] = instance
        lock = self._locks[instance.id] = asyncio.Lock()
        logger.info(
            f"Starting workflow {workflow_id} as instance {instance.id}",
            extra=_log_context(instance),
        )

        async with lock:
            await self._drive(instance.id)
        return instance.id

    async def provide_human_input(
        self, instance_id: str, answer: Any, step_id: str | None = None
    ) -> None:
        """Record the answer for a paused instance and resume it.

        Args:
            instance_id: Instance to resume.
            answer: Raw answer, stored under the step's ``human_input`` key.
            step_id: Step the answer was given for. When set, the answer is
                rejected unless the instance is still waiting on that step, so
                a repeated answer cannot be taken for a later request.

        Raises:
            InvalidStateError: If the instance is unknown, not paused, has no
                pending input, or is waiting on a different step.
        """
        expected = self._check_awaiting_input(instance_id, step_id)
        async with self._locks[instance_id]:
            # Another answer may have resumed the instance while we waited.
            if self._check_awaiting_input(instance_id, step_id) is not expected:
                raise InvalidStateError(
                    f"Input request for step {expected.step_id} of instance {instance_id} "
                    "was already answered"
                )

            instance = self._instances[instance_id]
            pending = self._pending.pop(instance_id)
            instance.step_data[pending.step_id] = _with_human_input(
                instance.step_data.get(pending.step_id), answer
            )
            instance.completed_steps.append(pending.step_id)
            instance.status = WorkflowStatus.RUNNING
            instance.touch()
            logger.info(
                f"Instance {instance_id} received input for step {pending.step_id}",
                extra=_log_context(instance, pending.step_id),
            )

            self.events.publish(
                StepCompleted(instance_id=instance_id, step_id=pending.step_id, result=answer)
            )
            await self._drive(instance_id)

    def _check_awaiting_input(
        self, instance_id: str, step_id: str | None = None
    ) -> HumanInputRequest:
        instance = self._instances.get(instance_id)
        if (
            instance is None
            or instance_id not in self._pending
            or instance.status != WorkflowStatus.PAUSED
        ):
            raise InvalidStateError(f"No pending human input for instance {instance_id}")
        pending = self._pending[instance_id]
        if step_id is not None and pending.step_id != step_id:
            raise InvalidStateError(
                f"Instance {instance_id} is waiting on step {pending.step_id}, not {step_id}"
            )
        return pending

    def get_state(self, instance_id: str) -> WorkflowInstance | None:
        instance = self._instances.get(instance_id)
        return instance.snapshot() if instance is not None else None

    def get_pending_input(self, instance_id: str) -> HumanInputRequest | None:
        pending = self._pending.get(instance_id)
        return pending.model_copy(deep=True) if pending is not None else None

    def list_instances(self, status: WorkflowStatus | None = None) -> list[WorkflowInstance]:
        return [
            instance.snapshot()
            for instance in self._instances.values()
            if status is None or instance.status == status
        ]

    async def _drive(self, instance_id: str) -> None:
        while True:
            instance = self._instances.get(instance_id)
            definition = self.definitions.get(instance.workflow_id) if instance else None
            if instance is None or definition is None:
                return

            step = find_next_step(definition, instance)
            if step is None:
                instance.status = WorkflowStatus.COMPLETED
                instance.current_step_id = None
                instance.touch()
                logger.info(f"Instance {instance_id} completed", extra=_log_context(instance))
                self.events.publish(
                    WorkflowCompleted(instance_id=instance_id, state=instance.snapshot())
                )
                return

            instance.current_step_id = step.id
            instance.status = WorkflowStatus.RUNNING
            instance.touch()
            logger.debug(
                f"Instance {instance_id} running step {step.id} ({step.type})",
                extra=_log_context(instance, step.id),
            )
            self.events.publish(StepStarted(instance_id=instance_id, step_id=step.id, step=step))

            try:
                result = await execute_step(step, instance, self.agent_runner)
            except Exception as e:
                logger.exception(
                    f"Step {step.id} of instance {instance_id} raised",
                    extra=_log_context(instance, step.id),
                )
                result = StepResult(step_id=step.id, success=False, error=str(e) or repr(e))

            if result.requires_human is not None:
                instance.status = WorkflowStatus.PAUSED
                self._pending[instance_id] = result.requires_human
                instance.touch()
                logger.info(
                    f"Instance {instance_id} paused for input at step {step.id}",
                    extra=_log_context(instance, step.id),
                )
                self.events.publish(
                    HumanInputRequired(
                        instance_id=instance_id,
                        human_input=result.requires_human.model_copy(deep=True),
                        state=instance.snapshot(),
                    )
                )
                return

            if not result.success:
                error = result.error or "Unknown error"
                instance.status = WorkflowStatus.FAILED
                instance.error = error
                instance.touch()
                logger.warning(
                    f"Instance {instance_id} failed at step {step.id}: {error}",
                    extra=_log_context(instance, step.id),
                )
                self.events.publish(
                    WorkflowFailed(instance_id=instance_id, step_id=step.id, error=error)
                )
                return

            instance.completed_steps.append(step.id)
            if result.data is not None:
                instance.step_data[step.id] = _merge_step_data(
                    instance.step_data.get(step.id), result.data
                )
            instance.touch()
            logger.debug(
                f"Instance {instance_id} completed step {step.id}",
                extra=_log_context(instance, step.id),
            )
            self.events.publish(
                StepCompleted(instance_id=instance_id, step_id=step.id, result=result.data)
            )
