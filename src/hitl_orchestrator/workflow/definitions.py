"""In-memory store of registered workflow definitions."""

from __future__ import annotations

import logging

from hitl_orchestrator.errors import DependencyCycleError, InvalidWorkflowError
from hitl_orchestrator.workflow.models import WorkflowDefinition

logger = logging.getLogger(__name__)


def find_dependency_cycle(definition: WorkflowDefinition) -> list[str] | None:
    """Return one dependency cycle as a path (first id repeated last), or None."""

    deps = {step.id: step.dependencies for step in definition.steps}
    visiting: list[str] = []
    done: set[str] = set()

    def visit(step_id: str) -> list[str] | None:
        if step_id in done:
            return None
        if step_id in visiting:
            return visiting[visiting.index(step_id) :] + [step_id]
        visiting.append(step_id)
        for dep in deps.get(step_id, ()):
            cycle = visit(dep)
            if cycle is not None:
                return cycle
        visiting.pop()
        done.add(step_id)
        return None

    for step in definition.steps:
        cycle = visit(step.id)
        if cycle is not None:
            return cycle
    return None


def validate_definition(definition: WorkflowDefinition) -> None:
    """Check that step ids are unique and dependencies form a DAG.

    Raises:
        InvalidWorkflowError: On duplicate step ids or unknown dependencies.
        DependencyCycleError: If the dependencies contain a cycle.
    """
    seen: set[str] = set()
    for step in definition.steps:
        if step.id in seen:
            raise InvalidWorkflowError(
                f"Workflow {definition.id} has duplicate step id: {step.id}"
            )
        seen.add(step.id)

    for step in definition.steps:
        unknown = [dep for dep in step.dependencies if dep not in seen]
        if unknown:
            raise InvalidWorkflowError(
                f"Step {step.id} in workflow {definition.id} depends on unknown steps: "
                + ", ".join(unknown)
            )

    cycle = find_dependency_cycle(definition)
    if cycle is not None:
        raise DependencyCycleError(definition.id, cycle)


class WorkflowDefinitionStore:
    def __init__(self) -> None:
        self._definitions: dict[str, WorkflowDefinition] = {}

    def register(self, definition: WorkflowDefinition) -> None:
        """Validate and store a definition, replacing any with the same id."""
        validate_definition(definition)
        if definition.id in self._definitions:
            logger.info(f"Replacing workflow definition {definition.id}")
        # Caller-side mutation of config dicts must not reach the stored copy.
        self._definitions[definition.id] = definition.model_copy(deep=True)

    def get(self, workflow_id: str) -> WorkflowDefinition | None:
        return self._definitions.get(workflow_id)

    def ids(self) -> list[str]:
        return list(self._definitions)

    def __contains__(self, workflow_id: object) -> bool:
        return workflow_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)
