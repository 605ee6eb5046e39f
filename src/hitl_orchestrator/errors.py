"""Error taxonomy shared by the workflow engine and the LLM dispatch layer."""

from __future__ import annotations


class HITLError(Exception):
    """Base class for all errors raised by hitl-orchestrator."""


class NotFoundError(HITLError):
    pass


class WorkflowNotFoundError(NotFoundError):
    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Workflow {workflow_id} not found")
        self.workflow_id = workflow_id


class InvalidStateError(HITLError):
    """Raised when an operation does not fit the instance's current status."""


class InvalidWorkflowError(HITLError, ValueError):
    """Raised when a workflow definition is structurally invalid."""


class DependencyCycleError(InvalidWorkflowError):
    def __init__(self, workflow_id: str, cycle: list[str]) -> None:
        path = " -> ".join(cycle)
        super().__init__(f"Workflow {workflow_id} has a dependency cycle: {path}")
        self.workflow_id = workflow_id
        self.cycle = cycle


class UnknownStepTypeError(HITLError):
    def __init__(self, step_type: str) -> None:
        super().__init__(f"Unknown step type: {step_type}")
        self.step_type = step_type


class ProviderError(HITLError):
    """A single LLM provider call failed.

    The underlying SDK exception is chained as ``__cause__``; only the provider
    name and a message are part of the public surface.
    """

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider} API error: {message}")
        self.provider = provider
        self.message = message


class ProviderUnavailableError(HITLError):
    def __init__(self, provider: str, reason: str = "is not available") -> None:
        super().__init__(f"Provider {provider} {reason}")
        self.provider = provider


class AllProvidersFailedError(HITLError):
    def __init__(self, last_error: BaseException) -> None:
        super().__init__(f"All available LLM providers failed. Last error: {last_error}")
        self.last_error = last_error


class NoProvidersAvailableError(HITLError):
    pass
